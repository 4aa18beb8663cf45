import logging
from .database import get_db, row_to_dict

logger = logging.getLogger(__name__)


class Batch:
    @staticmethod
    def create(name):
        """Add a new batch. Raises sqlite3.IntegrityError on duplicate names."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('INSERT INTO batches (name) VALUES (?)', (name,))
            batch_id = cursor.lastrowid
        logger.info(f"Created batch {name}")
        return Batch.get(batch_id)

    @staticmethod
    def get(batch_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM batches WHERE id = ?', (batch_id,))
            return row_to_dict(cursor.fetchone())

    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM batches ORDER BY name ASC')
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def name_map():
        """Map of batch name to id, for bulk imports."""
        return {batch['name']: batch['id'] for batch in Batch.get_all()}

    @staticmethod
    def update(batch_id, name):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('UPDATE batches SET name = ? WHERE id = ?', (name, batch_id))
        return Batch.get(batch_id)

    @staticmethod
    def delete(batch_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM batches WHERE id = ?', (batch_id,))
            return cursor.rowcount > 0
