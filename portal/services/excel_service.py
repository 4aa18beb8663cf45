"""
Service for handling Excel file uploads for student data.
"""

import pandas as pd
import logging
from typing import Tuple

from config import STUDENT_UPLOAD_HEADERS
from portal.errors import PortalError
from portal.models import Batch
from portal.services.student_service import create_student

logger = logging.getLogger(__name__)


def validate_excel_file(file_path: str) -> Tuple[bool, str, pd.DataFrame]:
    """
    Validate the uploaded Excel file.

    Returns:
        Tuple of (is_valid, error_message, dataframe)
    """
    try:
        # Passwords and names must stay text
        df = pd.read_excel(file_path, dtype=str)

        if df.empty:
            return False, "Excel file is empty", None

        df.columns = df.columns.astype(str).str.strip().str.lower()

        missing_headers = [h for h in STUDENT_UPLOAD_HEADERS if h not in df.columns]
        if missing_headers:
            return False, f"Missing required columns: {', '.join(missing_headers)}. Required: {', '.join(STUDENT_UPLOAD_HEADERS)}", None

        if df[STUDENT_UPLOAD_HEADERS].isnull().any().any():
            return False, "Excel file contains empty values in required columns", None

        for column in STUDENT_UPLOAD_HEADERS:
            df[column] = df[column].astype(str).str.strip()

        df = df[df['email'] != '']

        if df.empty:
            return False, "No valid student records found after cleaning", None

        return True, "", df

    except Exception as e:
        logger.error(f"Error validating Excel file: {e}")
        return False, f"Error reading Excel file: {str(e)}", None


def process_student_excel(file_path: str) -> Tuple[bool, str, dict]:
    """
    Process the uploaded Excel file and create one student per row.

    Rows are created independently; failures are reported per email.

    Returns:
        Tuple of (success, message, stats_dict)
    """
    is_valid, error_msg, df = validate_excel_file(file_path)
    if not is_valid:
        return False, error_msg, {}

    batch_map = Batch.name_map()
    results = {'success': [], 'failed': []}

    for _, row in df.iterrows():
        email = row['email']
        batch_id = batch_map.get(row['batch_name'])
        if batch_id is None:
            results['failed'].append({'email': email, 'error': f"Batch '{row['batch_name']}' not found"})
            continue
        try:
            create_student({
                'email': email,
                'password': row['password'],
                'first_name': row['first_name'],
                'last_name': row['last_name'],
                'batch_id': batch_id,
                'semester_number': row['semester_number'],
            })
            results['success'].append({'email': email, 'message': 'Student created successfully.'})
        except PortalError as e:
            results['failed'].append({'email': email, 'error': e.description})

    stats = {
        'total': len(df),
        'added': len(results['success']),
        'failed': len(results['failed']),
        'results': results,
    }

    if results['success']:
        message = f"Successfully added {len(results['success'])} students. "
        if results['failed']:
            message += f"{len(results['failed'])} rows failed."
        return True, message.strip(), stats
    else:
        return False, f"No new students added. All {len(results['failed'])} rows failed.", stats


def create_sample_excel(output_path: str = 'sample_students.xlsx'):
    """
    Create a sample Excel file with the correct format.
    """
    sample_data = {
        'email': ['student1@example.com', 'student2@example.com'],
        'password': ['password123', 'password456'],
        'first_name': ['John', 'Jane'],
        'last_name': ['Doe', 'Smith'],
        'batch_name': ['2024-2028', '2024-2028'],
        'semester_number': ['1', '1'],
    }

    df = pd.DataFrame(sample_data)
    df.to_excel(output_path, index=False)
    logger.info(f"Sample Excel file created: {output_path}")
    return output_path
