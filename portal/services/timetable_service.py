"""
Service for timetable entries: validation, Excel uploads and bulk subject
creation.
"""

import sqlite3
import logging
from typing import List, Tuple

import pandas as pd

from config import TIMETABLE_UPLOAD_HEADERS
from portal.errors import DuplicateRecord, RecordNotFound, ScheduleConflict, ValidationFailed
from portal.models import Batch, Subject, Timetable
from utils import format_time, parse_int, parse_semester, parse_time, first_present

logger = logging.getLogger(__name__)


def validate_entry(data: dict) -> dict:
    """
    Validate a timetable payload (camelCase or snake_case keys).

    Sessions must end after they start on the same day; sessions crossing
    midnight are rejected.
    """
    entry = {
        'day_of_week': parse_int(first_present(data, 'dayOfWeek', 'day_of_week'), 'dayOfWeek', 1, 7),
        'class_id': parse_int(first_present(data, 'classId', 'class_id'), 'classId'),
        'batch_id': parse_int(first_present(data, 'batchId', 'batch_id'), 'batchId'),
        'semester_number': parse_semester(first_present(data, 'semesterNumber', 'semester_number')),
    }

    try:
        start = parse_time(first_present(data, 'startTime', 'start_time'))
        end = parse_time(first_present(data, 'endTime', 'end_time'))
    except ValueError as e:
        raise ValidationFailed(str(e))
    if end <= start:
        raise ValidationFailed("endTime must be after startTime; sessions crossing midnight are not supported")
    entry['start_time'] = format_time(start)
    entry['end_time'] = format_time(end)

    subject = Subject.get(entry['class_id'])
    if not subject:
        raise ValidationFailed(f"Subject {entry['class_id']} does not exist")
    if not Batch.get(entry['batch_id']):
        raise ValidationFailed(f"Batch {entry['batch_id']} does not exist")
    if not subject_fits(subject, entry['batch_id'], entry['semester_number']):
        raise ValidationFailed(f"Subject {subject['name']} is not part of this batch and semester")
    return entry


def subject_fits(subject, batch_id, semester_number):
    """Subjects without a batch are shared; others belong to one batch/semester."""
    if subject['batch_id'] is None:
        return True
    return (subject['batch_id'], subject['semester_number']) == (batch_id, semester_number)


def find_file_overlaps(entries):
    """
    Row errors for sessions in one upload that overlap each other.

    entries: dicts with line, day_of_week, batch_id, semester_number,
    start_time and end_time.
    """
    errors = []
    ordered = sorted(entries, key=lambda e: (e['day_of_week'], e['batch_id'], e['semester_number'],
                                              e['start_time']))
    previous = None
    for entry in ordered:
        if previous is not None:
            same_slot = all(previous[k] == entry[k] for k in ('day_of_week', 'batch_id', 'semester_number'))
            if same_slot and entry['start_time'] < previous['end_time']:
                errors.append(f"Row {entry['line']}: overlaps row {previous['line']} "
                              f"({previous['start_time']}-{previous['end_time']}) on the same day")
                # keep the session that ends last as the reference
                if entry['end_time'] <= previous['end_time']:
                    continue
        previous = entry
    return errors


def _check_overlap(entry, exclude_id=None):
    clash = Timetable.find_overlap(
        entry['day_of_week'], entry['batch_id'], entry['semester_number'],
        entry['start_time'], entry['end_time'], exclude_id=exclude_id,
    )
    if clash:
        raise ScheduleConflict(
            f"Overlaps {clash['subject_name']} ({clash['start_time']}-{clash['end_time']}) on the same day"
        )


def create_entry(data: dict) -> dict:
    entry = validate_entry(data)
    _check_overlap(entry)
    try:
        entry_id = Timetable.add(**entry)
    except sqlite3.IntegrityError:
        raise DuplicateRecord("Timetable entry for this class and day already exists")
    logger.info(f"Timetable entry {entry_id} created for day {entry['day_of_week']} {entry['start_time']}")
    return Timetable.get(entry_id)


def update_entry(entry_id: int, data: dict) -> dict:
    if not Timetable.get(entry_id):
        raise RecordNotFound("Timetable entry")
    entry = validate_entry(data)
    _check_overlap(entry, exclude_id=entry_id)
    try:
        return Timetable.update(entry_id, **entry)
    except sqlite3.IntegrityError:
        raise DuplicateRecord("Timetable entry for this class and day already exists")


def validate_timetable_excel(file_path: str) -> Tuple[bool, List[str], pd.DataFrame]:
    """
    Validate the uploaded timetable Excel file.

    Returns:
        Tuple of (is_valid, error_messages, dataframe)
    """
    try:
        df = pd.read_excel(file_path)

        if df.empty:
            return False, ["Excel file is empty"], None

        df.columns = df.columns.astype(str).str.strip().str.lower()

        missing_headers = [h for h in TIMETABLE_UPLOAD_HEADERS if h not in df.columns]
        if missing_headers:
            return False, [f"Missing required columns: {', '.join(missing_headers)}. "
                           f"Required: {', '.join(TIMETABLE_UPLOAD_HEADERS)}"], None

        if 'period' not in df.columns:
            df['period'] = None

        errors = []
        rows = []
        for index, row in df.iterrows():
            line = index + 2  # header is row 1
            if row[TIMETABLE_UPLOAD_HEADERS].isnull().any():
                errors.append(f"Row {line}: empty value in a required column")
                continue
            try:
                start = parse_time(row['start_time'])
                end = parse_time(row['end_time'])
                if end <= start:
                    raise ValueError("end_time must be after start_time")
                rows.append({
                    'line': line,
                    'day_of_week': parse_int(row['day_of_week'], 'day_of_week', 1, 7),
                    'subject_name': str(row['subject_name']).strip(),
                    'period': None if pd.isna(row['period']) else parse_int(row['period'], 'period'),
                    'batch_name': str(row['batch_name']).strip(),
                    'semester_number': parse_semester(row['semester_number']),
                    'start_time': format_time(start),
                    'end_time': format_time(end),
                })
            except (ValueError, ValidationFailed) as e:
                message = e.description if isinstance(e, ValidationFailed) else str(e)
                errors.append(f"Row {line}: {message}")

        if errors:
            return False, errors, None
        if not rows:
            return False, ["No valid timetable records found after cleaning"], None

        return True, [], pd.DataFrame(rows)

    except Exception as e:
        logger.error(f"Error validating timetable Excel file: {e}")
        return False, [f"Error reading Excel file: {str(e)}"], None


def process_timetable_excel(file_path: str) -> Tuple[bool, str, dict]:
    """
    Process the uploaded Excel file and add timetable entries.

    Subjects and batches are looked up by name. A subject must belong to the
    row's batch and semester, or to no batch at all. Sessions may not overlap
    stored sessions or each other. If any row fails, nothing is inserted.

    Returns:
        Tuple of (success, message, stats_dict)
    """
    is_valid, errors, df = validate_timetable_excel(file_path)
    if not is_valid:
        return False, "Some rows failed validation", {'errors': errors}

    subject_map = Subject.lookup_map()
    batch_map = Batch.name_map()

    entries = []
    lookup_errors = []
    for _, row in df.iterrows():
        period = int(row['period']) if pd.notna(row['period']) else None
        batch_id = batch_map.get(row['batch_name'])
        semester_number = int(row['semester_number'])
        subject_id = (subject_map.get((row['subject_name'], period, batch_id, semester_number))
                      or subject_map.get((row['subject_name'], period, None, None)))

        if not batch_id:
            lookup_errors.append(f"Row {row['line']}: Batch '{row['batch_name']}' not found")
        elif not subject_id:
            lookup_errors.append(f"Row {row['line']}: Subject '{row['subject_name']}' "
                                 f"(Period: {period or 'N/A'}) not found for batch {row['batch_name']} "
                                 f"semester {semester_number}")

        if subject_id and batch_id:
            entries.append({
                'line': row['line'],
                'day_of_week': int(row['day_of_week']),
                'class_id': subject_id,
                'batch_id': batch_id,
                'semester_number': semester_number,
                'start_time': row['start_time'],
                'end_time': row['end_time'],
            })

    if lookup_errors:
        return False, "Some entries reference missing subjects or batches", {'errors': lookup_errors}

    overlap_errors = find_file_overlaps(entries)
    for entry in entries:
        clash = Timetable.find_overlap(entry['day_of_week'], entry['batch_id'], entry['semester_number'],
                                       entry['start_time'], entry['end_time'])
        if clash:
            overlap_errors.append(f"Row {entry['line']}: overlaps {clash['subject_name']} "
                                  f"({clash['start_time']}-{clash['end_time']}) on the same day")
    if overlap_errors:
        return False, "Some entries overlap existing sessions", {'errors': overlap_errors}

    try:
        added = Timetable.bulk_add([
            (e['day_of_week'], e['class_id'], e['batch_id'], e['semester_number'], e['start_time'], e['end_time'])
            for e in entries
        ])
    except sqlite3.IntegrityError as e:
        logger.error(f"Timetable bulk insert failed: {e}")
        return False, "Database insertion failed: duplicate timetable entries", {'errors': [str(e)]}

    logger.info(f"Imported {added} timetable entries")
    return True, f"Successfully added {added} timetable entries", {'total': len(df), 'added': added}


def create_sample_timetable_excel(output_path: str = 'sample_timetable.xlsx'):
    """
    Create a sample Excel file with the correct format for timetables.
    """
    sample_data = {
        'day_of_week': [1, 1, 2],
        'subject_name': ['Data Structures', 'Operating Systems', 'Data Structures'],
        'period': [1, None, 2],
        'batch_name': ['2024-2028', '2024-2028', '2024-2028'],
        'semester_number': [1, 1, 1],
        'start_time': ['09:00', '10:00', '09:00'],
        'end_time': ['09:50', '10:50', '09:50'],
    }

    df = pd.DataFrame(sample_data)
    df.to_excel(output_path, index=False)
    logger.info(f"Sample timetable Excel file created: {output_path}")
    return output_path


def validate_subject(data: dict) -> dict:
    name = (first_present(data, 'name') or '').strip()
    if not name:
        raise ValidationFailed("Subject name is required")
    batch_id = parse_int(first_present(data, 'batchId', 'batch_id'), 'batchId', required=False)
    if batch_id is not None and not Batch.get(batch_id):
        raise ValidationFailed(f"Batch {batch_id} does not exist")
    return {
        'name': name,
        'period': parse_int(first_present(data, 'period'), 'period', 1, 99, required=False),
        'batch_id': batch_id,
        'semester_number': parse_semester(first_present(data, 'semesterNumber', 'semester_number'),
                                          required=False),
    }


def bulk_add_subjects(subject_list: List[dict]) -> dict:
    """
    Bulk add subjects.

    Returns:
        Dict with per-subject 'success' and 'failed' entries
    """
    results = {'success': [], 'failed': []}

    for data in subject_list:
        name = (data or {}).get('name')
        try:
            subject = validate_subject(data or {})
            Subject.add(**subject)
            results['success'].append({'name': subject['name'], 'message': 'Subject created successfully.'})
        except ValidationFailed as e:
            results['failed'].append({'name': name, 'error': e.description})

    logger.info(f"Bulk subjects: {len(results['success'])} added, {len(results['failed'])} failed")
    return results
