import io
import json
import logging
from datetime import date, datetime, timezone

import pandas as pd

import db_manager

logger = logging.getLogger(__name__)

# Excel sheet names are limited to 31 characters
SHEET_NAMES = {
    db_manager.MARTYRS: 'Martyrs',
    db_manager.LOCATIONS: 'Locations',
    db_manager.LEGENDS: 'Legends',
    db_manager.ACTIVITY_TYPES: 'Activity Types',
    db_manager.ACTIVITIES: 'Activities',
    db_manager.NEWS: 'News',
}


def _serialize_value(value):
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    return value


def _flatten_for_sheet(record: dict) -> dict:
    """Excel cells can't hold lists/dicts or tz-aware datetimes."""
    row = {}
    for key, value in record.items():
        value = _serialize_value(value)
        if isinstance(value, (list, dict)):
            value = json.dumps(value, ensure_ascii=False)
        row[key] = value
    return row


def collect_snapshot(collections=None) -> dict:
    """
    Reads every content collection. Raises ContentServiceError like any
    other read; a partial backup is never produced.
    """
    snapshot = {}
    for name in collections or db_manager.CONTENT_COLLECTIONS:
        snapshot[name] = db_manager.list_documents(name)
        logger.info("Backup: read %d documents from %s", len(snapshot[name]), name)
    return snapshot


def export_to_excel(snapshot: dict) -> bytes:
    """One sheet per collection, one row per document."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for name, records in snapshot.items():
            df = pd.DataFrame([_flatten_for_sheet(r) for r in records])
            if df.empty:
                df = pd.DataFrame({'id': []})
            elif 'id' in df.columns:
                df = df[['id'] + [c for c in df.columns if c != 'id']]
            df.to_excel(writer, sheet_name=SHEET_NAMES.get(name, name)[:31], index=False)
    return buffer.getvalue()


def export_to_json(snapshot: dict) -> bytes:
    payload = {
        'exportedAt': datetime.now(timezone.utc).isoformat(),
        'collections': {name: [_serialize_value(r) for r in records] for name, records in snapshot.items()},
    }
    return json.dumps(payload, ensure_ascii=False, indent=2).encode('utf-8')


def backup_file_name(extension: str, now: datetime = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"content_backup_{now.strftime('%Y-%m-%d_%H%M')}.{extension}"
