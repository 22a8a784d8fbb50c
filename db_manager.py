import logging
from datetime import datetime, timezone

import pandas as pd
from google.cloud.firestore_v1.base_query import FieldFilter

import activation
from firebase_config import get_db  # عميل قاعدة البيانات المهيأ

logger = logging.getLogger(__name__)

# --- بنية قاعدة البيانات في Firestore ---
# martyrs        (collection)
# locations      (collection) -> legendId
# legends        (collection)
# activityTypes  (collection)
# activities     (collection) -> activityTypeId, date, durationHours, isActive, isManuallyReactivated
# news           (collection) -> type: regular | live | regularLive
# notifications  (collection) -> CRUD audit trail shown on the dashboard
# -------------------------------------------------

MARTYRS = 'martyrs'
LOCATIONS = 'locations'
LEGENDS = 'legends'
ACTIVITY_TYPES = 'activityTypes'
ACTIVITIES = 'activities'
NEWS = 'news'
NOTIFICATIONS = 'notifications'

CONTENT_COLLECTIONS = [MARTYRS, LOCATIONS, LEGENDS, ACTIVITY_TYPES, ACTIVITIES, NEWS]

LIVE_NEWS_TYPES = [activation.ContentKind.LIVE_NEWS.value, activation.ContentKind.REGULAR_LIVE_NEWS.value]

# Field used to order each collection when listing, newest first.
SORT_FIELDS = {ACTIVITIES: 'date'}


class ContentServiceError(Exception):
    """A read from the document store failed; the operator should retry."""


def _utcnow():
    return datetime.now(timezone.utc)


def _doc_to_record(doc) -> dict:
    record = doc.to_dict() or {}
    record['id'] = doc.id
    return record


def _sort_key(value):
    # المستندات القديمة قد لا تحتوي على حقل الترتيب
    if isinstance(value, datetime):
        return activation.as_utc(value)
    return datetime.min.replace(tzinfo=timezone.utc)


def _normalize_activation_fields(data: dict) -> dict:
    """
    Applies the force-off rule on every write path: writing isActive=False
    always clears isManuallyReactivated as well.
    """
    if 'isActive' not in data:
        return data
    normalized = dict(data)
    is_active, is_manual = activation.normalize_flags(
        bool(normalized['isActive']), normalized.get('isManuallyReactivated', False))
    normalized['isActive'] = is_active
    # an active write without the manual flag leaves the stored flag alone
    if not is_active or 'isManuallyReactivated' in normalized:
        normalized['isManuallyReactivated'] = is_manual
    return normalized


# --- دوال القراءة (Read Functions) ---

def list_documents(collection_name: str) -> list:
    """
    Fetches a whole collection as a list of dicts (each with an 'id' key),
    newest first.
    """
    sort_field = SORT_FIELDS.get(collection_name, 'createdAt')
    try:
        docs = get_db().collection(collection_name).stream()
        records = [_doc_to_record(doc) for doc in docs]
    except Exception as e:
        logger.error("Error fetching %s: %s", collection_name, e)
        raise ContentServiceError(f"Failed to load {collection_name}") from e
    return sorted(records, key=lambda r: _sort_key(r.get(sort_field)), reverse=True)


def get_collection_as_df(collection_name: str) -> pd.DataFrame:
    """
    يجلب مجموعة كاملة ويعيدها كـ Pandas DataFrame.
    """
    return pd.DataFrame(list_documents(collection_name))


def get_document(collection_name: str, doc_id: str):
    try:
        doc = get_db().collection(collection_name).document(doc_id).get()
    except Exception as e:
        logger.error("Error fetching %s/%s: %s", collection_name, doc_id, e)
        raise ContentServiceError(f"Failed to load {collection_name}/{doc_id}") from e
    return _doc_to_record(doc) if doc.exists else None


def list_live_news() -> list:
    """
    Returns the news records that follow a live window (live and regularLive).
    """
    try:
        query = get_db().collection(NEWS).where(filter=FieldFilter('type', 'in', LIVE_NEWS_TYPES))
        return [_doc_to_record(doc) for doc in query.stream()]
    except Exception as e:
        logger.error("Error fetching live news: %s", e)
        raise ContentServiceError("Failed to load live news") from e


def count_documents(collection_name: str) -> int:
    return len(list_documents(collection_name))


# --- دوال الكتابة والتحديث (Write/Update Functions) ---

def create_document(collection_name: str, data: dict, performed_by: str, entity_name: str, entity_type: str = None):
    """
    Adds a new document with createdAt/updatedAt stamps and records a
    'created' notification.

    Returns:
        tuple[bool, str]: (True, new document id) or (False, error message).
    """
    now = _utcnow()
    payload = _normalize_activation_fields({**data, 'createdAt': now, 'updatedAt': now})
    try:
        _, doc_ref = get_db().collection(collection_name).add(payload)
    except Exception as e:
        logger.error("Error adding to %s: %s", collection_name, e)
        return False, f"Database error while saving: {e}"

    logger.info("Created %s/%s by %s", collection_name, doc_ref.id, performed_by)
    add_notification('created', entity_type or collection_name, doc_ref.id, entity_name, performed_by)
    return True, doc_ref.id


def update_document(collection_name: str, doc_id: str, updates: dict, performed_by: str = None,
                    entity_name: str = None, entity_type: str = None):
    """
    Updates a document. A notification is recorded only when the operator
    and entity name are known (automatic refreshes stay silent).
    """
    payload = _normalize_activation_fields({**updates, 'updatedAt': _utcnow()})
    try:
        get_db().collection(collection_name).document(doc_id).update(payload)
    except Exception as e:
        logger.error("Error updating %s/%s: %s", collection_name, doc_id, e)
        return False, f"Database error while updating: {e}"

    if performed_by and entity_name:
        add_notification('updated', entity_type or collection_name, doc_id, entity_name, performed_by)
    return True, "Updated successfully."


def delete_document(collection_name: str, doc_id: str, entity_name: str, performed_by: str, entity_type: str = None):
    try:
        get_db().collection(collection_name).document(doc_id).delete()
    except Exception as e:
        logger.error("Error deleting %s/%s: %s", collection_name, doc_id, e)
        return False, f"Database error while deleting: {e}"

    logger.info("Deleted %s/%s by %s", collection_name, doc_id, performed_by)
    add_notification('deleted', entity_type or collection_name, doc_id, entity_name, performed_by)
    return True, "Deleted successfully."


def turn_off_content(collection_name: str, doc_id: str, performed_by: str = None, entity_name: str = None):
    """
    Switches a timed record off. Clears both the active and the
    manually-reactivated flags so the schedule no longer keeps it alive.
    """
    is_active, is_manual = activation.turn_off()
    return update_document(collection_name, doc_id,
                           {'isActive': is_active, 'isManuallyReactivated': is_manual},
                           performed_by, entity_name)


def force_activate_content(collection_name: str, doc_id: str, performed_by: str = None, entity_name: str = None):
    """Permanent override: the record stays visible until turned off."""
    is_active, is_manual = activation.force_on()
    return update_document(collection_name, doc_id,
                           {'isActive': is_active, 'isManuallyReactivated': is_manual},
                           performed_by, entity_name)


# --- الإشعارات (Notifications) ---

def add_notification(action: str, entity_type: str, entity_id: str, entity_name: str, performed_by: str):
    """
    Records a CRUD notification. Failures here never undo the main write.
    """
    if not performed_by:
        logger.warning("Notification skipped for %s/%s: no operator email", entity_type, entity_id)
        return False
    try:
        get_db().collection(NOTIFICATIONS).add({
            'action': action,
            'entityType': entity_type,
            'entityId': entity_id,
            'entityName': entity_name or '',
            'performedBy': performed_by,
            'timestamp': _utcnow(),
            'readBy': [],
        })
        return True
    except Exception as e:
        logger.error("Error adding notification for %s/%s: %s", entity_type, entity_id, e)
        return False


def get_recent_notifications(limit: int = 20) -> list:
    try:
        docs = get_db().collection(NOTIFICATIONS).stream()
        records = [_doc_to_record(doc) for doc in docs]
    except Exception as e:
        logger.error("Error fetching notifications: %s", e)
        raise ContentServiceError("Failed to load notifications") from e
    records.sort(key=lambda r: _sort_key(r.get('timestamp')), reverse=True)
    return records[:limit]


def mark_notification_read(notification_id: str, reader_email: str):
    ref = get_db().collection(NOTIFICATIONS).document(notification_id)
    doc = ref.get()
    if not doc.exists:
        return False
    read_by = list(doc.to_dict().get('readBy', []))
    if reader_email not in read_by:
        read_by.append(reader_email)
        ref.update({'readBy': read_by})
    return True
