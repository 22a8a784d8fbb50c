import logging
from collections import Counter
from datetime import datetime, timezone

import activation
import content_forms
import db_manager as db
from config import ConsoleConfig

logger = logging.getLogger(__name__)

SYSTEM_OPERATOR = 'system@auto-refresh'

Action = activation.ReconcileAction


def _apply_result(collection_name: str, doc: dict, record: activation.TimedContent, result: activation.ReconcileResult):
    """
    Persists one reconciliation outcome. Returns (success, message).
    """
    doc_id = doc['id']
    flags = {'isActive': result.is_active, 'isManuallyReactivated': result.is_manually_reactivated}

    if result.action is Action.EXPIRE_DELETE:
        title = doc.get('titleEn') or doc.get('nameEn') or doc_id
        return db.delete_document(collection_name, doc_id, title, SYSTEM_OPERATOR, entity_type='liveNews')

    if result.action is Action.EXPIRE_DEACTIVATE and record.kind is activation.ContentKind.LIVE_NEWS:
        # انتهى البث المباشر: يتحول الخبر إلى خبر عادي
        flags.update({'type': 'regular', 'liveStartTime': None, 'liveDurationHours': None})

    return db.update_document(collection_name, doc_id, flags)


def refresh_collection(collection_name: str, docs: list, now: datetime, update_log: list,
                       default_hours: int = None) -> Counter:
    """
    Reconciles every timed record of one collection and persists the changes.
    Failures are logged per record; nothing is retried here.
    """
    counts = Counter()
    for doc in docs:
        try:
            record = content_forms.timed_record(doc, collection_name, default_hours)
        except content_forms.InvalidRecordError as e:
            # سجل تالف لا يوقف باقي التحديث
            counts['failed'] += 1
            update_log.append(f"❌ {collection_name}/{doc['id']}: {e}")
            logger.error("Skipping invalid record %s/%s: %s", collection_name, doc['id'], e)
            continue
        if record is None:
            continue

        result = activation.reconcile(now, record)
        if not result.changed:
            counts[Action.UNCHANGED] += 1
            continue

        success, message = _apply_result(collection_name, doc, record, result)
        if success:
            counts[result.action] += 1
            logger.info("%s/%s -> %s", collection_name, doc['id'], result.action.value)
        else:
            counts['failed'] += 1
            update_log.append(f"❌ {collection_name}/{doc['id']}: {message}")
            logger.error("Status refresh failed for %s/%s: %s", collection_name, doc['id'], message)
    return counts


def run_status_refresh(now: datetime = None, config: ConsoleConfig = None):
    """
    The periodic status engine: re-evaluates every activity and live news
    record against the clock and persists what changed.

    Returns:
        list[str]: a human-readable log of the run.
    """
    now = now or datetime.now(timezone.utc)
    config = config or ConsoleConfig()
    update_log = [f"--- Status refresh at {now:%Y-%m-%d %H:%M} UTC ---"]

    # الخطوة 1: جلب السجلات المرتبطة بالوقت
    try:
        activities = db.list_documents(db.ACTIVITIES)
        live_news = db.list_live_news()
    except db.ContentServiceError as e:
        update_log.append(f"❌ Could not load records: {e}")
        return update_log

    # الخطوة 2: إعادة التقييم والحفظ
    activity_counts = refresh_collection(db.ACTIVITIES, activities, now, update_log,
                                         config.default_hours_for(db.ACTIVITIES))
    news_counts = refresh_collection(db.NEWS, live_news, now, update_log, config.default_hours_for(db.NEWS))

    update_log.append(
        f"📅 Activities: {activity_counts[Action.ACTIVATE]} activated, "
        f"{activity_counts[Action.DEACTIVATE] + activity_counts[Action.EXPIRE_DEACTIVATE]} deactivated, "
        f"{activity_counts[Action.UNCHANGED]} unchanged."
    )
    update_log.append(
        f"📰 Live news: {news_counts[Action.ACTIVATE]} activated, "
        f"{news_counts[Action.DEACTIVATE]} deactivated, "
        f"{news_counts[Action.EXPIRE_DEACTIVATE]} moved to regular, "
        f"{news_counts[Action.EXPIRE_DELETE]} deleted."
    )
    failed = activity_counts['failed'] + news_counts['failed']
    if failed:
        update_log.append(f"⚠️ {failed} record(s) could not be updated. They are re-evaluated on the next refresh.")
    update_log.append("--- ✅ Status refresh finished ---")
    return update_log
