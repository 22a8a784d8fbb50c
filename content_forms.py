import logging
import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import activation

logger = logging.getLogger(__name__)

# --- التحقق من بيانات النماذج قبل الحفظ ---
# Every builder returns (document, errors). An empty error list means the
# document can go to db_manager; the evaluator only ever sees validated input.

MIN_DURATION_HOURS = 1
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

REQUIRED_FIELDS = {
    'martyrs': ['nameEn', 'nameAr', 'warNameEn', 'warNameAr', 'storyEn', 'storyAr'],
    'locations': ['nameEn', 'nameAr', 'descriptionEn', 'descriptionAr', 'legendId'],
    'legends': ['nameEn', 'nameAr', 'descriptionEn', 'descriptionAr'],
    'activityTypes': ['nameEn', 'nameAr'],
    'activities': ['activityTypeId', 'nameEn', 'nameAr', 'descriptionEn', 'descriptionAr'],
    'news': ['titleEn', 'titleAr', 'descriptionEn', 'descriptionAr'],
}

FIELD_LABELS = {
    'nameEn': 'Name (English)', 'nameAr': 'Name (Arabic)',
    'warNameEn': 'War name (English)', 'warNameAr': 'War name (Arabic)',
    'storyEn': 'Story (English)', 'storyAr': 'Story (Arabic)',
    'descriptionEn': 'Description (English)', 'descriptionAr': 'Description (Arabic)',
    'titleEn': 'Title (English)', 'titleAr': 'Title (Arabic)',
    'legendId': 'Legend', 'activityTypeId': 'Activity type',
}

NEWS_TYPES = ('regular', activation.ContentKind.LIVE_NEWS.value, activation.ContentKind.REGULAR_LIVE_NEWS.value)


def validate_required(values: dict, collection_name: str) -> list:
    errors = []
    for field in REQUIRED_FIELDS[collection_name]:
        value = values.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"{FIELD_LABELS.get(field, field)} is required.")
    return errors


def validate_duration(hours, max_hours: int = 168) -> list:
    """
    Rejects durations outside 1..max_hours. This is the only place an
    invalid duration is caught; the evaluator assumes it never sees one.
    """
    try:
        hours = int(hours)
    except (TypeError, ValueError):
        return ["Duration must be a whole number of hours."]
    if hours < MIN_DURATION_HOURS:
        return [f"Duration must be at least {MIN_DURATION_HOURS} hour."]
    if hours > max_hours:
        return [f"Duration cannot exceed {max_hours} hours."]
    return []


def validate_time_string(value) -> list:
    if isinstance(value, time):
        return []
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        return ["Time must be in HH:MM format."]
    return []


def format_time(value) -> str:
    if isinstance(value, time):
        return value.strftime('%H:%M')
    return value


def combine_date_time(day: date, clock, tz_name: str) -> datetime:
    """
    Combines a form date and an 'HH:MM' (or time) value in the console's
    local timezone and returns the instant in UTC.
    """
    if isinstance(clock, str):
        hours, minutes = map(int, clock.split(':'))
        clock = time(hours, minutes)
    local = datetime.combine(day, clock).replace(tzinfo=ZoneInfo(tz_name))
    return local.astimezone(timezone.utc)


def _clean(values: dict) -> dict:
    doc = {}
    for key, value in values.items():
        doc[key] = value.strip() if isinstance(value, str) else value
    return doc


def build_simple_document(values: dict, collection_name: str):
    """For the plain CRUD kinds (martyrs, locations, legends, activity types)."""
    errors = validate_required(values, collection_name)
    doc = _clean(values)

    if collection_name == 'locations':
        try:
            doc['latitude'] = float(values.get('latitude'))
            doc['longitude'] = float(values.get('longitude'))
            if not (-90 <= doc['latitude'] <= 90 and -180 <= doc['longitude'] <= 180):
                errors.append("Coordinates are out of range.")
        except (TypeError, ValueError):
            errors.append("Latitude and longitude must be numbers.")

    if collection_name == 'martyrs':
        if values.get('familyStatus') not in ('married', 'single'):
            errors.append("Family status must be 'married' or 'single'.")
        dob, shahada = values.get('dob'), values.get('dateOfShahada')
        if dob and shahada and shahada < dob:
            errors.append("Date of shahada cannot be before date of birth.")
        for key in ('dob', 'dateOfShahada'):
            if isinstance(doc.get(key), date) and not isinstance(doc[key], datetime):
                doc[key] = datetime.combine(doc[key], time()).replace(tzinfo=timezone.utc)

    if errors:
        return None, errors
    return doc, errors


def build_activity_document(values: dict, now: datetime, tz_name: str, max_hours: int = 168):
    """
    Validates an activity form and resolves its activation flags.

    `values` holds the Firestore fields plus the form-only keys
    'date' (date), 'time' ('HH:MM') and 'forceActive' (the
    "Force Active Now" checkbox).
    """
    errors = validate_required(values, 'activities')
    errors += validate_duration(values.get('durationHours'), max_hours)
    errors += validate_time_string(values.get('time'))
    if not isinstance(values.get('date'), date):
        errors.append("Date is required.")
    if errors:
        return None, errors

    doc = _clean(values)
    force_active = bool(doc.pop('forceActive', False))
    doc['time'] = format_time(doc['time'])
    doc['durationHours'] = int(doc['durationHours'])
    doc['date'] = combine_date_time(values['date'], doc['time'], tz_name)
    doc['isPrivate'] = bool(doc.get('isPrivate', False))
    doc['isActive'], doc['isManuallyReactivated'] = activation.resolve_submission(
        now, doc['date'], doc['durationHours'], force_active)
    return doc, errors


def build_news_document(values: dict, now: datetime, tz_name: str, max_hours: int = 168):
    """
    Validates a news form. Regular news only needs its publish date/time;
    live kinds also get a live window and resolved activation flags.

    Form-only keys: 'publishDate' (date), 'publishTime', 'liveStartDate',
    'liveStartClock', 'forceActive'.
    """
    errors = validate_required(values, 'news')
    news_type = values.get('type', 'regular')
    if news_type not in NEWS_TYPES:
        errors.append(f"Unknown news type '{news_type}'.")
    if not isinstance(values.get('publishDate'), date):
        errors.append("Publish date is required.")
    errors += validate_time_string(values.get('publishTime'))

    is_live = news_type in NEWS_TYPES[1:]
    if is_live:
        errors += validate_duration(values.get('liveDurationHours'), max_hours)
        if values.get('liveStartDate') is not None:
            errors += validate_time_string(values.get('liveStartClock'))
    if errors:
        return None, errors

    doc = _clean(values)
    force_active = bool(doc.pop('forceActive', False))
    live_start_date = doc.pop('liveStartDate', None)
    live_start_clock = doc.pop('liveStartClock', None)

    doc['publishTime'] = format_time(doc['publishTime'])
    doc['publishDate'] = combine_date_time(values['publishDate'], doc['publishTime'], tz_name)

    if is_live:
        if live_start_date is not None:
            live_start = combine_date_time(live_start_date, format_time(live_start_clock), tz_name)
        else:
            # البث المباشر يبدأ لحظة الحفظ إذا لم يُحدد وقت
            live_start = now
        doc['liveStartTime'] = live_start
        doc['liveDurationHours'] = int(doc['liveDurationHours'])
        doc['isActive'], doc['isManuallyReactivated'] = activation.resolve_submission(
            now, live_start, doc['liveDurationHours'], force_active)
    else:
        doc['liveStartTime'] = None
        doc['liveDurationHours'] = None
        doc['isActive'], doc['isManuallyReactivated'] = activation.turn_off()

    return doc, errors


class InvalidRecordError(ValueError):
    """A stored activity or live news document whose schedule cannot be evaluated."""


def news_kind(doc: dict):
    """Maps a news document to its timed kind, or None for regular news."""
    try:
        kind = activation.ContentKind(doc.get('type', 'regular'))
    except ValueError:
        return None
    return kind if kind is not activation.ContentKind.ACTIVITY else None


def timed_record(doc: dict, collection_name: str, default_hours: int = None):
    """
    Builds the evaluator's view of an activity or live news document.

    Returns None for records without a schedule. Raises InvalidRecordError
    when the stored schedule cannot be evaluated (non-positive or non-numeric
    duration, a start that is not a timestamp).
    """
    if collection_name == 'activities':
        kind = activation.ContentKind.ACTIVITY
    else:
        kind = news_kind(doc)
        if kind is None or not doc.get('liveStartTime'):
            return None
    start_field = activation.SCHEDULE_FIELDS[kind][0]
    if not doc.get(start_field):
        return None
    if not isinstance(doc[start_field], datetime):
        raise InvalidRecordError(f"{start_field} is not a timestamp")
    try:
        return activation.TimedContent.from_document(doc, kind, default_hours)
    except (AssertionError, TypeError, ValueError) as e:
        raise InvalidRecordError(str(e) or "invalid schedule") from e


def timed_record_or_none(doc: dict, collection_name: str, default_hours: int = None):
    """Like timed_record, but an invalid stored schedule is logged and treated as untimed."""
    try:
        return timed_record(doc, collection_name, default_hours)
    except InvalidRecordError as e:
        logger.warning("Invalid schedule on %s/%s: %s", collection_name, doc.get('id'), e)
        return None


def record_phase(doc: dict, collection_name: str, now: datetime, default_hours: int = None):
    """Reconciled display phase of a stored document, or None for untimed records."""
    record = timed_record_or_none(doc, collection_name, default_hours)
    if record is None:
        return None
    return activation.display_phase(now, record)
