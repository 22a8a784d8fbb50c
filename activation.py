from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

# --- منطق تفعيل المحتوى المرتبط بالوقت (الأنشطة والأخبار المباشرة) ---


class Phase(str, Enum):
    UPCOMING = "upcoming"
    AUTO_ACTIVE = "auto-active"
    FORCE_ACTIVE = "force-active"
    MANUAL_PERMANENT = "manual-permanent"
    EXPIRED = "expired"
    DISABLED = "disabled"


class ContentKind(str, Enum):
    ACTIVITY = "activity"
    LIVE_NEWS = "live"
    REGULAR_LIVE_NEWS = "regularLive"


class ReconcileAction(str, Enum):
    UNCHANGED = "unchanged"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    EXPIRE_DEACTIVATE = "expire-deactivate"
    EXPIRE_DELETE = "expire-delete"


VISIBLE_PHASES = {Phase.AUTO_ACTIVE, Phase.FORCE_ACTIVE, Phase.MANUAL_PERMANENT}

DEFAULT_DURATION_HOURS = {
    ContentKind.ACTIVITY: 24,
    ContentKind.LIVE_NEWS: 2,
    ContentKind.REGULAR_LIVE_NEWS: 2,
}

# Firestore field names for each kind: (start, duration)
SCHEDULE_FIELDS = {
    ContentKind.ACTIVITY: ("date", "durationHours"),
    ContentKind.LIVE_NEWS: ("liveStartTime", "liveDurationHours"),
    ContentKind.REGULAR_LIVE_NEWS: ("liveStartTime", "liveDurationHours"),
}


def as_utc(moment: datetime) -> datetime:
    # Firestore returns aware UTC values; naive values are taken as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(slots=True)
class TimedContent:
    scheduled_start: datetime
    duration_hours: int
    is_active: bool = False
    is_manually_reactivated: bool = False
    kind: ContentKind = ContentKind.ACTIVITY

    def __post_init__(self):
        assert self.duration_hours >= 1, "duration_hours must be at least 1"
        # manually reactivated implies active
        if self.is_manually_reactivated:
            self.is_active = True

    @property
    def scheduled_end(self) -> datetime:
        return scheduled_end(self.scheduled_start, self.duration_hours)

    @classmethod
    def from_document(cls, doc: dict, kind: ContentKind, default_hours: int = None) -> "TimedContent":
        """
        Builds a TimedContent from a raw Firestore document of the given kind.
        Missing durations fall back to `default_hours` (the configured default)
        or the kind default, missing flags to False.
        """
        start_field, duration_field = SCHEDULE_FIELDS[kind]
        duration = doc.get(duration_field) or default_hours or DEFAULT_DURATION_HOURS[kind]
        return cls(
            scheduled_start=doc[start_field],
            duration_hours=int(duration),
            is_active=bool(doc.get("isActive", False)),
            is_manually_reactivated=bool(doc.get("isManuallyReactivated", False)),
            kind=kind,
        )


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    is_active: bool
    is_manually_reactivated: bool
    action: ReconcileAction

    @property
    def changed(self) -> bool:
        return self.action is not ReconcileAction.UNCHANGED


def scheduled_end(scheduled_start: datetime, duration_hours: int) -> datetime:
    assert duration_hours >= 1, "duration_hours must be at least 1"
    return as_utc(scheduled_start) + timedelta(hours=duration_hours)


def is_within_window(now: datetime, scheduled_start: datetime, duration_hours: int) -> bool:
    """The single windowed-membership test: start <= now < end."""
    now = as_utc(now)
    start = as_utc(scheduled_start)
    return start <= now < scheduled_end(start, duration_hours)


def derive_phase(now: datetime, record: TimedContent) -> Phase:
    """
    Derives the lifecycle phase of a record at `now`.
    Never persisted; always recomputed from the record's own fields.
    """
    now = as_utc(now)
    start = as_utc(record.scheduled_start)
    end = record.scheduled_end

    if not record.is_active:
        if now < start:
            return Phase.UPCOMING
        if now >= end:
            return Phase.EXPIRED
        # أوقفه المشرف يدوياً أثناء فترة العرض
        return Phase.DISABLED

    if record.is_manually_reactivated:
        return Phase.MANUAL_PERMANENT
    if now < start:
        return Phase.FORCE_ACTIVE
    return Phase.AUTO_ACTIVE


def is_publicly_visible(now: datetime, record: TimedContent) -> bool:
    return derive_phase(now, record) in VISIBLE_PHASES


def reconcile(now: datetime, record: TimedContent) -> ReconcileResult:
    """
    Recomputes `isActive` for a record as time crosses its window.

    A manually reactivated record is never touched. For every other record
    the flag follows the window exactly, and the returned action tells the
    persistence layer what to do with the document. Applying the result and
    reconciling again at the same `now` always yields UNCHANGED.
    """
    if record.is_manually_reactivated:
        return ReconcileResult(True, True, ReconcileAction.UNCHANGED)

    now = as_utc(now)
    expired = now >= record.scheduled_end

    # الأخبار المباشرة العادية تُحذف بعد انتهاء مدتها بدلاً من إيقافها
    if expired and record.kind is ContentKind.REGULAR_LIVE_NEWS:
        return ReconcileResult(False, False, ReconcileAction.EXPIRE_DELETE)

    should_be_active = is_within_window(now, record.scheduled_start, record.duration_hours)

    if should_be_active == record.is_active:
        action = ReconcileAction.UNCHANGED
    elif should_be_active:
        action = ReconcileAction.ACTIVATE
    elif expired:
        action = ReconcileAction.EXPIRE_DEACTIVATE
    else:
        action = ReconcileAction.DEACTIVATE

    return ReconcileResult(should_be_active, False, action)


def display_phase(now: datetime, record: TimedContent) -> Phase:
    """
    Phase an operator should see at `now`, with the stored flags reconciled
    first. A record still carrying a stale `isActive` between two refresh
    ticks shows the phase it will have once the next refresh persists it.
    """
    result = reconcile(now, record)
    if result.action is ReconcileAction.EXPIRE_DELETE:
        return Phase.EXPIRED
    if not result.changed:
        return derive_phase(now, record)
    reconciled = TimedContent(
        scheduled_start=record.scheduled_start,
        duration_hours=record.duration_hours,
        is_active=result.is_active,
        is_manually_reactivated=result.is_manually_reactivated,
        kind=record.kind,
    )
    return derive_phase(now, reconciled)


def resolve_submission(now: datetime, scheduled_start: datetime, duration_hours: int, force_active: bool):
    """
    Resolves the persisted flags for a create/edit form submission.

    Returns:
        tuple[bool, bool]: (isActive, isManuallyReactivated)
    """
    if force_active:
        return force_on()
    return is_within_window(now, scheduled_start, duration_hours), False


def force_on():
    """Flags written by the Force Active override: permanent visibility."""
    return True, True


def turn_off():
    """Flags written when an operator switches a record off: both cleared."""
    return False, False


def normalize_flags(is_active: bool, is_manually_reactivated: bool):
    """
    Keeps the two persisted flags consistent on every write path:
    an inactive record is never manually reactivated.
    """
    if not is_active:
        return turn_off()
    return True, bool(is_manually_reactivated)


def remaining_time(now: datetime, record: TimedContent):
    """Time left in the record's window, or None when the window is not running."""
    now = as_utc(now)
    if not is_within_window(now, record.scheduled_start, record.duration_hours):
        return None
    return record.scheduled_end - now


def format_remaining(delta: timedelta) -> str:
    total_minutes = int(delta.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m left"
    return f"{minutes}m left"
