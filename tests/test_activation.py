from datetime import datetime, timedelta, timezone

import pytest

from activation import (
    ContentKind, Phase, ReconcileAction, TimedContent, as_utc, derive_phase, display_phase, format_remaining,
    is_publicly_visible, is_within_window, normalize_flags, reconcile, remaining_time, resolve_submission, scheduled_end, turn_off,
)

START = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def make_record(is_active=False, manual=False, kind=ContentKind.ACTIVITY, hours=24, start=START):
    return TimedContent(scheduled_start=start, duration_hours=hours, is_active=is_active,
                        is_manually_reactivated=manual, kind=kind)


def apply(record, result):
    return make_record(result.is_active, result.is_manually_reactivated, record.kind,
                       record.duration_hours, record.scheduled_start)


@pytest.mark.parametrize("now", [
    START - timedelta(days=30),
    START,
    START + timedelta(hours=5),
    START + timedelta(days=400),
])
def test_manually_reactivated_is_always_manual_permanent(now):
    assert derive_phase(now, make_record(is_active=True, manual=True)) is Phase.MANUAL_PERMANENT


def test_manual_flag_implies_active():
    record = make_record(is_active=False, manual=True)
    assert record.is_active is True


def test_inactive_before_start_is_upcoming():
    assert derive_phase(START - timedelta(minutes=1), make_record()) is Phase.UPCOMING


@pytest.mark.parametrize("offset", [timedelta(hours=24), timedelta(hours=25), timedelta(days=10)])
def test_inactive_after_end_is_expired(offset):
    assert derive_phase(START + offset, make_record()) is Phase.EXPIRED


def test_inactive_inside_window_is_disabled():
    assert derive_phase(START + timedelta(hours=1), make_record()) is Phase.DISABLED


def test_active_before_start_is_force_active():
    assert derive_phase(START - timedelta(hours=1), make_record(is_active=True)) is Phase.FORCE_ACTIVE


def test_active_inside_window_is_auto_active():
    assert derive_phase(START + timedelta(hours=1), make_record(is_active=True)) is Phase.AUTO_ACTIVE


def test_window_bounds_are_half_open():
    assert is_within_window(START, START, 1)
    assert is_within_window(START + timedelta(minutes=59), START, 1)
    assert not is_within_window(START + timedelta(hours=1), START, 1)
    assert not is_within_window(START - timedelta(seconds=1), START, 1)


def test_naive_datetimes_are_treated_as_utc():
    naive_start = datetime(2025, 1, 1, 9, 0)
    assert is_within_window(START + timedelta(hours=1), naive_start, 2)
    assert scheduled_end(naive_start, 2) == START + timedelta(hours=2)


def test_zero_duration_is_not_a_valid_record():
    with pytest.raises(AssertionError):
        make_record(hours=0)


def test_activity_lifecycle_scenario():
    record = make_record()

    assert derive_phase(datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc), record) is Phase.UPCOMING

    afternoon = datetime(2025, 1, 1, 15, 0, tzinfo=timezone.utc)
    result = reconcile(afternoon, record)
    assert result.action is ReconcileAction.ACTIVATE
    assert result.is_active is True
    record = apply(record, result)
    assert derive_phase(afternoon, record) is Phase.AUTO_ACTIVE

    next_day = datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc)
    result = reconcile(next_day, record)
    assert result.action is ReconcileAction.EXPIRE_DEACTIVATE
    assert result.is_active is False
    record = apply(record, result)
    assert derive_phase(next_day, record) is Phase.EXPIRED


def test_force_active_for_tomorrow_stays_manual_permanent():
    now = START
    tomorrow = START + timedelta(days=1)
    is_active, manual = resolve_submission(now, tomorrow, 24, force_active=True)
    assert (is_active, manual) == (True, True)

    record = make_record(is_active, manual, start=tomorrow)
    for later in (now, tomorrow, tomorrow + timedelta(hours=12), tomorrow + timedelta(days=3)):
        assert derive_phase(later, record) is Phase.MANUAL_PERMANENT
        result = reconcile(later, record)
        assert result.action is ReconcileAction.UNCHANGED
        assert (result.is_active, result.is_manually_reactivated) == (True, True)


@pytest.mark.parametrize("hours_from_start", [-5, 0, 3, 23, 24, 48])
@pytest.mark.parametrize("kind", [ContentKind.ACTIVITY, ContentKind.LIVE_NEWS])
@pytest.mark.parametrize("is_active", [True, False])
def test_reconcile_is_idempotent(hours_from_start, kind, is_active):
    now = START + timedelta(hours=hours_from_start)
    record = make_record(is_active=is_active, kind=kind)
    first = reconcile(now, record)
    second = reconcile(now, apply(record, first))
    assert second.is_active == first.is_active
    assert second.action is ReconcileAction.UNCHANGED


@pytest.mark.parametrize("hours_from_start", [-1, 0, 12, 24, 30])
def test_submission_and_reconcile_agree(hours_from_start):
    now = START + timedelta(hours=hours_from_start)
    is_active, manual = resolve_submission(now, START, 24, force_active=False)
    assert manual is False
    result = reconcile(now, make_record(is_active, manual))
    assert result.action is ReconcileAction.UNCHANGED


def test_reconcile_deactivates_force_active_record_that_is_not_manual():
    # an active record before its start only survives reconciliation with the manual flag
    result = reconcile(START - timedelta(hours=2), make_record(is_active=True))
    assert result.action is ReconcileAction.DEACTIVATE
    assert result.is_active is False


def test_regular_live_news_is_deleted_when_expired():
    record = make_record(is_active=True, kind=ContentKind.REGULAR_LIVE_NEWS, hours=2)
    result = reconcile(START + timedelta(hours=2), record)
    assert result.action is ReconcileAction.EXPIRE_DELETE

    # already inactive records are still removed
    inactive = make_record(is_active=False, kind=ContentKind.REGULAR_LIVE_NEWS, hours=2)
    assert reconcile(START + timedelta(hours=3), inactive).action is ReconcileAction.EXPIRE_DELETE


def test_live_news_expires_without_delete():
    record = make_record(is_active=True, kind=ContentKind.LIVE_NEWS, hours=2)
    assert reconcile(START + timedelta(hours=2), record).action is ReconcileAction.EXPIRE_DEACTIVATE


def test_manual_regular_live_news_is_never_deleted():
    record = make_record(is_active=True, manual=True, kind=ContentKind.REGULAR_LIVE_NEWS, hours=2)
    assert reconcile(START + timedelta(days=5), record).action is ReconcileAction.UNCHANGED


def test_turn_off_clears_both_flags():
    assert turn_off() == (False, False)
    assert normalize_flags(False, True) == (False, False)
    assert normalize_flags(True, True) == (True, True)
    assert normalize_flags(True, False) == (True, False)


def test_public_visibility():
    assert is_publicly_visible(START + timedelta(hours=1), make_record(is_active=True))
    assert not is_publicly_visible(START + timedelta(hours=1), make_record(is_active=False))


def test_from_document_uses_kind_fields_and_defaults():
    doc = {'liveStartTime': START, 'type': 'live', 'isActive': True}
    record = TimedContent.from_document(doc, ContentKind.LIVE_NEWS)
    assert record.duration_hours == 2
    assert record.is_manually_reactivated is False
    assert record.scheduled_end == START + timedelta(hours=2)


def test_remaining_time():
    record = make_record(is_active=True, hours=2)
    assert remaining_time(START + timedelta(minutes=30), record) == timedelta(minutes=90)
    assert remaining_time(START - timedelta(minutes=1), record) is None
    assert remaining_time(START + timedelta(hours=2), record) is None
    assert format_remaining(timedelta(minutes=90)) == "1h 30m left"
    assert format_remaining(timedelta(minutes=5, seconds=30)) == "5m left"


def test_from_document_prefers_configured_default_hours():
    doc = {'liveStartTime': START, 'type': 'live'}
    assert TimedContent.from_document(doc, ContentKind.LIVE_NEWS, default_hours=3).duration_hours == 3
    # a stored duration always wins over the default
    doc['liveDurationHours'] = 5
    assert TimedContent.from_document(doc, ContentKind.LIVE_NEWS, default_hours=3).duration_hours == 5


def test_as_utc_keeps_aware_and_tags_naive_values():
    beirut = timezone(timedelta(hours=2))
    aware = datetime(2025, 1, 1, 11, 0, tzinfo=beirut)
    assert as_utc(aware) is aware
    assert as_utc(datetime(2025, 1, 1, 9, 0)) == START


def test_display_phase_shows_activation_before_refresh_persists_it():
    stale = make_record(is_active=False)
    now = START + timedelta(minutes=1)
    assert derive_phase(now, stale) is Phase.DISABLED
    assert display_phase(now, stale) is Phase.AUTO_ACTIVE


def test_display_phase_shows_expiry_of_stale_active_records():
    assert display_phase(START + timedelta(days=2), make_record(is_active=True)) is Phase.EXPIRED
    stale_flash = make_record(is_active=True, kind=ContentKind.REGULAR_LIVE_NEWS, hours=2)
    assert display_phase(START + timedelta(hours=3), stale_flash) is Phase.EXPIRED


def test_display_phase_matches_derive_phase_once_reconciled():
    for now in (START - timedelta(hours=1), START + timedelta(hours=1), START + timedelta(days=3)):
        for record in (make_record(), make_record(is_active=True), make_record(is_active=True, manual=True)):
            reconciled = apply(record, reconcile(now, record))
            assert display_phase(now, record) is derive_phase(now, reconciled)
