from datetime import datetime, timedelta, timezone

import db_manager
from config import ConsoleConfig
from main import SYSTEM_OPERATOR, run_status_refresh

NOW = datetime(2025, 1, 1, 15, 0, tzinfo=timezone.utc)


def test_refresh_activates_and_expires_activities(fake_db):
    fake_db.seed(db_manager.ACTIVITIES, 'running', {
        'date': NOW - timedelta(hours=6), 'durationHours': 24, 'isActive': False, 'isManuallyReactivated': False})
    fake_db.seed(db_manager.ACTIVITIES, 'over', {
        'date': NOW - timedelta(days=2), 'durationHours': 24, 'isActive': True, 'isManuallyReactivated': False})
    fake_db.seed(db_manager.ACTIVITIES, 'pinned', {
        'date': NOW - timedelta(days=9), 'durationHours': 24, 'isActive': True, 'isManuallyReactivated': True})

    log = run_status_refresh(NOW)

    assert fake_db.data(db_manager.ACTIVITIES, 'running')['isActive'] is True
    assert fake_db.data(db_manager.ACTIVITIES, 'over')['isActive'] is False
    assert fake_db.data(db_manager.ACTIVITIES, 'pinned')['isActive'] is True
    assert any('1 activated, 1 deactivated, 1 unchanged' in line for line in log)


def test_expired_live_news_becomes_regular(fake_db):
    fake_db.seed(db_manager.NEWS, 'live', {
        'type': 'live', 'titleEn': 'Live', 'liveStartTime': NOW - timedelta(hours=3),
        'liveDurationHours': 2, 'isActive': True, 'isManuallyReactivated': False})

    run_status_refresh(NOW)

    stored = fake_db.data(db_manager.NEWS, 'live')
    assert stored['type'] == 'regular'
    assert stored['isActive'] is False
    assert stored['liveStartTime'] is None
    assert stored['liveDurationHours'] is None


def test_expired_regular_live_news_is_deleted_with_notification(fake_db):
    fake_db.seed(db_manager.NEWS, 'flash', {
        'type': 'regularLive', 'titleEn': 'Flash', 'liveStartTime': NOW - timedelta(hours=3),
        'liveDurationHours': 2, 'isActive': True, 'isManuallyReactivated': False})
    fake_db.seed(db_manager.NEWS, 'plain', {'type': 'regular', 'titleEn': 'Plain'})

    log = run_status_refresh(NOW)

    assert fake_db.data(db_manager.NEWS, 'flash') is None
    assert fake_db.data(db_manager.NEWS, 'plain') is not None
    note = next(iter(fake_db.collection(db_manager.NOTIFICATIONS).docs.values()))
    assert note['performedBy'] == SYSTEM_OPERATOR
    assert note['entityName'] == 'Flash'
    assert any('1 deleted' in line for line in log)


def test_second_refresh_changes_nothing(fake_db):
    fake_db.seed(db_manager.ACTIVITIES, 'running', {
        'date': NOW - timedelta(hours=1), 'durationHours': 24, 'isActive': False})
    run_status_refresh(NOW)
    before = dict(fake_db.data(db_manager.ACTIVITIES, 'running'))
    log = run_status_refresh(NOW)
    assert fake_db.data(db_manager.ACTIVITIES, 'running') == before
    assert any('0 activated, 0 deactivated, 1 unchanged' in line for line in log)


def test_load_failure_is_reported_in_log(fake_db):
    fake_db.fail_on.add(db_manager.ACTIVITIES)
    log = run_status_refresh(NOW)
    assert any('Could not load records' in line for line in log)


def test_invalid_record_is_counted_and_the_rest_still_refresh(fake_db):
    fake_db.seed(db_manager.ACTIVITIES, 'broken', {
        'date': NOW - timedelta(hours=1), 'durationHours': -1, 'isActive': False})
    fake_db.seed(db_manager.ACTIVITIES, 'running', {
        'date': NOW - timedelta(hours=1), 'durationHours': 24, 'isActive': False})
    fake_db.seed(db_manager.NEWS, 'live', {
        'type': 'live', 'liveStartTime': NOW - timedelta(minutes=30), 'liveDurationHours': 2, 'isActive': False})

    log = run_status_refresh(NOW)

    assert fake_db.data(db_manager.ACTIVITIES, 'running')['isActive'] is True
    assert fake_db.data(db_manager.ACTIVITIES, 'broken')['isActive'] is False
    assert fake_db.data(db_manager.NEWS, 'live')['isActive'] is True
    assert any(line.startswith('❌ activities/broken') for line in log)
    assert any('1 record(s) could not be updated' in line for line in log)
    assert log[-1] == '--- ✅ Status refresh finished ---'


def test_configured_default_duration_drives_the_refresh(fake_db):
    fake_db.seed(db_manager.NEWS, 'live', {
        'type': 'live', 'titleEn': 'Live', 'liveStartTime': NOW - timedelta(hours=2, minutes=30),
        'isActive': True, 'isManuallyReactivated': False})

    run_status_refresh(NOW, ConsoleConfig(default_live_news_hours=3))
    assert fake_db.data(db_manager.NEWS, 'live')['type'] == 'live'
    assert fake_db.data(db_manager.NEWS, 'live')['isActive'] is True

    run_status_refresh(NOW)
    assert fake_db.data(db_manager.NEWS, 'live')['type'] == 'regular'
