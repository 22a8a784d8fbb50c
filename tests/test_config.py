import logging

import pytest

from config import ConsoleConfig, load_config, setup_logging


def test_defaults():
    config = load_config(secrets={}, environ={})
    assert config == ConsoleConfig()
    assert config.refresh_interval_seconds == 60
    assert config.default_activity_hours == 24
    assert config.default_live_news_hours == 2


def test_secrets_win_over_environment():
    config = load_config(secrets={'refresh_interval_seconds': '30'},
                         environ={'CONSOLE_REFRESH_INTERVAL_SECONDS': '90', 'CONSOLE_TIMEZONE': 'UTC'})
    assert config.refresh_interval_seconds == 30
    assert config.timezone == 'UTC'


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        load_config(secrets={'text_direction': 'up'}, environ={})
    with pytest.raises(ValueError):
        load_config(secrets={'refresh_interval_seconds': 0}, environ={})


def test_config_is_hashable_for_resource_cache():
    assert hash(load_config(secrets={}, environ={})) == hash(ConsoleConfig())


def test_setup_logging_adds_one_handler():
    setup_logging("DEBUG")
    setup_logging("DEBUG")
    root = logging.getLogger()
    assert sum(1 for h in root.handlers if getattr(h, "_console_handler", False)) == 1
    assert root.level == logging.DEBUG


def test_default_hours_follow_the_collection():
    config = load_config(secrets={'default_activity_hours': 12, 'default_live_news_hours': 3}, environ={})
    assert config.default_hours_for('activities') == 12
    assert config.default_hours_for('news') == 3


def test_zero_default_duration_is_rejected():
    with pytest.raises(ValueError):
        load_config(secrets={'default_live_news_hours': 0}, environ={})
