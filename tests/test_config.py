import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from serenity.core.config import Settings, DEFAULT_GREETING


def test_defaults():
    s = Settings(_env_file=None)
    assert 0 <= s.reply_delay_min_seconds <= s.reply_delay_max_seconds
    assert s.greeting_enabled
    assert s.greeting_message == DEFAULT_GREETING


def test_reply_delay_read_from_environment(monkeypatch):
    monkeypatch.setenv("REPLY_DELAY_MIN_SECONDS", "0.5")
    monkeypatch.setenv("REPLY_DELAY_MAX_SECONDS", "0.75")
    s = Settings(_env_file=None)
    assert s.reply_delay_min_seconds == 0.5
    assert s.reply_delay_max_seconds == 0.75


def test_inverted_delay_range_rejected():
    with pytest.raises(ValueError):
        Settings(_env_file=None, reply_delay_min_seconds=3.0, reply_delay_max_seconds=1.0)


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        Settings(_env_file=None, reply_delay_min_seconds=-1.0, reply_delay_max_seconds=1.0)


def test_idle_timeout_must_be_positive():
    assert Settings(_env_file=None).session_idle_minutes > 0
    with pytest.raises(ValueError):
        Settings(_env_file=None, session_idle_minutes=0)
