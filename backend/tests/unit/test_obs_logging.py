import json
import logging

import pytest

from snapshoot.obs import logging as obs_logging


def _record(**extra):
    record = logging.LogRecord("snapshoot.test", logging.INFO, __file__, 1, "user_signed_in", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_redacts_credentials_and_positions():
    record = _record(
        password="hunter2",
        access_token="abc",
        email="alice@example.com",
        latitude=48.85,
        latency_ms=12.5,
        username="alice",
    )
    payload = json.loads(obs_logging.JSONLogFormatter().format(record))
    assert payload["msg"] == "user_signed_in"
    assert payload["level"] == "info"
    for key in ("password", "access_token", "email", "latitude"):
        assert payload[key] == "[redacted]"
    assert payload["latency_ms"] == 12.5
    assert payload["username"] == "alice"


def test_formatter_bounds_large_values():
    record = _record(note="x" * 1000, ids=list(range(25)), nested={"token": "t", "count": 3})
    payload = json.loads(obs_logging.JSONLogFormatter().format(record))
    assert payload["note"].endswith("...")
    assert len(payload["note"]) == 259
    assert payload["ids"][-1] == "+15 items"
    assert payload["nested"] == {"token": "[redacted]", "count": 3}


def test_context_binding_is_layered_and_resettable():
    outer = obs_logging.bind_context(request_id="req-1", route="/stories")
    try:
        inner = obs_logging.bind_context(user_id="u-1")
        payload = json.loads(obs_logging.JSONLogFormatter().format(_record()))
        assert (payload["request_id"], payload["route"], payload["user_id"]) == ("req-1", "/stories", "u-1")
        obs_logging.reset_context(inner)
        assert "user_id" not in json.loads(obs_logging.JSONLogFormatter().format(_record()))
        assert obs_logging.current_request_id() == "req-1"
    finally:
        obs_logging.reset_context(outer)
    assert obs_logging.current_request_id() is None


def test_bind_context_rejects_unknown_keys():
    with pytest.raises(ValueError):
        obs_logging.bind_context(session="s")


def test_sampling_filter_keeps_warnings(monkeypatch):
    monkeypatch.setattr(obs_logging.settings, "obs_log_sampling_rate_info", 0.0)
    sampler = obs_logging.InfoSamplingFilter()
    assert sampler.filter(_record()) is False
    warning = logging.LogRecord("snapshoot.test", logging.WARNING, __file__, 1, "slow", None, None)
    assert sampler.filter(warning) is True
