"""Tests for the shared logging configuration."""
from __future__ import annotations

import logging

import pytest

from kaamyab.core.context import request_id_ctx_var
from kaamyab.core.logging import (
    QUIET_LOGGERS,
    RequestIdFilter,
    build_logging_config,
    resolve_log_level,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", "DEBUG"), (" Warning ", "WARNING"), ("INFO", "INFO"), ("verbose", "INFO"), ("", "INFO"), (None, "INFO")],
)
def test_resolve_log_level(raw, expected) -> None:
    assert resolve_log_level(raw) == expected


def test_third_party_loggers_are_quiet_unless_debugging() -> None:
    info = build_logging_config("INFO")
    debug = build_logging_config("DEBUG")

    assert {name: cfg["level"] for name, cfg in info["loggers"].items()} == {
        name: "WARNING" for name in QUIET_LOGGERS
    }
    assert all(cfg["level"] == "DEBUG" for cfg in debug["loggers"].values())
    assert info["root"]["level"] == "INFO"
    assert info["handlers"]["console"]["filters"] == ["request_id"]


def test_request_id_filter_stamps_records() -> None:
    record = logging.LogRecord("kaamyab", logging.INFO, __file__, 1, "hello", None, None)
    request_filter = RequestIdFilter()

    assert request_filter.filter(record) is True
    assert record.request_id == "-"

    token = request_id_ctx_var.set("req-9")
    try:
        request_filter.filter(record)
    finally:
        request_id_ctx_var.reset(token)
    assert record.request_id == "req-9"
