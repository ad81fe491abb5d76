"""
Unit tests for structured logging setup.
"""

from __future__ import annotations

import logging

import structlog

from selfid.config import LoggingConfig
from selfid.telemetry import setup_logging
from selfid.telemetry.logging import _render_bytes


def test_setup_installs_single_root_handler():
    setup_logging(LoggingConfig(level="debug", format="json"), instance_name="unit")
    root = logging.getLogger()
    try:
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    finally:
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()


def test_chain_id_is_bound_to_every_entry():
    setup_logging(LoggingConfig(), instance_name="unit", chain_id="test-chain")
    try:
        assert structlog.contextvars.get_contextvars() == {"instance": "unit", "chain_id": "test-chain"}
    finally:
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()


def test_bytes_fields_render_as_hex():
    event_dict = {"event": "call_completed", "payload": b"\xa9\x05\x9c\xbb", "value": 7}
    rendered = _render_bytes(None, "info", event_dict)
    assert rendered == {"event": "call_completed", "payload": "0xa9059cbb", "value": 7}


def test_unknown_level_falls_back_to_info():
    setup_logging(LoggingConfig(level="chatty"))
    try:
        assert logging.getLogger().level == logging.INFO
    finally:
        structlog.reset_defaults()
