"""SelfID — Telemetry."""

from selfid.telemetry.logging import setup_logging

__all__ = ["setup_logging"]
