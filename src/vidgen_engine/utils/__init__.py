"""Shared utilities."""

from vidgen_engine.utils.async_utils import run_async
from vidgen_engine.utils.clock import Clock, utc_now

__all__ = ["Clock", "run_async", "utc_now"]
