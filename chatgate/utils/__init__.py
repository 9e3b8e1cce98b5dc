"""Utility helpers shared across the admission service."""

from .env_utils import parse_bool_env, parse_int_env, parse_float_env, parse_str_env
from .time_utils import utc_now, elapsed_ms, usage_day, next_reset_at

__all__ = [
    # Environment parsing
    "parse_bool_env",
    "parse_int_env",
    "parse_float_env",
    "parse_str_env",
    # Time helpers
    "utc_now",
    "elapsed_ms",
    "usage_day",
    "next_reset_at",
]
