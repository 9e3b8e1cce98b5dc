"""Environment variable parsing.

Every configuration model in the service reads its defaults through these
helpers so that malformed values fall back to defaults in one place.
"""

import os
from typing import Optional, Sequence, Union


def parse_bool_env(key: str, default: bool = False) -> bool:
    """Read a boolean flag.

    Accepts ``true``/``1``/``yes``/``on`` (case-insensitive) as true.
    Anything else that is set counts as false.
    """
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def parse_int_env(key: str, default: int) -> int:
    """Read an integer, returning ``default`` when unset or unparsable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def parse_float_env(key: str, default: float) -> float:
    """Read a float, returning ``default`` when unset or unparsable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def parse_str_env(
    keys: Union[Sequence[str], str],
    default: Optional[str] = None,
) -> Optional[str]:
    """Read the first non-empty value among one or more variable names.

    Lets a setting accept a canonical name plus legacy aliases::

        parse_str_env(("IDENTITY_PROVIDER_URL", "SUPABASE_URL"))
    """
    if isinstance(keys, str):
        keys = (keys,)
    for key in keys:
        value = os.getenv(key)
        if value is not None and value.strip():
            return value.strip()
    return default
