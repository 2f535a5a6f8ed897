"""Per-attempt namespacing for uploaded artifacts."""

from __future__ import annotations

import secrets
from typing import Callable


def run_stamp(clock: Callable[[], float]) -> str:
    """Millisecond timestamp plus a random suffix, unique per pipeline attempt."""
    return f"{int(clock() * 1000)}_{secrets.token_hex(4)}"


def namespaced_path(caller_id: str, stamp: str, name: str, prefix: str = "") -> str:
    """Build ``[prefix/]caller_id/stamp_name``."""
    path = f"{caller_id}/{stamp}_{name}"
    return f"{prefix.strip('/')}/{path}" if prefix else path
