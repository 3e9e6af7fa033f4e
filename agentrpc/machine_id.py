"""
Stable machine identity sent with every coordinator request.
"""

from __future__ import annotations

import hashlib
import logging
import platform
import uuid
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger("agentrpc.machine_id")

MACHINE_ID_FILES = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))


def _read_os_machine_id() -> str | None:
    for path in MACHINE_ID_FILES:
        try:
            value = path.read_text().strip()
        except OSError:
            continue
        if value:
            return value
    return None


@lru_cache(maxsize=1)
def machine_id() -> str:
    """
    Return a hex digest identifying this host.

    Prefers the OS machine id; falls back to hostname + MAC address.
    """
    raw = _read_os_machine_id()
    if raw is None:
        logger.debug("No OS machine id found, deriving from hostname and MAC")
        raw = f"{platform.node()}-{uuid.getnode():012x}"
    return hashlib.sha256(raw.encode()).hexdigest()
