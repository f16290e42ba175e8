"""Internal helper for the development-time validation toggle.

Kept minimal so the executor hot path only pays for an attribute read when
validation is off.
"""

from __future__ import annotations

import os

__all__ = ["VALIDATE_VAR", "dev_validate_enabled"]

VALIDATE_VAR = "READYEXEC_VALIDATE"


def dev_validate_enabled(*, override: bool | None = None) -> bool:
    """Return True when dev-time validation is enabled.

    - If ``override`` is provided, it takes precedence.
    - Otherwise, returns True when the environment variable
      ``READYEXEC_VALIDATE`` is exactly ``"1"``.
    """
    if override is not None:
        return bool(override)
    return os.getenv(VALIDATE_VAR) == "1"
