"""Register users via Google Sign-In."""

from __future__ import annotations

import logging
from typing import Any

from lambdas.common.registration import register_google_user
from lambdas.common.resp import event_body

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    """Lambda entry point for /register/google."""

    return register_google_user(event_body(event))
