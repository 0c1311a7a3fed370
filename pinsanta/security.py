from __future__ import annotations

import hmac
import re

from flask import current_app


PIN_PATTERN = re.compile(r"^[0-9]{4}$")


def is_valid_pin(pin) -> bool:
    """Player PINs are exactly four ASCII digits."""
    return isinstance(pin, str) and bool(PIN_PATTERN.fullmatch(pin))


def verify_admin_pin(candidate) -> bool:
    """Compare a supplied secret with the single configured admin PIN."""
    expected = (current_app.config.get("SANTA_ADMIN_PIN") or "").strip()
    if not expected or not isinstance(candidate, str) or not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
