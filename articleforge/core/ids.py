"""Application-wide identifier utilities."""

from __future__ import annotations

import secrets
import threading
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_state_lock = threading.Lock()
_last_millis = 0
_sequence = 0


def _base36(value: int) -> str:
    digits: list[str] = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
        if value == 0:
            break
    return "".join(reversed(digits))


def _next_sequence(now_millis: int) -> int:
    global _last_millis, _sequence

    with _state_lock:
        if now_millis == _last_millis:
            _sequence += 1
        else:
            _last_millis = now_millis
            _sequence = 0
        return _sequence


def generate_cuid(length: int = 24) -> str:
    """Generate a collision-resistant lowercase identifier with a `c` prefix.

    Layout: ``c`` + base36 millis + 4-char base36 sequence + random padding.
    Ids generated later in time sort after earlier ones.
    """
    now_millis = int(time.time() * 1000)
    sequence = _next_sequence(now_millis)

    body_length = max(length - 1, 8)
    ordered = f"{_base36(now_millis)}{_base36(sequence).rjust(4, '0')}"
    padding = "".join(secrets.choice(_ALPHABET) for _ in range(max(body_length - len(ordered), 0)))
    return f"c{(ordered + padding)[:body_length]}"


def generate_run_id() -> str:
    """Generate an identifier for one pipeline run."""
    return f"pipeline_{generate_cuid()}"
