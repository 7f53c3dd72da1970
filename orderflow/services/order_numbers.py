# orderflow/services/order_numbers.py
import re
import secrets
import time

from orderflow.utils.settings import ORDER_NUMBER_PREFIX

_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_FORMAT = re.compile(r"^[A-Z0-9]+-[A-Z0-9]+-[A-Z0-9]+$")


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ALPHABET[r])
    return "".join(reversed(out))


def generate_order_number(prefix: str = ORDER_NUMBER_PREFIX) -> str:
    """FV-<millis in base36>-<4 random base36 chars>, e.g. FV-MB1X2K3L-7QZ0."""
    stamp = _base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{prefix}-{stamp}-{suffix}"


def is_order_number(value: str) -> bool:
    return bool(value) and bool(_FORMAT.match(value))
