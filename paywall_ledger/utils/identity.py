"""Проверка идентификаторов участников (автор, читатель, владелец)."""
import re

from paywall_ledger.core.exceptions import InvalidParameter

MAX_IDENTITY_LENGTH = 128
_IDENTITY_RE = re.compile(r"^\S+$")


def normalize_identity(value: str | None, field: str = "identity") -> str:
    """Вернуть identity без пробелов по краям или поднять InvalidParameter."""
    if value is None or not isinstance(value, str):
        raise InvalidParameter(f"{field} is required")
    value = value.strip()
    if not value or len(value) > MAX_IDENTITY_LENGTH or not _IDENTITY_RE.match(value):
        raise InvalidParameter(f"{field} is not a valid identity")
    return value
