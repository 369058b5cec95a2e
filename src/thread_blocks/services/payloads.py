from dataclasses import dataclass
from typing import Any


@dataclass
class PayloadError(ValueError):
    message: str
    status_code: int = 400

    def __str__(self) -> str:
        return self.message


def require_text(payload: dict[str, Any], key: str, *, max_chars: int) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise PayloadError(f"'{key}' must be a string")
    if len(value) > max_chars:
        raise PayloadError(f"'{key}' exceeds {max_chars} characters", status_code=413)
    return value
