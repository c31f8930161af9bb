import re
from datetime import datetime, timezone

_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?")


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    text = (value or "").strip()
    if not _TIMESTAMP_RE.fullmatch(text):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_timestamp(value: str) -> str:
    return format_timestamp(parse_timestamp(value))


def as_int(value, field: str) -> int:
    """Coerce integral numbers (including ``100.0`` and ``"100"``) to int."""
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field} must be an integer, got {value}")
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
        return int(value.strip())
    raise ValueError(f"{field} must be an integer, got {value!r}")


def ensure_wallet_name(name: str) -> str:
    normalized = (name or "").strip()
    if not normalized:
        raise ValueError("Wallet name is required")
    return normalized


def ensure_positive_amount(amount) -> int:
    value = as_int(amount, "amount")
    if value <= 0:
        raise ValueError("Amount must be greater than zero")
    return value
