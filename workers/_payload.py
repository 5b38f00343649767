"""Helpers for reading job payloads (camelCase keys, string UUIDs)."""
from typing import Any, Optional
from uuid import UUID


def payload_uuid(payload: dict[str, Any], key: str) -> Optional[UUID]:
    """Return payload[key] as a UUID, or None when missing or malformed."""
    value = payload.get(key)
    if not value:
        return None
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        return None


def require_uuids(payload: dict[str, Any], *keys: str) -> list[UUID]:
    """Return the UUIDs for keys, raising ValueError naming any that are missing."""
    values = [payload_uuid(payload, key) for key in keys]
    missing = [key for key, value in zip(keys, values) if value is None]
    if missing:
        raise ValueError(f"Missing required parameters: {', '.join(missing)}")
    return values
