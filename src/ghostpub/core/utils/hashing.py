"""SHA-256 hashing of outgoing payloads for change detection"""

import hashlib
import json
from typing import Any


def sha256(content: str) -> str:
    """Return hex-encoded SHA-256 hash of content (64 chars, matches String(64) column)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def payload_hash(payload: dict[str, Any]) -> str:
    """Hash a JSON-serializable payload independent of key order."""
    return sha256(json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":")))
