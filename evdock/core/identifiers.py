import secrets
import string
import time
from datetime import datetime, timezone

_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for every audit stamp."""
    return datetime.now(timezone.utc)


def generate_record_id(prefix: str, suffix_length: int = 9) -> str:
    """Generate a record id like DEP1718000000000X7K2P9QAB."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}{millis}{suffix}"
