import time
import re
import random
import uuid
from datetime import datetime, timezone, date
from typing import Optional
import hmac


# ----------------------------
# Helpers
# ----------------------------
def now_ts() -> float:
    return time.time()


def now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def parse_date(value: Optional[str]) -> Optional[date]:
    # rides store plain YYYY-MM-DD, orders full ISO timestamps
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def new_id() -> str:
    return str(uuid.uuid4())


def short_id() -> str:
    return uuid.uuid4().hex[:8].upper()


def new_order_number() -> str:
    return f"ORDER-{random.randint(0, 9999):04d}"


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.strip().lower())
    return slug.strip("-")


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    email = email.strip()
    # simple but effective email check
    return re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", email) is not None


def ct_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode(), b.encode())
