"""
Daily identity codes.

Each user has one numeric code per calendar day, derived with a keyed hash
from the user id and the date. The code is never stored: validation simply
recomputes it. The calendar day is taken in a single configured zone so the
driver's device and the service agree on when a code rolls over.
"""

import hashlib
import hmac
import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from src.config import get_settings

_NON_DIGITS = re.compile(r"[^0-9]")


class DailyCodeService:
    """Keyed-hash code generator. Stateless apart from its configuration."""

    def __init__(self, secret: str, timezone: str = "UTC", length: int = 6) -> None:
        if not secret:
            raise ValueError("daily code secret must not be empty")
        self._secret = secret.encode("utf-8")
        self._zone = ZoneInfo(timezone)
        self._length = length

    @classmethod
    def from_settings(cls) -> "DailyCodeService":
        settings = get_settings().fulfillment
        return cls(
            secret=settings.daily_code_secret,
            timezone=settings.daily_code_timezone,
            length=settings.daily_code_length,
        )

    @property
    def length(self) -> int:
        return self._length

    def today(self, now: datetime | None = None) -> date:
        """Calendar date in the reference zone."""
        now = now or datetime.now(self._zone)
        return now.astimezone(self._zone).date()

    def expires_at(self, day: date | None = None) -> datetime:
        """Instant at which the code for ``day`` stops validating."""
        day = day or self.today()
        return datetime.combine(day + timedelta(days=1), time.min, tzinfo=self._zone)

    def code(self, user_id: str, day: date | None = None) -> str:
        """Code for ``user_id`` on ``day`` (defaults to today)."""
        day = day or self.today()
        message = f"{user_id}:{day.isoformat()}".encode()
        digest = hmac.new(self._secret, message, hashlib.sha256).digest()
        value = int.from_bytes(digest[:8], "big") % (10**self._length)
        return str(value).zfill(self._length)

    def validate(self, user_id: str, code: str | None, day: date | None = None) -> bool:
        """Recompute and compare in constant time. Accepts display formatting."""
        candidate = self.normalize_code(code)
        if len(candidate) != self._length:
            return False
        return hmac.compare_digest(candidate, self.code(user_id, day))

    @staticmethod
    def normalize_code(code: str | None) -> str:
        """Strip display formatting (``123-456`` -> ``123456``)."""
        if not code:
            return ""
        return _NON_DIGITS.sub("", code)

    @staticmethod
    def format_code(code: str) -> str:
        """Split a code in two halves for display (``123456`` -> ``123-456``)."""
        if len(code) < 2 or len(code) % 2:
            return code
        half = len(code) // 2
        return f"{code[:half]}-{code[half:]}"
