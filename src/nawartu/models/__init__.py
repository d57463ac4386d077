"""
Data models for the Nawartu client.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Union

DateLike = Union[date, datetime]


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or datetime) string from a backend row."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Governorate:
    """A first-level Syrian administrative region."""
    id: str
    name_ar: str
    name_en: str
    latitude: float
    longitude: float
    region: str
    population: Optional[int] = None
    major_cities: tuple[str, ...] = ()

    def name(self, lang: str) -> str:
        return self.name_ar if lang == "ar" else self.name_en


@dataclass
class DateRange:
    """
    An in-progress or complete stay selection.

    ``end`` is only ever set together with ``start`` and never precedes it.
    """
    start: Optional[DateLike] = None
    end: Optional[DateLike] = None

    def __post_init__(self) -> None:
        if self.end is not None:
            if self.start is None:
                raise ValueError("A range cannot have an end without a start")
            if self.end < self.start:
                raise ValueError("Range end must not precede its start")

    @property
    def is_empty(self) -> bool:
        return self.start is None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def nights(self) -> Optional[int]:
        """Whole nights covered, rounded up; None until both ends are set."""
        if self.start is None or self.end is None:
            return None
        delta = self.end - self.start
        return math.ceil(delta.total_seconds() / 86400)


class AvailabilityStatus:
    """Statuses a calendar day can have on the backend."""
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"

    ALL = [AVAILABLE, BOOKED, BLOCKED, MAINTENANCE, RESERVED]


@dataclass
class AvailabilityDay:
    """One day of a listing's availability calendar."""
    date: date
    status: str
    price_modifier: float = 1.0
    min_stay_nights: int = 1
    is_available: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AvailabilityDay":
        status = row.get("status") or AvailabilityStatus.AVAILABLE
        return cls(
            date=parse_date(row["date"]),
            status=status,
            price_modifier=float(row.get("price_modifier") or 1.0),
            min_stay_nights=int(row.get("min_stay_nights") or 1),
            is_available=bool(row.get("is_available", status == AvailabilityStatus.AVAILABLE)),
        )


@dataclass
class AvailabilityCheck:
    """Result of checking a prospective stay."""
    is_available: bool
    available_nights: int
    total_nights: int
    base_price: float
    total_price: float
    constraints: list[Any] = field(default_factory=list)
    blocked_dates: list[date] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AvailabilityCheck":
        return cls(
            is_available=bool(row.get("is_available")),
            available_nights=int(row.get("available_nights") or 0),
            total_nights=int(row.get("total_nights") or 0),
            base_price=float(row.get("base_price") or 0),
            total_price=float(row.get("total_price") or 0),
            constraints=list(row.get("constraints") or []),
            blocked_dates=[parse_date(d) for d in (row.get("blocked_dates") or [])],
        )


@dataclass
class TranslationResult:
    """Outcome of a best-effort translation."""
    text: str
    translated: bool = False


@dataclass
class ResolvedContent:
    """Display text for a listing in one language."""
    name: str
    description: str
    location: str
    auto_translated: dict[str, bool] = field(
        default_factory=lambda: {"name": False, "description": False, "location": False}
    )

    @property
    def any_auto_translated(self) -> bool:
        return any(self.auto_translated.values())


@dataclass
class Review:
    """A guest review of a listing."""
    listing_id: str
    guest_id: str
    rating: int
    title: str
    comment: str
    booking_id: Optional[str] = None
    id: Optional[str] = None
    host_response: Optional[str] = None
    guest_name: Optional[str] = None
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Review":
        return cls(
            id=row.get("id"),
            listing_id=row.get("listing_id", ""),
            guest_id=row.get("guest_id", ""),
            booking_id=row.get("booking_id"),
            rating=int(row.get("rating") or 0),
            title=row.get("title") or "",
            comment=row.get("comment") or "",
            host_response=row.get("host_response"),
            guest_name=(row.get("profiles") or {}).get("full_name"),
            created_at=row.get("created_at") or "",
        )


@dataclass
class RatingSummary:
    """Average star rating of a listing."""
    average_rating: float
    review_count: int


@dataclass
class Profile:
    """Denormalized copy of a user's profile row."""
    user_id: str
    id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    phone: str = ""
    avatar_url: str = ""
    role: str = "guest"
    preferred_language: str = "ar"

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Profile":
        return cls(
            user_id=row.get("user_id", ""),
            id=row.get("id"),
            full_name=row.get("full_name") or "",
            email=row.get("email") or "",
            phone=row.get("phone") or "",
            avatar_url=row.get("avatar_url") or "",
            role=row.get("role") or "guest",
            preferred_language=row.get("preferred_language") or "ar",
        )


@dataclass
class HostUpgradeResult:
    """Outcome of asking to become a host."""
    success: bool
    message: str


@dataclass
class CheckoutSession:
    """Hosted checkout page to redirect the guest to."""
    url: str


@dataclass
class UploadFile:
    """A file picked for upload."""
    name: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return self.name.rsplit(".", 1)[-1].lower() if "." in self.name else ""


@dataclass
class Notification:
    """A transient message shown to the user."""
    title: str
    description: str
    variant: str = "default"  # or "destructive"


__all__ = [
    "Governorate",
    "DateRange",
    "AvailabilityStatus",
    "AvailabilityDay",
    "AvailabilityCheck",
    "TranslationResult",
    "ResolvedContent",
    "Review",
    "RatingSummary",
    "Profile",
    "HostUpgradeResult",
    "CheckoutSession",
    "UploadFile",
    "Notification",
    "parse_date",
]
