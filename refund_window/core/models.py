# refund_window/core/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from refund_window.config.time_policy import format_date, format_datetime
from refund_window.core.errors import MalformedInputError


class RequestChannel(str, Enum):
    """
    How the refund request reached us.

    - PHONE   : registered subject to business hours
    - WEB_APP : time-stamped on submission
    """
    PHONE = "phone"
    WEB_APP = "web-app"

    @classmethod
    def parse(cls, value: Any) -> "RequestChannel":
        """phone / web-app / "web app" / WEB_APP -> enum. Anything else is malformed."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise MalformedInputError("request channel is required", field="request_channel")
        key = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value == key:
                return member
        raise MalformedInputError(f"unrecognized request channel: {value!r}", field="request_channel")


class PolicyTag(str, Enum):
    """Terms of service regime, chosen by sign-up date against the policy cutoff."""
    OLD = "old"
    NEW = "new"

    @property
    def label(self) -> str:
        return "Old TOS" if self is PolicyTag.OLD else "New TOS"

    @classmethod
    def parse(cls, value: Any) -> "PolicyTag":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        aliases = {"old": cls.OLD, "otos": cls.OLD, "new": cls.NEW, "ntos": cls.NEW}
        if key not in aliases:
            raise ValueError(f"unrecognized policy tag: {value!r}")
        return aliases[key]


@dataclass(frozen=True)
class RawRequest:
    """
    One refund request exactly as recorded, in the customer's local calendar.
    Date strings follow the location's pattern, times are "HH:mm".
    """
    name: Optional[str]
    customer_location: Optional[str]
    request_channel: Optional[str]
    sign_up_date: Optional[str]
    investment_date: Optional[str]
    investment_time: Optional[str]
    refund_request_date: Optional[str]
    refund_request_time: Optional[str]


@dataclass(frozen=True)
class NormalizedRequest:
    """
    RawRequest moved onto the canonical clock.

    - sign_up_date is a civil date (never shifted between zones)
    - investment_at / refund_requested_at are canonical-zone aware datetimes, minute precision
    """
    name: str
    customer_location: str
    sign_up_date: date
    investment_at: datetime
    refund_requested_at: datetime
    policy_tag: PolicyTag
    request_channel: RequestChannel

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "customer_location": self.customer_location,
            "sign_up_date": format_date(self.sign_up_date),
            "investment_at": format_datetime(self.investment_at),
            "refund_requested_at": format_datetime(self.refund_requested_at),
            "policy_tag": self.policy_tag.value,
            "request_channel": self.request_channel.value,
        }


@dataclass(frozen=True)
class ValidationDetails:
    """Audit trail for one decision. Display only; nothing reads it back."""
    investment_at: datetime
    investment_weekday: str
    requested_at: datetime
    requested_weekday: str
    registered_at: datetime
    registered_weekday: str
    cutoff_at: datetime
    cutoff_weekday: str
    time_limit_hours: int
    policy_tag: PolicyTag
    is_valid: bool

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": "valid" if self.is_valid else "invalid",
            "is_valid": self.is_valid,
            "investment_at": format_datetime(self.investment_at),
            "investment_weekday": self.investment_weekday,
            "requested_at": format_datetime(self.requested_at),
            "requested_weekday": self.requested_weekday,
            "registered_at": format_datetime(self.registered_at),
            "registered_weekday": self.registered_weekday,
            "cutoff_at": format_datetime(self.cutoff_at),
            "cutoff_weekday": self.cutoff_weekday,
            "time_limit_hours": self.time_limit_hours,
            "policy_tag": self.policy_tag.value,
            "policy_label": self.policy_tag.label,
        }


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    details: ValidationDetails

    def __bool__(self) -> bool:
        return self.is_valid
