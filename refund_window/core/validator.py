# refund_window/core/validator.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from refund_window.config.time_policy import (
    BUSINESS_HOURS,
    floor_to_minute,
    format_datetime,
    resume_business_time,
    weekday_name,
)
from refund_window.core.errors import MalformedInputError
from refund_window.core.models import (
    NormalizedRequest,
    RequestChannel,
    ValidationDetails,
    ValidationResult,
)
from refund_window.policy.params.schema import RefundPolicy

logger = logging.getLogger(__name__)


class DeadlineValidator:
    """
    Decides whether a normalized request was registered before its cutoff.

    - registered: web-app as submitted, phone moved into business hours
    - cutoff: investment + time_limits[channel][policy_tag] elapsed hours
    - valid iff registered <= cutoff (minute granularity, inclusive, on UTC)
    """

    def __init__(self, policy: RefundPolicy, business_hours: Optional[Mapping] = None):
        self.policy = policy
        self.business_hours = business_hours or BUSINESS_HOURS
        self._canonical = policy.canonical_zone

    def validate(self, n: NormalizedRequest) -> ValidationResult:
        if n is None:
            raise MalformedInputError("normalized request is required")

        hours = self.policy.time_limit_for(n.request_channel, n.policy_tag)

        investment_at = self._on_canonical_clock(n.investment_at)
        requested_at = self._on_canonical_clock(n.refund_requested_at)
        registered_at = self.registered_at(n.request_channel, requested_at)
        cutoff_at = self.cutoff_at(investment_at, hours)

        # aware datetimes sharing a tzinfo compare by wall clock and ignore fold
        is_valid = floor_to_minute(registered_at.astimezone(timezone.utc)) <= floor_to_minute(
            cutoff_at.astimezone(timezone.utc)
        )

        logger.debug(
            "[validate] %s %s/%s registered=%s cutoff=%s valid=%s",
            n.name, n.request_channel.value, n.policy_tag.value,
            format_datetime(registered_at), format_datetime(cutoff_at), is_valid,
        )

        details = ValidationDetails(
            investment_at=investment_at,
            investment_weekday=weekday_name(investment_at),
            requested_at=requested_at,
            requested_weekday=weekday_name(requested_at),
            registered_at=registered_at,
            registered_weekday=weekday_name(registered_at),
            cutoff_at=cutoff_at,
            cutoff_weekday=weekday_name(cutoff_at),
            time_limit_hours=hours,
            policy_tag=n.policy_tag,
            is_valid=is_valid,
        )
        return ValidationResult(is_valid=is_valid, details=details)

    def cutoff_at(self, investment_at: datetime, hours: int) -> datetime:
        # elapsed hours: a UK clock change inside the window does not stretch it
        return (investment_at.astimezone(timezone.utc) + timedelta(hours=hours)).astimezone(self._canonical)

    def registered_at(self, channel: RequestChannel, requested_at: datetime) -> datetime:
        if channel is RequestChannel.WEB_APP:
            return requested_at
        return resume_business_time(requested_at, self.business_hours)

    def _on_canonical_clock(self, dt: datetime) -> datetime:
        # naive values are taken as canonical wall-clock time
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self._canonical)
        return dt.astimezone(self._canonical)
