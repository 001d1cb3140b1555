# refund_window/core/normalizer.py
from __future__ import annotations

import logging
from datetime import date, datetime, time

from refund_window.config.time_policy import (
    SOURCE_TIME_PATTERN,
    floor_to_minute,
    format_datetime,
    to_strptime,
)
from refund_window.core.errors import MalformedInputError, ParseError
from refund_window.core.models import NormalizedRequest, RawRequest, RequestChannel
from refund_window.policy.params.schema import RefundPolicy, TimeZoneInfo

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "name",
    "customer_location",
    "request_channel",
    "sign_up_date",
    "investment_date",
    "investment_time",
    "refund_request_date",
    "refund_request_time",
)

_SOURCE_TIME_FORMAT = to_strptime(SOURCE_TIME_PATTERN)


class TimeNormalizer:
    """
    RawRequest (customer-local calendar) -> NormalizedRequest (canonical clock).

    Stateless apart from the injected policy; safe to share between threads.
    """

    def __init__(self, policy: RefundPolicy):
        self.policy = policy
        self._canonical = policy.canonical_zone

    def normalize(self, raw: RawRequest) -> NormalizedRequest:
        if raw is None:
            raise MalformedInputError("refund request is required")
        _require_fields(raw)

        location = raw.customer_location.strip()
        info = self.policy.timezone_for(location)

        # sign-up is a civil date: reformatted, never shifted between zones
        sign_up = _parse_date("sign_up_date", raw.sign_up_date, info)
        investment_at = self._to_canonical(
            "investment", raw.investment_date, raw.investment_time, info
        )
        refund_requested_at = self._to_canonical(
            "refund_request", raw.refund_request_date, raw.refund_request_time, info
        )

        policy_tag = self.policy.policy_tag_for(sign_up)
        channel = RequestChannel.parse(raw.request_channel)

        logger.debug(
            "[normalize] %s (%s) investment=%s refund=%s tag=%s",
            raw.name, location, format_datetime(investment_at),
            format_datetime(refund_requested_at), policy_tag.value,
        )
        return NormalizedRequest(
            name=raw.name.strip(),
            customer_location=location,
            sign_up_date=sign_up,
            investment_at=investment_at,
            refund_requested_at=refund_requested_at,
            policy_tag=policy_tag,
            request_channel=channel,
        )

    def _to_canonical(self, prefix: str, date_value: str, time_value: str, info: TimeZoneInfo) -> datetime:
        """Local date + "HH:mm" in the location's zone -> canonical-zone datetime (may change day)."""
        d = _parse_date(f"{prefix}_date", date_value, info)
        t = _parse_time(f"{prefix}_time", time_value)
        local = datetime.combine(d, t, tzinfo=info.zone)
        return floor_to_minute(local.astimezone(self._canonical))


# -------------------------
# Helpers
# -------------------------

def _require_fields(raw: RawRequest) -> None:
    for name in REQUIRED_FIELDS:
        value = getattr(raw, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MalformedInputError(f"missing required field: {name}", field=name)
        if not isinstance(value, str):
            raise MalformedInputError(
                f"{name} must be text, got {type(value).__name__}", field=name
            )


def _parse_date(field: str, value: str, info: TimeZoneInfo) -> date:
    text = str(value).strip()
    try:
        return datetime.strptime(text, info.strptime_format).date()
    except ValueError as e:
        raise ParseError(field, text, info.date_format) from e


def _parse_time(field: str, value: str) -> time:
    text = str(value).strip()
    try:
        return datetime.strptime(text, _SOURCE_TIME_FORMAT).time()
    except ValueError as e:
        raise ParseError(field, text, SOURCE_TIME_PATTERN) from e
