# refund_window/schemas.py
# Ingest schema for refund request records (JSON fixtures use camelCase keys)
from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from refund_window.core.errors import MalformedInputError
from refund_window.core.models import RawRequest


class RefundRequestIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: str = Field(min_length=1)
    customer_location: str = Field(alias="customerLocation", min_length=1)
    # "requestSource" is the older key for the channel
    request_channel: str = Field(alias="requestSource", min_length=1)
    sign_up_date: str = Field(alias="signUpDate", min_length=1)
    investment_date: str = Field(alias="investmentDate", min_length=1)
    investment_time: str = Field(alias="investmentTime", min_length=1)
    refund_request_date: str = Field(alias="refundRequestDate", min_length=1)
    refund_request_time: str = Field(alias="refundRequestTime", min_length=1)

    def to_raw(self) -> RawRequest:
        return RawRequest(
            name=self.name,
            customer_location=self.customer_location,
            request_channel=self.request_channel,
            sign_up_date=self.sign_up_date,
            investment_date=self.investment_date,
            investment_time=self.investment_time,
            refund_request_date=self.refund_request_date,
            refund_request_time=self.refund_request_time,
        )


# "investmentTime" -> "investment_time"; errors report model field names
_FIELD_BY_ALIAS = {
    f.alias: name for name, f in RefundRequestIn.model_fields.items() if f.alias
}


def _channel_alias(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    # accept "requestChannel" alongside "requestSource"
    if "requestChannel" in payload and "requestSource" not in payload:
        data = dict(payload)
        data["requestSource"] = data.pop("requestChannel")
        return data
    return payload


def parse_raw_request(payload: Mapping[str, Any]) -> RawRequest:
    if payload is None:
        raise MalformedInputError("refund request is required")
    if not isinstance(payload, Mapping):
        raise MalformedInputError(f"refund request must be a mapping, got {type(payload).__name__}")
    try:
        return RefundRequestIn.model_validate(_channel_alias(payload)).to_raw()
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = first.get("loc") or ()
        field = _FIELD_BY_ALIAS.get(str(loc[0]), str(loc[0])) if loc else None
        raise MalformedInputError(f"invalid refund request: {e}", field=field) from e


def parse_raw_requests(payloads: Iterable[Mapping[str, Any]]) -> List[RawRequest]:
    """All-or-nothing; use parse_raw_request per item for isolation."""
    if payloads is None or isinstance(payloads, (str, bytes, Mapping)):
        raise MalformedInputError("refund requests must be a list")
    return [parse_raw_request(p) for p in payloads]
