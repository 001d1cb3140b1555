from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Mapping
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field

from refund_window.config.time_policy import (
    CANONICAL_TIMEZONE,
    get_zone,
    to_strptime,
)
from refund_window.core.errors import ConfigurationLookupError
from refund_window.core.models import PolicyTag, RequestChannel


class PolicyBase(BaseModel):
    # unknown keys in older documents are ignored; both camelCase and snake_case accepted
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# -------------------------
# Document (as written in YAML / JSON)
# -------------------------

class TimeZoneEntryDoc(PolicyBase):
    timezone: str = Field(min_length=1)
    date_format: str = Field(alias="dateFormat", min_length=1)


class PolicyDocument(PolicyBase):
    canonical_timezone: str = Field(default=CANONICAL_TIMEZONE, alias="canonicalTimezone")
    policy_cutoff: str = Field(alias="policyCutoff")            # DD/MM/YYYY
    timezones: Dict[str, TimeZoneEntryDoc]
    time_limits: Dict[str, Dict[str, int]] = Field(alias="timeLimits")


# -------------------------
# Runtime (immutable, injected into normalizer / validator)
# -------------------------

@dataclass(frozen=True)
class TimeZoneInfo:
    """Zone id + source date pattern ("MM/DD/YYYY") for one customer location."""
    timezone: str
    date_format: str

    @property
    def zone(self) -> ZoneInfo:
        return get_zone(self.timezone)

    @property
    def strptime_format(self) -> str:
        return to_strptime(self.date_format)


@dataclass(frozen=True)
class RefundPolicy:
    """
    Everything the pipeline looks up.

    - timezones: open table keyed by location name
    - time_limits: closed table, channel x policy tag -> allowed hours
    - policy_cutoff: sign-ups strictly after this date get PolicyTag.NEW
    """
    policy_cutoff: date
    timezones: Mapping[str, TimeZoneInfo]
    time_limits: Mapping[RequestChannel, Mapping[PolicyTag, int]]
    canonical_timezone: str = CANONICAL_TIMEZONE
    source: str = field(default="<memory>", compare=False)

    @property
    def canonical_zone(self) -> ZoneInfo:
        return get_zone(self.canonical_timezone)

    def timezone_for(self, location: str) -> TimeZoneInfo:
        info = self.timezones.get(location)
        if info is None:
            raise ConfigurationLookupError("timezone mapping", location)
        return info

    def time_limit_for(self, channel: RequestChannel, policy_tag: PolicyTag) -> int:
        by_tag = self.time_limits.get(channel) or {}
        hours = by_tag.get(policy_tag)
        if hours is None:
            raise ConfigurationLookupError("time limits", (channel.value, policy_tag.value))
        return int(hours)

    def policy_tag_for(self, sign_up_date: date) -> PolicyTag:
        return PolicyTag.NEW if sign_up_date > self.policy_cutoff else PolicyTag.OLD
