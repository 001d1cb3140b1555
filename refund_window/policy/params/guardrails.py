# refund_window/policy/params/guardrails.py
from __future__ import annotations

from refund_window.config.time_policy import is_known_zone, pattern_has_full_date
from refund_window.core.models import PolicyTag, RequestChannel
from refund_window.policy.params.errors import PolicyConfigValidationError
from refund_window.policy.params.schema import RefundPolicy

MAX_TIME_LIMIT_HOURS = 24 * 365


def validate_policy(policy: RefundPolicy) -> None:
    # --- zones ---
    if not is_known_zone(policy.canonical_timezone):
        raise PolicyConfigValidationError(
            f"canonical_timezone is not a known zone, got={policy.canonical_timezone}"
        )

    if not policy.timezones:
        raise PolicyConfigValidationError("timezones must not be empty")

    for location, info in policy.timezones.items():
        if not is_known_zone(info.timezone):
            raise PolicyConfigValidationError(
                f"timezones[{location}].timezone is not a known zone, got={info.timezone}"
            )
        try:
            full = pattern_has_full_date(info.date_format)
        except ValueError as e:
            raise PolicyConfigValidationError(f"timezones[{location}].date_format: {e}") from e
        if not full:
            raise PolicyConfigValidationError(
                f"timezones[{location}].date_format needs day, month and year, got={info.date_format}"
            )

    # --- time limits: all channel x tag pairs, bounded ---
    for channel in RequestChannel:
        for tag in PolicyTag:
            hours = (policy.time_limits.get(channel) or {}).get(tag)
            if hours is None:
                raise PolicyConfigValidationError(
                    f"time_limits missing entry for {channel.value}/{tag.value}"
                )
            if hours < 1 or hours > MAX_TIME_LIMIT_HOURS:
                raise PolicyConfigValidationError(
                    f"time_limits[{channel.value}][{tag.value}] must be 1~{MAX_TIME_LIMIT_HOURS}, got={hours}"
                )
