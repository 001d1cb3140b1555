# refund_window/policy/params/loader.py
from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from refund_window.config.time_policy import CANONICAL_DATE_FORMAT
from refund_window.core.models import PolicyTag, RequestChannel
from refund_window.policy.params.errors import PolicyConfigValidationError
from refund_window.policy.params.guardrails import validate_policy
from refund_window.policy.params.schema import (
    PolicyDocument,
    RefundPolicy,
    TimeZoneInfo,
)

logger = logging.getLogger(__name__)

POLICY_PATH_ENV = "REFUND_POLICY_YAML_PATH"


def default_policy_path() -> Path:
    return Path(__file__).resolve().parent / "defaults.yaml"


def _parse_cutoff(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), CANONICAL_DATE_FORMAT).date()
    except ValueError as e:
        raise PolicyConfigValidationError(
            f"policy_cutoff must be DD/MM/YYYY, got={value!r}"
        ) from e


def _parse_time_limits(raw: Mapping[str, Mapping[str, int]]) -> Dict[RequestChannel, Dict[PolicyTag, int]]:
    """
    Keys are read leniently ("web app" / "web_app" / "oTOS" ...).
    Duplicates after normalization are a config defect.
    """
    out: Dict[RequestChannel, Dict[PolicyTag, int]] = {}
    for channel_key, by_tag in raw.items():
        try:
            channel = RequestChannel.parse(channel_key)
        except ValueError as e:
            raise PolicyConfigValidationError(f"time_limits: {e}") from e
        if channel in out:
            raise PolicyConfigValidationError(f"time_limits: duplicate channel {channel.value}")
        row: Dict[PolicyTag, int] = {}
        for tag_key, hours in by_tag.items():
            try:
                tag = PolicyTag.parse(tag_key)
            except ValueError as e:
                raise PolicyConfigValidationError(f"time_limits[{channel.value}]: {e}") from e
            if tag in row:
                raise PolicyConfigValidationError(
                    f"time_limits[{channel.value}]: duplicate policy tag {tag.value}"
                )
            row[tag] = int(hours)
        out[channel] = row
    return out


def load_policy_mapping(raw: Mapping[str, Any], *, source: str = "<memory>") -> RefundPolicy:
    """
    Builds a RefundPolicy from an already-parsed document (dict).
    Runs the same schema + guardrail checks as the file loader.
    """
    try:
        doc = PolicyDocument.model_validate(dict(raw))
    except ValidationError as e:
        raise PolicyConfigValidationError(f"invalid policy document ({source}): {e}") from e

    policy = RefundPolicy(
        canonical_timezone=doc.canonical_timezone.strip(),
        policy_cutoff=_parse_cutoff(doc.policy_cutoff),
        timezones={
            location.strip(): TimeZoneInfo(
                timezone=entry.timezone.strip(),
                date_format=entry.date_format.strip(),
            )
            for location, entry in doc.timezones.items()
        },
        time_limits=_parse_time_limits(doc.time_limits),
        source=source,
    )
    validate_policy(policy)
    return policy


def load_policy_yaml(path: Optional[str] = None) -> RefundPolicy:
    """
    Loads the refund policy document.
    - default: refund_window/policy/params/defaults.yaml
    - override path by env REFUND_POLICY_YAML_PATH or param
    - JSON documents load too (JSON is a YAML subset)
    """
    if path is None:
        path = os.environ.get(POLICY_PATH_ENV)

    p = Path(path) if path is not None else default_policy_path()
    if not p.exists():
        raise FileNotFoundError(f"Policy YAML not found: {p}")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise PolicyConfigValidationError(f"policy document must be a mapping: {p}")

    policy = load_policy_mapping(raw, source=str(p))
    logger.info(
        "[policy] loaded %s (locations=%d, cutoff=%s, canonical=%s)",
        p, len(policy.timezones), policy.policy_cutoff.isoformat(), policy.canonical_timezone,
    )
    return policy
