# refund_window/policy/api.py
from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Optional, Tuple

from refund_window.core.batch import BatchReport, evaluate_batch as _evaluate_batch
from refund_window.core.models import NormalizedRequest, RawRequest, ValidationResult
from refund_window.core.normalizer import TimeNormalizer
from refund_window.core.validator import DeadlineValidator
from refund_window.policy.runtime import get_policy
from refund_window.policy.params.schema import RefundPolicy


# =========================================================
# Pipeline bound to a policy
# =========================================================

def build_pipeline(policy: Optional[RefundPolicy] = None) -> Tuple[TimeNormalizer, DeadlineValidator]:
    """Normalizer + validator sharing one policy (default: the cached YAML policy)."""
    p = policy or get_policy()
    return TimeNormalizer(p), DeadlineValidator(p)


@lru_cache(maxsize=1)
def _default_pipeline() -> Tuple[TimeNormalizer, DeadlineValidator]:
    return build_pipeline(get_policy())


def reset_default_pipeline() -> None:
    """Call after reload_policy_cache() so the default pipeline picks up the new policy."""
    _default_pipeline.cache_clear()  # type: ignore[attr-defined]


# =========================================================
# Default-policy shortcuts
# =========================================================

def normalize(raw: RawRequest) -> NormalizedRequest:
    return _default_pipeline()[0].normalize(raw)


def validate(n: NormalizedRequest) -> ValidationResult:
    return _default_pipeline()[1].validate(n)


def evaluate(raw: RawRequest) -> Tuple[NormalizedRequest, ValidationResult]:
    normalizer, validator = _default_pipeline()
    n = normalizer.normalize(raw)
    return n, validator.validate(n)


def evaluate_batch(
    requests: Iterable[Optional[RawRequest]],
    *,
    fail_fast: bool = False,
    max_workers: Optional[int] = None,
) -> BatchReport:
    normalizer, validator = _default_pipeline()
    return _evaluate_batch(
        requests, normalizer, validator, fail_fast=fail_fast, max_workers=max_workers,
    )
