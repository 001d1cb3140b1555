# refund_window/core/batch.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Iterable, List, Optional

from refund_window.core.errors import RefundWindowError
from refund_window.core.models import NormalizedRequest, RawRequest, ValidationResult
from refund_window.core.normalizer import TimeNormalizer
from refund_window.core.validator import DeadlineValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchEntry:
    """
    Outcome for the request at input position `index`.
    Exactly one of (result, error) is set; normalized may exist even if validation failed.
    """
    index: int
    raw: Optional[RawRequest]
    normalized: Optional[NormalizedRequest] = None
    result: Optional[ValidationResult] = None
    error: Optional[RefundWindowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchReport:
    entries: List[BatchEntry]

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def succeeded(self) -> List[BatchEntry]:
        return [e for e in self.entries if e.ok]

    @property
    def failed(self) -> List[BatchEntry]:
        return [e for e in self.entries if not e.ok]

    @property
    def valid_count(self) -> int:
        return sum(1 for e in self.succeeded if e.result.is_valid)

    @property
    def invalid_count(self) -> int:
        return sum(1 for e in self.succeeded if not e.result.is_valid)


def evaluate_one(
    index: int,
    raw: Optional[RawRequest],
    normalizer: TimeNormalizer,
    validator: DeadlineValidator,
    *,
    fail_fast: bool = False,
) -> BatchEntry:
    normalized = None
    try:
        normalized = normalizer.normalize(raw)
        result = validator.validate(normalized)
    except RefundWindowError as e:
        if fail_fast:
            raise
        logger.warning("[batch] request #%d skipped: %s: %s", index, type(e).__name__, e)
        return BatchEntry(index=index, raw=raw, normalized=normalized, error=e)
    return BatchEntry(index=index, raw=raw, normalized=normalized, result=result)


def evaluate_batch(
    requests: Iterable[Optional[RawRequest]],
    normalizer: TimeNormalizer,
    validator: DeadlineValidator,
    *,
    fail_fast: bool = False,
    max_workers: Optional[int] = None,
) -> BatchReport:
    """
    Normalize + validate every request independently.

    - default: a bad record is reported on its entry, the rest proceed
    - fail_fast=True: the first domain error aborts the batch
    - max_workers>1: evaluated on a thread pool, entries returned in input order
    """
    items = list(requests)

    if not max_workers or max_workers <= 1 or len(items) <= 1:
        entries = [
            evaluate_one(i, raw, normalizer, validator, fail_fast=fail_fast)
            for i, raw in enumerate(items)
        ]
        return BatchReport(entries=entries)

    entries = []
    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        futs = [
            ex.submit(evaluate_one, i, raw, normalizer, validator, fail_fast=fail_fast)
            for i, raw in enumerate(items)
        ]
        for f in as_completed(futs):
            entries.append(f.result())
    entries.sort(key=lambda e: e.index)
    return BatchReport(entries=entries)
