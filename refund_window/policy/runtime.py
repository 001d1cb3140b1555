# refund_window/policy/runtime.py
from __future__ import annotations
from functools import lru_cache
from refund_window.policy.params.loader import load_policy_yaml
from refund_window.policy.params.schema import RefundPolicy


@lru_cache(maxsize=1)
def get_policy() -> RefundPolicy:
    """
    Process-wide default policy.
    - loaded once (lru_cache) from REFUND_POLICY_YAML_PATH or the packaged defaults
    - cached until reload_policy_cache()
    """
    return load_policy_yaml()


def reload_policy_cache() -> RefundPolicy:
    """For tests, or after the YAML on disk changed."""
    get_policy.cache_clear()  # type: ignore[attr-defined]
    return get_policy()
