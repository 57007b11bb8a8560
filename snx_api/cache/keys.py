"""Cache key derivation."""

from typing import Any, Mapping, Optional


def _normalize(value: Any) -> str:
    return str(value).replace("\r", "").replace("\n", "").strip()


def build_cache_key(metric: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a deterministic key from a metric name and its request parameters.

    Parameters are sorted by name and None values are dropped, so the same
    logical request always maps to the same key. Callers must not pass
    volatile values such as timestamps or request ids.

    Example:
        >>> build_cache_key("rewards-claimed", {"chain": "base", "accountId": "42"})
        'rewards-claimed:accountId=42&chain=base'
    """
    if not params:
        return metric

    parts = [
        f"{name}={_normalize(value)}"
        for name, value in sorted(params.items())
        if value is not None
    ]
    if not parts:
        return metric
    return f"{metric}:{'&'.join(parts)}"
