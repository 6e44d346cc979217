"""Cache key helpers shared by the server response cache and the client cache.

Keys look like URLs: ``/api/weather?city=London&units=metric``. Parameters
are sorted by name so the same request always maps to the same key.
"""

from typing import Any, Callable, Mapping

Clock = Callable[[], float]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_cache_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a deterministic cache key for an endpoint and its parameters.

    Parameters whose value is ``None`` are skipped.

    Example:
        >>> build_cache_key("/api/weather", {"units": "metric", "city": "Oslo"})
        '/api/weather?city=Oslo&units=metric'
    """
    if not params:
        return endpoint
    pairs = [
        f"{name}={_stringify(params[name])}"
        for name in sorted(params)
        if params[name] is not None
    ]
    if not pairs:
        return endpoint
    return f"{endpoint}?{'&'.join(pairs)}"
