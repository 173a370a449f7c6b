"""
Version gating for endpoint wrappers.

Endpoints appeared in different server releases. ``@since("3.5.0")``
refuses to call a wrapper when the client knows the server is older.
"""

import functools
import re
from typing import Any, Callable, Optional, Tuple, TypeVar, cast

from .exceptions import NotSupportedError

F = TypeVar("F", bound=Callable[..., Any])

_VERSION_RE = re.compile(r"^\s*v?(\d+(?:\.\d+)*)")


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Parse the numeric part of a version string.

    ``"4.2.0rc1"`` and ``"3.5.3+glitch"`` compare as ``(4, 2, 0)`` and
    ``(3, 5, 3)``. Trailing zeros are dropped so ``"4.0"`` equals ``"4.0.0"``.

    Raises:
        ValueError: If the string does not start with a number
    """
    match = _VERSION_RE.match(version)
    if match is None:
        raise ValueError(f"Invalid version: {version!r}")
    parts = [int(part) for part in match.group(1).split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def is_supported(required: str, actual: Optional[str]) -> bool:
    """Whether a server at ``actual`` provides a feature added in ``required``."""
    if not actual:
        return True
    try:
        return parse_version(actual) >= parse_version(required)
    except ValueError:
        return True


def since(required: str) -> Callable[[F], F]:
    """
    Mark a method as available from server version ``required`` on.

    The decorated method's instance must expose ``server_version``.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            actual = getattr(self, "server_version", None)
            if not is_supported(required, actual):
                raise NotSupportedError(
                    f"{func.__name__} requires server version {required} or later, "
                    f"server is {actual}",
                    required=required,
                    actual=actual,
                )
            return func(self, *args, **kwargs)

        wrapper.since = required  # type: ignore[attr-defined]
        return cast(F, wrapper)

    return decorator
