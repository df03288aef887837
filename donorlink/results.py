"""
Explicit success/failure values for callers that render outcomes themselves
(API views, admin actions) instead of letting errors bubble up.
"""
from dataclasses import dataclass
from typing import Any, Optional

from .errors import DonorLinkError


@dataclass(frozen=True)
class Result:
    value: Any = None
    error: Optional[DonorLinkError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self):
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, error):
        return cls(error=error)


def capture(func, *args, **kwargs) -> Result:
    """Run ``func`` and fold any DonorLinkError into the returned Result."""
    try:
        return Result.success(func(*args, **kwargs))
    except DonorLinkError as exc:
        return Result.failure(exc)
