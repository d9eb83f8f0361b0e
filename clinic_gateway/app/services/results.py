"""
Result pairs returned by store-facing services.

Callers branch on ``result.error`` instead of wrapping calls in try/except;
only validation failures are raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from clinic_gateway.app.errors import ServiceError, UnknownError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult(Generic[T]):
    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResult":
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: ServiceError, data: Any = None) -> "ServiceResult":
        return cls(data=data, error=error)


def capture(operation: str, func: Callable[[], T], default: Any = None) -> ServiceResult:
    """
    Run ``func`` and fold any failure into a ServiceResult.

    ServiceErrors pass through as the result error. Anything else is logged
    with its original message and surfaced as UnknownError.
    """
    try:
        return ServiceResult.success(func())
    except ServiceError as e:
        return ServiceResult.failure(e, data=default)
    except Exception as e:
        logger.error("Unexpected error in %s: %s", operation, e)
        return ServiceResult.failure(
            UnknownError(f"Failed to {operation.replace('_', ' ')}"), data=default
        )
