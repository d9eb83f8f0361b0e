"""
Route helpers.

Provides consistent error surfacing for service results.
"""

from typing import Any

from clinic_gateway.app.services.results import ServiceResult


def unwrap(result: ServiceResult) -> Any:
    """
    Return the result data or raise its error.

    The raised ServiceError is turned into ``{"error", "message"}`` with the
    mapped status by the application's ServiceError handler.

    Examples:
        >>> unwrap(ServiceResult.success([1]))
        [1]
    """
    if result.error is not None:
        raise result.error
    return result.data
