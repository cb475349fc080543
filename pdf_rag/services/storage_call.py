"""Timeout and error translation for calls into a storage backend."""

import asyncio
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from pdf_rag.exceptions import StorageError, StorageTimeoutError

T = TypeVar("T")


async def run_storage_call(
    operation: Callable[[], Awaitable[T]],
    action: str,
    timeout_seconds: float,
    backend_errors: Tuple[Type[BaseException], ...],
) -> T:
    """
    Await a storage operation under a timeout.

    Args:
        operation: Zero-argument coroutine function performing the call.
        action: Short description used in error messages ("storing chunk").
        timeout_seconds: Upper bound for the call.
        backend_errors: Exception types raised by the backend library.

    Returns:
        Whatever the operation returns.

    Raises:
        StorageTimeoutError: If the call did not finish in time.
        StorageError: If the backend raised one of ``backend_errors``.
    """
    try:
        return await asyncio.wait_for(operation(), timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        raise StorageTimeoutError(
            f"Timed out after {timeout_seconds}s while {action}"
        ) from e
    except backend_errors as e:
        raise StorageError(f"Failed while {action}: {e}") from e
