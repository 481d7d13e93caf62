import re
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional, TypeVar

from fmea_bot.logger import logger

T = TypeVar("T")

# Abandoned calls keep their worker until the remote side gives up, so the
# pool is sized well above the number of deadlines a single request can hit.
_deadline_pool = ThreadPoolExecutor(max_workers=32, thread_name_prefix="deadline")


class DeadlineExceeded(TimeoutError):
    """Raised when a call does not finish before its deadline."""

    def __init__(self, label: str, seconds: float):
        super().__init__(f"{label} (after {seconds:g}s)")
        self.label = label
        self.seconds = seconds


def run_with_deadline(
    fn: Callable[..., T],
    seconds: float,
    label: str,
    *args: Any,
    on_late: Optional[Callable[[T], None]] = None,
    **kwargs: Any,
) -> T:
    """
    Run ``fn(*args, **kwargs)`` and wait at most ``seconds`` for the result.

    On expiry the caller stops waiting and DeadlineExceeded is raised. The
    call itself keeps running in a worker thread; there is no way to stop a
    blocked socket read from here. If it later succeeds, its result goes to
    ``on_late`` (when given) so the caller can release it, otherwise it is
    dropped.

    Exceptions raised by ``fn`` propagate unchanged.
    """
    future = _deadline_pool.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=seconds)
    except FutureTimeoutError:
        future.cancel()
        if on_late is not None:
            future.add_done_callback(lambda done: _hand_over_late(done, on_late, label))
        raise DeadlineExceeded(label, seconds) from None


def _hand_over_late(future: Future, on_late: Callable[[Any], None], label: str) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    try:
        on_late(future.result())
    except Exception as e:
        logger.warning("Cleanup of late result for '%s' failed: %s", label, e)


def substring_pattern(text: str) -> str:
    """Regex matching ``text`` literally, safe to hand to MongoDB's $regex."""
    return re.escape(text)


def describe_store_error(error: Exception) -> str:
    """
    Convert store errors to a short, log-friendly description.

    Args:
        error: The exception raised by a store call

    Returns:
        A one-line description naming the error category
    """
    from pymongo.errors import (
        ConnectionFailure,
        ServerSelectionTimeoutError,
        OperationFailure,
        PyMongoError,
    )

    if isinstance(error, DeadlineExceeded):
        return f"deadline exceeded: {error}"
    if isinstance(error, (ConnectionFailure, ServerSelectionTimeoutError)):
        return f"connection problem: {error}"
    if isinstance(error, OperationFailure):
        # e.g. $search on a cluster without the Atlas Search index
        return f"operation failed (code={error.code}): {error}"
    if isinstance(error, PyMongoError):
        return f"database error: {error}"
    return f"unexpected error: {type(error).__name__}: {error}"
