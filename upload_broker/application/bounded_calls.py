"""Calls into external collaborators awaited with an explicit timeout."""

from concurrent.futures import Executor
from typing import Any, Callable, Optional


def call_with_timeout(executor: Optional[Executor], timeout: Optional[float],
                      function: Callable[..., Any], *args: Any) -> Any:
    """
    Run ``function(*args)`` and wait at most ``timeout`` seconds.

    Without an executor or timeout the call runs inline. A call that times
    out keeps running on the executor's worker; only the caller moves on.

    Raises:
        concurrent.futures.TimeoutError: If no result arrives in time
    """
    if executor is None or timeout is None:
        return function(*args)
    return executor.submit(function, *args).result(timeout=timeout)
