"""
Hook Registry

Fold-style extension points keyed by hook name and address. Unrelated
subsystems use the ``disco_info`` hook to contribute extra data forms to
the broker's discovery descriptor.
"""

import logging
from threading import Lock
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

DISCO_INFO_HOOK = "disco_info"

FoldFunction = Callable[..., Any]


class HookRegistry:
    """
    Registry of fold hooks.

    Each hook function receives the accumulator followed by the run
    arguments and returns the new accumulator. Functions run in ascending
    sequence order; a failing function is logged and skipped.
    """

    def __init__(self):
        self._hooks: Dict[Tuple[str, str], List[Tuple[int, FoldFunction]]] = {}
        self._lock = Lock()

    def add(self, name: str, address: str, function: FoldFunction, seq: int = 50) -> None:
        with self._lock:
            entries = self._hooks.setdefault((name, address), [])
            entries.append((seq, function))
            entries.sort(key=lambda entry: entry[0])

    def delete(self, name: str, address: str, function: FoldFunction) -> None:
        with self._lock:
            entries = self._hooks.get((name, address), [])
            self._hooks[(name, address)] = [e for e in entries if e[1] is not function]

    def run_fold(self, name: str, address: str, acc: Any, *args: Any) -> Any:
        """
        Fold ``acc`` through every function registered for ``name`` on ``address``.

        Returns:
            The final accumulator (``acc`` itself when nothing is registered)
        """
        with self._lock:
            entries = list(self._hooks.get((name, address), []))

        for _, function in entries:
            try:
                acc = function(acc, *args)
            except Exception as e:
                logger.error(
                    f"Hook {name} function {getattr(function, '__name__', function)} "
                    f"failed on {address}: {e}",
                    exc_info=True,
                )
        return acc
