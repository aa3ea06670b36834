"""Timeout-bounded calls into external stores."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, TypeVar

from phish_link_guard.core.errors import StoreUnavailableError

T = TypeVar("T")


class BoundedCaller:
    """Runs store calls on a small pool so a hung store cannot block analysis."""

    def __init__(self, timeout_s: float = 2.0, *, max_workers: int = 4) -> None:
        self.timeout_s = timeout_s
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="store-io")

    def call(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        future = self._executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=self.timeout_s)
        except FutureTimeout as exc:
            future.cancel()
            raise StoreUnavailableError(f"{name} timed out after {self.timeout_s}s") from exc
        except StoreUnavailableError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(f"{name} failed: {exc}") from exc

    def shutdown(self) -> None:
        """Drop queued calls without waiting for running ones.

        Workers are not daemon threads: the interpreter still joins them at
        exit, so a store call that never returns delays process exit even
        though its caller already gave up on it.
        """

        self._executor.shutdown(wait=False, cancel_futures=True)
