"""
Per-key de-duplication of concurrent work.

While a call for a key is in flight, further calls for the same key wait for
it and receive its result instead of starting their own. Different keys never
wait on each other; the group lock is held only while the in-flight table is
read or updated.
"""
import threading
from concurrent.futures import Future


class SingleFlight:
    def __init__(self):
        self._lock = threading.Lock()
        self._calls: dict[str, Future] = {}

    def do(self, key: str, fn, wait_timeout: float | None = None):
        """
        Run *fn* for *key* unless a call for *key* is already running.

        Returns ``(result, leader)``. ``leader`` is True for the caller that
        actually ran *fn*. Exceptions raised by *fn* are re-raised in every
        waiting caller.

        Followers wait at most *wait_timeout* seconds and then get
        concurrent.futures.TimeoutError; the leader keeps running regardless.
        """
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result(timeout=wait_timeout), False

        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result, True
        finally:
            with self._lock:
                self._calls.pop(key, None)

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls
