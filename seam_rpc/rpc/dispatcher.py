"""
Procedure Dispatch

Calls run in-line, in request order. Notifications are captured as
PendingCall snapshots and handed to a NotificationScheduler only after the
batch response has been assembled; their outcome is never observable.
"""

import abc
import asyncio
import copy
import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from seam_rpc.rpc.errors import ErrorCode, ErrorValue
from seam_rpc.rpc.resolver import ProcedureDescriptor
from seam_rpc.telemetry.metrics import increment_counter, record_latency
from seam_rpc.telemetry.tracer import create_span, mark_span_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingCall:
    """One procedure execution, with everything it needs captured up front"""

    method: str
    descriptor: ProcedureDescriptor
    args: Tuple[Any, ...]
    error: ErrorValue

    @classmethod
    def capture(cls,
                method: str,
                descriptor: ProcedureDescriptor,
                args: Sequence[Any],
                error: ErrorValue) -> "PendingCall":
        """Snapshot a bound call; later changes to ``args`` do not leak in"""
        return cls(method, descriptor, tuple(copy.deepcopy(list(args))), error)

    def run(self) -> Any:
        """Execute the procedure

        Returns:
            The procedure's result, or an ErrorValue (the procedure's own or an
            InternalError describing an exception it raised)
        """
        start_time = time.time()
        with create_span(f"rpc.{self.method}", {"rpc.system": "jsonrpc", "rpc.method": self.method}) as span:
            try:
                result = self.descriptor.invoke(self.args, self.error)
            except Exception as e:
                logger.warning(f"Method {self.method} raised {type(e).__name__}: {e}")
                increment_counter("rpc.server.method.errors", 1, {"method": self.method})
                mark_span_error(span, e)
                return ErrorValue(ErrorCode.InternalError,
                                  f"Method threw an error: {type(e).__name__}: {e}")
            finally:
                record_latency("rpc.server.method.latency",
                               (time.time() - start_time) * 1000,
                               {"method": self.method})

            if isinstance(result, ErrorValue):
                mark_span_error(span, description=result.message)
            return result


def run_notification(call: PendingCall) -> None:
    """Execute a notification and discard whatever it produces"""
    try:
        outcome = call.run()
    except Exception:
        logger.exception(f"Notification {call.method} failed outside the procedure")
        return

    if isinstance(outcome, ErrorValue):
        logger.debug(f"Notification {call.method} ended with error {outcome!r}; discarded")
        increment_counter("rpc.server.notification.errors", 1, {"method": call.method})


class NotificationScheduler(abc.ABC):
    """Runs notifications after the response that scheduled them is built"""

    @abc.abstractmethod
    def submit(self, calls: Sequence[PendingCall]) -> None:
        """Queue calls for deferred execution, preserving their order"""
        pass

    def close(self) -> None:
        """Release any resources held by the scheduler"""
        pass


class InlineScheduler(NotificationScheduler):
    """Runs notifications as soon as they are submitted.

    The engine submits after assembling its response, so notifications still
    run after every call of the batch, but before ``process_request`` returns.
    """

    def submit(self, calls: Sequence[PendingCall]) -> None:
        for call in calls:
            run_notification(call)


class AsyncioScheduler(NotificationScheduler):
    """Zero-delay deferred tasks on an asyncio event loop

    Args:
        loop: Loop to schedule on. When omitted, the loop running in the
            submitting thread is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop

    def submit(self, calls: Sequence[PendingCall]) -> None:
        if self.loop is not None:
            for call in calls:
                self.loop.call_soon_threadsafe(run_notification, call)
            return

        loop = asyncio.get_running_loop()
        for call in calls:
            loop.call_soon(run_notification, call)


_STOP = object()


class ThreadedScheduler(NotificationScheduler):
    """A single background worker draining a FIFO queue

    Notifications run one at a time, in submission order, decoupled from the
    caller of ``process_request``.
    """

    def __init__(self, name: str = "seam-rpc-notifications"):
        self.name = name
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._thread = None
        self._closed = False

    def submit(self, calls: Sequence[PendingCall]) -> None:
        if not calls:
            return

        with self._lock:
            if self._closed:
                logger.warning(f"Scheduler closed, dropping {len(calls)} notification(s)")
                return
            if self._thread is None:
                self._thread = threading.Thread(target=self._worker, name=self.name, daemon=True)
                self._thread.start()

        for call in calls:
            self._queue.put(call)

    def _worker(self):
        while True:
            call = self._queue.get()
            try:
                if call is _STOP:
                    return
                run_notification(call)
            finally:
                self._queue.task_done()

    def join(self) -> None:
        """Block until every submitted notification has run"""
        self._queue.join()

    def close(self, timeout: float = 1.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread

        if thread is not None:
            self._queue.put(_STOP)
            thread.join(timeout=timeout)


class Dispatcher:
    """Executes calls immediately and forwards notifications to a scheduler"""

    def __init__(self, scheduler: Optional[NotificationScheduler] = None):
        self.scheduler = scheduler or ThreadedScheduler()

    def call(self, pending: PendingCall) -> Any:
        increment_counter("rpc.server.method.calls", 1, {"method": pending.method})
        return pending.run()

    def defer(self, notifications: Sequence[PendingCall]) -> None:
        """Hand notifications to the scheduler; failures here are logged, not raised"""
        if not notifications:
            return

        increment_counter("rpc.server.notifications", len(notifications))
        try:
            self.scheduler.submit(notifications)
        except Exception:
            logger.exception(f"Could not schedule {len(notifications)} notification(s)")

    def close(self) -> None:
        self.scheduler.close()
