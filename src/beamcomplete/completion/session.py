"""
Completion session: runs inference requests off the caller's thread.

Every dispatch returns a Future. Requests can be cancelled one at a time
(by request id) or all together when the session closes. A request that is
already on the wire cannot be interrupted; its result is discarded instead.
"""

import itertools
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional

from beamcomplete.inference.base import BaseInferenceClient, InferenceCancelledError, InferenceError
from beamcomplete.inference.request import Parameters
from beamcomplete.inference.response import InferenceResponse
from beamcomplete.utils.logger import logger


@dataclass
class PendingRequest:
    future: Future
    cancelled: threading.Event


class CompletionSession:
    """
    Owns the inference worker threads for one editor session.

    Usage:
        with CompletionSession(client) as session:
            future = session.dispatch(code_prefix, request_id=7)
            response = future.result()
    """

    def __init__(self, client: BaseInferenceClient, max_workers: int = 2):
        """
        Initialize the session.

        Args:
            client: Inference client used for every request
            max_workers: Concurrent inference requests
        """
        self.client = client
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="beamcomplete-inference",
        )
        self._pending: Dict[Any, PendingRequest] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._ids = itertools.count(1)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def dispatch(
        self,
        code_prefix: str,
        parameters: Optional[Parameters] = None,
        request_id: Optional[Any] = None,
    ) -> Future:
        """
        Submit an inference request.

        A new request with the id of a still-pending one replaces it; the
        older request is cancelled.

        Returns:
            Future resolving to an InferenceResponse

        Raises:
            InferenceCancelledError: If the session is already closed
        """
        with self._lock:
            if self._closed:
                raise InferenceCancelledError("Completion session is closed")

            if request_id is None:
                request_id = f"session-{next(self._ids)}"

            previous = self._pending.pop(request_id, None)

            cancelled = threading.Event()
            future = self._executor.submit(self._run, cancelled, code_prefix, parameters)
            self._pending[request_id] = PendingRequest(future=future, cancelled=cancelled)
            pending = len(self._pending)

        # Outside the lock: cancelling a queued future runs _forget synchronously
        if previous is not None:
            self._cancel_pending(previous)

        future.add_done_callback(lambda f, rid=request_id: self._forget(rid, f))
        logger.session_dispatch(request_id, pending)
        return future

    def cancel(self, request_id: Any) -> bool:
        """
        Cancel a pending request.

        Returns:
            True if a pending request with that id existed
        """
        with self._lock:
            pending = self._pending.pop(request_id, None)

        if pending is None:
            return False

        self._cancel_pending(pending)
        logger.session_cancelled(request_id)
        return True

    def cancel_all(self) -> int:
        """Cancel every pending request. Returns how many were cancelled."""
        with self._lock:
            pending = list(self._pending.items())
            self._pending.clear()

        for request_id, request in pending:
            self._cancel_pending(request)
            logger.session_cancelled(request_id)
        return len(pending)

    def close(self) -> None:
        """Cancel outstanding requests and release the workers and client."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        cancelled = self.cancel_all()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.client.close()
        logger.session_closed(cancelled)

    def __enter__(self) -> "CompletionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _run(
        self,
        cancelled: threading.Event,
        code_prefix: str,
        parameters: Optional[Parameters],
    ) -> InferenceResponse:
        if cancelled.is_set():
            raise InferenceCancelledError("Request cancelled before dispatch")

        try:
            response = self.client.complete(code_prefix, parameters)
        except InferenceError as e:
            # A cancelled request may fail once the client is closed
            if cancelled.is_set():
                raise InferenceCancelledError("Request cancelled; response discarded") from e
            raise

        if cancelled.is_set():
            raise InferenceCancelledError("Request cancelled; response discarded")
        return response

    def _forget(self, request_id: Any, future: Future) -> None:
        with self._lock:
            pending = self._pending.get(request_id)
            if pending is not None and pending.future is future:
                del self._pending[request_id]

    @staticmethod
    def _cancel_pending(pending: PendingRequest) -> None:
        pending.cancelled.set()
        pending.future.cancel()
