"""Request/response correlation by message id."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Dict, Optional

from .messages import Message, MessageError, ResponseError, ResponseMessage, parse_response

logger = logging.getLogger(__name__)

Sender = Callable[[Dict[str, Any]], None]


class RemoteError(RuntimeError):
    """The server answered with a failure indicator."""

    def __init__(self, error: ResponseError) -> None:
        super().__init__(str(error))
        self.error_type = error.type
        self.remote_message = error.message


class RequestTimeout(TimeoutError):
    """No response arrived within the caller's timeout."""


class ResponseCorrelator:
    """Matches inbound responses to outstanding requests.

    The inbound feed (the transport reader thread) calls :meth:`handle_frame`
    or :meth:`record`; waiters block in :meth:`get_result`.  Both sides share
    one table guarded by a single condition variable.  Waiters re-check the
    table every ``poll_interval`` seconds so a cancel token or :meth:`close`
    is honoured even without a notify.
    """

    def __init__(self, sender: Sender, *, poll_interval: float = 1.0) -> None:
        self._sender = sender
        self.poll_interval = poll_interval
        self._responses: Dict[uuid.UUID, ResponseMessage] = {}
        self._cv = threading.Condition(threading.Lock())
        self._closed = False

    def send(self, request: Message) -> uuid.UUID:
        self._sender(request.to_payload())
        return request.id

    def handle_frame(self, frame: Dict[str, Any]) -> None:
        try:
            response = parse_response(frame)
        except MessageError as exc:
            logger.warning("ignoring inbound frame: %s", exc)
            return
        self.record(response)

    def record(self, response: ResponseMessage) -> None:
        with self._cv:
            if response.id in self._responses:
                logger.warning("duplicate response for %s ignored", response.id)
                return
            self._responses[response.id] = response
            self._cv.notify_all()

    def get_result(
        self,
        message_id: uuid.UUID,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[ResponseMessage]:
        """Block until the response for *message_id* arrives and consume it.

        Returns ``None`` when *cancel* is set or the correlator is closed
        before the response shows up.  Ids are single use: asking again for
        an id that was already consumed waits until cancelled.
        """
        with self._cv:
            while True:
                response = self._responses.pop(message_id, None)
                if response is not None:
                    return response
                if self._closed or (cancel is not None and cancel.is_set()):
                    return None
                self._cv.wait(timeout=self.poll_interval)

    def close(self) -> None:
        with self._cv:
            self._closed = True
            self._cv.notify_all()

    def __contains__(self, message_id: object) -> bool:
        with self._cv:
            return message_id in self._responses

    def __len__(self) -> int:
        with self._cv:
            return len(self._responses)
