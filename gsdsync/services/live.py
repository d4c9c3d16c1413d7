"""Push channel.

One WebSocket connection that delivers ``{"type": ..., "data": ...}``
envelopes. When the connection drops, the channel waits and reconnects, and it
keeps doing so until ``close()`` is called.

States: disconnected -> connecting -> open -> (closed -> connecting)*
"""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import ValidationError
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from gsdsync.models.events import PushEnvelope

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


EventHandler = Callable[[PushEnvelope], None]
Connector = Callable[[str], Awaitable[Any]]


class LiveChannel:
    def __init__(
        self,
        url: str,
        on_event: EventHandler,
        *,
        reconnect_delay: float = 3.0,
        reconnect_backoff: float = 1.0,
        reconnect_max_delay: float = 60.0,
        reconnect_max_attempts: int | None = None,
        connect: Connector = ws_connect,
    ):
        self.url = url
        self.on_event = on_event
        self.reconnect_delay = reconnect_delay
        self.reconnect_backoff = reconnect_backoff
        self.reconnect_max_delay = reconnect_max_delay
        self.reconnect_max_attempts = reconnect_max_attempts
        self._connect = connect

        self.state = ChannelState.DISCONNECTED
        self.failed_attempts = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._conn: Any = None
        self._stopping = False

    def _set_state(self, state: ChannelState) -> None:
        if state != self.state:
            logger.debug("Push channel %s -> %s", self.state.value, state.value)
            self.state = state

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def start(self) -> None:
        """Open the connection in the background. Must be called from a running loop."""
        if self._task is not None and not self._task.done():
            return
        self._loop = asyncio.get_running_loop()
        self._stopping = False
        self.failed_attempts = 0
        self._task = self._loop.create_task(self._run())

    async def close(self) -> None:
        """Stop for good: cancel any pending reconnect and drop the live connection."""
        self._stopping = True
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        conn = self._conn
        if conn is not None:
            with contextlib.suppress(Exception):
                await conn.close()
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None
        self._conn = None
        self._set_state(ChannelState.DISCONNECTED)

    async def _run(self) -> None:
        self._set_state(ChannelState.CONNECTING)
        try:
            conn = await self._connect(self.url)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            logger.warning("Push channel connect to %s failed: %s", self.url, e)
            self.failed_attempts += 1
            self._connection_lost()
            return
        except Exception:
            logger.exception("Push channel connect to %s failed unexpectedly", self.url)
            self.failed_attempts += 1
            self._connection_lost()
            return

        self._conn = conn
        self.failed_attempts = 0
        self._set_state(ChannelState.OPEN)
        logger.info("Push channel open: %s", self.url)
        try:
            async for message in conn:
                self._dispatch(message)
        except ConnectionClosed as e:
            logger.info("Push channel closed: %s", e)
        except OSError as e:
            logger.warning("Push channel read failed: %s", e)
        except Exception:
            logger.exception("Push channel read failed unexpectedly")
        finally:
            self._conn = None
        self._connection_lost()

    def _next_delay(self) -> float:
        # failed_attempts counts handshakes that failed since the last open.
        delay = self.reconnect_delay * (self.reconnect_backoff ** self.failed_attempts)
        return min(delay, max(self.reconnect_max_delay, self.reconnect_delay))

    def _connection_lost(self) -> None:
        if self._stopping:
            return
        self._set_state(ChannelState.CLOSED)
        if self.reconnect_max_attempts is not None and self.failed_attempts >= self.reconnect_max_attempts:
            logger.error(
                "Push channel giving up after %d failed attempts", self.failed_attempts,
            )
            self._set_state(ChannelState.DISCONNECTED)
            return
        delay = self._next_delay()
        logger.info("Push channel reconnecting in %.1fs", delay)
        self._reconnect_handle = self._loop.call_later(delay, self._reconnect)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._stopping:
            return
        self._task = self._loop.create_task(self._run())

    def _dispatch(self, message: str | bytes) -> None:
        try:
            envelope = PushEnvelope.model_validate_json(message)
        except ValidationError as e:
            logger.warning("Dropping undecodable push message: %s", e)
            return
        try:
            self.on_event(envelope)
        except Exception:
            logger.exception("Push handler failed for %s event", envelope.type)
