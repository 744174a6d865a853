"""
Decoding the watch-streams into typed events with a resource-version cursor.

A watch-stream is a single long-running request, which is read line by line.
Every line is decoded into a typed `envelopes.WatchEvent` and handed over
to the consumer before the next line is read -- either via the async iteration
(the "pull" mode) or via a handler callback (the "push" mode)::

    async with pods.watch_namespaced('default', timeout=60) as stream:
        async for event in stream:
            print(event.type, event.object.metadata.name)

    await pods.watch_namespaced('default').run(handler)

The stream keeps the resource version of the last handled event (incl. bookmarks).
An event is considered handled when the consumer asks for the next one,
or when the handler returns. There is no automatic re-connection:
the consumers can resume from ``stream.resource_version`` with a new stream.
"""
import asyncio
import enum
import inspect
import logging
from types import TracebackType
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Optional, Type, Union

from kubeaccess._cogs.clients import errors
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import bodies, envelopes

logger = logging.getLogger(__name__)

# A raw-watching function, called with the resource version & the timeout (as kwargs).
Watcher = Callable[..., AsyncIterator[bodies.RawInput]]

# A callback for the handler mode: sync or async; returns False to stop the watching.
Handler = Callable[[envelopes.WatchEvent[Any]], Union[Optional[bool], Awaitable[Optional[bool]]]]

KNOWN_EVENT_TYPES = frozenset(event_type.value for event_type in envelopes.EventType)


class WatchState(enum.Enum):
    CONNECTING = 'connecting'
    STREAMING = 'streaming'
    CLOSED = 'closed'
    ERROR = 'error'


class WatchStream(Generic[envelopes.ObjectT]):
    """
    A single watch-stream of typed events, with its state & cursor.

    The stream connects lazily on the first event request. It ends when:

    * The server closes the stream (by its timeout or by a disconnect):
      the iteration ends normally, the state is `WatchState.CLOSED`.
    * The overall client-side timeout elapses: `errors.DeadlineExceededError`.
    * A line cannot be decoded: `errors.DecodeError`, the state is `WatchState.ERROR`.
    * The server sends an ``ERROR`` event: the event is delivered as usual,
      but the next request raises `errors.StreamClosedError` with its status.

    Events of unknown types are logged and skipped, and do not move the cursor.
    """

    def __init__(
            self,
            watcher: Watcher,
            cls: Type[envelopes.ObjectT],
            *,
            resource_version: Optional[str] = None,
            timeout: Optional[float] = None,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        self._watcher = watcher
        self._cls = cls
        self._logger = logger
        self._stream: Optional[AsyncIterator[bodies.RawInput]] = None
        self._deadline: Optional[float] = None
        self._pending_version: Optional[str] = None
        self._closing_status: Optional[envelopes.Status] = None
        self.resource_version = resource_version
        self.timeout = timeout
        self.state = WatchState.CONNECTING

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {self.state.value} @ {self.resource_version!r}>'

    async def __aenter__(self) -> "WatchStream[envelopes.ObjectT]":
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
    ) -> None:
        # The last event is considered handled only if the consumer's block did not fail.
        if exc_type is None:
            self._commit()
        await self.close()

    def __aiter__(self) -> "WatchStream[envelopes.ObjectT]":
        return self

    async def __anext__(self) -> envelopes.WatchEvent[envelopes.ObjectT]:
        self._commit()

        if self._closing_status is not None:
            status = self._closing_status
            raise errors.StreamClosedError(
                f"The watch-stream is closed by the server: {status.message or status.reason}",
                status=status)
        if self.state in (WatchState.CLOSED, WatchState.ERROR):
            raise StopAsyncIteration

        if self._stream is None:
            loop = asyncio.get_running_loop()
            self._deadline = loop.time() + self.timeout if self.timeout is not None else None
            self._stream = self._watcher(since=self.resource_version, timeout=self.timeout)

        while True:
            raw_input = await self._read()
            if raw_input is None:
                self.state = WatchState.CLOSED
                await self.close()
                raise StopAsyncIteration

            self.state = WatchState.STREAMING
            event = await self._decode(raw_input)
            if event is None:
                continue

            if event.type == envelopes.EventType.ERROR:
                self.state = WatchState.ERROR
                self._closing_status = event.status
                await self.close()
            else:
                self._pending_version = event.resource_version
            return event

    async def run(self, handler: Handler) -> None:
        """
        Handle all the events of the stream with a callback until the stream ends.

        The handler can be a regular function or a coroutine function.
        If it returns ``False`` (not just a falsy value), the watching stops.
        The handler's errors are escalated, and the failed event stays unhandled.
        """
        try:
            async for event in self:
                result = handler(event)
                if inspect.isawaitable(result):
                    result = await result
                self._commit()
                if result is False:
                    self._logger.debug("The watch-stream is stopped by the handler.")
                    break
        finally:
            await self.close()

    async def close(self) -> None:
        if self._stream is not None:
            stream, self._stream = self._stream, None
            aclose = getattr(stream, 'aclose', None)
            if aclose is not None:
                await aclose()
        if self.state in (WatchState.CONNECTING, WatchState.STREAMING):
            self.state = WatchState.CLOSED

    def _commit(self) -> None:
        if self._pending_version is not None:
            self.resource_version = self._pending_version
            self._pending_version = None

    async def _read(self) -> Optional[bodies.RawInput]:
        assert self._stream is not None
        try:
            if self._deadline is None:
                return await self._stream.__anext__()
            remaining = self._deadline - asyncio.get_running_loop().time()
            if remaining <= 0:
                raise asyncio.TimeoutError
            return await asyncio.wait_for(self._stream.__anext__(), timeout=remaining)
        except StopAsyncIteration:
            return None
        except asyncio.TimeoutError:
            self.state = WatchState.ERROR
            await self.close()
            raise errors.DeadlineExceededError(
                f"The watch-stream did not end within {self.timeout}s.") from None
        except BaseException:
            self.state = WatchState.ERROR
            await self.close()
            raise

    async def _decode(
            self,
            raw_input: Any,
    ) -> Optional[envelopes.WatchEvent[envelopes.ObjectT]]:
        raw_type = raw_input.get('type') if isinstance(raw_input, dict) else None
        if isinstance(raw_type, str) and raw_type not in KNOWN_EVENT_TYPES:
            self._logger.warning(f"Ignoring an unsupported event type: {raw_type!r}")
            return None
        try:
            return envelopes.WatchEvent.from_raw(raw_input, self._cls)
        except errors.DecodeError:
            self.state = WatchState.ERROR
            await self.close()
            raise
