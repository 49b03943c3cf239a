import logging
from typing import AsyncIterator, Callable, List, Optional

import httpx

from seevable.chat.errors import RequestError
from seevable.chat.providers.models import ErrorEvent, MessageStop, StreamEvent
from seevable.chat.providers.sse import SSELineBuffer

LOGGER = logging.getLogger(__name__)

LineNormalizer = Callable[[str], Optional[StreamEvent]]


class StreamDecoder:
    """
    Per-stream parsing state: the line buffer plus a finished flag. Nothing is
    emitted after the first MessageStop or ErrorEvent.
    """

    def __init__(self, normalize_line: LineNormalizer):
        self.normalize_line = normalize_line
        self.lines = SSELineBuffer()
        self.finished = False

    def feed(self, chunk: bytes) -> List[StreamEvent]:
        events = []
        if self.finished:
            return events
        for data in self.lines.feed(chunk):
            event = self.normalize_line(data)
            if event is None:
                continue
            events.append(event)
            if isinstance(event, (MessageStop, ErrorEvent)):
                self.finished = True
                break
        return events

    def reset(self) -> None:
        self.lines.reset()


class EventStream:
    """
    Live, forward-only, single-consumer sequence of common events read from an
    open vendor response. Closing it (directly, through `async with`, or when
    the consuming task is cancelled) closes the HTTP response.
    """

    def __init__(self, response: httpx.Response, decoder: StreamDecoder, provider: str):
        self.response = response
        self.decoder = decoder
        self.provider = provider
        self._iterator = None
        self._closed = False

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        if self._iterator is not None or self._closed:
            raise RuntimeError("EventStream can only be consumed once")
        self._iterator = self._iterate()
        return self._iterator

    async def _iterate(self) -> AsyncIterator[StreamEvent]:
        try:
            async for chunk in self.response.aiter_bytes():
                for event in self.decoder.feed(chunk):
                    LOGGER.debug(f"{self.provider} stream event: {event.type}")
                    yield event
                if self.decoder.finished:
                    break
            if not self.decoder.finished:
                LOGGER.warning(f"{self.provider} stream ended without a stop event")
                self.decoder.finished = True
                yield MessageStop()
        except httpx.HTTPError as e:
            LOGGER.error(f"Error reading {self.provider} stream: {e}")
            raise RequestError(str(e)) from e
        finally:
            await self._close_response()

    async def _close_response(self) -> None:
        if not self._closed:
            self._closed = True
            self.decoder.reset()
            await self.response.aclose()

    async def aclose(self) -> None:
        if self._iterator is not None:
            await self._iterator.aclose()
        await self._close_response()

    async def collect(self) -> List[StreamEvent]:
        return [event async for event in self]

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
