"""
Line tokenizer for server-sent-event style vendor streams.

Network chunks do not line up with logical lines, so bytes are buffered until
a line feed arrives and only complete lines are handed on. Splitting happens
on raw bytes so a multi-byte UTF-8 character cut by a chunk boundary is
decoded only once it is whole.
"""

import logging
from typing import List

LOGGER = logging.getLogger(__name__)

DATA_PREFIX = "data:"


class SSELineBuffer:
    """
    Carry-over buffer for one open stream. `feed` returns the payloads of the
    complete `data:` lines in the chunk; everything after the last line feed
    is kept for the next call.
    """

    def __init__(self):
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> List[str]:
        if not chunk:
            return []
        self._buffer.extend(chunk)
        end = self._buffer.rfind(b"\n")
        if end < 0:
            return []
        complete = bytes(self._buffer[:end + 1])
        del self._buffer[:end + 1]

        payloads = []
        for raw_line in complete.split(b"\n")[:-1]:
            payload = parse_data_line(raw_line.decode("utf-8", errors="replace"))
            if payload is not None:
                payloads.append(payload)
        return payloads

    @property
    def pending(self) -> bytes:
        return bytes(self._buffer)

    def reset(self) -> None:
        if self._buffer:
            LOGGER.debug(f"Discarding {len(self._buffer)} unterminated bytes at stream close")
        self._buffer.clear()


def parse_data_line(line: str):
    """Returns the payload of a `data:` line, or None for any other line."""
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload.strip()
