"""WebSocket frame parsing and encoding, with permessage-deflate support."""

from __future__ import annotations

import enum
import logging
import time
import zlib
from dataclasses import dataclass
from typing import Optional, Union

_log = logging.getLogger(__name__)

# permessage-deflate strips this tail from every message; inflating needs it back.
_DEFLATE_TAIL = b"\x00\x00\xff\xff"


class WsOpcode(enum.IntEnum):
    """Known WebSocket opcodes; unknown ones are kept as plain ints."""

    CONTINUATION = 0x0
    TEXT = 0x1
    BINARY = 0x2
    CLOSE = 0x8
    PING = 0x9
    PONG = 0xA


Opcode = Union[WsOpcode, int]


class InvalidFrameError(ValueError):
    """The byte stream does not form valid WebSocket frames.

    ``frames`` holds the frames that were parsed before the error was found.
    """

    def __init__(self, message: str, frames: Optional[list[WsFrame]] = None) -> None:
        super().__init__(message)
        self.frames = frames if frames is not None else []


def _opcode_from_bits(value: int) -> Opcode:
    try:
        return WsOpcode(value)
    except ValueError:
        return value


def _apply_mask(payload: bytes, key: bytes) -> bytes:
    size = len(payload)
    if size == 0:
        return b""
    repeated = (key * (size // 4 + 1))[:size]
    mixed = int.from_bytes(payload, "big") ^ int.from_bytes(repeated, "big")
    return mixed.to_bytes(size, "big")


@dataclass
class WsFrame:
    """A single WebSocket frame (continuations already merged)."""

    opcode: Opcode
    payload: bytes = b""
    fin: bool = True
    rsv1: bool = False
    rsv2: bool = False
    rsv3: bool = False

    def is_text(self) -> bool:
        return self.opcode == WsOpcode.TEXT

    def is_binary(self) -> bool:
        return self.opcode == WsOpcode.BINARY

    def is_continuation(self) -> bool:
        return self.opcode == WsOpcode.CONTINUATION

    def text(self) -> Optional[str]:
        """The payload as text, or None for non-text frames or invalid UTF-8."""
        if self.opcode != WsOpcode.TEXT:
            return None
        try:
            return self.payload.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def _clear_reserved(self) -> None:
        self.rsv1 = False
        self.rsv2 = False
        self.rsv3 = False

    def set_text(self, data: str) -> None:
        self.opcode = WsOpcode.TEXT
        self.payload = data.encode("utf-8")
        self._clear_reserved()

    def set_binary(self, data) -> None:
        self.opcode = WsOpcode.BINARY
        self.payload = bytes(data)
        self._clear_reserved()

    def decompress_with(self, decompressor) -> Optional[bytes]:
        """Inflate a permessage-deflate payload with a raw-deflate decompressor.

        Uncompressed frames (RSV1 clear) return their payload unchanged.
        Returns None if the data cannot be inflated.
        """
        if not self.rsv1:
            return self.payload
        data = self.payload + _DEFLATE_TAIL if self.fin else self.payload
        try:
            return decompressor.decompress(data)
        except zlib.error as exc:
            _log.error("Decompression error: %r", exc)
            return None


def parse_ws_frames(buffer: bytearray) -> list[WsFrame]:
    """Parse every complete frame at the start of ``buffer``.

    Consumed bytes are removed from the buffer; an incomplete trailing frame
    stays in it. An empty list means no complete frame was available.
    Continuation frames are merged into the preceding frame; a continuation
    with nothing before it raises InvalidFrameError.
    """
    frames: list[WsFrame] = []
    while True:
        available = len(buffer)
        if available < 2:
            return frames

        b0, b1 = buffer[0], buffer[1]
        length = b1 & 0x7F
        offset = 2

        if length == 126:
            if available < 4:
                return frames
            length = int.from_bytes(buffer[2:4], "big")
            offset = 4
        elif length == 127:
            if available < 10:
                return frames
            length = int.from_bytes(buffer[2:10], "big")
            offset = 10

        mask_key: Optional[bytes] = None
        if b1 & 0x80:
            if available < offset + 4:
                return frames
            mask_key = bytes(buffer[offset:offset + 4])
            offset += 4

        end = offset + length
        if available < end:
            return frames

        payload = bytes(buffer[offset:end])
        del buffer[:end]
        if mask_key is not None:
            payload = _apply_mask(payload, mask_key)

        fin = bool(b0 & 0x80)
        opcode = _opcode_from_bits(b0 & 0x0F)

        if opcode == WsOpcode.CONTINUATION:
            if not frames:
                raise InvalidFrameError("continuation frame without a preceding frame", frames)
            last = frames[-1]
            last.payload = last.payload + payload
            last.fin = fin
            continue

        frames.append(
            WsFrame(
                opcode=opcode,
                payload=payload,
                fin=fin,
                rsv1=bool(b0 & 0x40),
                rsv2=bool(b0 & 0x20),
                rsv3=bool(b0 & 0x10),
            )
        )


def encode_ws_frame(frame: WsFrame, mask_key: Optional[bytes] = None) -> bytes:
    """Serialize a frame, masking the payload when a 4-byte key is given."""
    if mask_key is not None and len(mask_key) != 4:
        raise ValueError("mask key must be exactly 4 bytes")

    b0 = (0x80 if frame.fin else 0x00) | (int(frame.opcode) & 0x0F)
    if frame.rsv1:
        b0 |= 0x40
    if frame.rsv2:
        b0 |= 0x20
    if frame.rsv3:
        b0 |= 0x10
    out = bytearray([b0])

    mask_bit = 0x80 if mask_key is not None else 0x00
    size = len(frame.payload)
    if size <= 125:
        out.append(mask_bit | size)
    elif size <= 0xFFFF:
        out.append(mask_bit | 126)
        out += size.to_bytes(2, "big")
    else:
        out.append(mask_bit | 127)
        out += size.to_bytes(8, "big")

    if mask_key is not None:
        key = bytes(mask_key)
        out += key
        out += _apply_mask(bytes(frame.payload), key)
    else:
        out += frame.payload
    return bytes(out)


def mask_key_from_time() -> bytes:
    """A 4-byte mask key taken from the low bytes of the current time in ns."""
    return (time.time_ns() & 0xFFFFFFFF).to_bytes(4, "little")