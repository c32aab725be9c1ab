"""
Byte-stream assembly and reporting helpers
"""

import base64
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import PrinterProfile
from .synthesizer import Chunk

EOF_MARKER = '... [EOF]'


@dataclass(frozen=True)
class StreamMetrics:
    size: int
    hex: str


def to_bytes(chunks: Sequence[Chunk]) -> bytes:
    return b''.join(chunk.data for chunk in chunks)


def stream_size(chunks: Sequence[Chunk]) -> int:
    return sum(len(chunk.data) for chunk in chunks)


def hex_preview(chunks: Sequence[Chunk], preview_bytes: int = 32) -> str:
    """Uppercase hex of the first chunk's leading bytes

    The end-of-preview marker is appended when the stream holds more
    bytes than the preview shows.
    """
    if not chunks or not chunks[0].data:
        return '00'
    shown = chunks[0].data[:preview_bytes]
    preview = ' '.join(f'{b:02X}' for b in shown)
    if stream_size(chunks) > len(shown):
        preview = f"{preview} {EOF_MARKER}"
    return preview


def summarize(chunks: Sequence[Chunk], profile: Optional[PrinterProfile] = None) -> StreamMetrics:
    profile = profile or PrinterProfile.from_config()
    return StreamMetrics(size=stream_size(chunks),
                         hex=hex_preview(chunks, profile.preview_bytes))


def hexdump(data: bytes, width: int = 16) -> str:
    """Offset / hex / ASCII dump, one row per `width` bytes"""
    rows = []
    for i in range(0, len(data), width):
        block = data[i:i + width]
        hex_str = ' '.join(f'{b:02x}' for b in block)
        ascii_str = ''.join(chr(b) if 32 <= b < 127 else '.' for b in block)
        rows.append(f"{i:08x}  {hex_str:<{width * 3 - 1}}  |{ascii_str}|")
    return '\n'.join(rows)


def to_base64(chunks: Sequence[Chunk]) -> str:
    """Base64 text of the full stream, the form print queues accept as printData"""
    return base64.b64encode(to_bytes(chunks)).decode('ascii')
