"""
Template to ESC/POS byte-stream synthesizer

A template is plain text mixed with {{NAME}} tags. synthesize() walks it
line by line and produces the ordered chunk list a printer would execute,
together with the errors and warnings found on the way. It never raises:
every fault ends up in the returned diagnostics.
"""

import random
import logging
import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .commands import ESCPOSCommands, TAG_PATTERN, TAGS, TagCategory, TagDictionary
from .config import PrinterProfile
from .diagnostics import Diagnostics
from .encoders import code128, make_transaction_id, raster_logo
from .state import ProtocolState

logger = logging.getLogger(__name__)


class ChunkType(Enum):
    TEXT = 'TEXT'
    IMAGE = 'IMAGE'
    BARCODE = 'BARCODE'


@dataclass(frozen=True)
class Chunk:
    """One atomic piece of the output stream"""
    type: ChunkType
    data: bytes

    def __len__(self):
        return len(self.data)


@dataclass
class ReceiptItem:
    name: str
    price: float

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> 'ReceiptItem':
        price = item.get('price', 0)
        if isinstance(price, str):
            price = float(price)
        return cls(name=str(item.get('name', '')), price=price)


@dataclass
class ReceiptData:
    """Caller-supplied values referenced by data and block tags"""
    identifier: str = ''
    items: List[ReceiptItem] = field(default_factory=list)
    total: str = ''

    @classmethod
    def from_items(cls, identifier: str, items: Iterable[Any]) -> 'ReceiptData':
        """Build receipt data with the total computed from item prices"""
        items = [item if isinstance(item, ReceiptItem) else ReceiptItem.from_dict(item)
                 for item in items]
        total = sum(item.price for item in items)
        return cls(identifier=identifier, items=items, total=f"{total:.2f}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ReceiptData':
        items = [item if isinstance(item, ReceiptItem) else ReceiptItem.from_dict(item)
                 for item in data.get('items') or []]
        return cls(identifier=data.get('identifier') or '', items=items,
                   total=str(data.get('total') or ''))


@dataclass
class SynthesisResult:
    chunks: List[Chunk]
    errors: List[str]
    warnings: List[str]

    @property
    def ok(self) -> bool:
        """A stream is usable only when no errors were recorded"""
        return not self.errors

    def payload(self) -> bytes:
        return b''.join(chunk.data for chunk in self.chunks)


def encode_text(text: str) -> bytes:
    return text.encode('ascii', errors='replace')


def format_item(item: ReceiptItem, profile: PrinterProfile) -> str:
    """Fixed-width item row: padded name column then right-aligned price"""
    name = item.name[:profile.name_width].ljust(profile.name_width)
    price = f"${item.price:.2f}".rjust(profile.price_width)
    return f"{name}{price}\n"


class _SynthesisPass:
    """Working state for one synthesize() call"""

    def __init__(self, data: ReceiptData, profile: PrinterProfile, tags: TagDictionary,
                 transaction_id: Callable[[], str]):
        self.data = data
        self.profile = profile
        self.tags = tags
        self.transaction_id = transaction_id
        self.state = ProtocolState(profile, tags)
        self.diagnostics = Diagnostics()
        self.chunks: List[Chunk] = []
        self.block_handlers: Dict[str, Callable[[int], None]] = {
            '{{LOGO}}': self.emit_logo,
            '{{BARCODE}}': self.emit_barcode,
            '{{ITEMS}}': self.emit_items,
        }

    def emit(self, chunk_type: ChunkType, data: bytes):
        self.chunks.append(Chunk(chunk_type, bytes(data)))

    def audit(self, template: str):
        """Report every unrecognized tag occurrence in the document"""
        for match in TAG_PATTERN.finditer(template):
            tag = match.group(0)
            if tag not in self.tags:
                self.diagnostics.error(
                    f'MALFORMED_TAG: "{tag}" is not a recognized ESC/POS instruction.')

    def check_identity(self):
        if not self.data.identifier:
            self.diagnostics.error(
                "CRITICAL: identifier is empty. A valid identity is required for every document.")

    def run(self, template: str):
        self.audit(template)
        self.check_identity()

        self.emit(ChunkType.TEXT, ESCPOSCommands.INIT)

        block_tags = {entry.tag for entry in self.tags.by_category(TagCategory.BLOCK)}
        for index, line in enumerate(template.split('\n')):
            line_num = index + 1
            trimmed = line.strip()
            if trimmed in block_tags:
                self.emit_block(trimmed, line_num)
                continue
            self.emit_line(line, line_num)

        for warning in self.state.leak_report():
            self.diagnostics.warning(warning)

        self.emit(ChunkType.TEXT, ESCPOSCommands.CUT)

    def emit_block(self, tag: str, line_num: int):
        handler = self.block_handlers.get(tag)
        if handler is None:
            self.diagnostics.error(f"No expansion available for block {tag}.", line_num)
            return
        handler(line_num)

    def emit_logo(self, line_num: int):
        try:
            image = raster_logo(self.profile)
        except Exception as e:
            logger.error(f"Logo rasterization failed on line {line_num}: {e}")
            self.diagnostics.error(f"Binary rasterization fault for LOGO ({e}).", line_num)
            return
        self.emit(ChunkType.IMAGE, image)

    def emit_barcode(self, line_num: int):
        txn_id = self.transaction_id()
        try:
            barcode = code128(txn_id)
        except Exception as e:
            logger.error(f"Barcode encoding failed on line {line_num}: {e}")
            self.diagnostics.error(
                f"Barcode generation fault (Instruction GS k 73): {e}", line_num)
            return
        self.emit(ChunkType.BARCODE, barcode)

    def emit_items(self, line_num: int):
        if not self.data.items:
            self.diagnostics.warning("Item set is empty. Skipping BLOCK_ITEMS.", line_num)
            return
        for item in self.data.items:
            self.emit(ChunkType.TEXT, encode_text(format_item(item, self.profile)))

    def substitute(self, line: str) -> str:
        for entry in self.tags.by_category(TagCategory.DATA):
            if entry.tag not in line:
                continue
            value = getattr(self.data, entry.field, None) if entry.field else None
            line = line.replace(entry.tag, str(value) if value else entry.fallback)
        return line

    def emit_line(self, line: str, line_num: int):
        line = self.substitute(line)
        self.state.apply(TAG_PATTERN.findall(line))

        visible = TAG_PATTERN.sub('', line)
        limit = self.state.current_line_limit()
        if len(visible) > limit:
            self.diagnostics.warning(
                f"Buffer overflow. Line contains {len(visible)} chars "
                f"(Max {limit} for current width). Text may wrap.", line_num)

        for chunk in split_line(line, self.tags):
            self.chunks.append(chunk)
        self.emit(ChunkType.TEXT, ESCPOSCommands.LINE_FEED)


def split_line(line: str, tags: Optional[TagDictionary] = None) -> List[Chunk]:
    """Split a line into literal text and instruction chunks

    Only byte-emitting tags are split out; anything else, including
    unknown tags, stays in the literal text.
    """
    tags = tags if tags is not None else TAGS
    chunks = []
    position = 0
    for match in tags.instruction_pattern().finditer(line):
        if match.start() > position:
            chunks.append(Chunk(ChunkType.TEXT, encode_text(line[position:match.start()])))
        chunks.append(Chunk(ChunkType.TEXT, tags.get(match.group(0)).data))
        position = match.end()
    if position < len(line):
        chunks.append(Chunk(ChunkType.TEXT, encode_text(line[position:])))
    return chunks


def synthesize(template: str,
               data: Union[ReceiptData, Mapping[str, Any]],
               profile: Optional[PrinterProfile] = None,
               tags: Optional[TagDictionary] = None,
               transaction_id: Optional[Callable[[], str]] = None) -> SynthesisResult:
    """Compile a template and its data into an ESC/POS chunk stream"""
    if not isinstance(data, ReceiptData):
        try:
            data = ReceiptData.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Unusable receipt data: {e}")
            return SynthesisResult(chunks=[], errors=[f"PROTOCOL_ABORT: {e}"], warnings=[])
    if transaction_id is None:
        transaction_id = functools.partial(make_transaction_id, random.Random())

    synthesis = _SynthesisPass(data, profile or PrinterProfile.from_config(),
                               tags if tags is not None else TAGS, transaction_id)
    try:
        synthesis.run(template)
    except Exception as e:
        logger.error(f"Synthesis aborted: {e}")
        synthesis.diagnostics.error(f"PROTOCOL_ABORT: {e}")

    result = SynthesisResult(chunks=synthesis.chunks,
                             errors=synthesis.diagnostics.errors,
                             warnings=synthesis.diagnostics.warnings)
    logger.info(f"Synthesized {len(result.chunks)} chunks "
                f"({len(result.errors)} errors, {len(result.warnings)} warnings)")
    return result


def load_job(job: Mapping[str, Any], identifier: Optional[str] = None) -> tuple:
    """Unpack a generated {template, items, identifier?} job description"""
    if not isinstance(job, Mapping):
        raise ValueError("Job must be a JSON object")
    template = job.get('template')
    if not isinstance(template, str):
        raise ValueError("Job is missing a 'template' string")
    items: Sequence[Any] = job.get('items') or []
    if not isinstance(items, list):
        raise ValueError("Job 'items' must be a list")
    ident = identifier if identifier is not None else str(job.get('identifier') or '')
    return template, ReceiptData.from_items(ident, items)
