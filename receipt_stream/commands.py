"""
ESC/POS instruction dictionary for the receipt template language

Every {{NAME}} tag the compiler understands is described by a TagInfo
entry. Toggle and alignment tags carry the raw bytes they expand to,
block tags expand to whole-line content and data tags are replaced by
caller-supplied values before any formatting is considered.
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r'{{[A-Z0-9_]+}}')


class ESCPOSCommands:
    """ESC/POS command constants"""
    ESC = 0x1B
    GS = 0x1D

    INIT = b'\x1b\x40'
    CUT = b'\x1d\x56\x42\x00'
    LINE_FEED = b'\n'

    BOLD_ON = b'\x1b\x45\x01'
    BOLD_OFF = b'\x1b\x45\x00'

    # GS ! n, the low nibble selects height and the high nibble width
    DOUBLE_HEIGHT = b'\x1d\x21\x01'
    DOUBLE_WIDTH = b'\x1d\x21\x10'
    NORMAL_SIZE = b'\x1d\x21\x00'

    ALIGN_LEFT = b'\x1b\x61\x00'
    ALIGN_CENTER = b'\x1b\x61\x01'
    ALIGN_RIGHT = b'\x1b\x61\x02'
    ALIGN_JUSTIFY = b'\x1b\x61\x03'

    RASTER_IMAGE = b'\x1d\x76\x30'
    RASTER_MODE_NORMAL = 0x00
    BARCODE = b'\x1d\x6b'
    BARCODE_CODE128 = 73


class TagCategory(Enum):
    TOGGLE = 'TOGGLE'
    ALIGN = 'ALIGN'
    BLOCK = 'BLOCK'
    DATA = 'DATA'


class Alignment(Enum):
    LEFT = 0
    CENTER = 1
    RIGHT = 2
    JUSTIFY = 3


def bytes_to_hex(data: bytes) -> str:
    """Render bytes as space separated uppercase hex pairs"""
    return ' '.join(f'{b:02X}' for b in data)


@dataclass(frozen=True)
class TagInfo:
    """Compile-time description of one template tag"""
    tag: str
    name: str
    category: TagCategory
    data: bytes = b''
    pair: Optional[str] = None
    attribute: Optional[str] = None
    enabled: bool = False
    alignment: Optional[Alignment] = None
    field: Optional[str] = None
    fallback: str = ''

    @property
    def hex(self) -> str:
        return bytes_to_hex(self.data)

    @property
    def emits_bytes(self) -> bool:
        return self.category in (TagCategory.TOGGLE, TagCategory.ALIGN)


def _toggle(tag, name, data, pair, attribute, enabled):
    return TagInfo(tag, name, TagCategory.TOGGLE, data, pair=pair,
                   attribute=attribute, enabled=enabled)


def _align(tag, name, data, alignment):
    return TagInfo(tag, name, TagCategory.ALIGN, data, alignment=alignment)


DEFAULT_TAGS = [
    _toggle('{{B_ON}}', 'Bold On', ESCPOSCommands.BOLD_ON, '{{B_OFF}}', 'bold', True),
    _toggle('{{B_OFF}}', 'Bold Off', ESCPOSCommands.BOLD_OFF, '{{B_ON}}', 'bold', False),
    _toggle('{{DH_ON}}', 'Double Height On', ESCPOSCommands.DOUBLE_HEIGHT,
            '{{DH_OFF}}', 'double_height', True),
    _toggle('{{DH_OFF}}', 'Double Height Off', ESCPOSCommands.NORMAL_SIZE,
            '{{DH_ON}}', 'double_height', False),
    _toggle('{{DW_ON}}', 'Double Width On', ESCPOSCommands.DOUBLE_WIDTH,
            '{{DW_OFF}}', 'double_width', True),
    _toggle('{{DW_OFF}}', 'Double Width Off', ESCPOSCommands.NORMAL_SIZE,
            '{{DW_ON}}', 'double_width', False),
    _align('{{CENTER}}', 'Align Center', ESCPOSCommands.ALIGN_CENTER, Alignment.CENTER),
    _align('{{LEFT}}', 'Align Left', ESCPOSCommands.ALIGN_LEFT, Alignment.LEFT),
    _align('{{RIGHT}}', 'Align Right', ESCPOSCommands.ALIGN_RIGHT, Alignment.RIGHT),
    _align('{{JUSTIFY}}', 'Align Justify', ESCPOSCommands.ALIGN_JUSTIFY, Alignment.JUSTIFY),
    TagInfo('{{LOGO}}', 'Raster Logo', TagCategory.BLOCK),
    TagInfo('{{BARCODE}}', 'Transaction Barcode', TagCategory.BLOCK),
    TagInfo('{{ITEMS}}', 'Item List', TagCategory.BLOCK),
    TagInfo('{{STORE_ID}}', 'Identifier', TagCategory.DATA,
            field='identifier', fallback='UNDEFINED'),
    TagInfo('{{TOTAL}}', 'Total', TagCategory.DATA, field='total', fallback='0.00'),
]


class TagDictionary:
    """Lookup table from tag text to TagInfo"""

    def __init__(self, entries: Optional[List[TagInfo]] = None):
        self._entries: Dict[str, TagInfo] = {}
        self._pattern = None
        for entry in (DEFAULT_TAGS if entries is None else entries):
            self.register(entry)

    def register(self, entry: TagInfo):
        """Add or replace a tag definition"""
        if not TAG_PATTERN.fullmatch(entry.tag):
            raise ValueError(f"Tag {entry.tag!r} does not match {TAG_PATTERN.pattern}")
        if entry.emits_bytes and not entry.data:
            raise ValueError(f"Tag {entry.tag} needs an instruction byte sequence")
        self._entries[entry.tag] = entry
        self._pattern = None
        logger.debug(f"Registered tag {entry.tag} ({entry.category.value})")

    def get(self, tag: str) -> Optional[TagInfo]:
        return self._entries.get(tag)

    def __contains__(self, tag: str) -> bool:
        return tag in self._entries

    def __iter__(self) -> Iterator[TagInfo]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def by_category(self, *categories: TagCategory) -> List[TagInfo]:
        return [entry for entry in self if entry.category in categories]

    def sibling(self, tag: str) -> Optional[TagInfo]:
        """Return the opposite half of a toggle pair"""
        entry = self.get(tag)
        if entry is None or entry.pair is None:
            return None
        return self.get(entry.pair)

    def instruction_pattern(self) -> re.Pattern:
        """Single regex matching any byte-emitting tag

        Alternatives are ordered longest first so a tag can never be
        shadowed by a shorter tag sharing its prefix.
        """
        if self._pattern is None:
            tags = sorted((entry.tag for entry in self.by_category(
                TagCategory.TOGGLE, TagCategory.ALIGN)), key=len, reverse=True)
            if tags:
                self._pattern = re.compile('|'.join(re.escape(tag) for tag in tags))
            else:
                self._pattern = re.compile(r'(?!)')
        return self._pattern


TAGS = TagDictionary()
