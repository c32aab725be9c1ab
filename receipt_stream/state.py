"""
Formatting state tracked while a template is scanned line by line
"""

import logging
from typing import Iterable, List, Optional

from .commands import Alignment, TAGS, TagCategory, TagDictionary
from .config import PrinterProfile

logger = logging.getLogger(__name__)

TOGGLE_ATTRIBUTES = ('bold', 'double_height', 'double_width')


class ProtocolState:
    """Bold/size/alignment state owned by a single synthesis pass"""

    def __init__(self, profile: Optional[PrinterProfile] = None,
                 tags: Optional[TagDictionary] = None):
        self.profile = profile or PrinterProfile()
        self.tags = tags if tags is not None else TAGS
        self.bold = False
        self.double_height = False
        self.double_width = False
        self.alignment = Alignment.LEFT

    def apply(self, found: Iterable[str]):
        """Apply tags in left-to-right order; unknown tags are ignored"""
        for tag in found:
            entry = self.tags.get(tag)
            if entry is None:
                continue
            if entry.category is TagCategory.TOGGLE and entry.attribute in TOGGLE_ATTRIBUTES:
                setattr(self, entry.attribute, entry.enabled)
            elif entry.category is TagCategory.ALIGN and entry.alignment is not None:
                self.alignment = entry.alignment

    def current_line_limit(self) -> int:
        if self.double_width:
            return self.profile.max_chars_double
        return self.profile.max_chars_normal

    def leak_report(self) -> List[str]:
        """One warning per toggle still active at end of document"""
        warnings = []
        for attribute in TOGGLE_ATTRIBUTES:
            if not getattr(self, attribute):
                continue
            on_tag = self._on_tag(attribute)
            warnings.append(
                f"STATE_LEAK: {on_tag} instruction active at EOF. Implicit reset applied.")
        return warnings

    def _on_tag(self, attribute: str) -> str:
        for entry in self.tags.by_category(TagCategory.TOGGLE):
            if entry.attribute == attribute and entry.enabled:
                return entry.tag
        return attribute.upper()

    def __repr__(self):
        return (f"ProtocolState(bold={self.bold}, double_height={self.double_height}, "
                f"double_width={self.double_width}, alignment={self.alignment.name})")
