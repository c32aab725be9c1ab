"""
Error and warning collection for a synthesis pass
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class Diagnostics:
    """Two-tier diagnostics: errors block use of the stream, warnings do not"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    @staticmethod
    def _format(message: str, line: Optional[int]) -> str:
        if line is None:
            return message
        return f"L{line}: {message}"

    def error(self, message: str, line: Optional[int] = None):
        text = self._format(message, line)
        self.errors.append(text)
        logger.debug(f"error: {text}")

    def warning(self, message: str, line: Optional[int] = None):
        text = self._format(message, line)
        self.warnings.append(text)
        logger.debug(f"warning: {text}")

    @property
    def ok(self) -> bool:
        return not self.errors
