"""
Environment-driven configuration for the receipt stream compiler
"""

import os
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

CONFIG = {
    'max_chars_normal': int(os.getenv('RECEIPT_MAX_CHARS_NORMAL', '42')),
    'max_chars_double': int(os.getenv('RECEIPT_MAX_CHARS_DOUBLE', '21')),
    'dot_width': int(os.getenv('RECEIPT_DOT_WIDTH', '384')),
    'logo_height': int(os.getenv('RECEIPT_LOGO_HEIGHT', '128')),
    'name_width': int(os.getenv('RECEIPT_NAME_WIDTH', '24')),
    'price_width': int(os.getenv('RECEIPT_PRICE_WIDTH', '8')),
    'preview_bytes': int(os.getenv('RECEIPT_PREVIEW_BYTES', '32')),
    'debug_level': os.getenv('DEBUG_LEVEL', 'INFO'),
    'log_file': os.getenv('LOG_FILE', ''),
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class PrinterProfile:
    """Paper and font metrics used for one synthesis pass"""
    max_chars_normal: int = 42
    max_chars_double: int = 21
    dot_width: int = 384
    logo_height: int = 128
    name_width: int = 24
    price_width: int = 8
    preview_bytes: int = 32

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'PrinterProfile':
        """Build a profile from CONFIG (or an override dict)"""
        config = CONFIG if config is None else config
        return cls(
            max_chars_normal=config['max_chars_normal'],
            max_chars_double=config['max_chars_double'],
            dot_width=config['dot_width'],
            logo_height=config['logo_height'],
            name_width=config['name_width'],
            price_width=config['price_width'],
            preview_bytes=config['preview_bytes'],
        )


def setup_logging(config: Optional[Dict[str, Any]] = None):
    """Configure root logging for command-line use"""
    config = CONFIG if config is None else config
    handlers = [logging.StreamHandler()]
    if config.get('log_file'):
        handlers = [logging.FileHandler(config['log_file'])]

    logging.basicConfig(
        level=getattr(logging, config['debug_level'].upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers
    )
