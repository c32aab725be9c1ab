"""
Receipt template compiler producing ESC/POS instruction streams
"""

from .assembly import StreamMetrics, hex_preview, stream_size, summarize, to_bytes
from .commands import Alignment, ESCPOSCommands, TAGS, TagCategory, TagDictionary, TagInfo
from .config import CONFIG, PrinterProfile
from .encoders import EncoderError, code128, make_transaction_id, raster_logo
from .state import ProtocolState
from .synthesizer import (
    Chunk,
    ChunkType,
    ReceiptData,
    ReceiptItem,
    SynthesisResult,
    load_job,
    synthesize,
)

__version__ = '0.1.0'
