"""
Decode a synthesized ESC/POS stream back into readable tokens
"""

import struct
from typing import List

from .commands import ESCPOSCommands

ESC_POS_COMMANDS = {
    ESCPOSCommands.INIT: 'INIT',
    ESCPOSCommands.CUT: 'CUT',
    ESCPOSCommands.ALIGN_LEFT: 'ALIGN_LEFT',
    ESCPOSCommands.ALIGN_CENTER: 'ALIGN_CENTER',
    ESCPOSCommands.ALIGN_RIGHT: 'ALIGN_RIGHT',
    ESCPOSCommands.ALIGN_JUSTIFY: 'ALIGN_JUSTIFY',
    ESCPOSCommands.BOLD_ON: 'BOLD_ON',
    ESCPOSCommands.BOLD_OFF: 'BOLD_OFF',
    ESCPOSCommands.DOUBLE_HEIGHT: 'DOUBLE_HEIGHT',
    ESCPOSCommands.DOUBLE_WIDTH: 'DOUBLE_WIDTH',
    ESCPOSCommands.NORMAL_SIZE: 'NORMAL_SIZE',
}

RASTER_HEADER = struct.Struct('<3sBHH')


def _decode_raster(data: bytes, i: int, output: List[str]) -> int:
    if len(data) - i < RASTER_HEADER.size:
        return i
    _, _, width_bytes, height = RASTER_HEADER.unpack_from(data, i)
    end = i + RASTER_HEADER.size + width_bytes * height
    if end > len(data):
        return i
    output.append(f"[RASTER {width_bytes * 8}x{height}]")
    return end


def _decode_barcode(data: bytes, i: int, output: List[str]) -> int:
    if len(data) - i < 4 or data[i + 2] != ESCPOSCommands.BARCODE_CODE128:
        return i
    length = data[i + 3]
    end = i + 4 + length
    if end > len(data):
        return i
    output.append(f"[BARCODE {data[i + 4:end].decode('ascii', errors='replace')}]")
    return end


def decode_stream(data: bytes) -> str:
    """Decode ESC/POS commands for logging and previews"""
    output = []
    i = 0

    while i < len(data):
        if data.startswith(ESCPOSCommands.RASTER_IMAGE, i):
            end = _decode_raster(data, i, output)
            if end != i:
                i = end
                continue
        if data.startswith(ESCPOSCommands.BARCODE, i):
            end = _decode_barcode(data, i, output)
            if end != i:
                i = end
                continue

        command_found = False
        for cmd_bytes, cmd_name in ESC_POS_COMMANDS.items():
            if data.startswith(cmd_bytes, i):
                output.append(f"[{cmd_name}]")
                i += len(cmd_bytes)
                command_found = True
                break

        if not command_found:
            if data[i] == 0x0A:
                output.append('\n')
            elif 32 <= data[i] <= 126:
                output.append(chr(data[i]))
            else:
                output.append(f"[0x{data[i]:02x}]")
            i += 1

    return ''.join(output)
