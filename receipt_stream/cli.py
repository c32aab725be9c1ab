"""
Compile a receipt template into an ESC/POS byte stream from the command line
"""

import sys
import json
import logging
import argparse

from .assembly import hexdump, summarize, to_base64, to_bytes
from .config import PrinterProfile, setup_logging
from .decoder import decode_stream
from .synthesizer import load_job, synthesize

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_STREAM = 1
EXIT_BAD_INPUT = 2


def read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_input(args):
    """Build a job dict from either a job file or --template/--items"""
    if args.job:
        return read_json(args.job)

    with open(args.template, 'r', encoding='utf-8') as f:
        job = {'template': f.read()}
    if args.items:
        job['items'] = read_json(args.items)
    return job


def write_output(result, fmt, profile, stream=None):
    stream = stream or sys.stdout
    if fmt == 'raw':
        sys.stdout.buffer.write(to_bytes(result.chunks))
        return
    if fmt == 'hex':
        stream.write(hexdump(to_bytes(result.chunks)) + '\n')
    elif fmt == 'base64':
        stream.write(to_base64(result.chunks) + '\n')
    elif fmt == 'decode':
        stream.write(decode_stream(to_bytes(result.chunks)) + '\n')
    else:
        metrics = summarize(result.chunks, profile)
        stream.write(f"{metrics.size} BYTES\n{metrics.hex}\n")


def build_parser():
    parser = argparse.ArgumentParser(description='Compile a receipt template into ESC/POS bytes')
    parser.add_argument('job', nargs='?', help='JSON file with template, items and identifier')
    parser.add_argument('--template', help='Template text file (instead of a job file)')
    parser.add_argument('--items', help='JSON file with a list of {name, price} items')
    parser.add_argument('--identifier', help='Identifier substituted for {{STORE_ID}}')
    parser.add_argument('--transaction-id', help='Fixed payload for {{BARCODE}}')
    parser.add_argument('--format', choices=['summary', 'hex', 'base64', 'decode', 'raw'],
                        default='summary', help='Output format (default: summary)')
    return parser


def run(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.job and not args.template:
        parser.error('either a job file or --template is required')

    try:
        template, data = load_job(load_input(args), identifier=args.identifier)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Failed to load receipt job: {e}")
        return EXIT_BAD_INPUT

    txn_factory = None
    if args.transaction_id:
        txn_factory = lambda: args.transaction_id

    profile = PrinterProfile.from_config()
    result = synthesize(template, data, profile=profile, transaction_id=txn_factory)

    for error in result.errors:
        sys.stderr.write(f"ERROR: {error}\n")
    for warning in result.warnings:
        sys.stderr.write(f"WARNING: {warning}\n")

    if not result.ok:
        logger.error(f"Stream withheld: {len(result.errors)} error(s)")
        return EXIT_INVALID_STREAM

    write_output(result, args.format, profile)
    return EXIT_OK


def main():
    """Entry point"""
    setup_logging()
    sys.exit(run())


if __name__ == '__main__':
    main()
