#!/usr/bin/env python3
"""
Unit tests for the receipt-stream command line
"""

import unittest
import base64
import io
import json
import os
import sys
import tempfile
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from receipt_stream import cli
from receipt_stream.synthesizer import ReceiptData, synthesize


class TestCli(unittest.TestCase):
    """Test cli.run"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.job = {
            'template': '{{CENTER}}{{B_ON}}{{STORE_ID}}{{B_OFF}}\n{{ITEMS}}\n{{BARCODE}}',
            'items': [{'name': 'Coffee', 'price': 3.5}, {'name': 'Sandwich', 'price': 8}],
            'identifier': 'CAFE-1',
        }
        self.job_path = self.write('job.json', json.dumps(self.job))

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def run_cli(self, *argv):
        with patch('sys.stdout', new_callable=io.StringIO) as out, \
                patch('sys.stderr', new_callable=io.StringIO) as err:
            code = cli.run(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_summary(self):
        code, out, err = self.run_cli(self.job_path, '--transaction-id', 'ANT-FIXED1')
        self.assertEqual(code, cli.EXIT_OK)
        size_line, preview = out.splitlines()
        self.assertTrue(size_line.endswith(' BYTES'))
        self.assertEqual(preview, '1B 40 ... [EOF]')
        self.assertEqual(err, '')

    def test_base64_matches_library(self):
        """Test base64 output equals the library's own stream"""
        code, out, _ = self.run_cli(self.job_path, '--transaction-id', 'ANT-FIXED1',
                                    '--format', 'base64')
        self.assertEqual(code, cli.EXIT_OK)

        data = ReceiptData.from_items('CAFE-1', self.job['items'])
        expected = synthesize(self.job['template'], data, transaction_id=lambda: 'ANT-FIXED1')
        self.assertEqual(base64.b64decode(out.strip()), expected.payload())

    def test_decode_format(self):
        code, out, _ = self.run_cli(self.job_path, '--transaction-id', 'ANT-FIXED1',
                                    '--format', 'decode')
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn('[BOLD_ON]CAFE-1[BOLD_OFF]', out)
        self.assertIn('Coffee', out)
        self.assertIn('[BARCODE ANT-FIXED1]', out)

    def test_hex_format(self):
        code, out, _ = self.run_cli(self.job_path, '--format', 'hex')
        self.assertEqual(code, cli.EXIT_OK)
        self.assertTrue(out.startswith('00000000  1b 40'))

    def test_errors_withhold_stream(self):
        """Test an invalid template prints diagnostics and no stream"""
        path = self.write('bad.json', json.dumps({'template': '{{BOLD}}X', 'identifier': 'A'}))
        code, out, err = self.run_cli(path)
        self.assertEqual(code, cli.EXIT_INVALID_STREAM)
        self.assertEqual(out, '')
        self.assertIn('ERROR: MALFORMED_TAG', err)

    def test_identifier_override(self):
        path = self.write('anon.json', json.dumps({'template': 'hi {{STORE_ID}}'}))
        code, _, err = self.run_cli(path)
        self.assertEqual(code, cli.EXIT_INVALID_STREAM)
        self.assertIn('CRITICAL', err)

        code, out, _ = self.run_cli(path, '--identifier', 'BOB', '--format', 'decode')
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn('hi BOB', out)

    def test_warnings_do_not_block(self):
        path = self.write('wide.json', json.dumps({'template': 'Y' * 60, 'identifier': 'A'}))
        code, out, err = self.run_cli(path)
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn('WARNING: L1: Buffer overflow', err)
        self.assertIn('BYTES', out)

    def test_template_and_items_files(self):
        template = self.write('receipt.txt', '{{ITEMS}}\nTOTAL {{TOTAL}}')
        items = self.write('items.json', json.dumps(self.job['items']))
        code, out, _ = self.run_cli('--template', template, '--items', items,
                                    '--identifier', 'A', '--format', 'decode')
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn('TOTAL 11.50', out)

    def test_missing_file(self):
        code, out, _ = self.run_cli(os.path.join(self.tmpdir.name, 'missing.json'))
        self.assertEqual(code, cli.EXIT_BAD_INPUT)
        self.assertEqual(out, '')

    def test_invalid_json(self):
        path = self.write('broken.json', '{not json')
        code, _, _ = self.run_cli(path)
        self.assertEqual(code, cli.EXIT_BAD_INPUT)

    def test_no_input(self):
        with patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                cli.run([])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == '__main__':
    unittest.main()
