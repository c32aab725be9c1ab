#!/usr/bin/env python3
"""
Unit tests for the protocol state tracker
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from receipt_stream.commands import Alignment
from receipt_stream.config import PrinterProfile
from receipt_stream.state import ProtocolState


class TestProtocolState(unittest.TestCase):
    """Test ProtocolState"""

    def setUp(self):
        self.state = ProtocolState()

    def test_init(self):
        """Test a fresh state is off and left aligned"""
        self.assertFalse(self.state.bold)
        self.assertFalse(self.state.double_height)
        self.assertFalse(self.state.double_width)
        self.assertEqual(self.state.alignment, Alignment.LEFT)

    def test_apply_in_order(self):
        """Test tags are applied left to right"""
        self.state.apply(['{{B_ON}}', '{{B_OFF}}', '{{DH_ON}}'])
        self.assertFalse(self.state.bold)
        self.assertTrue(self.state.double_height)

    def test_alignment_overwrites(self):
        self.state.apply(['{{CENTER}}', '{{RIGHT}}'])
        self.assertEqual(self.state.alignment, Alignment.RIGHT)
        self.state.apply(['{{JUSTIFY}}'])
        self.assertEqual(self.state.alignment, Alignment.JUSTIFY)

    def test_unknown_and_data_tags_ignored(self):
        self.state.apply(['{{BOLD}}', '{{STORE_ID}}', '{{LOGO}}'])
        self.assertEqual(repr(self.state), repr(ProtocolState()))

    def test_line_limit(self):
        """Test double width halves the printable width"""
        self.assertEqual(self.state.current_line_limit(), 42)
        self.state.apply(['{{DW_ON}}'])
        self.assertEqual(self.state.current_line_limit(), 21)
        self.state.apply(['{{DW_OFF}}'])
        self.assertEqual(self.state.current_line_limit(), 42)

    def test_double_height_keeps_limit(self):
        self.state.apply(['{{DH_ON}}'])
        self.assertEqual(self.state.current_line_limit(), 42)

    def test_line_limit_from_profile(self):
        state = ProtocolState(PrinterProfile(max_chars_normal=32, max_chars_double=16))
        self.assertEqual(state.current_line_limit(), 32)
        state.apply(['{{DW_ON}}'])
        self.assertEqual(state.current_line_limit(), 16)

    def test_leak_report_empty(self):
        self.state.apply(['{{B_ON}}', '{{B_OFF}}'])
        self.assertEqual(self.state.leak_report(), [])

    def test_leak_report_is_boolean(self):
        """Test repeated on tags leak only once"""
        self.state.apply(['{{B_ON}}', '{{B_ON}}', '{{B_ON}}'])
        leaks = self.state.leak_report()
        self.assertEqual(len(leaks), 1)
        self.assertIn('{{B_ON}}', leaks[0])
        self.assertTrue(leaks[0].startswith('STATE_LEAK'))

    def test_leak_report_all_attributes(self):
        self.state.apply(['{{B_ON}}', '{{DH_ON}}', '{{DW_ON}}'])
        leaks = self.state.leak_report()
        self.assertEqual(len(leaks), 3)
        self.assertIn('{{DH_ON}}', leaks[1])
        self.assertIn('{{DW_ON}}', leaks[2])


if __name__ == '__main__':
    unittest.main()
