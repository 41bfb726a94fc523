#!/usr/bin/env python3
"""
Multiline Assembler Tests
Tests reassembly of items whose name wraps over several receipt lines.
"""

import unittest
from decimal import Decimal

from costco_receipts.amount_parser import AmountParseError
from costco_receipts.multiline_assembler import MultilineAssembler, strip_identifier


class TestMultilineAssembler(unittest.TestCase):
    """Test MultilineAssembler start/append/finish"""

    def setUp(self):
        self.assembler = MultilineAssembler()

    def test_identifier_token_with_letters(self):
        """900091KS / CABERNET / 7.99- A"""
        self.assembler.start("900091KS")
        self.assertTrue(self.assembler.is_active)
        self.assertEqual(self.assembler.buffer.pending_identifier, "900091")

        self.assembler.append("CABERNET")
        amount, name, raw_identifier = self.assembler.finish("7.99- A")

        self.assertFalse(self.assembler.is_active, "Buffer should close on the amount line")
        self.assertEqual(amount, Decimal("-7.99"))
        self.assertEqual(name.strip(), "CABERNET")
        self.assertEqual(raw_identifier, "900091KS")

    def test_name_fragment_on_start_line(self):
        self.assembler.start("1234567 KS ORGANIC")
        self.assembler.append("PEANUT BUTTER")
        amount, name, raw_identifier = self.assembler.finish("12.99 N")

        self.assertEqual(amount, Decimal("12.99"))
        self.assertEqual(" ".join(name.split()), "KS ORGANIC PEANUT BUTTER")
        self.assertEqual(raw_identifier, "1234567")

    def test_tax_letter_kept_on_raw_identifier(self):
        self.assembler.start("E 900091KS")
        self.assertEqual(self.assembler.buffer.pending_identifier, "900091")
        self.assertEqual(self.assembler.buffer.pending_raw_identifier, "E 900091KS")

    def test_start_line_without_identifier(self):
        """Falls back to stripping letters for the identifier and digits for the name"""
        self.assembler.start("KIRKLAND 2")
        self.assertEqual(self.assembler.buffer.pending_identifier, "2")
        self.assertEqual(self.assembler.buffer.pending_name.strip(), "KIRKLAND")

    def test_terminator_without_amount_discards_buffer(self):
        self.assembler.start("900091KS")
        with self.assertRaises(AmountParseError):
            self.assembler.finish("NO PRICE HERE")
        self.assertFalse(self.assembler.is_active, "Buffer should be discarded on a bad terminator")

    def test_append_without_buffer(self):
        with self.assertRaises(RuntimeError):
            self.assembler.append("CABERNET")

    def test_discard(self):
        self.assembler.start("900091KS")
        buffer = self.assembler.discard()
        self.assertEqual(buffer.pending_identifier, "900091")
        self.assertIsNone(self.assembler.discard())

    def test_strip_identifier(self):
        self.assertEqual(strip_identifier("E 1204135"), "1204135")
        self.assertEqual(strip_identifier("900091KS"), "900091")
        self.assertEqual(strip_identifier(""), "")


if __name__ == '__main__':
    unittest.main()
