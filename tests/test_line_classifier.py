#!/usr/bin/env python3
"""
Line Classifier Tests
Tests rule priority, trailer metadata and multiline detection.
"""

import unittest

from costco_receipts.line_classifier import LineClassifier
from costco_receipts.models import LineCategory, ParserMode


class TestLineClassifier(unittest.TestCase):
    """Test LineClassifier.classify"""

    @classmethod
    def setUpClass(cls):
        """Set up test fixtures"""
        cls.classifier = LineClassifier()

    def classify(self, line, mode=ParserMode.BODY, multiline_active=False, member_pending=False):
        return self.classifier.classify(line, mode, multiline_active, member_pending)

    def test_header_and_receipt_id(self):
        """Header mode wins over any content"""
        self.assertEqual(self.classify("AUSTIN #681", ParserMode.COLLECTING_HEADER), LineCategory.HEADER)
        self.assertEqual(self.classify("SUBTOTAL 8.49", ParserMode.COLLECTING_HEADER), LineCategory.HEADER)
        self.assertEqual(self.classify("21000600000120211218", ParserMode.COLLECTING_RECEIPT_ID),
                         LineCategory.RECEIPT_ID)

    def test_member_on_same_line(self):
        self.assertEqual(self.classify("Member 121549142109", ParserMode.COLLECTING_MEMBER_ID),
                         LineCategory.MEMBER_ID_LINE)

    def test_member_on_next_line(self):
        """The line after a bare marker is the member number"""
        self.assertEqual(self.classify("Member", ParserMode.COLLECTING_MEMBER_ID), LineCategory.MEMBER_ID_LINE)
        self.assertEqual(self.classify("121549142109", ParserMode.COLLECTING_MEMBER_ID, member_pending=True),
                         LineCategory.MEMBER_ID_LINE)

    def test_body_line_before_member(self):
        """Transactions still parse while the member number is unknown"""
        self.assertEqual(self.classify("1204135 ORG FIRM TO 6.49", ParserMode.COLLECTING_MEMBER_ID),
                         LineCategory.SINGLE_LINE_TRANSACTION)

    def test_member_marker_ignored_once_in_body(self):
        self.assertNotEqual(self.classify("Member 121549142109", ParserMode.BODY), LineCategory.MEMBER_ID_LINE)

    def test_summary_markers(self):
        self.assertEqual(self.classify("SUBTOTAL 8.49"), LineCategory.SUBTOTAL)
        self.assertEqual(self.classify("TAX 0.50"), LineCategory.TAX)
        self.assertEqual(self.classify("****TOTAL 8.99"), LineCategory.TOTAL_MARKER)

    def test_summary_markers_beat_multiline(self):
        self.assertEqual(self.classify("SUBTOTAL 8.49", multiline_active=True), LineCategory.SUBTOTAL)
        self.assertEqual(self.classify("****TOTAL 8.99", multiline_active=True), LineCategory.TOTAL_MARKER)

    def test_multiline_detection(self):
        """Presence of a currency-shaped substring drives multiline state"""
        self.assertEqual(self.classify("900091KS"), LineCategory.MULTILINE_START)
        self.assertEqual(self.classify("CABERNET", multiline_active=True), LineCategory.MULTILINE_CONTINUATION)
        self.assertEqual(self.classify("7.99- A", multiline_active=True), LineCategory.MULTILINE_TERMINATOR)

    def test_single_line_transaction(self):
        self.assertEqual(self.classify("1204135 ORG FIRM TO 6.49"), LineCategory.SINGLE_LINE_TRANSACTION)
        self.assertEqual(self.classify("294721 ORG FIRM TO 2.00-"), LineCategory.SINGLE_LINE_TRANSACTION)
        self.assertEqual(self.classify("E 512515 BANANAS 1.99"), LineCategory.SINGLE_LINE_TRANSACTION)

    def test_unrecognized_amount_line(self):
        self.assertEqual(self.classify("THANK YOU 1.00"), LineCategory.UNRECOGNIZED)

    def test_trailer_metadata(self):
        trailer = ParserMode.TRAILER
        self.assertEqual(self.classify("12/18/2021 14:37 681 6 58 211", trailer), LineCategory.METADATA_DATE)
        self.assertEqual(self.classify("12/18 14:37", trailer), LineCategory.METADATA_DATE)
        self.assertEqual(self.classify("TOTAL NUMBER OF ITEMS SOLD = 2", trailer), LineCategory.METADATA_ITEM_COUNT)
        self.assertEqual(self.classify("XXXXXXXXXXXX1234 CHIP Read", trailer), LineCategory.METADATA_CARD)
        self.assertEqual(self.classify("************5678", trailer), LineCategory.METADATA_CARD)
        self.assertEqual(self.classify("AMOUNT: $8.99", trailer), LineCategory.UNRECOGNIZED)

    def test_no_transactions_in_trailer(self):
        self.assertEqual(self.classify("1204135 ORG FIRM TO 6.49", ParserMode.TRAILER), LineCategory.UNRECOGNIZED)

    def test_classification_is_pure(self):
        """Same inputs always give the same category"""
        cases = [
            ("900091KS", ParserMode.BODY, False, False),
            ("CABERNET", ParserMode.BODY, True, False),
            ("121549142109", ParserMode.COLLECTING_MEMBER_ID, False, True),
            ("TOTAL NUMBER OF ITEMS SOLD = 2", ParserMode.TRAILER, False, False),
        ]
        for line, mode, active, pending in cases:
            first = self.classify(line, mode, active, pending)
            second = self.classify(line, mode, active, pending)
            self.assertEqual(first, second, f"Classification of {line!r} changed between calls")


if __name__ == '__main__':
    unittest.main()
