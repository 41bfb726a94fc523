#!/usr/bin/env python3
"""
Item Identity Resolver Tests
Tests purchase / discount / renamed discount / return resolution and tax flags.
"""

import unittest
from decimal import Decimal

from costco_receipts.identity_resolver import ItemIdentityIndex, ItemIdentityResolver
from costco_receipts.models import TransactionKind


class TestItemIdentityResolver(unittest.TestCase):
    """Test ItemIdentityResolver.resolve"""

    def setUp(self):
        self.resolver = ItemIdentityResolver(['E', 'F'])
        self.index = ItemIdentityIndex()

    def resolve(self, amount, name, identifier):
        return self.resolver.resolve(Decimal(amount), name, identifier, self.index)

    def test_purchase(self):
        transaction = self.resolve("6.49", " ORG FIRM TO ", "1204135")

        self.assertEqual(transaction.kind, TransactionKind.PURCHASE)
        self.assertEqual(transaction.item_identifier, "1204135")
        self.assertEqual(transaction.item_name, "ORG FIRM TO")
        self.assertTrue(transaction.is_taxable)
        self.assertEqual(self.index.name_by_identifier, {"1204135": "ORG FIRM TO"})
        self.assertEqual(self.index.identifier_by_name, {"ORG FIRM TO": "1204135"})
        self.assertEqual(self.index.tax_code_by_identifier, {"1204135": "1204135"})

    def test_same_name_discount(self):
        self.resolve("6.49", "WIDGET", "1111111")
        transaction = self.resolve("-1.00", "WIDGET", "222222")

        self.assertEqual(transaction.kind, TransactionKind.DISCOUNT)
        self.assertEqual(transaction.item_identifier, "D-1111111")
        self.assertEqual(transaction.item_name, "WIDGET")
        self.assertEqual(self.index.purchase_identifier_by_discount_identifier, {"222222": "1111111"})

    def test_renamed_discount(self):
        """Third line uses the discount identifier with a different name"""
        self.resolve("6.49", "ORG FIRM TO", "1204135")
        self.resolve("-2.00", "ORG FIRM TO", "294721")
        transaction = self.resolve("-2.00", " /0 ", "294721")

        self.assertEqual(transaction.kind, TransactionKind.DISCOUNT)
        self.assertEqual(transaction.item_identifier, "D-1204135")
        self.assertEqual(transaction.item_name, "ORG FIRM TO")

    def test_unmatched_negative_is_return(self):
        transaction = self.resolve("-7.99", " CABERNET ", "900091KS")

        self.assertEqual(transaction.kind, TransactionKind.RETURN)
        self.assertEqual(transaction.item_identifier, "R-900091")
        self.assertEqual(transaction.item_name, "CABERNET")
        self.assertEqual(transaction.amount, Decimal("-7.99"))

    def test_return_leaves_identity_maps_unchanged(self):
        self.resolve("6.49", "ORG FIRM TO", "1204135")
        self.resolve("-7.99", "CABERNET", "900091")

        self.assertNotIn("900091", self.index.name_by_identifier)
        self.assertNotIn("CABERNET", self.index.identifier_by_name)
        self.assertEqual(self.index.purchase_identifier_by_discount_identifier, {})

    def test_zero_amount_is_not_a_purchase(self):
        transaction = self.resolve("0.00", "FREEBIE", "333333")
        self.assertEqual(transaction.kind, TransactionKind.RETURN)

    def test_tax_exempt_letters(self):
        food = self.resolve("1.99", "BANANAS", "E512515")
        fsa = self.resolve("9.99", "BANDAGES", "F777777")
        plain = self.resolve("4.99", "SOAP", "888888")

        self.assertFalse(food.is_taxable)
        self.assertFalse(fsa.is_taxable)
        self.assertTrue(plain.is_taxable)
        self.assertEqual(food.item_identifier, "512515")

    def test_discount_inherits_purchase_tax_flag(self):
        self.resolve("5.99", "ORG EGGS", "E 444444")
        discount = self.resolve("-1.00", "ORG EGGS", "555555")

        self.assertEqual(discount.item_identifier, "D-444444")
        self.assertFalse(discount.is_taxable)

    def test_clean_name_drops_exempt_marker(self):
        self.assertEqual(self.resolver.clean_name("  E  BANANAS  3 LB "), "BANANAS 3 LB")
        self.assertEqual(self.resolver.clean_name("EGGS"), "EGGS")

    def test_no_exempt_codes(self):
        resolver = ItemIdentityResolver([])
        self.assertTrue(resolver.is_taxable("E512515"))
        self.assertEqual(resolver.clean_name("E BANANAS"), "E BANANAS")


if __name__ == '__main__':
    unittest.main()
