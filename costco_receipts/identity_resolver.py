#!/usr/bin/env python3
"""
Item Identity Resolver - Link discounts and returns back to their purchases

Costco prints discounts as separate negative lines, sometimes under a new
identifier and sometimes under a new name:

    1204135 ORG FIRM TO 6.49      (purchase)
    294721 ORG FIRM TO 2.00-      (discount, same name, own identifier)
    294721 /0 2.00-               (discount, own identifier, different name)

Both discounts resolve to D-1204135 / "ORG FIRM TO". A negative line that
matches nothing seen so far is a return (R-<identifier>).
"""

import re
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional

from .models import Transaction, TransactionKind
from .multiline_assembler import strip_identifier

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')


@dataclass
class ItemIdentityIndex:
    """Per-receipt identity maps (dicts keep insertion order)"""
    name_by_identifier: Dict[str, str] = field(default_factory=dict)
    identifier_by_name: Dict[str, str] = field(default_factory=dict)
    tax_code_by_identifier: Dict[str, str] = field(default_factory=dict)
    purchase_identifier_by_discount_identifier: Dict[str, str] = field(default_factory=dict)

    def record_purchase(self, identifier: str, name: str, raw_identifier: str) -> None:
        self.name_by_identifier[identifier] = name
        self.identifier_by_name[name] = identifier
        self.tax_code_by_identifier[identifier] = raw_identifier

    def purchase_identifiers(self) -> Iterable[str]:
        return self.name_by_identifier.keys()


class ItemIdentityResolver:
    """Decide purchase / discount / return and recover the canonical identity"""

    def __init__(self, tax_exempt_codes: Optional[Iterable[str]] = None):
        """
        Args:
            tax_exempt_codes: Leading identifier letters that mark an item as not taxable
        """
        codes = ['E', 'F'] if tax_exempt_codes is None else tax_exempt_codes
        self.tax_exempt_codes = frozenset(code.upper() for code in codes)
        if self.tax_exempt_codes:
            letters = ''.join(re.escape(code) for code in sorted(self.tax_exempt_codes))
            self._tax_code_prefix = re.compile(rf'^[{letters}]\s+')
        else:
            self._tax_code_prefix = None

    def is_taxable(self, raw_identifier: Optional[str]) -> bool:
        """An item is taxable unless its raw identifier starts with a tax-exempt letter"""
        raw_identifier = (raw_identifier or '').strip()
        if not raw_identifier:
            return True
        return raw_identifier[0].upper() not in self.tax_exempt_codes

    def clean_name(self, raw_name: str) -> str:
        """Trim, collapse whitespace and drop a leading tax-exempt marker ("E ")"""
        name = _WHITESPACE.sub(' ', raw_name or '').strip()
        if self._tax_code_prefix:
            name = self._tax_code_prefix.sub('', name)
        return name

    def resolve(self, amount: Decimal, raw_name: str, raw_identifier: str,
                index: ItemIdentityIndex) -> Transaction:
        """
        Resolve a parsed (amount, name, identifier) triple

        Args:
            amount: Signed line amount
            raw_name: Name text as printed
            raw_identifier: Identifier as printed (may carry a tax letter)
            index: Identity maps for the current receipt (mutated)

        Returns:
            Transaction of kind PURCHASE, DISCOUNT or RETURN
        """
        name = self.clean_name(raw_name)
        identifier = strip_identifier(raw_identifier)

        # Bought item
        if amount > 0:
            index.record_purchase(identifier, name, raw_identifier)
            return Transaction(TransactionKind.PURCHASE, identifier, name, amount,
                               self.is_taxable(raw_identifier))

        # Discount under the same name as the purchase
        purchase_identifier = index.identifier_by_name.get(name)
        if purchase_identifier is not None:
            index.purchase_identifier_by_discount_identifier[identifier] = purchase_identifier
            return self.discount_for(purchase_identifier, amount, index, name=name)

        # Discount under its own identifier, seen before with the purchase's name
        purchase_identifier = index.purchase_identifier_by_discount_identifier.get(identifier)
        if purchase_identifier is not None:
            return self.discount_for(purchase_identifier, amount, index)

        # Nothing matched: standalone return (identity maps stay purchase-only)
        logger.debug(f"Unmatched negative line {identifier} {name!r} treated as return")
        return Transaction(TransactionKind.RETURN, identifier, name, amount,
                           self.is_taxable(raw_identifier))

    def discount_for(self, purchase_identifier: str, amount: Decimal, index: ItemIdentityIndex,
                     name: Optional[str] = None) -> Transaction:
        """Build a discount against a known purchase (canonical name unless one is given)"""
        if name is None:
            name = index.name_by_identifier.get(purchase_identifier, '')
        return Transaction(TransactionKind.DISCOUNT, purchase_identifier, name, amount,
                           self.is_taxable(index.tax_code_by_identifier.get(purchase_identifier)))
