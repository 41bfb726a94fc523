#!/usr/bin/env python3
"""
Receipt Patterns - Compiled regular expressions for Costco receipt lines

Marker strings, tax codes and card masking come from the rules dictionary
(see rules/costco.yaml); the regex shapes themselves live here.
"""

import re
from typing import Dict, Any, Optional, List

from .rule_loader import default_rules

# Currency-shaped substring, sign ignored: 1-3 digits, optional thousands groups, 2 decimals
DOLLAR_SHAPE = r'\d{1,3}(?:,\d{3})*\.\d{2}'

# Signed currency token as printed on a transaction line: "6.49", "$1,234,567.89", "7.99-"
DOLLAR_TOKEN = r'-?(?:\$ ?)?(?:[1-9]\d{0,2}(?:,\d{3})*,)?\d{1,3}\.\d{2}-?'

# Month/day with optional four digit year
DATE = r'\d{1,2}/\d{1,2}(?:/\d{4})?'


class ReceiptPatterns:
    """Compiled patterns and markers shared by the classifier and parsers"""
    
    def __init__(self, rules: Optional[Dict[str, Any]] = None):
        """
        Build patterns from a rules dictionary
        
        Args:
            rules: Parser rules from RuleLoader.get_parser_rules() (defaults when None)
        """
        rules = rules or default_rules()
        markers = rules.get('markers', {})
        card = rules.get('card', {})
        
        self.header_line_count: int = int(rules.get('header', {}).get('line_count', 3))
        self.member_marker: str = markers.get('member', 'Member')
        self.subtotal_marker: str = markers.get('subtotal', 'SUBTOTAL')
        self.tax_marker: str = markers.get('tax', 'TAX')
        self.total_marker: str = markers.get('total', '****TOTAL')
        self.items_sold_marker: str = markers.get('items_sold', 'TOTAL NUMBER OF ITEMS SOLD =')
        self.tax_exempt_codes: List[str] = [code.upper() for code in rules.get('tax_exempt_codes', [])]
        self.spacing_fixes: List[str] = list(rules.get('spacing_fixes') or [])
        
        mask_characters = card.get('mask_characters', 'X*')
        min_mask_length = int(card.get('min_mask_length', 8))
        
        self.dollar_shape = re.compile(DOLLAR_SHAPE)
        self.dollar_token = re.compile(rf'({DOLLAR_TOKEN})')
        self.date = re.compile(rf'({DATE})')
        self.card = re.compile(rf'[{re.escape(mask_characters)}]{{{min_mask_length},}}(\d{{4}})[A-Za-z]*')
        self.member_digits = re.compile(r'\d')
        
        # 1204135 ORG FIRM TO 6.49  /  E 1204135 BANANAS 1.99
        self.transaction = re.compile(
            r'(?:(?<![A-Za-z0-9])(?P<code>[A-Z])\s+)?'
            r'(?P<identifier>\d+)'
            r'(?P<name>.+?)'
            rf'(?P<amount>{DOLLAR_TOKEN})'
        )
        
        # 294721 /12041352.00-  or  294721 /1204135 2.00-  (own identifier, slash, purchase identifier, amount)
        self.slash_merged = re.compile(
            r'^\s*(?:(?P<code>[A-Z])\s+)?(?P<identifier>\d+)\s*/\s*(?P<merged>\d.*)$'
        )
        self.amount_only = re.compile(DOLLAR_TOKEN)
        
        # 900091KS  /  E 900091KS
        self.multiline_identifier = re.compile(r'^\s*(?P<raw>(?:[A-Z]\s+)?\d[0-9A-Z]*)(?P<rest>.*)$')
    
    def has_dollar_amount(self, line: str) -> bool:
        return bool(self.dollar_shape.search(line))
    
    def find_after(self, line: str, marker: str) -> Optional[str]:
        """Return the text after marker, or None when the marker is absent"""
        index = line.find(marker)
        if index > -1:
            return line[index + len(marker):]
        return None
