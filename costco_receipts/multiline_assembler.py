#!/usr/bin/env python3
"""
Multiline Assembler - Rebuild items whose name wrapped over several lines

Example:
    900091KS        <- start: identifier (letters stripped) + name fragment
    CABERNET        <- continuation: appended to the name
    7.99- A         <- terminator: carries the amount, closes the item
"""

import re
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from .amount_parser import AmountParseError, parse_amount
from .patterns import ReceiptPatterns

logger = logging.getLogger(__name__)

_UPPERCASE = re.compile(r'[A-Z]')
_DIGITS = re.compile(r'[0-9]')
_WHITESPACE = re.compile(r'\s+')


def strip_identifier(raw_identifier: str) -> str:
    """Canonical identifier: raw identifier without type/tax letters or whitespace"""
    return _WHITESPACE.sub('', _UPPERCASE.sub('', raw_identifier or ''))


@dataclass
class MultilineBuffer:
    """Pending item while a multiline span is open"""
    pending_identifier: str
    pending_raw_identifier: str
    pending_name: str


class MultilineAssembler:
    """Accumulate a multiline item until a line with an amount closes it"""

    def __init__(self, patterns: Optional[ReceiptPatterns] = None):
        self.patterns = patterns or ReceiptPatterns()
        self.buffer: Optional[MultilineBuffer] = None

    @property
    def is_active(self) -> bool:
        return self.buffer is not None

    def start(self, line: str) -> None:
        """Open the buffer from the first line of a multiline item"""
        match = self.patterns.multiline_identifier.match(line)
        if match:
            raw_identifier = match.group('raw').strip()
            name_part = _DIGITS.sub('', match.group('rest'))
        else:
            raw_identifier = _UPPERCASE.sub('', line).strip()
            name_part = _DIGITS.sub('', line)

        self.buffer = MultilineBuffer(
            pending_identifier=strip_identifier(raw_identifier),
            pending_raw_identifier=raw_identifier,
            pending_name=f"{name_part.strip()} ",
        )
        logger.debug(f"Multiline item started: {self.buffer.pending_identifier!r}")

    def append(self, line: str) -> None:
        """Add a continuation line to the pending name"""
        if self.buffer is None:
            raise RuntimeError("No multiline item is being assembled")
        self.buffer.pending_name += f"{line.strip()} "

    def finish(self, line: str) -> Tuple[Decimal, str, str]:
        """
        Close the buffer with the line that carries the amount

        Args:
            line: Terminator line, e.g. "7.99- A"

        Returns:
            Tuple of (amount, pending_name, raw_identifier)

        Raises:
            AmountParseError: If no currency token can be parsed; the buffer is discarded
        """
        if self.buffer is None:
            raise RuntimeError("No multiline item is being assembled")

        buffer = self.buffer
        self.buffer = None

        match = self.patterns.dollar_token.search(line)
        if not match:
            raise AmountParseError(f"No amount on multiline terminator: {line!r}")
        amount = parse_amount(match.group(1))
        return amount, buffer.pending_name, buffer.pending_raw_identifier

    def discard(self) -> Optional[MultilineBuffer]:
        """Drop the open buffer (if any) and return it"""
        buffer, self.buffer = self.buffer, None
        return buffer
