"""
Lot codes — isolated, testable, reusable.

Base code grammar:

    <unit_code><DDMONYY><seq_letters>

    4T1 + 05MAR26 + A   →  4T105MAR26A   (first lot of 4T1 on 2026-03-05)
    D1  + 05MAR26 + AB  →  D105MAR26AB   (28th lot of D1 that day)

"After" snapshot written on every ledger row:

    <base>-<used>            4T105MAR26A-3000
    <base>-<used>+(<added>)  D105MAR26A-1200+(800)

Snapshots are informational. Balances are never derived from them.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from fuelman.exceptions import FuelError

MONTHS = ('JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN',
          'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC')

_CODE_RE = re.compile(
    r'^(?P<unit>[A-Z0-9]+)'
    r'(?P<day>\d{2})(?P<month>' + '|'.join(MONTHS) + r')(?P<year>\d{2})'
    r'(?P<letters>[A-Z]+)$'
)
_UNIT_CODE_RE = re.compile(r'^[A-Z0-9]+$')


@dataclass(frozen=True)
class LotCodeParts:
    """Decoded base lot code."""

    unit_code: str
    load_date: date
    seq_index: int

    @property
    def seq_letters(self) -> str:
        return seq_to_letters(self.seq_index)


def seq_to_letters(index: int) -> str:
    """
    Bijective base-26 label: 1 → A, 26 → Z, 27 → AA, 702 → ZZ, 703 → AAA.
    """
    if index < 1:
        raise FuelError('VALIDATION', field='seq_index', value=index)
    letters = ''
    n = index
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord('A') + rem) + letters
    return letters


def letters_to_seq(letters: str) -> int:
    """Inverse of seq_to_letters."""
    if not letters or not letters.isascii() or not letters.isalpha() or not letters.isupper():
        raise FuelError('VALIDATION', field='seq_letters', value=letters)
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord('A') + 1)
    return index


def compact_date(value: date) -> str:
    """
    DDMONYY with English month abbreviations, independent of locale.

    Raises:
        FuelError('VALIDATION'): If the year is outside 2000-2099, which
            a two-digit year cannot decode back to
    """
    if not 2000 <= value.year <= 2099:
        raise FuelError('VALIDATION', field='load_date', value=str(value))
    return f"{value.day:02d}{MONTHS[value.month - 1]}{value.year % 100:02d}"


def base_code(unit_code: str, load_date: date, seq_index: int) -> str:
    """Build the immutable code of a lot."""
    if not _UNIT_CODE_RE.match(unit_code or ''):
        raise FuelError('VALIDATION', field='unit_code', value=unit_code)
    return f"{unit_code}{compact_date(load_date)}{seq_to_letters(seq_index)}"


def decode(code: str) -> LotCodeParts:
    """
    Recover unit code, load date and sequence index from a base code.

    Raises:
        FuelError('VALIDATION'): If the code does not follow the grammar
    """
    match = _CODE_RE.match(code or '')
    if match is None:
        raise FuelError('VALIDATION', field='lot_code', value=code)

    # Two-digit years are always 20YY
    try:
        load_date = date(
            2000 + int(match['year']),
            MONTHS.index(match['month']) + 1,
            int(match['day']),
        )
    except ValueError as exc:
        raise FuelError('VALIDATION', field='lot_code', value=code) from exc

    return LotCodeParts(
        unit_code=match['unit'],
        load_date=load_date,
        seq_index=letters_to_seq(match['letters']),
    )


def format_liters(value: Decimal) -> str:
    """3000.000 → '3000', 12.500 → '12.5'."""
    value = Decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), 'f')


def after_code(base: str, used: Decimal, added: Decimal = Decimal('0')) -> str:
    """Snapshot of a lot's counters at the time a ledger row is written."""
    code = f"{base}-{format_liters(used)}"
    if added > 0:
        code += f"+({format_liters(added)})"
    return code
