"""
Tests for lot code encoding and decoding.
"""

from datetime import date
from decimal import Decimal

import pytest

from fuelman import FuelError
from fuelman import lotcodes


class TestSequenceLetters:
    """Tests for the bijective base-26 sequence labels."""

    @pytest.mark.parametrize('index,letters', [
        (1, 'A'),
        (2, 'B'),
        (26, 'Z'),
        (27, 'AA'),
        (28, 'AB'),
        (52, 'AZ'),
        (53, 'BA'),
        (702, 'ZZ'),
        (703, 'AAA'),
    ])
    def test_seq_to_letters(self, index, letters):
        """Index maps to its spreadsheet-style label."""
        assert lotcodes.seq_to_letters(index) == letters
        assert lotcodes.letters_to_seq(letters) == index

    def test_zero_index_rejected(self):
        """Sequence starts at 1."""
        with pytest.raises(FuelError) as exc:
            lotcodes.seq_to_letters(0)

        assert exc.value.code == 'VALIDATION'

    @pytest.mark.parametrize('letters', ['', 'a', 'A1', 'Á'])
    def test_bad_letters_rejected(self, letters):
        """Only uppercase ASCII letters decode."""
        with pytest.raises(FuelError) as exc:
            lotcodes.letters_to_seq(letters)

        assert exc.value.code == 'VALIDATION'


class TestBaseCode:
    """Tests for base code construction."""

    def test_first_lot_of_day(self):
        """Unit code + DDMONYY + A."""
        assert lotcodes.base_code('4T1', date(2026, 3, 5), 1) == '4T105MAR26A'

    def test_twenty_eighth_lot_of_day(self):
        """Sequence 28 gets two letters."""
        assert lotcodes.base_code('D1', date(2026, 3, 5), 28) == 'D105MAR26AB'

    def test_month_abbreviation_is_english(self):
        """Months are fixed English abbreviations."""
        assert lotcodes.compact_date(date(2025, 12, 31)) == '31DEC25'
        assert lotcodes.compact_date(date(2026, 2, 1)) == '01FEB26'

    @pytest.mark.parametrize('load_date', [date(1999, 12, 31), date(2100, 1, 1)])
    def test_year_outside_two_digit_range_rejected(self, load_date):
        """A DDMONYY code only decodes back to years 2000-2099."""
        with pytest.raises(FuelError) as exc:
            lotcodes.base_code('4T1', load_date, 1)

        assert exc.value.code == 'VALIDATION'

    def test_range_edges_round_trip(self):
        for load_date in (date(2000, 1, 1), date(2099, 12, 31)):
            code = lotcodes.base_code('4T1', load_date, 1)
            assert lotcodes.decode(code).load_date == load_date

    def test_lowercase_unit_code_rejected(self):
        """Unit codes must be uppercase alphanumerics."""
        with pytest.raises(FuelError) as exc:
            lotcodes.base_code('t1', date(2026, 3, 5), 1)

        assert exc.value.code == 'VALIDATION'


class TestDecode:
    """Tests for lotcodes.decode()."""

    def test_decode_recovers_parts(self):
        """Unit code, date and sequence come back out of a code."""
        parts = lotcodes.decode('4T105MAR26AB')

        assert parts.unit_code == '4T1'
        assert parts.load_date == date(2026, 3, 5)
        assert parts.seq_index == 28
        assert parts.seq_letters == 'AB'

    def test_unit_code_ending_in_digits(self):
        """Digits at the end of the unit code stay with the unit."""
        code = lotcodes.base_code('T12', date(2026, 11, 30), 3)
        parts = lotcodes.decode(code)

        assert code == 'T1230NOV26C'
        assert parts.unit_code == 'T12'
        assert parts.load_date == date(2026, 11, 30)
        assert parts.seq_index == 3

    @pytest.mark.parametrize('code', [
        '',
        'GARBAGE',
        '4T132MAR26A',   # day 32
        '4T105XYZ26A',   # bad month
        '4T105MAR26',    # no letters
        '4T105MAR26A-300',
    ])
    def test_invalid_codes(self, code):
        """Codes outside the grammar raise VALIDATION."""
        with pytest.raises(FuelError) as exc:
            lotcodes.decode(code)

        assert exc.value.code == 'VALIDATION'


class TestAfterCode:
    """Tests for the after-operation snapshot string."""

    def test_used_only(self):
        assert lotcodes.after_code('4T105MAR26A', Decimal('3000')) == '4T105MAR26A-3000'

    def test_used_and_added(self):
        code = lotcodes.after_code('D105MAR26A', Decimal('1200'), Decimal('800'))

        assert code == 'D105MAR26A-1200+(800)'

    def test_fractional_liters(self):
        """Trailing zeros are dropped, fractions kept."""
        assert lotcodes.after_code('D105MAR26A', Decimal('12.500')) == 'D105MAR26A-12.5'

    def test_nothing_used(self):
        assert lotcodes.after_code('D105MAR26A', Decimal('0.000')) == 'D105MAR26A-0'
