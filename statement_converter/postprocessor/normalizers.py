"""
Data Normalizers Module.

This module provides normalization for the two value types a statement
row carries besides free text:
    - Dates (to YYYY-MM-DD)
    - Money amounts (to Decimal)

Author: ML Engineering Team
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from dateutil import parser as date_parser

from config import get_config
from statement_converter.utils.logger import get_logger

logger = get_logger(__name__)


class DateNormalizer:
    """
    Normalizes date strings to a standard format.

    Statement rows often print the day and month only ("3 Feb"); the year
    then comes from ``default_year``.

    Attributes:
        output_format: Target date format string
        dayfirst: Whether ambiguous numeric dates are read day-first
        input_formats: Explicit formats tried before dateutil

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("03/02/2024")
        '2024-02-03'
        >>> normalizer.normalize("3 Feb", default_year=2024)
        '2024-02-03'
    """

    INPUT_FORMATS = [
        "%Y-%m-%d",
        "%d/%m/%Y",
        "%d/%m/%y",
        "%d-%m-%Y",
        "%d.%m.%Y",
        "%d %b %Y",
        "%d %B %Y",
        "%d %b %y",
        "%b %d, %Y",
        "%B %d, %Y",
    ]

    def __init__(self, dayfirst: Optional[bool] = None) -> None:
        self.output_format = get_config("postprocessing.date.output_format", "%Y-%m-%d")
        if dayfirst is None:
            dayfirst = get_config("postprocessing.date.dayfirst", True)
        self.dayfirst = bool(dayfirst)

        # Explicit day-first formats would misread US dates
        self.input_formats = self.INPUT_FORMATS if self.dayfirst else [
            fmt.replace("%d/%m", "%m/%d").replace("%d-%m", "%m-%d").replace("%d.%m", "%m.%d")
            for fmt in self.INPUT_FORMATS
        ]

        logger.debug(f"DateNormalizer initialized (output: {self.output_format}, dayfirst={self.dayfirst})")

    def normalize(self, date_str: Optional[str], default_year: Optional[int] = None) -> Optional[str]:
        """
        Normalize a date string to the configured output format.

        Args:
            date_str: Input date string in any recognized format.
            default_year: Year used when the string carries none.
                         Defaults to the current year.

        Returns:
            Normalized date string, or None if parsing fails.
        """
        if not date_str:
            return None

        date_str = self._clean_date_string(date_str)

        parsed_date = self._try_explicit_formats(date_str)

        if parsed_date is None:
            parsed_date = self._try_dateutil_parser(date_str, default_year)

        if parsed_date is None:
            logger.debug(f"Could not parse date: {date_str}")
            return None

        return parsed_date.strftime(self.output_format)

    def _clean_date_string(self, date_str: str) -> str:
        date_str = ' '.join(date_str.split())

        # Remove ordinal suffixes (1st, 2nd, 3rd, 4th, etc.)
        date_str = re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE)

        return date_str.strip()

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        for fmt in self.input_formats:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str, default_year: Optional[int]) -> Optional[datetime]:
        year = default_year or datetime.now().year
        try:
            return date_parser.parse(
                date_str,
                default=datetime(year, 1, 1),
                dayfirst=self.dayfirst
            )
        except (ValueError, OverflowError):
            return None


class AmountNormalizer:
    """
    Normalizes money values to ``Decimal``.

    Handles currency symbols, thousand separators, comma decimals,
    trailing CR/DR markers and accounting-style parentheses.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.to_decimal("£39,975.50")
        Decimal('39975.50')
        >>> normalizer.to_decimal("1.234,56")
        Decimal('1234.56')
        >>> normalizer.format(Decimal("24.5"))
        '24.50'
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '₦', 'R$']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD', 'NGN', 'ZAR']

    def __init__(self) -> None:
        self.decimal_places = int(get_config("postprocessing.amount.decimal_places", 2))
        self._quantum = Decimal(1).scaleb(-self.decimal_places)

        logger.debug("AmountNormalizer initialized")

    def to_decimal(self, value: Any) -> Optional[Decimal]:
        """
        Convert a number or amount string to Decimal.

        Args:
            value: int, float, Decimal or string such as "$1,234.56".

        Returns:
            Decimal value, or None if the value is empty, not a number,
            or not finite (NaN, Infinity).
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, Decimal):
            return self._finite(value)

        if isinstance(value, (int, float)):
            # str() avoids binary float artifacts (24.5 -> 24.5, not 24.4999...)
            return self._finite(Decimal(str(value)))

        amount_str = str(value).strip()
        if not amount_str:
            return None

        negative = amount_str.startswith('(') and amount_str.endswith(')')

        amount_str = self._clean_amount_string(amount_str)
        if not amount_str:
            return None

        amount_str = self._handle_european_format(amount_str)
        amount_str = amount_str.replace(',', '')

        try:
            amount = Decimal(amount_str)
        except InvalidOperation:
            logger.debug(f"Could not parse amount: {value!r}")
            return None

        return self._finite(-amount if negative else amount)

    @staticmethod
    def _finite(amount: Decimal) -> Optional[Decimal]:
        if not amount.is_finite():
            logger.debug(f"Rejected non-finite amount: {amount}")
            return None
        return amount

    def _clean_amount_string(self, amount_str: str) -> str:
        amount_str = ' '.join(amount_str.split())

        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        for code in self.CURRENCY_CODES + ['CR', 'DR']:
            amount_str = re.sub(rf'\b{code}\b', '', amount_str, flags=re.IGNORECASE)

        # Keep only digits, comma, dot, and minus
        return re.sub(r'[^\d,.\-]', '', amount_str)

    def _handle_european_format(self, amount_str: str) -> str:
        """Convert comma-decimal amounts ("1.234,56") to dot-decimal."""
        if amount_str.count(',') == 1:
            comma_pos = amount_str.rfind(',')
            dot_pos = amount_str.rfind('.')

            if comma_pos > dot_pos:
                after_comma = amount_str[comma_pos + 1:]
                if len(after_comma) <= 2 and after_comma.isdigit():
                    amount_str = amount_str.replace('.', '').replace(',', '.')

        return amount_str

    def format(self, amount: Optional[Decimal]) -> str:
        """
        Format an amount as a plain decimal string.

        Returns:
            e.g. "39975.50"; empty string for None.
        """
        if amount is None:
            return ""
        return str(amount.quantize(self._quantum, rounding=ROUND_HALF_UP))
