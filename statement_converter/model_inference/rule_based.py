"""
Rule-Based Transaction Engine.

Deterministic, line-oriented parser that honors the same rule contract as
the AI engine. It handles the common single-line statement layout

    <date> <description> [<debit>|<credit>] [<balance>]

and works offline, so conversions can run without an API key.

Direction of a single movement is decided from the running balance where
possible (previous balance minus the amount equals the new balance means
money out), then from CR/DR markers, then from description keywords.

Author: ML Engineering Team
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.postprocessor.normalizers import AmountNormalizer, DateNormalizer
from .port import ExtractionRequest, ExtractorPort

logger = get_logger(__name__)


_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"

DATE_TOKEN = (
    r"(?:"
    r"\d{4}-\d{1,2}-\d{1,2}"
    r"|\d{1,2}[/.\-]\d{1,2}(?:[/.\-]\d{2,4})?"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?[ \-]{_MONTH}(?:[ \-](?:19|20)\d{{2}}(?![\d.,])|-\d{{2}}(?![\d.,]))?"
    rf"|{_MONTH} \d{{1,2}}(?:st|nd|rd|th)?(?:,? \d{{4}})?"
    r")"
)

ROW_PATTERN = re.compile(rf"^\s*(?P<date>{DATE_TOKEN})\s+(?P<rest>.+?)\s*$", re.IGNORECASE)

AMOUNT_PATTERN = re.compile(
    r"(?P<number>\(?[-+]?[£$€]?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}\)?-?)(?P<marker>CR|DR)?",
    re.IGNORECASE
)

YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")

CREDIT_HINTS = (
    "salary", "deposit", "refund", "interest paid", "credit interest",
    "transfer from", "received", "reversal", "cashback", "dividend",
    "paid in", "giro credit", "bgc",
)

MAX_AMOUNT_COLUMNS = 3


class RuleBasedTransactionEngine(ExtractorPort):
    """
    Regex engine for single-line statement rows.

    Attributes:
        default_year: Year for dates printed without one (None = detect)
        date_normalizer: DateNormalizer used for row dates
        amount_normalizer: AmountNormalizer used for money columns

    Example:
        >>> engine = RuleBasedTransactionEngine(default_year=2024)
        >>> await engine.extract(ExtractionRequest(
        ...     raw_text="3 Feb Card payment - High St Petrol 24.50 39,975.50"
        ... ))
        {'transactions': [{'date': '2024-02-03', 'description': 'Card payment - High St Petrol', 'debit': Decimal('24.50'), 'balance': Decimal('39975.50')}]}
    """

    name = "rules"

    def __init__(self, default_year: Optional[int] = None, dayfirst: Optional[bool] = None) -> None:
        self.default_year = default_year or get_config("extraction.rules.default_year")
        if dayfirst is None:
            dayfirst = get_config("extraction.rules.dayfirst", True)

        self.date_normalizer = DateNormalizer(dayfirst=dayfirst)
        self.amount_normalizer = AmountNormalizer()

        logger.debug(f"RuleBasedTransactionEngine initialized (default_year={self.default_year})")

    async def extract(self, request: ExtractionRequest) -> Dict[str, Any]:
        return {"transactions": self.parse(request.raw_text, request.contract)}

    def parse(self, raw_text: str, contract) -> List[Dict[str, Any]]:
        """
        Parse statement text into contract-shaped transaction dicts.

        Args:
            raw_text: Statement text, one physical row per line.
            contract: RuleContract used for carry-forward detection.

        Returns:
            List of transaction dicts in document order.
        """
        year = self._resolve_year(raw_text)
        running_balance: Optional[Decimal] = None
        transactions = []

        for line_no, line in enumerate(raw_text.splitlines(), 1):
            row = self._split_row(line)
            if row is None:
                continue

            date_token, description, amounts = row

            if contract.is_carry_forward(description):
                running_balance = amounts[-1][0]
                logger.debug(f"Line {line_no}: carry-forward balance {running_balance}, excluded")
                continue

            date = self.date_normalizer.normalize(date_token, default_year=year)
            if date is None:
                logger.debug(f"Line {line_no}: unparseable date '{date_token}', skipped")
                continue

            record = self._classify(description, amounts, running_balance)
            record = {'date': date, 'description': description, **record}

            if record['balance'] is not None:
                running_balance = record['balance']
            elif running_balance is not None:
                running_balance = running_balance - record.get('debit', 0) + record.get('credit', 0)

            transactions.append(record)

        logger.info(f"Rule-based parser found {len(transactions)} transaction row(s)")
        return transactions

    def _resolve_year(self, raw_text: str) -> int:
        if self.default_year:
            return int(self.default_year)

        match = YEAR_PATTERN.search(raw_text)
        if match:
            return int(match.group(0))

        return datetime.now().year

    def _split_row(self, line: str) -> Optional[Tuple[str, str, List[Tuple[Decimal, Optional[str]]]]]:
        """
        Split a line into date, description and trailing amount columns.

        Returns None for lines that are not transaction rows: no leading
        date, no description, or no monetary value.
        """
        match = ROW_PATTERN.match(line)
        if match is None:
            return None

        tokens = match.group('rest').split()
        amounts: List[Tuple[Decimal, Optional[str]]] = []

        while tokens and len(amounts) < MAX_AMOUNT_COLUMNS:
            marker = None
            token = tokens[-1]
            consumed = 1

            if token.upper() in ('CR', 'DR') and len(tokens) >= 2:
                marker = token.upper()
                token = tokens[-2]
                consumed = 2

            amount_match = AMOUNT_PATTERN.fullmatch(token)
            if amount_match is None:
                break

            marker = marker or (amount_match.group('marker') or '').upper() or None
            number = amount_match.group('number')
            value = self.amount_normalizer.to_decimal(number.rstrip('-'))
            if value is None:
                break
            if number.endswith('-'):
                value = -value

            amounts.insert(0, (value, marker))
            del tokens[-consumed:]

        description = " ".join(tokens).strip(" -|")
        if not amounts or not description:
            return None

        return match.group('date'), description, amounts

    def _classify(
        self,
        description: str,
        amounts: List[Tuple[Decimal, Optional[str]]],
        running_balance: Optional[Decimal]
    ) -> Dict[str, Any]:
        """Map the amount columns of a row onto debit/credit/balance."""
        values = [value for value, _ in amounts]

        if len(values) == 3:
            debit, credit, balance = values
            record: Dict[str, Any] = {}
            if debit:
                record['debit'] = abs(debit)
            if credit:
                record['credit'] = abs(credit)
            record['balance'] = balance
            return record

        if len(values) == 2:
            (movement, marker), balance = amounts[0], values[1]
        else:
            (movement, marker), balance = amounts[0], None

        direction = self._direction(description, abs(movement), marker, running_balance, balance)
        return {direction: abs(movement), 'balance': balance}

    def _direction(
        self,
        description: str,
        movement: Decimal,
        marker: Optional[str],
        running_balance: Optional[Decimal],
        balance: Optional[Decimal]
    ) -> str:
        if running_balance is not None and balance is not None:
            if running_balance - movement == balance:
                return 'debit'
            if running_balance + movement == balance:
                return 'credit'

        if marker == 'CR':
            return 'credit'
        if marker == 'DR':
            return 'debit'

        lowered = description.lower()
        if any(hint in lowered for hint in CREDIT_HINTS):
            return 'credit'

        return 'debit'
