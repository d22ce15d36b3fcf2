"""
Tabular Formatter Module.

Converts a sanitized transaction batch into a TableMatrix: a header row
followed by one row of string cells per record. Preview renderers and
spreadsheet exporters consume the matrix without knowing about records.

Author: ML Engineering Team
"""

from typing import List, Optional, Sequence

from statement_converter.utils.logger import get_logger
from statement_converter.model_inference.extraction_result import TransactionRecord
from statement_converter.postprocessor.normalizers import AmountNormalizer

logger = get_logger(__name__)


TableMatrix = List[List[str]]


class TabularFormatter:
    """
    Record batch to header + rows matrix.

    Column order is fixed: Date, Description, Debit, Credit, Balance.
    Money is written as a plain decimal string ("39975.50"); a missing
    amount, including a null balance, becomes an empty cell.

    Example:
        >>> formatter = TabularFormatter()
        >>> matrix = formatter.format(records)
        >>> matrix[0]
        ['Date', 'Description', 'Debit', 'Credit', 'Balance']
    """

    HEADER = ['Date', 'Description', 'Debit', 'Credit', 'Balance']

    def __init__(self, amount_normalizer: Optional[AmountNormalizer] = None) -> None:
        self.amount_normalizer = amount_normalizer or AmountNormalizer()

    def format(self, batch: Sequence[TransactionRecord]) -> TableMatrix:
        """
        Build the TableMatrix for a sanitized batch.

        Args:
            batch: Sanitized records in document order.

        Returns:
            ``len(batch) + 1`` rows of equal width; row 0 is the header.
        """
        rows = [list(self.HEADER)]
        rows.extend(self.format_record(record) for record in batch)

        matrix = self.pad_rows(rows)
        logger.debug(f"Formatted {len(batch)} record(s) into a {len(matrix)}x{len(matrix[0])} table")
        return matrix

    def format_record(self, record: TransactionRecord) -> List[str]:
        money = self.amount_normalizer.format
        return [
            record.date or "",
            record.description or "",
            money(record.debit),
            money(record.credit),
            money(record.balance),
        ]

    @staticmethod
    def pad_rows(rows: Sequence[Sequence[Optional[str]]]) -> TableMatrix:
        """Pad every row with empty strings to the widest row; None cells become ""."""
        width = max((len(row) for row in rows), default=0)
        return [
            ["" if cell is None else str(cell) for cell in row] + [""] * (width - len(row))
            for row in rows
        ]
