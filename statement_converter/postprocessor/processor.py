"""
Record Sanitizer Module.

This module provides the RecordSanitizer class that filters an extracted
transaction batch down to the records a person can actually read: a row
needs a date and a description. Rows that only lack a balance or a
debit/credit value are kept.

A dropped record never fails the conversion; the rest of the batch
proceeds normally.

Author: ML Engineering Team
"""

from typing import List, Sequence, Tuple

from statement_converter.utils.logger import get_logger
from statement_converter.model_inference.extraction_result import TransactionRecord

# Initialize module logger
logger = get_logger(__name__)


class RecordSanitizer:
    """
    Mandatory-field filter for transaction batches.

    Pure and stateless: survivors are returned as the same objects, in the
    same order, and ``sanitize(sanitize(batch)) == sanitize(batch)``.

    Example:
        >>> sanitizer = RecordSanitizer()
        >>> kept = sanitizer.sanitize(outcome.transactions)
        >>> kept, dropped = sanitizer.partition(outcome.transactions)
    """

    MANDATORY_FIELDS = ('date', 'description')

    @classmethod
    def is_valid(cls, record: TransactionRecord) -> bool:
        """Check that every mandatory field is non-empty after trimming."""
        for field_name in cls.MANDATORY_FIELDS:
            value = getattr(record, field_name, None)
            if value is None or not str(value).strip():
                return False
        return True

    def partition(
        self,
        batch: Sequence[TransactionRecord]
    ) -> Tuple[List[TransactionRecord], List[TransactionRecord]]:
        """
        Split a batch into kept and dropped records.

        Args:
            batch: Candidate records in document order.

        Returns:
            Tuple of (kept, dropped), each in document order.
        """
        kept = []
        dropped = []

        for index, record in enumerate(batch):
            if self.is_valid(record):
                kept.append(record)
            else:
                dropped.append(record)
                logger.debug(f"Dropping record {index}: missing date or description ({record!r})")

        if dropped:
            logger.info(f"Sanitizer dropped {len(dropped)} of {len(batch)} record(s)")

        return kept, dropped

    def sanitize(self, batch: Sequence[TransactionRecord]) -> List[TransactionRecord]:
        """
        Keep only records with a non-empty date and description.

        Args:
            batch: Candidate records in document order.

        Returns:
            Filtered records in their original relative order.
        """
        return self.partition(batch)[0]
