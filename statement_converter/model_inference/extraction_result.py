"""
Extraction Result Data Classes.

Defines the transaction record produced by the structured extraction step
and the outcome object the extractor returns to the pipeline.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from statement_converter.utils.exceptions import ContractViolation


TRANSACTION_FIELDS = ('date', 'description', 'debit', 'credit', 'balance')


@dataclass
class TransactionRecord:
    """
    One statement row.

    ``balance`` has no default: a record always states its balance, as a
    number or as an explicit None, whereas ``debit`` and ``credit`` are
    simply absent when the row has no such movement.

    Attributes:
        date: Transaction date, normalized to YYYY-MM-DD
        description: Transaction narrative as printed
        balance: Running balance after the row, or None
        debit: Money out (non-negative), or None
        credit: Money in (non-negative), or None

    Example:
        >>> record = TransactionRecord(
        ...     date="2024-02-03",
        ...     description="Card payment - High St Petrol",
        ...     balance=Decimal("39975.50"),
        ...     debit=Decimal("24.50")
        ... )
        >>> record.to_dict()
        {'date': '2024-02-03', 'description': 'Card payment - High St Petrol', 'debit': Decimal('24.50'), 'balance': Decimal('39975.50')}
    """
    date: str
    description: str
    balance: Optional[Decimal]
    debit: Optional[Decimal] = None
    credit: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the contract's record shape.

        ``debit``/``credit`` keys are omitted when not applicable;
        ``balance`` is always present.
        """
        result: Dict[str, Any] = {
            'date': self.date,
            'description': self.description,
        }
        if self.debit is not None:
            result['debit'] = self.debit
        if self.credit is not None:
            result['credit'] = self.credit
        result['balance'] = self.balance
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], amount_normalizer) -> 'TransactionRecord':
        """
        Build a record from an engine candidate.

        Args:
            data: Candidate mapping as returned by the extraction engine.
            amount_normalizer: Object exposing ``to_decimal(value)``.

        Returns:
            TransactionRecord with Decimal amounts.

        Raises:
            ContractViolation: If the candidate is not a mapping, omits the
                              ``balance`` key, or carries a non-numeric amount.
        """
        if not isinstance(data, Mapping):
            raise ContractViolation('record', f"expected an object, got {type(data).__name__}")

        if 'balance' not in data:
            raise ContractViolation('balance', "key omitted; null is required when the row has no balance")

        amounts = {}
        for name in ('debit', 'credit', 'balance'):
            raw = data.get(name)
            if raw is None:
                amounts[name] = None
                continue

            value = amount_normalizer.to_decimal(raw)
            if value is None:
                raise ContractViolation(name, f"not a number: {raw!r}")

            # Movements are unsigned; the column says which direction
            amounts[name] = value if name == 'balance' else abs(value)

        return cls(
            date=str(data.get('date') or ''),
            description=str(data.get('description') or ''),
            balance=amounts['balance'],
            debit=amounts['debit'],
            credit=amounts['credit']
        )


@dataclass
class ExtractionOutcome:
    """
    Result of one structured extraction call.

    Attributes:
        transactions: Candidate batch in document order (not yet sanitized)
        engine: Name of the engine that produced the batch
        contract_version: Rule contract version the engine was given
        malformed: True when the response lacked a usable transactions list
        contract_violations: Candidates excluded for breaking the contract
        processing_time: Seconds spent in the engine
    """
    transactions: List[TransactionRecord] = field(default_factory=list)
    engine: str = ""
    contract_version: str = ""
    malformed: bool = False
    contract_violations: int = 0
    processing_time: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.transactions

    def __repr__(self) -> str:
        return (
            f"ExtractionOutcome(engine={self.engine}, "
            f"transactions={len(self.transactions)}, "
            f"malformed={self.malformed}, "
            f"violations={self.contract_violations})"
        )
