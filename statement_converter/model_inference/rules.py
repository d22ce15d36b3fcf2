"""
Transaction Extraction Rule Contract.

The rule contract is the single definition of what a correct extraction
looks like, independent of the engine that performs it. The AI engine
receives it as instructions plus a JSON schema; the rule-based engine
implements the same rules in code.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


RULE_CONTRACT_VERSION = "1.2"


# Rule 5: running-balance carry-forward lines are not transactions
CARRY_FORWARD_PATTERN = re.compile(
    r"balance\s+(?:brought|carried)\s+forward"
    r"|\b(?:opening|closing|previous|start(?:ing)?|end(?:ing)?)\s+balance\b"
    r"|\bbalance\s+b/?f\b|\bb/f\b|\bc/f\b",
    re.IGNORECASE
)


CONTRACT_RULES: Tuple[str, ...] = (
    "Ignore everything outside the transaction table: bank and branch details, "
    "account holder and account metadata, page headers and footers, summaries and totals.",
    "A transaction row has a date, a description and at least one monetary value.",
    "Every transaction object MUST include 'date', 'description' and 'balance'. "
    "Never omit 'balance': use null when the row shows no balance.",
    "'debit' (money out) and 'credit' (money in) are independently optional. "
    "Omit the key entirely when it does not apply to the row. Never default it to 0.",
    "Exclude running-balance carry-forward lines such as 'Balance brought forward' "
    "or 'Balance carried forward'; they are not transactions.",
    "Do not merge separate physical rows. One row in the table is one transaction object.",
)


FORMAT_RULES: Tuple[str, ...] = (
    "Write 'date' as YYYY-MM-DD. When the row omits the year, take it from the statement period.",
    "Write monetary values as plain non-negative numbers without currency symbols "
    "or thousands separators (e.g. 39975.50).",
    "Keep transactions in the order they appear in the document, top to bottom.",
)


TRANSACTION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "transactions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "date": {"type": "STRING", "description": "Transaction date, YYYY-MM-DD"},
                    "description": {"type": "STRING", "description": "Transaction narrative"},
                    "debit": {"type": "NUMBER", "description": "Money out; omit when not applicable"},
                    "credit": {"type": "NUMBER", "description": "Money in; omit when not applicable"},
                    "balance": {
                        "type": "NUMBER",
                        "nullable": True,
                        "description": "Balance after the transaction; null when not shown"
                    },
                },
                "required": ["date", "description", "balance"],
            },
        },
    },
    "required": ["transactions"],
}


@dataclass(frozen=True)
class RuleContract:
    """
    Versioned extraction rules plus the expected JSON shape.

    Attributes:
        version: Contract version, logged with every extraction
        rules: Domain rules every engine must honor
        format_rules: Output formatting rules for generative engines
        schema: JSON-shape contract of the response
    """
    version: str = RULE_CONTRACT_VERSION
    rules: Tuple[str, ...] = CONTRACT_RULES
    format_rules: Tuple[str, ...] = FORMAT_RULES
    schema: Dict[str, Any] = field(default_factory=lambda: TRANSACTION_SCHEMA)

    def instructions(self) -> str:
        """Numbered rule list, used as the model's system instruction."""
        lines = [
            "You extract bank statement transactions into strict JSON.",
            f"Rule contract version {self.version}. Follow every rule:",
        ]
        numbered = list(self.rules) + list(self.format_rules)
        lines.extend(f"{i}. {rule}" for i, rule in enumerate(numbered, 1))
        return "\n".join(lines)

    def render_prompt(self, raw_text: str) -> str:
        """User prompt for a document's raw text; the rules travel as the system instruction."""
        return (
            "Return ONLY a JSON object of the form "
            '{"transactions": [{"date": ..., "description": ..., "debit": ..., '
            '"credit": ..., "balance": ...}]}. '
            'Return {"transactions": []} when the document has no transaction rows.\n\n'
            "RAW TEXT:\n"
            f"{raw_text}"
        )

    @staticmethod
    def is_carry_forward(description: str) -> bool:
        return bool(CARRY_FORWARD_PATTERN.search(description or ""))


DEFAULT_CONTRACT = RuleContract()
