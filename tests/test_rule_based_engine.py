"""Tests for the rule contract and the deterministic rule-based engine."""

from decimal import Decimal

import pytest

from statement_converter.model_inference.port import ExtractionRequest
from statement_converter.model_inference.rule_based import RuleBasedTransactionEngine
from statement_converter.model_inference.rules import (
    CONTRACT_RULES,
    DEFAULT_CONTRACT,
    RULE_CONTRACT_VERSION,
    RuleContract,
)


async def extract(text, **kwargs):
    engine = RuleBasedTransactionEngine(default_year=kwargs.pop("default_year", 2024), **kwargs)
    response = await engine.extract(ExtractionRequest(raw_text=text))
    return response["transactions"]


class TestRuleContract:
    """Test suite for RuleContract."""

    def test_six_domain_rules(self):
        assert len(CONTRACT_RULES) == 6
        assert DEFAULT_CONTRACT.version == RULE_CONTRACT_VERSION

    def test_instructions_number_every_rule(self):
        instructions = DEFAULT_CONTRACT.instructions()

        assert f"version {RULE_CONTRACT_VERSION}" in instructions
        assert "1. Ignore everything outside the transaction table" in instructions
        assert "Balance brought forward" in instructions

    def test_prompt_carries_raw_text(self):
        prompt = DEFAULT_CONTRACT.render_prompt("3 Feb Coffee 2.50 10.00")

        assert prompt.endswith("3 Feb Coffee 2.50 10.00")
        assert '{"transactions": []}' in prompt
        assert "Rule contract version" not in prompt

    def test_schema_requires_balance(self):
        item = DEFAULT_CONTRACT.schema["properties"]["transactions"]["items"]

        assert item["required"] == ["date", "description", "balance"]
        assert item["properties"]["balance"]["nullable"] is True

    @pytest.mark.parametrize("description", [
        "Balance brought forward",
        "BALANCE CARRIED FORWARD",
        "Opening balance",
        "Closing Balance",
        "Balance b/f",
    ])
    def test_carry_forward_lines(self, description):
        assert RuleContract.is_carry_forward(description)

    def test_ordinary_description_is_not_carry_forward(self):
        assert not RuleContract.is_carry_forward("Card payment - High St Petrol")


class TestRuleBasedTransactionEngine:
    """Test suite for RuleBasedTransactionEngine."""

    @pytest.mark.asyncio
    async def test_balance_brought_forward_excluded(self):
        """Carry-forward lines never become transactions."""
        transactions = await extract("1 Feb Balance brought forward 40,000.00")
        assert transactions == []

    @pytest.mark.asyncio
    async def test_normal_row(self):
        """A debit row yields date, description, debit and balance, no credit key."""
        transactions = await extract("3 Feb Card payment - High St Petrol 24.50 39,975.50")

        assert transactions == [{
            'date': '2024-02-03',
            'description': 'Card payment - High St Petrol',
            'debit': Decimal('24.50'),
            'balance': Decimal('39975.50'),
        }]
        assert 'credit' not in transactions[0]

    @pytest.mark.asyncio
    async def test_running_balance_decides_direction(self, statement_text):
        """Money in is recognized from the balance going up."""
        transactions = await extract(statement_text, default_year=None)

        assert [t['description'] for t in transactions] == [
            'Card payment - High St Petrol',
            'Salary ACME Ltd',
            'Direct debit - City Energy',
        ]
        assert transactions[0]['date'] == '2024-02-03'
        assert transactions[1]['credit'] == Decimal('1500.00')
        assert 'debit' not in transactions[1]
        assert transactions[2]['debit'] == Decimal('82.10')

    @pytest.mark.asyncio
    async def test_metadata_lines_ignored(self, statement_text):
        transactions = await extract(statement_text)
        descriptions = " ".join(t['description'] for t in transactions)

        assert "Statement period" not in descriptions
        assert "Thank you" not in descriptions
        assert "brought forward" not in descriptions

    @pytest.mark.asyncio
    async def test_row_without_balance_has_null_balance(self):
        """Balance is present as None, never omitted."""
        transactions = await extract("6 Feb Cash withdrawal 50.00")

        assert transactions[0]['balance'] is None
        assert transactions[0]['debit'] == Decimal('50.00')

    @pytest.mark.asyncio
    async def test_cr_marker(self):
        transactions = await extract("7 Feb Refund from Shop 20.00 CR")

        assert transactions[0]['credit'] == Decimal('20.00')
        assert 'debit' not in transactions[0]

    @pytest.mark.asyncio
    async def test_three_amount_columns(self):
        """Paid out, paid in and balance columns map directly."""
        transactions = await extract("10/02/2024 Transfer 100.00 0.00 41,375.50")

        assert transactions == [{
            'date': '2024-02-10',
            'description': 'Transfer',
            'debit': Decimal('100.00'),
            'balance': Decimal('41375.50'),
        }]

    @pytest.mark.asyncio
    async def test_rows_without_amount_or_description_skipped(self):
        text = "\n".join([
            "3 Feb 24.50 39,975.50",
            "4 Feb Reference 12345",
            "Date Description Balance",
        ])
        assert await extract(text) == []

    @pytest.mark.asyncio
    async def test_year_detected_from_text(self):
        text = "Statement for March 2023\n3 Mar Groceries 12.00 88.00"
        transactions = await extract(text, default_year=None)

        assert transactions[0]['date'] == '2023-03-03'

    @pytest.mark.asyncio
    async def test_one_record_per_line(self):
        text = "3 Feb Coffee 2.50 97.50\n3 Feb Coffee 2.50 95.00"
        transactions = await extract(text)

        assert len(transactions) == 2

    @pytest.mark.asyncio
    async def test_number_opening_description_is_not_a_year(self):
        """Only a four-digit year, or a hyphenated short one, follows the month."""
        transactions = await extract("3 Feb 10 Downing St Cafe 3.00 100.00")

        assert transactions[0]['date'] == '2024-02-03'
        assert transactions[0]['description'] == '10 Downing St Cafe'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("line", [
        "03 Feb 2023 Groceries 12.00 88.00",
        "03-Feb-23 Groceries 12.00 88.00",
    ])
    async def test_explicit_year_on_row(self, line):
        transactions = await extract(line)

        assert transactions[0]['date'] == '2023-02-03'
        assert transactions[0]['description'] == 'Groceries'
