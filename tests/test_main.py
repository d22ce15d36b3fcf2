"""Tests for the command-line entry point."""

import logging

import pytest
from openpyxl import load_workbook

from main import main, parse_arguments
from statement_converter.utils.logger import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def restore_logging():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestCommandLine:
    """Test suite for main.py."""

    def test_parse_arguments(self):
        args = parse_arguments(["--input", "s.pdf", "--engine", "rules", "--page", "2", "--print"])

        assert args.input == "s.pdf"
        assert args.engine == "rules"
        assert args.page == 2
        assert args.print_table is True

    @pytest.mark.parametrize("page", ["0", "-1", "two"])
    def test_rejects_invalid_page_numbers(self, page, capsys):
        """Pages are 1-based; anything below 1 is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments(["--input", "s.pdf", "--page", page])

        assert exc_info.value.code == 2
        assert "--page" in capsys.readouterr().err

    def test_converts_text_statement(self, tmp_path, text_pdf_bytes, capsys):
        source = tmp_path / "statement.pdf"
        source.write_bytes(text_pdf_bytes)
        target = tmp_path / "out" / "statement.xlsx"

        exit_code = main(["--input", str(source), "--output", str(target), "--engine", "rules", "--print"])

        assert exit_code == 0
        rows = list(load_workbook(target).active.iter_rows(values_only=True))
        assert rows[0] == ('Date', 'Description', 'Debit', 'Credit', 'Balance')
        assert rows[1][:2] == ('2024-02-03', 'Card payment - High St Petrol')
        assert "Card payment - High St Petrol" in capsys.readouterr().out

    def test_invalid_input_exit_code(self, tmp_path, capsys):
        exit_code = main(["--input", str(tmp_path / "missing.pdf"), "--engine", "rules"])

        assert exit_code == 1
        assert "Invalid input file" in capsys.readouterr().err
