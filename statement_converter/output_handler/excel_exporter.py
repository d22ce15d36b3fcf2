"""
Excel Exporter Module.

This module serializes a TableMatrix to an .xlsx workbook. Uses openpyxl
for modern Excel format support.

Features:
    - Bold, filled header row
    - Configured column widths
    - Frozen header
    - In-memory (bytes) or on-disk output

Author: ML Engineering Team
"""

from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.helpers import ensure_directory, generate_timestamp
from statement_converter.utils.exceptions import ExportError

# Initialize module logger
logger = get_logger(__name__)


class ExcelExporter:
    """
    Exports a TableMatrix to Excel format.

    The first matrix row is written as the header; every other row is
    written as-is, cell by cell.

    Attributes:
        output_dir: Directory for output files
        sheet_name: Worksheet title
        column_widths: Width of each column, in characters

    Example:
        >>> exporter = ExcelExporter()
        >>> filepath = exporter.export(matrix, "statement.xlsx")
        >>> print(f"Saved to: {filepath}")
    """

    DEFAULT_COLUMN_WIDTHS = [15, 40, 15, 15, 20]

    def __init__(self) -> None:
        """Initialize the Excel exporter with configuration."""
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))
        self.sheet_name = get_config("output.excel.sheet_name", "Transactions")
        self.column_widths: List[int] = list(
            get_config("output.excel.column_widths", self.DEFAULT_COLUMN_WIDTHS)
        )

        logger.debug(f"ExcelExporter initialized (output_dir: {self.output_dir})")

    def _build_workbook(self, matrix: Sequence[Sequence[str]]) -> Workbook:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_name

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")

        for row_num, row in enumerate(matrix, 1):
            for col, value in enumerate(row, 1):
                cell = sheet.cell(row=row_num, column=col, value=value)
                if row_num == 1:
                    cell.font = header_font
                    cell.fill = header_fill
                    cell.alignment = header_alignment

        for col, width in enumerate(self.column_widths, 1):
            sheet.column_dimensions[get_column_letter(col)].width = width

        sheet.freeze_panes = 'A2'
        return workbook

    def to_bytes(self, matrix: Sequence[Sequence[str]]) -> bytes:
        """
        Serialize the matrix to .xlsx bytes.

        Raises:
            ExportError: If the matrix is empty or serialization fails.
        """
        if not matrix:
            raise ExportError("<memory>", "empty table (no header row)")

        try:
            buffer = BytesIO()
            self._build_workbook(matrix).save(buffer)
        except Exception as e:
            logger.error(f"Excel serialization failed: {e}")
            raise ExportError("<memory>", str(e))

        return buffer.getvalue()

    def export(
        self,
        matrix: Sequence[Sequence[str]],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Write the matrix to an Excel file.

        Args:
            matrix: TableMatrix (header row first).
            filename: Output filename. If None, auto-generated.
            output_dir: Output directory. If None, uses configured dir.

        Returns:
            Path to the created Excel file.

        Raises:
            ExportError: If export fails.
        """
        out_dir = Path(output_dir) if output_dir else self.output_dir
        ensure_directory(out_dir)

        if filename is None:
            filename = f"statement_{generate_timestamp()}.xlsx"

        filepath = out_dir / filename

        if not matrix:
            raise ExportError(str(filepath), "empty table (no header row)")

        try:
            self._build_workbook(matrix).save(filepath)
        except Exception as e:
            logger.error(f"Excel export failed: {e}")
            raise ExportError(str(filepath), str(e))

        logger.info(f"Excel file saved: {filepath} ({len(matrix) - 1} rows)")
        return str(filepath)
