"""
Output Handler Module for the Statement Converter.

This module provides functionality for:
    - TableMatrix formatting of transaction batches
    - Excel file generation

Author: ML Engineering Team
"""

from .formatter import TableMatrix, TabularFormatter
from .excel_exporter import ExcelExporter

__all__ = ['TabularFormatter', 'TableMatrix', 'ExcelExporter']
