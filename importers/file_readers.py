"""File access for imports: spreadsheet grids and PDF text."""
import logging
import os
from typing import Any

import pandas as pd
import pdfplumber

from services.errors import ValidationError

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")
PDF_EXTENSIONS = (".pdf",)


def _extension(path: str) -> str:
    return os.path.splitext(str(path))[1].lower()


def read_spreadsheet(path: str, sheet: int | str = 0) -> list[list[Any]]:
    """Return the first sheet as rows of raw cell values, blanks as None."""
    ext = _extension(path)
    if ext not in SPREADSHEET_EXTENSIONS:
        raise ValidationError(f"Unsupported spreadsheet type '{ext}'. Use .xlsx or .xls.")
    engine = "xlrd" if ext == ".xls" else "openpyxl"
    try:
        df = pd.read_excel(path, sheet_name=sheet, header=None, engine=engine)
    except Exception as exc:
        raise ValidationError(f"Could not read spreadsheet '{os.path.basename(path)}': {exc}") from exc
    df = df.astype(object).where(df.notna(), None)
    grid = df.values.tolist()
    logger.info("Read %d rows from %s", len(grid), os.path.basename(path))
    return grid


def extract_pdf_text(path: str) -> str:
    """Concatenate the text of every page."""
    ext = _extension(path)
    if ext not in PDF_EXTENSIONS:
        raise ValidationError(f"Unsupported file type '{ext}'. Use a .pdf receipt.")
    try:
        with pdfplumber.open(path) as pdf:
            text = "\n".join((page.extract_text() or "") for page in pdf.pages)
    except Exception as exc:
        raise ValidationError(f"Could not read PDF '{os.path.basename(path)}': {exc}") from exc
    logger.info("Extracted %d characters from %s", len(text), os.path.basename(path))
    return text
