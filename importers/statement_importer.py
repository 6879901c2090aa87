"""Bank-statement spreadsheet import.

The input is a grid of raw cell values (rows of columns) as read from an
.xlsx/.xls sheet. The header row is located by fuzzy label matching, debit
movements are extracted and an ending balance is derived.

Only negative amounts (debits) are admitted; they are stored as positive
magnitudes since they become expenses.
"""
import logging
import unicodedata
from typing import Any, Callable, Optional, Sequence

from models.cell import Cell, EmptyCell, TextCell, cell_text, is_blank, to_cell
from models.movement import ParsedMovement, StatementColumns, StatementImport
from utils.currency import parse_amount_es
from utils.date_helpers import parse_date_es

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 50

# Fixed position of the "saldo" label cell in the bank's export layout.
BALANCE_LABEL_ROW = 3
BALANCE_LABEL_COL = 5
_CURRENCY_MARKERS = ("EUR", "€")


def normalize_header(value: Any) -> str:
    """Lowercase, strip diacritics and collapse whitespace. Non-text cells give ''."""
    cell = to_cell(value)
    if not isinstance(cell, TextCell):
        return ""
    text = unicodedata.normalize("NFD", cell.value.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return " ".join(text.split())


def _is_date_label(label: str) -> bool:
    return "fecha operacion" in label or "fecha valor" in label or label == "fecha"


def _is_concept_label(label: str) -> bool:
    return any(token in label for token in ("concepto", "descripcion", "detalle"))


def _is_amount_label(label: str) -> bool:
    return "importe" in label or "cargo" in label


def _is_balance_label(label: str) -> bool:
    return "saldo" in label


def _first_index(labels: list[str], predicate: Callable[[str], bool]) -> Optional[int]:
    for index, label in enumerate(labels):
        if label and predicate(label):
            return index
    return None


def resolve_columns(header_cells: Sequence[Any]) -> Optional[StatementColumns]:
    """Map a header row to column indexes; first match from the left wins."""
    labels = [normalize_header(c) for c in header_cells]
    date_col = _first_index(labels, _is_date_label)
    concept_col = _first_index(labels, _is_concept_label)
    amount_col = _first_index(labels, _is_amount_label)
    if date_col is None or concept_col is None or amount_col is None:
        return None
    return StatementColumns(
        date=date_col,
        concept=concept_col,
        amount=amount_col,
        balance=_first_index(labels, _is_balance_label),
    )


def find_header_row(grid: Sequence[Sequence[Any]], max_rows: int = HEADER_SCAN_ROWS) -> Optional[int]:
    for index, row in enumerate(grid[:max_rows]):
        if resolve_columns(row) is not None:
            return index
    return None


def _cell_at(row: Sequence[Any], index: Optional[int]) -> Cell:
    if index is None or index >= len(row):
        return EmptyCell()
    return to_cell(row[index])


def _header_diagnostic(grid: Sequence[Sequence[Any]]) -> str:
    found = [cell_text(to_cell(c)) for c in grid[0]] if grid else []
    found = [text for text in found if text]
    listing = ", ".join(found) if found else "(ninguno)"
    return f"No se detectaron movimientos. Encabezados detectados: {listing}"


def _balance_from_label(grid: Sequence[Sequence[Any]]) -> Optional[float]:
    if len(grid) <= BALANCE_LABEL_ROW:
        return None
    cell = _cell_at(grid[BALANCE_LABEL_ROW], BALANCE_LABEL_COL)
    if not isinstance(cell, TextCell):
        return None
    if not any(marker in cell.value.upper() for marker in _CURRENCY_MARKERS):
        return None
    # Header text such as "Saldo (EUR)" carries the marker but no figure
    if not any(ch.isdigit() for ch in cell.value):
        return None
    return parse_amount_es(cell)


def _balance_from_movements(movements: list[ParsedMovement]) -> Optional[float]:
    with_balance = [m for m in movements if m.balance is not None]
    if not with_balance:
        return None
    dated = [m.operation_date for m in movements if m.operation_date is not None]
    newest_first = len(dated) > 1 and dated[0] > dated[-1]
    chosen = with_balance[0] if newest_first else with_balance[-1]
    return chosen.balance


def _read_movement(row: Sequence[Any], columns: StatementColumns) -> Optional[ParsedMovement]:
    amount = parse_amount_es(_cell_at(row, columns.amount), negative_only=True)
    if amount == 0:
        return None
    balance = None
    if columns.balance is not None:
        balance_cell = _cell_at(row, columns.balance)
        if any(ch.isdigit() for ch in cell_text(balance_cell)):
            balance = parse_amount_es(balance_cell)
    return ParsedMovement(
        operation_date=parse_date_es(_cell_at(row, columns.date)),
        concept=cell_text(_cell_at(row, columns.concept)),
        amount=abs(amount),
        balance=balance,
    )


def import_statement(grid: Sequence[Sequence[Any]]) -> StatementImport:
    header_row = find_header_row(grid)
    if header_row is None:
        diagnostic = _header_diagnostic(grid)
        logger.warning(diagnostic)
        return StatementImport(diagnostic=diagnostic)

    columns = resolve_columns(grid[header_row])
    movements: list[ParsedMovement] = []
    skipped = 0
    for row in grid[header_row + 1:]:
        cells = [to_cell(c) for c in row]
        if all(is_blank(c) for c in cells):
            continue
        movement = _read_movement(cells, columns)
        if movement is None:
            skipped += 1
            continue
        movements.append(movement)

    ending_balance = _balance_from_label(grid)
    if ending_balance is None:
        ending_balance = _balance_from_movements(movements)

    logger.info(
        "Statement import: header at row %d, %d movements, %d rows skipped",
        header_row, len(movements), skipped,
    )
    return StatementImport(
        movements=movements,
        ending_balance=ending_balance,
        header_row=header_row,
        columns=columns,
    )
