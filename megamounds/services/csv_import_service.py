"""
CSV Import Service — bulk task and resource import.

Pipeline: parse → validate/normalize → insert in chunks.

Parsing rules:
  - A double quote toggles "inside quotes" and is dropped; the delimiter is
    literal while inside quotes. Doubled quotes are NOT an escape.
  - Cells are trimmed; missing trailing cells read as "".
  - Header cells are lower-cased with whitespace runs turned into "_".
  - The delimiter is "," unless the header has ";" and no ",".
  - Blank lines are skipped but keep their place in the row numbering.

Validation never raises for a bad row: the row is dropped and reported as
"Row N: Missing required fields: ..." where N counts the header as row 1.
"""

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from megamounds.models import db
from megamounds.models.enums import ResourceStatus, ResourceType, TaskPriority, TaskStatus
from megamounds.models.resource import Resource
from megamounds.models.task import Task
from megamounds.utils.helpers import parse_date

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 20

TASK_REQUIRED = ("title", "week", "section")
RESOURCE_REQUIRED = ("name",)

_TRUTHY = {"true", "yes", "1"}
_WHITESPACE = re.compile(r"\s+")
# Leading number of a cell such as "500 bags" or "2500.50 NGN"
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class BulkImportError(Exception):
    """Whole-file import error (empty file, nothing to import)."""
    def __init__(self, message, status_code=400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class ImportResult:
    """Validated records plus the per-row error messages.

    ``rows`` holds the source row number of each record, aligned with
    ``records``.
    """
    records: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    rows: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "records": [_jsonable(r) for r in self.records],
            "errors": self.errors,
            "valid_count": len(self.records),
            "error_count": len(self.errors),
        }


def _jsonable(record: dict) -> dict:
    return {
        k: (v.isoformat() if hasattr(v, "isoformat") else v)
        for k, v in record.items()
    }


# ═══════════════════════════════════════════════════════════════
# CSV Templates
# ═══════════════════════════════════════════════════════════════

TASK_TEMPLATE_HEADER = [
    "title", "week", "section", "status", "priority", "is_critical", "notes", "start_date", "end_date",
]
TASK_TEMPLATE_EXAMPLE = [
    ["Plaster lift shaft", "WEEK 1", "Roofing & Rooftop", "Not Started", "Critical", "true", "",
     "2026-02-17", "2026-02-23"],
    ["Complete rooftop duct casting", "WEEK 1", "Roofing & Rooftop", "Not Started", "High", "false", "",
     "2026-02-17", "2026-02-23"],
]

RESOURCE_TEMPLATE_HEADER = [
    "name", "type", "quantity", "unit", "cost_per_unit", "milestone", "milestone_date", "supplier",
    "status", "notes",
]
RESOURCE_TEMPLATE_EXAMPLE = [
    ["Cement bags", "Material", "500", "bags", "2500", "WEEK 1", "2026-02-17", "Dangote", "Planned",
     "First delivery for plastering"],
    ["Tilers (gang)", "Labour", "8", "persons", "25000", "WEEK 2", "2026-02-24", "Subcontractor A",
     "Planned", ""],
    ["Aluminium roofing sheets", "Material", "120", "sheets", "45000", "WEEK 1", "2026-02-17",
     "Roofing Ltd", "Ordered", ""],
    ["Lift unit", "Equipment", "1", "unit", "4500000", "WEEK 4", "2026-03-09", "Otis Nigeria", "Planned",
     "Full installation"],
]


def _render_template(header, rows) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue()


def generate_task_template() -> str:
    """CSV template for bulk task import."""
    return _render_template(TASK_TEMPLATE_HEADER, TASK_TEMPLATE_EXAMPLE)


def generate_resource_template() -> str:
    """CSV template for bulk resource import."""
    return _render_template(RESOURCE_TEMPLATE_HEADER, RESOURCE_TEMPLATE_EXAMPLE)


# ═══════════════════════════════════════════════════════════════
# CSV Parsing
# ═══════════════════════════════════════════════════════════════

def split_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one line on ``delimiter``, honouring the quote toggle."""
    cells = []
    current = []
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    cells.append("".join(current).strip())
    return cells


def normalize_header(cell: str) -> str:
    return _WHITESPACE.sub("_", cell.strip().lower())


def detect_delimiter(header_line: str) -> str:
    if ";" in header_line and "," not in header_line:
        return ";"
    return ","


def parse_csv_text(content: str | bytes) -> list[tuple[int, dict]]:
    """
    Parse CSV text into ``(row_num, row)`` pairs.

    ``row_num`` is the 1-based line number in the file (header = 1).
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")  # Handle BOM
    lines = content.strip().splitlines()
    if not lines:
        return []

    delimiter = detect_delimiter(lines[0])
    headers = [normalize_header(h) for h in split_csv_line(lines[0], delimiter)]

    rows = []
    for i, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        cols = split_csv_line(line, delimiter)
        rows.append((i, {h: (cols[idx] if idx < len(cols) else "") for idx, h in enumerate(headers)}))
    return rows


# ═══════════════════════════════════════════════════════════════
# Field normalization
# ═══════════════════════════════════════════════════════════════

def parse_non_negative_number(raw) -> float:
    """Leading number of ``raw`` as a float, so "500 bags" reads as 500.0.

    0.0 when there is no leading number or the value is negative or not
    finite. Bulk sheets often carry blanks, units or text such as "TBC"
    in numeric columns.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    match = _LEADING_NUMBER.match(str(raw))
    if match is None:
        return 0.0
    value = float(match.group(0))
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def parse_bool_flag(raw) -> bool:
    return str(raw or "").strip().lower() in _TRUTHY


def normalize_week(raw: str) -> str:
    """'WEEK 3' / 'week 3' -> 'WEEK 3'; '3' -> 'WEEK 3'."""
    raw = (raw or "").strip()
    if "WEEK" in raw.upper():
        return raw.upper()
    return f"WEEK {raw}"


def _missing(row: dict, required) -> list[str]:
    return [f for f in required if not (row.get(f) or "").strip()]


def _row_error(row_num: int, missing: list[str]) -> str:
    return f"Row {row_num}: Missing required fields: {', '.join(missing)}"


# ═══════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════

def validate_task_rows(rows: list[tuple[int, dict]]) -> ImportResult:
    """Normalize task rows; rows missing title/week/section are reported."""
    result = ImportResult()
    for row_num, row in rows:
        missing = _missing(row, TASK_REQUIRED)
        if missing:
            result.errors.append(_row_error(row_num, missing))
            continue
        result.records.append({
            "title": row["title"],
            "week": normalize_week(row["week"]),
            "section": row["section"],
            "status": TaskStatus.coerce(row.get("status")).value,
            "priority": TaskPriority.coerce(row.get("priority")).value,
            "is_critical": parse_bool_flag(row.get("is_critical")),
            "notes": row.get("notes") or "",
            "start_date": parse_date(row.get("start_date")),
            "end_date": parse_date(row.get("end_date")),
        })
        result.rows.append(row_num)
    return result


def validate_resource_rows(rows: list[tuple[int, dict]]) -> ImportResult:
    """Normalize resource rows; only ``name`` is required."""
    result = ImportResult()
    for row_num, row in rows:
        missing = _missing(row, RESOURCE_REQUIRED)
        if missing:
            result.errors.append(_row_error(row_num, missing))
            continue
        result.records.append({
            "name": row["name"],
            "type": ResourceType.coerce(row.get("type")).value,
            "quantity": parse_non_negative_number(row.get("quantity")),
            "unit": row.get("unit") or "",
            "cost_per_unit": parse_non_negative_number(row.get("cost_per_unit")),
            "milestone": row.get("milestone") or row.get("week") or "",
            "milestone_date": parse_date(row.get("milestone_date")),
            "supplier": row.get("supplier") or "",
            "status": ResourceStatus.coerce(row.get("status")).value,
            "notes": row.get("notes") or "",
        })
        result.rows.append(row_num)
    return result


IMPORT_KINDS = {
    "tasks": (Task, validate_task_rows),
    "resources": (Resource, validate_resource_rows),
}


def validate_csv(kind: str, content: str | bytes) -> ImportResult:
    """Parse and validate ``content`` as a ``kind`` ("tasks"/"resources") sheet."""
    _, validator = IMPORT_KINDS[kind]
    rows = parse_csv_text(content)
    if not rows:
        raise BulkImportError("CSV file is empty or has no data rows")
    return validator(rows)


# ═══════════════════════════════════════════════════════════════
# Chunked insertion
# ═══════════════════════════════════════════════════════════════

def insert_in_chunks(model, project_id: int, result: ImportResult, chunk_size: int = DEFAULT_CHUNK_SIZE) -> dict:
    """
    Insert validated records in input order, one commit per chunk.

    A failing chunk is rolled back and reported; later chunks still run.
    Returns {"inserted": n, "chunks": n, "failed_chunks": [...]}.
    """
    chunk_size = max(1, int(chunk_size or DEFAULT_CHUNK_SIZE))
    inserted = 0
    failed_chunks = []
    chunk_count = 0

    for index, start in enumerate(range(0, len(result.records), chunk_size)):
        chunk_count += 1
        chunk = result.records[start:start + chunk_size]
        chunk_rows = result.rows[start:start + chunk_size]
        try:
            db.session.add_all([model(project_id=project_id, **record) for record in chunk])
            db.session.commit()
            inserted += len(chunk)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(
                "Import chunk %d (%s rows %s-%s) failed for project %s: %s",
                index, model.__tablename__, chunk_rows[0], chunk_rows[-1], project_id, e,
            )
            failed_chunks.append({
                "chunk": index,
                "first_row": chunk_rows[0],
                "last_row": chunk_rows[-1],
                "count": len(chunk),
                "error": str(e.orig) if getattr(e, "orig", None) else str(e),
            })

    return {
        "inserted": inserted,
        "chunks": chunk_count,
        "failed_chunks": failed_chunks,
    }


def import_csv(kind: str, project_id: int, content: str | bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> dict:
    """
    Full pipeline: parse → validate → chunked insert.
    Returns validation errors alongside the insertion report.
    """
    model, _ = IMPORT_KINDS[kind]
    validation = validate_csv(kind, content)

    insert_report = {"inserted": 0, "chunks": 0, "failed_chunks": []}
    if validation.records:
        insert_report = insert_in_chunks(model, project_id, validation, chunk_size)

    failed = bool(insert_report["failed_chunks"])
    if not validation.errors and not failed:
        status = "completed"
    elif insert_report["inserted"]:
        status = "partial"
    else:
        status = "error"

    logger.info(
        "Imported %d/%d %s into project %s (%d row errors, %d failed chunks)",
        insert_report["inserted"], len(validation.records), kind, project_id,
        len(validation.errors), len(insert_report["failed_chunks"]),
    )
    return {
        "status": status,
        "message": (
            f"Imported {insert_report['inserted']} {kind}"
            + (f", {len(validation.errors)} rows had errors" if validation.errors else "")
        ),
        "valid_count": len(validation.records),
        "error_count": len(validation.errors),
        "errors": validation.errors,
        **insert_report,
    }
