"""
CSV import of projects.

Handles:
- Header validation against the required column set
- Per-row field-count checks (quoted fields may contain commas)
- Lenient status / priority / client type values with fixed fallbacks
- Seeding each imported project with its starting task list
"""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Optional

import pandas as pd
import structlog
from pydantic import ValidationError

from portal_shared.schemas.common import ClientType, ProjectPriority, ProjectStatus
from portal_shared.schemas.projects import ProjectCreate

from .projects import default_tasks

log = structlog.get_logger()

REQUIRED_HEADERS = ["name", "client", "clientType", "startDate", "dueDate", "status", "priority"]

SAMPLE_CSV = """name,client,clientType,startDate,dueDate,status,priority
"Downtown Traffic Study","City of Example","private","2023-12-01","2024-02-15","on-track","high"
"Highway Capacity Analysis","State DOT","public","2023-11-15","2024-01-30","at-risk","medium"
"Residential Development Review","Private Developer Inc.","private","2024-01-05","2024-03-20","on-track","low"
"""

_PARSER_LINE_RE = re.compile(r"line (\d+)")
_ROW_END = "__row_end__"


class CSVImportError(ValueError):
    pass


def _status(value: str) -> ProjectStatus:
    try:
        return ProjectStatus(value.strip().lower())
    except ValueError:
        return ProjectStatus.ON_TRACK


def _priority(value: str) -> ProjectPriority:
    try:
        return ProjectPriority(value.strip().lower())
    except ValueError:
        return ProjectPriority.MEDIUM


def _client_type(value: str) -> ClientType:
    return ClientType.PRIVATE if value.strip().lower() == "private" else ClientType.PUBLIC


def _read_rows(content: str) -> tuple[list[int], pd.DataFrame]:
    """
    Tokenize the non-blank lines, header included, without inferring a schema.

    Every line gets a marker field appended. The header row fixes the width,
    so a longer row fails in the parser and a shorter one is padded past its
    marker. Returns the physical line number of each row alongside the frame.
    """
    numbered = [(i, line) for i, line in enumerate(content.splitlines(), start=1) if line.strip()]
    line_numbers = [i for i, _ in numbered]
    marked = "\n".join(f"{line},{_ROW_END}" for _, line in numbered)
    try:
        frame = pd.read_csv(
            io.StringIO(marked),
            header=None,
            dtype=object,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        raise CSVImportError(f"Missing required column: {REQUIRED_HEADERS[0]}") from None
    except pd.errors.ParserError as exc:
        match = _PARSER_LINE_RE.search(str(exc))
        where = line_numbers[int(match.group(1)) - 1] if match else "?"
        raise CSVImportError(f"Invalid CSV format at line {where}") from exc
    return line_numbers, frame


def parse_csv(content: str) -> list[ProjectCreate]:
    """Parse CSV text into new projects. Raises ``CSVImportError`` on the first bad row."""
    line_numbers, frame = _read_rows(content)
    headers = [str(h).strip() for h in frame.iloc[0, :-1]]

    for header in REQUIRED_HEADERS:
        if header not in headers:
            raise CSVImportError(f"Missing required column: {header}")

    projects: list[ProjectCreate] = []
    for position in range(1, len(frame)):
        values = frame.iloc[position]
        line_no = line_numbers[position]
        if values.iloc[-1] != _ROW_END:
            raise CSVImportError(f"Invalid CSV format at line {line_no}")

        row = {h: str(v).strip() for h, v in zip(headers, values.iloc[:-1])}
        client_type = _client_type(row["clientType"])
        try:
            projects.append(
                ProjectCreate(
                    name=row["name"],
                    client=row["client"],
                    client_type=client_type,
                    start_date=row["startDate"],
                    due_date=row["dueDate"],
                    status=_status(row["status"]),
                    priority=_priority(row["priority"]),
                    tasks=default_tasks(client_type),
                )
            )
        except ValidationError as exc:
            raise CSVImportError(f"Invalid value at line {line_no}: {exc.errors()[0]['msg']}") from exc

    log.info("csv_import.parsed", count=len(projects))
    return projects


def load_csv_file(path: str | Path, encoding: Optional[str] = "utf-8") -> list[ProjectCreate]:
    path = Path(path)
    if path.suffix.lower() != ".csv":
        raise CSVImportError("Please upload a valid CSV file")
    try:
        content = path.read_text(encoding=encoding)
    except UnicodeDecodeError as exc:
        raise CSVImportError(f"Failed to read file: {path.name} is not {encoding} text") from exc
    except OSError as exc:
        raise CSVImportError(f"Failed to read file: {exc.strerror or exc}") from exc
    return parse_csv(content)
