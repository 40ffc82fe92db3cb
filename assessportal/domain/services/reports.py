"""Spreadsheet export of a candidate's full result history."""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from assessportal.core.session import Clock, utc_now
from assessportal.domain.models import Result, User
from openpyxl import Workbook

logger = structlog.get_logger()

SHEET_TITLE = "All Assessments"
TABLE_HEADER = ["Assessment Title", "Score", "Max Score", "Percentage", "Attempt", "Submitted At"]
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class EmptyReportError(Exception):
    """Raised when there are no results to export."""


def report_filename(name: str) -> str:
    stem = re.sub(r"\s+", "_", name.strip())
    return f"{stem}_Full_Report.xlsx"


def _timestamp(value: datetime | None) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value else ""


def _number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def build_report_rows(
    user: User,
    results: Sequence[Result],
    generated_at: datetime,
) -> list[list[Any]]:
    rows: list[list[Any]] = [
        ["Candidate Performance Report"],
        ["Name", user.name],
        ["Email", user.email],
        ["Total Assessments", len(results)],
        ["Generated At", _timestamp(generated_at)],
        [],
        list(TABLE_HEADER),
    ]
    for result in results:
        rows.append(
            [
                result.assessment_title,
                _number(result.score),
                _number(result.max_score),
                f"{result.percentage}%",
                result.attempt_number or 1,
                _timestamp(result.graded_at),
            ]
        )
    return rows


def export_user_report(
    user: User,
    results: Sequence[Result],
    directory: Path,
    *,
    clock: Clock = utc_now,
) -> Path:
    """Write the report workbook into ``directory`` and return its path."""
    if not results:
        raise EmptyReportError(f"No results to export for {user.name or user.id}")

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    for row in build_report_rows(user, results, clock()):
        sheet.append(row)

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / report_filename(user.name)
    workbook.save(path)

    logger.info("report_exported", user_id=user.id, rows=len(results), path=str(path))
    return path
