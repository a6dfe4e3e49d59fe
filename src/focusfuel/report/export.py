"""Report export utilities: JSON and CSV output."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from focusfuel.report.daily import DailyDistractionReport

_SENSITIVE_KEYS = frozenset({
    "url",
    "full_url",
    "title",
    "page_title",
})


def _check_no_sensitive_fields(data: dict) -> None:
    """Recursively check *data* for forbidden keys."""
    for key in data:
        if key in _SENSITIVE_KEYS:
            raise ValueError(
                f"Sensitive field {key!r} must not appear in report output"
            )
        if isinstance(data[key], dict):
            _check_no_sensitive_fields(data[key])


def export_report_json(report: DailyDistractionReport, path: Path) -> Path:
    """Write *report* to a JSON file, rejecting sensitive keys.

    Returns:
        The *path* that was written.
    """
    data = report.model_dump()
    _check_no_sensitive_fields(data)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def export_report_csv(report: DailyDistractionReport, path: Path) -> Path:
    """Write the category and domain breakdowns as one flat CSV.

    Columns: ``date``, ``breakdown`` (``category`` or ``domain``),
    ``key``, ``minutes``.
    """
    _check_no_sensitive_fields(report.model_dump())

    rows: list[dict[str, object]] = []
    for key, minutes in sorted(report.category_breakdown.items()):
        rows.append({"date": report.date, "breakdown": "category", "key": key, "minutes": minutes})
    for key, minutes in report.top_distracting_domains.items():
        rows.append({"date": report.date, "breakdown": "domain", "key": key, "minutes": minutes})

    df = pd.DataFrame(rows, columns=["date", "breakdown", "key", "minutes"])
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
