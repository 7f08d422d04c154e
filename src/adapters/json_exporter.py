"""JSON export of the build report.

Why JSON:
- CI and other tooling can read step outcomes without scraping terminal
  output.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import BuildReport


def export_report_json(*, report: BuildReport, output_path: Path) -> Path:
    """Export `BuildReport` as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = report.model_dump(mode="json")
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
