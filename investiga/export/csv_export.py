"""CSV export of a result set."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, Optional, Sequence

from loguru import logger

from investiga.crossref.models import MembershipIndex
from investiga.export.rows import BASE_COLUMNS, build_rows, header_labels
from investiga.providers.models import ResultSet


def build_csv(
    result_set: ResultSet,
    columns: Sequence[str],
    *,
    only_crossed: bool = False,
    membership: MembershipIndex | None = None,
    subject: Optional[Dict[str, str]] = None,
) -> str:
    """Render one CSV row per item; ``only_crossed`` keeps cross group members."""
    keys = [k for k, _ in BASE_COLUMNS] + list(columns)
    rows = build_rows(
        result_set, columns, subject=subject, only_crossed=only_crossed, membership=membership
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header_labels(columns))
    for row in rows:
        writer.writerow([row.get(k, "") for k in keys])
    return buffer.getvalue()


def write_csv(output_path: Path, content: str) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    logger.info(f"Wrote CSV export to {output_path}")
    return output_path


