"""JSON export: subject, full results and cross groups."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional

from investiga.crossref.models import CrossGroup
from investiga.providers.models import ResultSet


def results_to_dict(result_set: ResultSet) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    return {
        field: {provider: [item.to_dict() for item in items] for provider, items in by_provider.items()}
        for field, by_provider in result_set.items()
    }


def build_json(
    result_set: ResultSet,
    *,
    subject: Optional[Mapping[str, Any]] = None,
    cross_groups: Optional[List[CrossGroup]] = None,
    indent: int = 2,
) -> str:
    document = {
        "subject": dict(subject or {}),
        "results": results_to_dict(result_set),
        "cross_groups": [g.model_dump(mode="json") for g in cross_groups or []],
    }
    return json.dumps(document, ensure_ascii=False, indent=indent)
