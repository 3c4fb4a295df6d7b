"""Exports of search results: CSV, XLSX, JSON and Markdown dossier."""

from investiga.export.csv_export import build_csv, write_csv
from investiga.export.dossier import build_dossier
from investiga.export.json_export import build_json, results_to_dict
from investiga.export.rows import PRESETS, extract_known_fields, resolve_columns
from investiga.export.xlsx_export import build_xlsx, write_xlsx

__all__ = [
    "PRESETS",
    "build_csv",
    "build_dossier",
    "build_json",
    "build_xlsx",
    "extract_known_fields",
    "resolve_columns",
    "results_to_dict",
    "write_csv",
    "write_xlsx",
]
