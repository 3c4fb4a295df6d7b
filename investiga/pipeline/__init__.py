"""Search orchestration."""

from investiga.pipeline.search_pipeline import (
    SEARCH_FIELDS,
    SearchOutcome,
    SearchPipeline,
    SearchSession,
    Subject,
)

__all__ = ["SEARCH_FIELDS", "SearchOutcome", "SearchPipeline", "SearchSession", "Subject"]
