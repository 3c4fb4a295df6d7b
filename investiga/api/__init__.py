"""HTTP API (FastAPI). Serve with ``uvicorn --factory investiga.api:create_app``."""

from investiga.api.app import create_app, parse_result_set

__all__ = ["create_app", "parse_result_set"]
