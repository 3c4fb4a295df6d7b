"""Cross-referencing of normalized results."""

from investiga.crossref.engine import CrossReferenceEngine, compute_cross
from investiga.crossref.extractor import AttributeExtractor, ExtractedAttributes
from investiga.crossref.models import (
    PERSON_COMPANY_TAG,
    CrossGroup,
    CrossMatch,
    CrossReferenceResult,
    IdentifierType,
    ItemKey,
    MembershipIndex,
)

__all__ = [
    "AttributeExtractor",
    "CrossGroup",
    "CrossMatch",
    "CrossReferenceEngine",
    "CrossReferenceResult",
    "ExtractedAttributes",
    "IdentifierType",
    "ItemKey",
    "MembershipIndex",
    "PERSON_COMPANY_TAG",
    "compute_cross",
]
