"""Cross-reference ("cruzamento") engine.

Every item of a ``ResultSet`` is run through :class:`AttributeExtractor`; each
canonical value is indexed with the ``(field, provider, item)`` occurrences that
carry it. Values seen at least twice become :class:`CrossGroup` records, sorted
by ``(type, value)``. Every member item is recorded in the membership index so
callers can filter down to "crossed" results.

Name groups are tagged ``person_company`` when a company source (``cnpj``) and a
person source (``cpf``, ``directdata``, ``datajud``) both mention the name.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from loguru import logger

from investiga.crossref.extractor import AttributeExtractor
from investiga.crossref.models import (
    PERSON_COMPANY_TAG,
    CrossGroup,
    CrossMatch,
    CrossReferenceResult,
    IdentifierType,
    ItemKey,
    MembershipIndex,
)
from investiga.normalization.names import NameNormalizer
from investiga.providers.models import COMPANY_PROVIDERS, PERSON_PROVIDERS, ResultSet, SearchItem

Occurrence = Tuple[str, str, SearchItem]

_PERSON_IDS = frozenset(p.value for p in PERSON_PROVIDERS)
_COMPANY_IDS = frozenset(p.value for p in COMPANY_PROVIDERS)


class _GroupAccumulator:
    """Occurrences of one canonical value, in insertion order."""

    def __init__(self, kind: IdentifierType, value: str) -> None:
        self.kind = kind
        self.value = value
        self.occurrences: List[Occurrence] = []

    def add(self, field: str, provider: str, item: SearchItem) -> None:
        self.occurrences.append((field, provider, item))

    def to_group(self) -> CrossGroup:
        matches = [
            CrossMatch(
                field=field,
                provider=provider,
                title=item.title,
                url=item.url,
                source=item.source.value,
                description=item.description,
            )
            for field, provider, item in self.occurrences
        ]
        tags: List[str] = []
        if self.kind == IdentifierType.NAME:
            providers = {m.provider for m in matches}
            if providers & _COMPANY_IDS and providers & _PERSON_IDS:
                tags.append(PERSON_COMPANY_TAG)
        return CrossGroup(type=self.kind, value=self.value, matches=matches, tags=tags)


class CrossReferenceEngine:
    """Compute cross groups and the membership index for a result set."""

    def __init__(
        self,
        *,
        extract_names_from_text: bool = False,
        name_normalizer: NameNormalizer | None = None,
        extractor: AttributeExtractor | None = None,
    ) -> None:
        self.extractor = extractor or AttributeExtractor(
            extract_names_from_text=extract_names_from_text,
            name_normalizer=name_normalizer,
        )

    def compute(self, result_set: ResultSet) -> CrossReferenceResult:
        index: Dict[Tuple[IdentifierType, str], _GroupAccumulator] = {}

        for field, by_provider in result_set.items():
            for provider, items in (by_provider or {}).items():
                for item in items or []:
                    attrs = self.extractor.extract(item)
                    for kind in IdentifierType:
                        for value in attrs.values(kind):
                            key = (kind, value)
                            if key not in index:
                                index[key] = _GroupAccumulator(kind, value)
                            index[key].add(field, provider, item)

        groups: List[CrossGroup] = []
        membership = MembershipIndex()
        for (kind, value), acc in sorted(index.items(), key=lambda kv: (kv[0][0].value, kv[0][1])):
            if len(acc.occurrences) < 2:
                continue
            groups.append(acc.to_group())
            for field, provider, item in acc.occurrences:
                membership.add(ItemKey.for_item(item, field, provider))

        logger.debug(
            f"Cross-reference computed {len(groups)} groups over {len(index)} distinct values",
            crossed_items=len(membership),
        )
        return CrossReferenceResult(groups=groups, membership=membership)


def compute_cross(result_set: ResultSet, *, extract_names_from_text: bool = False) -> CrossReferenceResult:
    """Convenience wrapper around :meth:`CrossReferenceEngine.compute`."""
    engine = CrossReferenceEngine(extract_names_from_text=extract_names_from_text)
    return engine.compute(result_set)
