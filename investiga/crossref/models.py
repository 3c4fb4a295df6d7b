"""Cross-reference data models."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from investiga.normalization.names import NameNormalizer
from investiga.providers.models import SearchItem

PERSON_COMPANY_TAG = "person_company"


class IdentifierType(str, Enum):
    """Kinds of canonical values that can tie results together."""

    CPF = "cpf"
    CNPJ = "cnpj"
    CEP = "cep"
    PHONE = "phone"
    EMAIL = "email"
    NAME = "name"


class CrossMatch(BaseModel):
    """One occurrence of a shared value."""

    field: str
    provider: str
    title: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    description: Optional[str] = None


class CrossGroup(BaseModel):
    """A canonical value seen in two or more results."""

    type: IdentifierType
    value: str
    matches: List[CrossMatch]
    tags: List[str] = Field(default_factory=list)

    @field_validator("matches")
    @classmethod
    def validate_matches(cls, v: List[CrossMatch]) -> List[CrossMatch]:
        if len(v) < 2:
            raise ValueError("a cross group needs at least two matches")
        return v

    @property
    def occurrences(self) -> int:
        return len(self.matches)

    @property
    def providers(self) -> List[str]:
        seen: List[str] = []
        for match in self.matches:
            if match.provider not in seen:
                seen.append(match.provider)
        return seen


class ItemKey(BaseModel):
    """Identity of one item inside one field/provider bucket."""

    model_config = ConfigDict(frozen=True)

    field: str
    provider: str
    title: str = ""
    url: str = ""
    source: str = ""

    @classmethod
    def for_item(cls, item: SearchItem, field: str, provider: str) -> ItemKey:
        return cls(
            field=field,
            provider=provider,
            title=item.title or "",
            url=item.url or "",
            source=item.source.value,
        )

    def __str__(self) -> str:
        return "|".join((self.field, self.provider, self.title, self.url, self.source))


class MembershipIndex:
    """Set of items that belong to at least one cross group."""

    def __init__(self, keys: Iterable[ItemKey] = ()) -> None:
        self._keys: Set[ItemKey] = set(keys)

    def add(self, key: ItemKey) -> None:
        self._keys.add(key)

    def contains(self, item: SearchItem, field: str, provider: str) -> bool:
        return ItemKey.for_item(item, field, provider) in self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self):
        return iter(sorted(self._keys, key=str))


class CrossReferenceResult(BaseModel):
    """Groups plus the membership index of one computation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    groups: List[CrossGroup] = Field(default_factory=list)
    membership: MembershipIndex = Field(default_factory=MembershipIndex)

    def is_crossed(self, item: SearchItem, field: str, provider: str) -> bool:
        return self.membership.contains(item, field, provider)

    def visible_groups(
        self,
        hide_generic_names: bool = True,
        normalizer: NameNormalizer | None = None,
    ) -> List[CrossGroup]:
        """Groups to show; generic name groups are dropped when asked."""
        if not hide_generic_names:
            return list(self.groups)
        normalizer = normalizer or NameNormalizer()
        return [
            g
            for g in self.groups
            if g.type != IdentifierType.NAME or not normalizer.is_generic(g.value)
        ]

    def by_type(self, kind: IdentifierType) -> List[CrossGroup]:
        return [g for g in self.groups if g.type == kind]
