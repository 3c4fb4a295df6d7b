"""Shared data models for provider results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class Provider(str, Enum):
    """Stable identifiers of every lookup source."""

    WIKIPEDIA = "wikipedia"
    DUCKDUCKGO = "duckduckgo"
    GITHUB = "github"
    DIRECTDATA = "directdata"
    CEP = "cep"
    CPF = "cpf"
    CNPJ = "cnpj"
    PHONE = "phone"
    PHONE_PORTABILIDADE = "phone_portabilidade"
    DDD_BRASILAPI = "ddd_brasilapi"
    DDD_APIBRASIL = "ddd_apibrasil"
    DATAJUD = "datajud"
    EMAIL_HIBP = "email_hibp"
    EMAILREP = "emailrep"
    HUNTER = "hunter"
    GRAVATAR = "gravatar"
    CLEARBIT = "clearbit"
    CLT_PIS = "clt_pis"


PERSON_PROVIDERS = frozenset({Provider.CPF, Provider.DIRECTDATA, Provider.DATAJUD})
COMPANY_PROVIDERS = frozenset({Provider.CNPJ})


class SearchItem(BaseModel):
    """One normalized record from one provider for one query.

    Provider-specific facts (``cpf``, ``ddd``, ``e164``, ``cities``...) ride along
    as extra attributes. ``raw`` is the untouched vendor payload.
    """

    model_config = ConfigDict(extra="allow", frozen=True, use_enum_values=False)

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    source: Provider
    raw: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _fold_snippet(cls, data: Any) -> Any:
        # "snippet" was a redundant alias of "description" in vendor-facing code
        if isinstance(data, dict) and "snippet" in data:
            data = dict(data)
            snippet = data.pop("snippet")
            if not data.get("description") and snippet:
                data["description"] = snippet
        return data

    def extra(self, name: str, default: Any = None) -> Any:
        """Read a provider-specific attribute."""
        extras = self.model_extra or {}
        return extras.get(name, default)

    @property
    def extras(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    @property
    def is_not_found(self) -> bool:
        return bool(self.extra("not_found"))

    @property
    def error(self) -> Optional[str]:
        value = self.extra("error")
        return str(value) if value else None

    @property
    def is_sentinel(self) -> bool:
        return self.is_not_found or self.error is not None

    @classmethod
    def sentinel_not_found(
        cls,
        source: Provider,
        title: str,
        description: str = "",
        url: Optional[str] = None,
        **extra: Any,
    ) -> "SearchItem":
        return cls(
            title=title,
            description=description or None,
            url=url,
            source=source,
            not_found=True,
            **extra,
        )

    @classmethod
    def sentinel_error(
        cls,
        source: Provider,
        message: str,
        *,
        title: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "SearchItem":
        return cls(title=title, description=None, url=url, source=source, error=message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary (extras flattened)."""
        return self.model_dump(mode="json", exclude_none=True)


ResultSet = Dict[str, Dict[str, List[SearchItem]]]
