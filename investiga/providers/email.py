"""Email providers: HIBP breaches, EmailRep, Hunter.io, Gravatar, Clearbit."""

from __future__ import annotations

import hashlib
from typing import Any, List
from urllib.parse import quote

from investiga.normalization.field_picker import FieldPicker, as_scalar_text, as_text
from investiga.normalization.identifiers import is_valid_email, normalize_email
from investiga.providers.base import (
    BaseProvider,
    ProviderError,
    ProviderNotConfiguredError,
    SearchOptions,
    strip_html,
)
from investiga.providers.models import Provider, SearchItem

HIBP_URL = "https://haveibeenpwned.com/api/v3/breachedaccount/{email}"
HIBP_HOME = "https://haveibeenpwned.com/"
EMAILREP_URL = "https://emailrep.io/{email}"
HUNTER_VERIFY_URL = "https://api.hunter.io/v2/email-verifier"
GRAVATAR_URL = "https://en.gravatar.com/{digest}.json"
CLEARBIT_SUGGEST_URL = "https://autocomplete.clearbit.com/v1/companies/suggest"

_BREACH_TITLE = FieldPicker.keys("Name", "Title")
_BREACH_DATE = FieldPicker.keys("BreachDate", "AddedDate")
_GRAVATAR_NAME = FieldPicker.paths(("displayName",), ("name", "formatted"), ("preferredUsername",))
_GRAVATAR_ABOUT = FieldPicker.keys("aboutMe", "currentLocation")

# Mail providers whose domain says nothing about an employer
FREE_MAIL_DOMAINS = frozenset(
    {
        "gmail.com",
        "hotmail.com",
        "outlook.com",
        "yahoo.com",
        "yahoo.com.br",
        "bol.com.br",
        "uol.com.br",
        "icloud.com",
        "live.com",
        "terra.com.br",
    }
)


def normalize_hibp(email: str, status: int, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    """HIBP answers 404 when the account is in no breach."""
    if status == 404:
        return [
            SearchItem.sentinel_not_found(
                Provider.EMAIL_HIBP,
                title="Nenhum vazamento encontrado",
                description=f"Email {email} não consta em breaches (HIBP)",
                url=HIBP_HOME,
            )
        ]

    breaches = payload if isinstance(payload, list) else []
    items: List[SearchItem] = []
    for breach in breaches[:limit]:
        if not isinstance(breach, dict):
            continue
        domain = breach.get("Domain") or ""
        items.append(
            SearchItem(
                title=_BREACH_TITLE.pick(breach, default="Breach"),
                description=f"Data: {_BREACH_DATE.pick(breach, default='')} - {domain}",
                url=f"https://{domain}" if domain else HIBP_HOME,
                source=Provider.EMAIL_HIBP,
                breach=breach.get("Name"),
                summary=strip_html(breach.get("Description"))[:140] or None,
            )
        )
    if items:
        return items
    return [
        SearchItem(
            title="Possível vazamento",
            description=f"HIBP retornou dados para {email}",
            url=HIBP_HOME,
            source=Provider.EMAIL_HIBP,
        )
    ]


def normalize_emailrep(email: str, payload: Any) -> List[SearchItem]:
    if not isinstance(payload, dict):
        return []
    reputation = payload.get("reputation") or "none"
    suspicious = bool(payload.get("suspicious"))
    references = payload.get("references")
    details = payload.get("details") if isinstance(payload.get("details"), dict) else {}
    flags = [
        label
        for key, label in (
            ("credentials_leaked", "credenciais vazadas"),
            ("data_breach", "vazamento de dados"),
            ("malicious_activity", "atividade maliciosa"),
            ("spam", "spam"),
        )
        if details.get(key)
    ]
    parts = [f"Reputação: {reputation}", "suspeito" if suspicious else None]
    if references is not None:
        parts.append(f"referências: {references}")
    if flags:
        parts.append(", ".join(flags))
    return [
        SearchItem(
            title=f"EmailRep {email}",
            description=" • ".join(p for p in parts if p),
            url=f"https://emailrep.io/{quote(email)}",
            source=Provider.EMAILREP,
            email=email,
            reputation=reputation,
            suspicious=suspicious,
            raw=payload,
        )
    ]


def normalize_hunter(email: str, payload: Any) -> List[SearchItem]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return []
    status = as_scalar_text(data.get("status")) or as_scalar_text(data.get("result")) or "unknown"
    score = data.get("score")
    description = f"Status: {status}" + (f" • score {score}" if score is not None else "")
    return [
        SearchItem(
            title=f"Hunter.io {email}",
            description=description,
            url="https://hunter.io/email-verifier",
            source=Provider.HUNTER,
            email=email,
            verification=status,
            score=score,
            raw=data,
        )
    ]


def normalize_gravatar(email: str, status: int, payload: Any) -> List[SearchItem]:
    entries = payload.get("entry") if isinstance(payload, dict) else None
    if status == 404 or not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
        return [
            SearchItem.sentinel_not_found(
                Provider.GRAVATAR,
                title="Gravatar não encontrado",
                description=f"Nenhum perfil Gravatar para {email}",
            )
        ]
    entry = entries[0]
    name = _GRAVATAR_NAME.pick(entry)
    return [
        SearchItem(
            title=name or f"Gravatar {email}",
            description=_GRAVATAR_ABOUT.pick(entry),
            url=as_text(entry.get("profileUrl")),
            source=Provider.GRAVATAR,
            email=email,
            name=name,
            raw=entry,
        )
    ]


def normalize_clearbit(domain: str, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    companies = payload if isinstance(payload, list) else []
    items: List[SearchItem] = []
    for company in companies[:limit]:
        if not isinstance(company, dict) or not as_text(company.get("name")):
            continue
        company_domain = as_text(company.get("domain")) or domain
        items.append(
            SearchItem(
                title=company["name"],
                description=f"Domínio: {company_domain}",
                url=f"https://{company_domain}",
                source=Provider.CLEARBIT,
                domain=company_domain,
                logo=company.get("logo"),
            )
        )
    return items


def _valid_email(query: str) -> str | None:
    email = normalize_email(query)
    return email if is_valid_email(email) else None


class HIBPProvider(BaseProvider):
    provider = Provider.EMAIL_HIBP

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        email = _valid_email(query)
        if email is None:
            return []
        if not self.credentials.hibp_api_key:
            raise ProviderNotConfiguredError("HIBP não configurado: defina HIBP_API_KEY")
        url = HIBP_URL.format(email=quote(email))
        status, data = await self._get_json(
            url,
            params={"truncateResponse": "true"},
            headers={"hibp-api-key": self.credentials.hibp_api_key},
        )
        if status != 404 and data is None:
            raise ProviderError(f"HIBP falhou ({status})")
        return normalize_hibp(email, status, data, limit=self.max_items)


class EmailRepProvider(BaseProvider):
    provider = Provider.EMAILREP

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        email = _valid_email(query)
        if email is None:
            return []
        headers = {"Key": self.credentials.emailrep_api_key} if self.credentials.emailrep_api_key else {}
        status, data = await self._get_json(EMAILREP_URL.format(email=quote(email)), headers=headers)
        if data is None:
            raise ProviderError(f"EmailRep HTTP {status}")
        return normalize_emailrep(email, data)


class HunterProvider(BaseProvider):
    provider = Provider.HUNTER

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        email = _valid_email(query)
        if email is None:
            return []
        if not self.credentials.hunter_api_key:
            raise ProviderNotConfiguredError("Hunter.io não configurado")
        params = {"email": email, "api_key": self.credentials.hunter_api_key}
        status, data = await self._get_json(HUNTER_VERIFY_URL, params=params)
        if data is None:
            raise ProviderError(f"Hunter.io HTTP {status}")
        return normalize_hunter(email, data)


class GravatarProvider(BaseProvider):
    provider = Provider.GRAVATAR

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        email = _valid_email(query)
        if email is None:
            return []
        digest = hashlib.md5(email.encode("utf-8")).hexdigest()
        status, data = await self._get_json(GRAVATAR_URL.format(digest=digest))
        if status != 404 and data is None:
            raise ProviderError(f"Gravatar HTTP {status}")
        return normalize_gravatar(email, status, data)


class ClearbitProvider(BaseProvider):
    """Company suggestions for the email's domain; free-mail domains are skipped."""

    provider = Provider.CLEARBIT

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        email = _valid_email(query)
        if email is None:
            return []
        domain = email.split("@", 1)[1]
        if domain in FREE_MAIL_DOMAINS:
            return []
        status, data = await self._get_json(CLEARBIT_SUGGEST_URL, params={"query": domain})
        if data is None:
            raise ProviderError(f"Clearbit HTTP {status}")
        return normalize_clearbit(domain, data, limit=self.max_items)
