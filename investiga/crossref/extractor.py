"""Pull canonical identifiers out of a normalized search item.

Two sources are combined for every item:
- structured attributes (top-level extras and the vendor ``raw`` payload)
- free text mined from ``title``, ``description``, ``url`` and ``source``

Values are canonicalized (digits only, lower-cased email, folded names), checked
for the right length, then de-duplicated per type keeping first-seen order.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List

from loguru import logger
from pydantic import BaseModel, Field

from investiga.crossref.models import IdentifierType
from investiga.normalization.field_picker import FieldPicker, as_list, as_scalar_text
from investiga.normalization.identifiers import (
    normalize_cep,
    normalize_cnpj,
    normalize_cpf,
    normalize_email,
    normalize_phone,
)
from investiga.normalization.names import NameNormalizer
from investiga.providers.models import SearchItem

CPF_PATTERNS = (re.compile(r"\b\d{3}\.\d{3}\.\d{3}-\d{2}\b"), re.compile(r"\b\d{11}\b"))
CNPJ_PATTERNS = (re.compile(r"\b\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}\b"), re.compile(r"\b\d{14}\b"))
CEP_PATTERN = re.compile(r"\b\d{5}-?\d{3}\b")
PHONE_PATTERN = re.compile(r"\b(?:\(?\d{2}\)?\s*)?\d{4,5}-?\d{4}\b")
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
NAME_PATTERN = re.compile(
    r"\b([A-ZÁÀÂÃÉÊÍÓÔÕÚÇ][a-záàâãéêíóôõúç]+"
    r"(?:\s+(?:de|da|do|dos|das|e|y|d')?\s*[A-ZÁÀÂÃÉÊÍÓÔÕÚÇ][a-záàâãéêíóôõúç]+)+)\b"
)

EXPECTED_LENGTHS = {
    IdentifierType.CPF: (11,),
    IdentifierType.CNPJ: (14,),
    IdentifierType.CEP: (8,),
    IdentifierType.PHONE: (10, 11),
}

_RAW_CPF = FieldPicker.keys("cpf", "Cpf", extractor=as_scalar_text)
_RAW_CNPJ = FieldPicker.keys("cnpj", extractor=as_scalar_text)
_ADDRESS_CEP = FieldPicker.keys("zip", "cep", extractor=as_scalar_text)
_RAW_NAME = FieldPicker.paths(("retorno", "Nome"), ("Nome",), ("nome",), ("name",))
_COMPANY_NAME = FieldPicker.keys("name")
_MEMBER_NAME = FieldPicker.paths(("person", "name"), ("name",))
_ALIAS = FieldPicker.keys("alias")


def _scalar_or_mapping(value: Any) -> Any:
    if isinstance(value, dict):
        return value
    return as_scalar_text(value)


_RAW_PHONE = FieldPicker.keys("phone", "telefone", "celular", extractor=_scalar_or_mapping)
_RAW_EMAIL = FieldPicker.keys("email", extractor=_scalar_or_mapping)


class ExtractedAttributes(BaseModel):
    """Canonical identifiers found in one item, per type, first-seen order."""

    cpf: List[str] = Field(default_factory=list)
    cnpj: List[str] = Field(default_factory=list)
    cep: List[str] = Field(default_factory=list)
    phone: List[str] = Field(default_factory=list)
    email: List[str] = Field(default_factory=list)
    name: List[str] = Field(default_factory=list)

    def values(self, kind: IdentifierType) -> List[str]:
        return getattr(self, kind.value)

    def is_empty(self) -> bool:
        return not any(self.values(kind) for kind in IdentifierType)


def _dedupe(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _push(bucket: List[str], value: Any) -> None:
    if value is None or value is False or value == "":
        return
    if isinstance(value, (dict, list)):
        return
    bucket.append(str(value))


def _party_name(party: Any) -> Any:
    if isinstance(party, str):
        return party
    if isinstance(party, dict):
        return party.get("nome") or party.get("name")
    return None


def _phone_value(phone: Any) -> Any:
    if isinstance(phone, dict):
        area = phone.get("area") or phone.get("ddd") or ""
        number = phone.get("number") or phone.get("numero") or ""
        return f"{area}{number}"
    return phone


def _email_value(email: Any) -> Any:
    if isinstance(email, dict):
        return email.get("address") or email.get("email")
    return email


class AttributeExtractor:
    """Extract cpf/cnpj/cep/phone/email/name values from search items."""

    def __init__(
        self,
        *,
        extract_names_from_text: bool = False,
        name_normalizer: NameNormalizer | None = None,
    ) -> None:
        self.extract_names_from_text = extract_names_from_text
        self.name_normalizer = name_normalizer or NameNormalizer()

        logger.debug(
            "Initialized AttributeExtractor",
            extract_names_from_text=extract_names_from_text,
        )

    def extract(self, item: SearchItem) -> ExtractedAttributes:
        acc: Dict[IdentifierType, List[str]] = {kind: [] for kind in IdentifierType}

        if isinstance(item.raw, dict):
            self._collect_raw(item.raw, acc)
        self._collect_item_fields(item, acc)

        text = " ".join(
            str(v or "") for v in (item.title, item.description, item.url, item.source.value)
        )
        for kind, values in self.extract_from_text(text).items():
            acc[kind].extend(values)

        return ExtractedAttributes(
            cpf=self._finalize(IdentifierType.CPF, map(normalize_cpf, acc[IdentifierType.CPF])),
            cnpj=self._finalize(IdentifierType.CNPJ, map(normalize_cnpj, acc[IdentifierType.CNPJ])),
            cep=self._finalize(IdentifierType.CEP, map(normalize_cep, acc[IdentifierType.CEP])),
            phone=self._finalize(IdentifierType.PHONE, map(normalize_phone, acc[IdentifierType.PHONE])),
            email=_dedupe(v for v in map(normalize_email, acc[IdentifierType.EMAIL]) if v),
            name=_dedupe(
                v
                for v in map(self.name_normalizer.normalize, acc[IdentifierType.NAME])
                if v and len(v) > 2
            ),
        )

    def extract_from_text(self, text: str) -> Dict[IdentifierType, List[str]]:
        """Mine identifiers from free text; names only when enabled."""
        found: Dict[IdentifierType, List[str]] = {
            IdentifierType.CPF: [
                normalize_cpf(m.group(0)) for p in CPF_PATTERNS for m in p.finditer(text)
            ],
            IdentifierType.CNPJ: [
                normalize_cnpj(m.group(0)) for p in CNPJ_PATTERNS for m in p.finditer(text)
            ],
            IdentifierType.CEP: [normalize_cep(m.group(0)) for m in CEP_PATTERN.finditer(text)],
            IdentifierType.PHONE: [normalize_phone(m.group(0)) for m in PHONE_PATTERN.finditer(text)],
            IdentifierType.EMAIL: [normalize_email(m.group(0)) for m in EMAIL_PATTERN.finditer(text)],
            IdentifierType.NAME: [],
        }
        for kind, lengths in EXPECTED_LENGTHS.items():
            found[kind] = _dedupe(v for v in found[kind] if len(v) in lengths)
        found[IdentifierType.EMAIL] = _dedupe(v for v in found[IdentifierType.EMAIL] if v)

        if self.extract_names_from_text:
            candidates = []
            for match in NAME_PATTERN.finditer(text):
                candidate = self.name_normalizer.normalize(match.group(1))
                if 2 <= len(candidate.split()) <= 6:
                    candidates.append(candidate)
            found[IdentifierType.NAME] = _dedupe(v for v in candidates if len(v) > 6)

        return found

    def _collect_raw(self, raw: Dict[str, Any], acc: Dict[IdentifierType, List[str]]) -> None:
        _push(acc[IdentifierType.CPF], _RAW_CPF.pick(raw))
        _push(acc[IdentifierType.CNPJ], _RAW_CNPJ.pick(raw))

        address = raw.get("address")
        addresses = raw.get("addresses")
        if not address and isinstance(addresses, list) and addresses:
            address = addresses[0]
        if isinstance(address, dict):
            _push(acc[IdentifierType.CEP], _ADDRESS_CEP.pick(address))

        for phone in as_list(raw.get("phones")) or _RAW_PHONE.pick_all(raw):
            _push(acc[IdentifierType.PHONE], _phone_value(phone))

        for email in as_list(raw.get("emails")) or _RAW_EMAIL.pick_all(raw):
            _push(acc[IdentifierType.EMAIL], _email_value(email))

        names = acc[IdentifierType.NAME]
        _push(names, _RAW_NAME.pick(raw))
        for party in as_list(raw.get("partes")):
            _push(names, _party_name(party))
        company = raw.get("company")
        if isinstance(company, dict):
            _push(names, _COMPANY_NAME.pick(company))
            for member in as_list(company.get("members")):
                _push(names, _MEMBER_NAME.pick(member))
        _push(names, _ALIAS.pick(raw))

    def _collect_item_fields(self, item: SearchItem, acc: Dict[IdentifierType, List[str]]) -> None:
        _push(acc[IdentifierType.CPF], item.extra("cpf"))
        _push(acc[IdentifierType.CNPJ], item.extra("cnpj"))
        _push(acc[IdentifierType.CEP], item.extra("cep"))
        for key in ("phone", "telefone", "celular", "mobile"):
            _push(acc[IdentifierType.PHONE], item.extra(key))
        for key in ("email", "mail"):
            _push(acc[IdentifierType.EMAIL], item.extra(key))
        for email in as_list(item.extra("emails")):
            _push(acc[IdentifierType.EMAIL], email)
        for party in as_list(item.extra("partes")):
            _push(acc[IdentifierType.NAME], _party_name(party))

    @staticmethod
    def _finalize(kind: IdentifierType, values: Iterable[str]) -> List[str]:
        lengths = EXPECTED_LENGTHS[kind]
        return _dedupe(v for v in values if len(v) in lengths)
