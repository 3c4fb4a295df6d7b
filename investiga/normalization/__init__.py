"""Normalization package."""

from investiga.normalization.field_picker import FieldCandidate, FieldPicker, dig
from investiga.normalization.identifiers import (
    DocumentValidation,
    PhoneInfo,
    format_cep,
    format_cnpj,
    format_cpf,
    format_phone,
    format_pis,
    is_valid_cep,
    is_valid_cnpj,
    is_valid_cpf,
    is_valid_email,
    is_valid_phone,
    is_valid_pis,
    normalize_cep,
    normalize_cnpj,
    normalize_cpf,
    normalize_email,
    normalize_phone,
    only_digits,
    parse_phone,
    validate_cnpj,
    validate_cpf,
    validate_pis,
)
from investiga.normalization.names import (
    NameNormalizer,
    NameRules,
    format_name,
    is_generic_name,
    normalize_name,
)

__all__ = [
    "DocumentValidation",
    "FieldCandidate",
    "FieldPicker",
    "NameNormalizer",
    "NameRules",
    "PhoneInfo",
    "dig",
    "format_cep",
    "format_cnpj",
    "format_cpf",
    "format_name",
    "format_phone",
    "format_pis",
    "is_generic_name",
    "is_valid_cep",
    "is_valid_cnpj",
    "is_valid_cpf",
    "is_valid_email",
    "is_valid_phone",
    "is_valid_pis",
    "normalize_cep",
    "normalize_cnpj",
    "normalize_cpf",
    "normalize_email",
    "normalize_name",
    "normalize_phone",
    "only_digits",
    "parse_phone",
    "validate_cnpj",
    "validate_cpf",
    "validate_pis",
]
