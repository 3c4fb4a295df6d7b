"""Brazilian document and contact identifiers: normalization, validation, formatting.

Check-digit rules:
- CPF: weights 10..2 then 11..2, mod 11, remainder < 2 maps to 0.
- CNPJ: weights [5,4,3,2,9,8,7,6,5,4,3,2] then [6,5,4,3,2,9,8,7,6,5,4,3,2]
  (the second pass folds in the first check digit), remainder < 2 maps to 0.
- PIS/NIT: weights [3,2,9,8,7,6,5,4,3,2], dv = 11 - sum % 11, 10/11 map to 0.

All-equal digit strings are never valid CPFs or CNPJs.
"""

from __future__ import annotations

import re
from typing import Sequence

from pydantic import BaseModel, ConfigDict

_NON_DIGITS_RE = re.compile(r"\D+")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
PIS_WEIGHTS = (3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


class DocumentValidation(BaseModel):
    """Outcome of a local check-digit validation."""

    model_config = ConfigDict(frozen=True)

    digits: str
    formatted: str
    valid: bool


class PhoneInfo(BaseModel):
    """Parsed Brazilian phone number."""

    model_config = ConfigDict(frozen=True)

    digits: str
    ddd: str
    local: str
    is_cell: bool
    formatted: str
    e164: str

    @property
    def kind(self) -> str:
        return "Celular" if self.is_cell else "Fixo"


def only_digits(value: object) -> str:
    """Strip everything that is not a digit."""
    if value is None:
        return ""
    return _NON_DIGITS_RE.sub("", str(value))


def _all_equal(digits: str) -> bool:
    return len(set(digits)) == 1


def _mod11_digit(digits: str, weights: Sequence[int]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


# --- normalization -----------------------------------------------------------


def normalize_cpf(value: object) -> str:
    return only_digits(value)[:11]


def normalize_cnpj(value: object) -> str:
    return only_digits(value)[:14]


def normalize_cep(value: object) -> str:
    return only_digits(value)[:8]


def normalize_phone(value: object) -> str:
    """Digits of a BR phone, or "" when fewer than 10 digits are present."""
    digits = only_digits(value)
    return digits[:11] if len(digits) >= 10 else ""


def normalize_email(value: object) -> str:
    return str(value or "").strip().lower()


# --- validation --------------------------------------------------------------


def is_valid_cpf(value: object) -> bool:
    digits = only_digits(value)
    if len(digits) != 11 or _all_equal(digits):
        return False
    d1 = _mod11_digit(digits[:9], range(10, 1, -1))
    d2 = _mod11_digit(digits[:10], range(11, 1, -1))
    return d1 == int(digits[9]) and d2 == int(digits[10])


def is_valid_cnpj(value: object) -> bool:
    digits = only_digits(value)
    if len(digits) != 14 or _all_equal(digits):
        return False
    d1 = _mod11_digit(digits[:12], CNPJ_WEIGHTS_1)
    d2 = _mod11_digit(digits[:12] + str(d1), CNPJ_WEIGHTS_2)
    return digits[12] == str(d1) and digits[13] == str(d2)


def is_valid_pis(value: object) -> bool:
    digits = only_digits(value)
    if len(digits) != 11:
        return False
    total = sum(int(d) * w for d, w in zip(digits[:10], PIS_WEIGHTS))
    dv = 11 - (total % 11)
    if dv in (10, 11):
        dv = 0
    return dv == int(digits[10])


def is_valid_cep(value: object) -> bool:
    """Shape check only; existence is decided by the CEP vendor."""
    return len(only_digits(value)) == 8


def is_valid_phone(value: object) -> bool:
    return len(only_digits(value)) in (10, 11)


def is_valid_email(value: object) -> bool:
    return bool(EMAIL_RE.match(str(value or "").strip()))


def validate_cpf(value: object) -> DocumentValidation:
    digits = only_digits(value)
    return DocumentValidation(digits=digits, formatted=format_cpf(digits), valid=is_valid_cpf(digits))


def validate_cnpj(value: object) -> DocumentValidation:
    digits = only_digits(value)
    return DocumentValidation(
        digits=digits, formatted=format_cnpj(digits), valid=is_valid_cnpj(digits)
    )


def validate_pis(value: object) -> DocumentValidation:
    digits = only_digits(value)
    return DocumentValidation(digits=digits, formatted=format_pis(digits), valid=is_valid_pis(digits))


# --- formatting --------------------------------------------------------------


def format_cpf(value: object) -> str:
    s = only_digits(value)[:11]
    if len(s) <= 3:
        return s
    if len(s) <= 6:
        return f"{s[:3]}.{s[3:]}"
    if len(s) <= 9:
        return f"{s[:3]}.{s[3:6]}.{s[6:]}"
    return f"{s[:3]}.{s[3:6]}.{s[6:9]}-{s[9:]}"


def format_cnpj(value: object) -> str:
    s = only_digits(value)[:14]
    if len(s) <= 2:
        return s
    if len(s) <= 5:
        return f"{s[:2]}.{s[2:]}"
    if len(s) <= 8:
        return f"{s[:2]}.{s[2:5]}.{s[5:]}"
    if len(s) <= 12:
        return f"{s[:2]}.{s[2:5]}.{s[5:8]}/{s[8:]}"
    return f"{s[:2]}.{s[2:5]}.{s[5:8]}/{s[8:12]}-{s[12:]}"


def format_cep(value: object) -> str:
    s = only_digits(value)[:8]
    if len(s) <= 5:
        return s
    return f"{s[:5]}-{s[5:]}"


def format_phone(value: object) -> str:
    s = only_digits(value)[:11]
    if len(s) <= 2:
        return s
    if len(s) <= 6:
        return f"({s[:2]}) {s[2:]}"
    if len(s) <= 10:
        return f"({s[:2]}) {s[2:6]}-{s[6:]}"
    return f"({s[:2]}) {s[2:7]}-{s[7:]}"


def format_pis(value: object) -> str:
    s = only_digits(value)
    if len(s) != 11:
        return str(value or "")
    return f"{s[:3]}.{s[3:8]}.{s[8:10]}-{s[10:]}"


def parse_phone(value: object) -> PhoneInfo | None:
    """Parse a BR phone (10 or 11 digits, optional 55 country prefix).

    A number is a cell phone when it has 11 digits and its third digit is 9.
    """
    digits = only_digits(value)
    if digits.startswith("55") and len(digits) >= 12:
        digits = digits[2:]
    if len(digits) not in (10, 11):
        return None

    ddd = digits[:2]
    local = digits[2:]
    is_cell = len(digits) == 11 and digits[2] == "9"
    if is_cell:
        formatted = f"({ddd}) {local[:5]}-{local[5:]}"
    else:
        formatted = f"({ddd}) {local[:4]}-{local[4:]}"
    return PhoneInfo(
        digits=digits,
        ddd=ddd,
        local=local,
        is_cell=is_cell,
        formatted=formatted,
        e164=f"+55{digits}",
    )
