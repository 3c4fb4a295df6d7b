"""Person/company name normalization for cross-referencing."""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path
from typing import List

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field


class NameRules(BaseModel):
    """Name normalization rule set loaded from YAML."""

    model_config = ConfigDict(extra="ignore")

    stop_words: List[str] = Field(
        default_factory=lambda: ["de", "da", "do", "dos", "das", "e", "y", "d'", "del", "di"]
    )
    common_first_names: List[str] = Field(
        default_factory=lambda: [
            "maria", "joao", "jose", "ana", "carlos", "paulo", "luiz", "lucas",
            "pedro", "antonio", "marcos", "roberto", "bruno", "gabriel", "rafael",
            "rodrigo", "andre", "fernando", "francisco", "juliana", "patricia",
            "aline", "claudio",
        ]
    )
    common_last_names: List[str] = Field(
        default_factory=lambda: [
            "silva", "santos", "souza", "pereira", "almeida", "costa", "rodrigues",
            "ferreira", "oliveira", "lima", "araujo", "mendes", "barbosa", "ribeiro",
            "carvalho", "gomes", "martins", "pinto", "teixeira", "morais", "miranda",
            "medeiros",
        ]
    )
    short_name_max_tokens: int = 2
    short_name_max_chars: int = 14
    common_name_max_tokens: int = 3

    @classmethod
    def from_yaml(cls, rules_file: Path | None) -> NameRules:
        """Load rules from YAML, merging with defaults."""
        base = cls()

        if rules_file is None:
            return base

        if not rules_file.exists():
            raise FileNotFoundError(f"Name rules file not found: {rules_file}")

        loaded = yaml.safe_load(rules_file.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError("Name rules must be a mapping/dict.")

        merged = base.model_dump()
        for key, value in loaded.items():
            if key in merged:
                merged[key] = value

        return cls(**merged)


class NameNormalizer:
    """Fold names into comparison keys and flag generic ones.

    "João da Silva" and "joao silva" produce the same key: accents are folded,
    case is lowered, whitespace collapsed and connective particles dropped.
    """

    def __init__(self, rules: NameRules | None = None, rules_path: str | Path | None = None) -> None:
        if rules is None:
            rules = NameRules.from_yaml(Path(rules_path)) if rules_path else NameRules()
        self.rules = rules
        self._stop_words = frozenset(self.rules.stop_words)
        self._common_first = frozenset(self.rules.common_first_names)
        self._common_last = frozenset(self.rules.common_last_names)
        self._whitespace_re = re.compile(r"\s+")

        logger.debug(
            "Initialized NameNormalizer",
            stop_words=len(self._stop_words),
            rules_path=str(rules_path) if rules_path else None,
        )

    def normalize(self, value: object) -> str:
        base = self._whitespace_re.sub(" ", str(value or "").strip().lower())
        base = strip_accents(base)
        tokens = [t for t in base.split(" ") if t and t not in self._stop_words]
        return " ".join(tokens)

    def is_generic(self, value: object) -> bool:
        """Whether a name is too common/short to be a trustworthy tie."""
        normalized = self.normalize(value)
        if not normalized:
            return True
        tokens = normalized.split(" ")
        if len(tokens) <= 1:
            return True
        if (
            len(tokens) <= self.rules.short_name_max_tokens
            and len(normalized) <= self.rules.short_name_max_chars
        ):
            return True
        first, last = tokens[0], tokens[-1]
        if (
            first in self._common_first
            and last in self._common_last
            and len(tokens) <= self.rules.common_name_max_tokens
        ):
            return True
        return False


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return folded.replace("ç", "c").replace("Ç", "C")


def format_name(value: object) -> str:
    """Title-case each space separated token."""
    return " ".join(w[:1].upper() + w[1:] if w else w for w in str(value or "").split(" "))


def load_name_normalizer(rules_file: str | Path | None) -> NameNormalizer:
    """Normalizer for a configured rules file; a missing file falls back to defaults."""
    if rules_file and Path(rules_file).exists():
        return NameNormalizer(rules_path=rules_file)
    if rules_file:
        logger.warning(f"Name rules file not found, using defaults: {rules_file}")
    return NameNormalizer()


_default_normalizer: NameNormalizer | None = None


def _default() -> NameNormalizer:
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = NameNormalizer()
    return _default_normalizer


def normalize_name(value: object) -> str:
    return _default().normalize(value)


def is_generic_name(value: object) -> bool:
    return _default().is_generic(value)
