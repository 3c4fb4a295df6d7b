"""Configuration management using Pydantic for validation."""

from pathlib import Path
from typing import Any, Dict, List, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProvidersConfig(BaseSettings):
    """Outbound provider call configuration."""

    timeout_seconds: float = 15.0
    max_items: int = 5
    user_agent: str = "InvestigaOSINT"
    enabled: Dict[str, bool] = Field(
        default_factory=lambda: {
            "cpf": True,
            "cnpj": True,
            "cep": True,
            "phone": True,
            "phone_portabilidade": False,
            "ddd_brasilapi": True,
            "ddd_apibrasil": False,
            "duckduckgo": True,
            "wikipedia": True,
            "github": False,
            "directdata": False,
            "datajud": False,
            "email_hibp": False,
            "emailrep": True,
            "hunter": False,
            "gravatar": True,
            "clearbit": True,
            "clt_pis": True,
        }
    )

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    def is_enabled(self, provider: str) -> bool:
        return bool(self.enabled.get(provider, False))


class CredentialsConfig(BaseSettings):
    """Vendor credentials from environment variables or the .env file."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # DirectData (generic paid vendor)
    direct_data_api_key: str = Field(default="")
    direct_data_base_url: str = Field(default="")
    direct_data_auth_header: str = Field(default="X-API-Key")
    direct_data_auth_scheme: str = Field(default="")

    # Email providers
    hibp_api_key: str = Field(default="")
    hunter_api_key: str = Field(default="")
    emailrep_api_key: str = Field(default="")

    # Others
    github_token: str = Field(default="")
    apibrasil_token: str = Field(default="")
    apibrasil_device_token: str = Field(default="")
    datajud_api_key: str = Field(default="")


class SearchConfig(BaseSettings):
    """Per-field provider selection and enrichment switches."""

    auto_enrichment: bool = True
    enrichment_limit: int = Field(default=3, ge=0)
    force_generic_providers: bool = False
    force_duckduckgo_for_cpf: bool = False
    force_duckduckgo_for_cnpj: bool = False
    refine_duckduckgo_for_cpf_cnpj: bool = False
    refine_duckduckgo_for_nome_rg: bool = False
    apibrasil_no_fallback: bool = False
    datajud_tribunal: str = "tjsp"


class CrossReferenceConfig(BaseSettings):
    """Cross-reference (cruzamento) configuration."""

    extract_names_from_text: bool = False
    hide_generic_names: bool = True
    rules_file: str = "config/name_rules.yaml"


class ExportConfig(BaseSettings):
    """Export configuration."""

    columns: Dict[str, bool] = Field(
        default_factory=lambda: {
            "consulta": False,
            "data": True,
            "endereco": False,
            "telefones": False,
            "emails": False,
            "diretores": False,
            "json": True,
            "raw": True,
        }
    )
    order: List[str] = Field(
        default_factory=lambda: [
            "consulta",
            "data",
            "endereco",
            "telefones",
            "emails",
            "diretores",
            "json",
            "raw",
        ]
    )
    preset: Literal["Minimal", "Completo", "Investigação", "Analítico"] | None = None
    xlsx_mode: Literal["single", "per_field", "per_provider", "field_provider"] = "single"
    only_crossed: bool = False
    output_dir: str = "data/exports"


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    file: str = "logs/investiga.log"
    rotation: str = "10 MB"
    retention: int = 5


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    # Configuration sections
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    cross_reference: CrossReferenceConfig = Field(default_factory=CrossReferenceConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win).

        This is used to apply environment-derived overrides on top of YAML defaults.
        """
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML file is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        # Nested BaseSettings do not pick up plain env vars (e.g. HIBP_API_KEY)
        # through the parent model, so credentials are resolved separately and
        # merged under "credentials".
        env_overrides = cls().model_dump(exclude_defaults=True)
        env_overrides.pop("credentials", None)

        cred_env_overrides = CredentialsConfig().model_dump(exclude_defaults=True)
        if cred_env_overrides:
            yaml_creds = yaml_config.get("credentials", {})
            env_overrides["credentials"] = cls._deep_merge_dict(
                yaml_creds if isinstance(yaml_creds, dict) else {},
                cred_env_overrides,
            )

        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)

    def validate_config(self) -> None:
        """Validate configuration settings.

        Raises:
            ValueError: If configuration is invalid
        """
        unknown_columns = set(self.export.order) - set(self.export.columns)
        if unknown_columns:
            raise ValueError(f"Unknown export columns in order: {sorted(unknown_columns)}")

        if self.search.enrichment_limit > 10:
            raise ValueError("search.enrichment_limit must not exceed 10")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get or create global configuration instance.

    Returns:
        Global Config instance

    Raises:
        RuntimeError: If configuration hasn't been initialized
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(yaml_path: str | Path = "config/config.yaml") -> Config:
    """Load and validate configuration.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        Loaded and validated Config instance
    """
    global _config
    _config = Config.from_yaml(yaml_path)
    _config.validate_config()
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
