"""
AxiomOS — Configuration System

All configuration is Pydantic-validated and loaded from:
1. default.yaml (defaults)
2. Environment variables (overrides)

Every tunable parameter of the healer lives here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from axiomos.systems.healer.registry import DEFAULT_WEIGHTS, MAX_WEIGHT, MIN_WEIGHT
from axiomos.systems.healer.strategies import DEFAULT_PLAN, DEFAULT_REPLACEMENTS
from axiomos.systems.healer.types import Axiom, CorrectionStrategy, Severity

# ─── Sub-configs ──────────────────────────────────────────────────


class RuleConfig(BaseModel):
    """A keyword detection rule declared in configuration."""

    name: str
    axiom: Axiom
    severity: Severity
    keywords: list[str] = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _severity_by_name(cls, data: Any) -> Any:
        # YAML authors write "high", not 3
        if isinstance(data, dict) and isinstance(data.get("severity"), str):
            name = data["severity"].upper()
            if name not in Severity.__members__:
                raise ValueError(f"Unknown severity: {data['severity']!r}")
            data = {**data, "severity": Severity[name]}
        return data


def _default_rules() -> list[RuleConfig]:
    return [
        RuleConfig(
            name="inconsistency",
            axiom=Axiom.CONSISTENCY,
            severity=Severity.HIGH,
            keywords=["inconsistent"],
        ),
        RuleConfig(
            name="unsafe_operation",
            axiom=Axiom.SAFETY,
            severity=Severity.CRITICAL,
            keywords=["unsafe"],
        ),
    ]


class RegularizerConfig(BaseModel):
    # Step size for weight adaptation
    learning_rate: float = Field(default=0.01, ge=0.0)
    min_weight: float = Field(default=MIN_WEIGHT, gt=0.0)
    max_weight: float = MAX_WEIGHT
    initial_weights: dict[Axiom, float] = Field(
        default_factory=lambda: dict(DEFAULT_WEIGHTS)
    )
    rules: list[RuleConfig] = Field(default_factory=_default_rules)

    @model_validator(mode="after")
    def _check_bounds(self) -> RegularizerConfig:
        if self.min_weight > self.max_weight:
            raise ValueError(
                f"min_weight {self.min_weight} exceeds max_weight {self.max_weight}"
            )
        names = [r.name for r in self.rules]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate rule names in {names}")
        return self


class HealerConfig(BaseModel):
    # Penalty must exceed this before healing is attempted
    threshold: float = Field(default=0.5, ge=0.0)
    # Master switch: False = observe and record only
    auto_heal: bool = True
    strategies: dict[Axiom, list[CorrectionStrategy]] = Field(
        default_factory=lambda: {a: list(s) for a, s in DEFAULT_PLAN.items()}
    )
    recompute_replacements: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_REPLACEMENTS)
    )


class LedgerConfig(BaseModel):
    # None = unbounded history
    max_entries: int | None = Field(default=None, ge=1)
    lock_timeout_s: float = Field(default=5.0, gt=0.0)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Configuration ──────────────────────────────────────────


class AxiomOSConfig(BaseSettings):
    """
    Root configuration.

    Precedence, highest first: constructor kwargs, AXIOMOS_<SECTION>__<KEY>
    env vars, the YAML file named by ``yaml_file``, field defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="AXIOMOS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    instance_id: str = "axiomos-default"

    regularizer: RegularizerConfig = Field(default_factory=RegularizerConfig)
    healer: HealerConfig = Field(default_factory=HealerConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def _env_overrides() -> dict[str, Any]:
    """Flat env vars for the knobs operators flip most often."""
    raw: dict[str, Any] = {}
    if threshold := os.environ.get("AXIOMOS_THRESHOLD"):
        raw.setdefault("healer", {})["threshold"] = float(threshold)
    if auto_heal := os.environ.get("AXIOMOS_AUTO_HEAL"):
        raw.setdefault("healer", {})["auto_heal"] = auto_heal.lower() in ("true", "1", "yes")
    if learning_rate := os.environ.get("AXIOMOS_LEARNING_RATE"):
        raw.setdefault("regularizer", {})["learning_rate"] = float(learning_rate)
    if log_level := os.environ.get("AXIOMOS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level
    return raw


def load_config(config_path: str | Path | None = None) -> AxiomOSConfig:
    """
    Load configuration from a YAML file with environment variable overrides.

    The flat variables (AXIOMOS_THRESHOLD, AXIOMOS_AUTO_HEAL,
    AXIOMOS_LEARNING_RATE, AXIOMOS_LOG_LEVEL) beat their nested
    counterparts. A missing file falls back to defaults.
    """
    yaml_file = Path(config_path) if config_path else None

    class _FileBackedConfig(AxiomOSConfig):
        model_config = SettingsConfigDict(yaml_file=yaml_file)

    return _FileBackedConfig(**_env_overrides())
