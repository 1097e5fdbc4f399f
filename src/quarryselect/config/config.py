"""
Configuration management for QuarrySelect using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quarryselect.exceptions import ConfigurationError
from quarryselect.protocols import (
    Destination,
    ExtractionConfig,
    FieldSpec,
    MultiplicityMode,
    NotFoundBehaviour,
)
from quarryselect.selectors import SelectorDialect, check_selector, make_selector

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class FieldSelector(BaseModel):
    """A named selector supplied as a dynamic configuration entry."""

    name: str = Field(description="Name of the attribute or value produced by this selector.")
    selector: str = Field(description="Selector evaluated against the root element.")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("field name must not be blank")
        return v


class ExtractionSettings(BaseModel):
    """Raw extraction settings as supplied by the host."""

    root_selector: Optional[str] = Field(
        default=None,
        description="Selector of the element all field selectors are evaluated from. "
        "Records without a matching root are routed to 'not found'.",
    )
    selector_dialect: SelectorDialect = Field(
        default=SelectorDialect.CSS, description="Query language of every selector (css or xpath)."
    )
    select_text: bool = Field(default=True, description="Extract element text instead of outer markup.")
    select_multiple: bool = Field(
        default=False, description="Always produce arrays when multiplicity_mode is 'flag'."
    )
    multiplicity_mode: MultiplicityMode = Field(
        default=MultiplicityMode.COUNT, description="Whether select_multiple may also force arrays for single matches."
    )
    destination: Destination = Field(
        default=Destination.ATTRIBUTE, description="Write extracted values as attributes or as content."
    )
    not_found_behaviour: NotFoundBehaviour = Field(
        default=NotFoundBehaviour.WARN, description="How to handle fields with no matching elements."
    )
    selectors: List[FieldSelector] = Field(
        default_factory=list, description="Ordered field selectors, as a name -> selector mapping or a list."
    )

    @field_validator("root_selector", mode="before")
    @classmethod
    def blank_root_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("selectors", mode="before")
    @classmethod
    def coerce_selectors(cls, v: Any) -> Any:
        """Accept a mapping of name -> selector, keeping declaration order."""
        if isinstance(v, Mapping):
            return [{"name": name, "selector": selector} for name, selector in v.items()]
        return v

    @model_validator(mode="after")
    def validate_selectors(self) -> ExtractionSettings:
        """Reject empty field lists, duplicate names and malformed selectors."""
        problems: List[str] = []

        if not self.selectors:
            problems.append("At least one field selector must be specified")

        seen: set[str] = set()
        for entry in self.selectors:
            if entry.name in seen:
                problems.append(f"Duplicate field name '{entry.name}'")
            seen.add(entry.name)

            reason = check_selector(entry.selector, self.selector_dialect)
            if reason:
                problems.append(f"Invalid selector for field '{entry.name}': {reason}")

        if self.root_selector is not None:
            reason = check_selector(self.root_selector, self.selector_dialect)
            if reason:
                problems.append(f"Invalid root selector: {reason}")

        if problems:
            raise ValueError("; ".join(problems))
        return self


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(
        default=None,
        description="Path to a JSON log file. If None, logs to console.",
    )

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


def read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML configuration file without validating it."""
    log.debug("Loading configuration from YAML file: %s", path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
    with open(path, "r", encoding="utf-8") as f:
        yaml_data = yaml.safe_load(f)
    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
    return yaml_data


# --- Main Configuration Class ---


class Config(BaseSettings):
    extraction: ExtractionSettings = Field(default_factory=lambda: ExtractionSettings.model_construct())
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="QUARRYSELECT_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        yaml_data = read_yaml(path)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def _describe(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


def _problems(error: ValidationError) -> List[str]:
    problems: List[str] = []
    for detail in error.errors():
        problems.extend(_describe(detail).split("; "))
    return problems


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load the application configuration from YAML, or from the environment
    when no path is given.

    Raises:
        ConfigurationError: If the file content does not validate
    """
    try:
        return Config.from_yaml(path) if path is not None else Config()
    except ValidationError as e:
        problems = _problems(e)
        raise ConfigurationError("Invalid configuration: " + "; ".join(problems), problems) from e


def configure(raw: Union[ExtractionSettings, Mapping[str, Any], None] = None, **overrides: Any) -> ExtractionConfig:
    """
    Build the immutable extraction snapshot used by every record in a run.

    Args:
        raw: Validated settings or a mapping of raw configuration values
        **overrides: Individual settings taking precedence over ``raw``

    Returns:
        The frozen ExtractionConfig

    Raises:
        ConfigurationError: If any setting or selector is invalid
    """
    try:
        # Settings built with model_construct() skipped validation, so always re-validate
        data: Dict[str, Any] = raw.model_dump() if isinstance(raw, ExtractionSettings) else dict(raw or {})
        data.update(overrides)
        settings = ExtractionSettings.model_validate(data)
    except ValidationError as e:
        problems = _problems(e)
        raise ConfigurationError("Invalid extraction configuration: " + "; ".join(problems), problems) from e

    dialect = settings.selector_dialect
    root_selector = make_selector(settings.root_selector, dialect) if settings.root_selector else None
    fields = tuple(FieldSpec(entry.name, make_selector(entry.selector, dialect)) for entry in settings.selectors)

    log.debug("Configured %d field selector(s) using the %s dialect", len(fields), dialect.value)

    return ExtractionConfig(
        fields=fields,
        root_selector=root_selector,
        dialect=dialect,
        select_text=settings.select_text,
        select_multiple=settings.select_multiple,
        multiplicity_mode=settings.multiplicity_mode,
        destination=settings.destination,
        not_found_behaviour=settings.not_found_behaviour,
    )
