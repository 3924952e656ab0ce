"""Run configuration - config.yaml schema and loader.

The YAML file has five sections (llm, translation, constraints,
runtime, prompts). Provider credentials may be left out of the file
and supplied through the environment instead (see config.py).
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from chapterflow.config import (
    CONFIG_FILENAMES,
    DEFAULT_GLOSSARY_FOLDER,
    DEFAULT_INPUT_FOLDER,
    DEFAULT_MAX_DICTIONARY_SIZE,
    DEFAULT_MAX_SUMMARY_LENGTH,
    DEFAULT_OUTPUT_FOLDER,
    DEFAULT_TEMPERATURE,
    WORKING_DIR,
)
from chapterflow.errors import ConfigLoadError
from chapterflow.utils.llm_factory import ProviderType

logger = logging.getLogger(__name__)


class ProviderSettings(BaseModel):
    """Credentials and model for one provider block."""

    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None


class LLMSettings(BaseModel):
    """Provider selection plus per-provider blocks."""

    provider: ProviderType = "gemini"
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    anthropic: ProviderSettings | None = None
    gemini: ProviderSettings | None = None
    mistral: ProviderSettings | None = None
    ollama: ProviderSettings | None = None
    openai: ProviderSettings | None = None

    def selected(self) -> ProviderSettings:
        """Return the block for the selected provider (empty if absent)."""
        return getattr(self, self.provider) or ProviderSettings()


class TranslationSettings(BaseModel):
    """Target language and the three chapter stores."""

    target_language: str
    input_folder: Path = DEFAULT_INPUT_FOLDER
    output_folder: Path = DEFAULT_OUTPUT_FOLDER
    glossary_folder: Path = DEFAULT_GLOSSARY_FOLDER


class ConstraintsSettings(BaseModel):
    """Limits passed to the analysis prompt."""

    max_summary_length: int = Field(default=DEFAULT_MAX_SUMMARY_LENGTH, gt=0)
    max_dictionary_size: int = Field(default=DEFAULT_MAX_DICTIONARY_SIZE, gt=0)


class RuntimeSettings(BaseModel):
    """Operator interaction settings."""

    unattended_mode: bool = False


class PromptSettings(BaseModel):
    """The two Jinja2 prompt templates."""

    analysis_prompt: str
    translation_prompt: str

    @model_validator(mode="after")
    def _not_blank(self) -> "PromptSettings":
        if not self.analysis_prompt.strip() or not self.translation_prompt.strip():
            raise ValueError("analysis_prompt and translation_prompt must not be empty")
        return self


class RunConfig(BaseModel):
    """Complete run configuration."""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    translation: TranslationSettings
    constraints: ConstraintsSettings = Field(default_factory=ConstraintsSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    prompts: PromptSettings

    def resolve_paths(self, base_dir: Path) -> "RunConfig":
        """Return a copy with relative folders anchored at base_dir."""
        translation = self.translation.model_copy(
            update={
                name: _anchor(getattr(self.translation, name), base_dir)
                for name in ("input_folder", "output_folder", "glossary_folder")
            }
        )
        return self.model_copy(update={"translation": translation})


def _anchor(path: Path, base_dir: Path) -> Path:
    path = Path(path).expanduser()
    return path if path.is_absolute() else base_dir / path


def find_config_file(search_dir: Path | None = None) -> Path:
    """Locate config.yaml (or config.yml) in search_dir.

    Raises:
        ConfigLoadError: If neither file exists
    """
    search_dir = Path(search_dir) if search_dir else WORKING_DIR
    for name in CONFIG_FILENAMES:
        candidate = search_dir / name
        if candidate.exists():
            return candidate
    raise ConfigLoadError(
        f"Config file not found: looked for {', '.join(CONFIG_FILENAMES)} in {search_dir}"
    )


def load_run_config(path: str | Path | None = None) -> RunConfig:
    """Load and validate the run configuration.

    Relative folders are resolved against the config file's directory.

    Args:
        path: Explicit config path. Defaults to config.yaml/config.yml
              in the working directory.

    Returns:
        Validated RunConfig

    Raises:
        ConfigLoadError: If the file is missing, empty, not valid YAML,
                         or fails validation
    """
    config_path = Path(path) if path else find_config_file()

    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {e}") from e

    if raw is None:
        raise ConfigLoadError(f"Empty config file: {config_path}")
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Config root must be a mapping: {config_path}")

    try:
        config = RunConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid config in {config_path}:\n{e}") from e

    logger.debug(f"Loaded run config from {config_path}")
    return config.resolve_paths(config_path.resolve().parent)


__all__ = [
    "ProviderSettings",
    "LLMSettings",
    "TranslationSettings",
    "ConstraintsSettings",
    "RuntimeSettings",
    "PromptSettings",
    "RunConfig",
    "find_config_file",
    "load_run_config",
]
