from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.filesystem.policy_source import DEFAULT_PATTERNS
from adapters.layout.grid import LayoutConfig
from domain.models import Point

DEFAULT_CONFIG_PATH = Path("config/visualizer/app.yaml")
CONFIG_PATH_ENV = "NPV_CONFIG_PATH"


def _split_string_list_value(raw_value: str) -> list[str]:
    raw = raw_value.strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1].strip()
    return [
        token for token in (part.strip().strip("'").strip('"') for part in raw.split(",")) if token
    ]


class LayoutSettings(BaseModel):
    nodes_per_row: int = Field(default=5, ge=1)
    horizontal_spacing: float = 200.0
    vertical_spacing: float = 150.0
    origin_x: float = 100.0
    origin_y: float = 100.0
    font_size: float = Field(default=12.0, gt=0)
    char_width_ratio: float = Field(default=0.6, gt=0)
    line_gap: float = 6.0
    padding: float = 30.0
    min_width: float = 80.0

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            nodes_per_row=self.nodes_per_row,
            horizontal_spacing=self.horizontal_spacing,
            vertical_spacing=self.vertical_spacing,
            origin=Point(self.origin_x, self.origin_y),
            font_size=self.font_size,
            char_width_ratio=self.char_width_ratio,
            line_gap=self.line_gap,
            padding=self.padding,
            min_width=self.min_width,
        )


class VisualizerSettings(BaseModel):
    title: str = "Kubernetes Network Policy Visualizer"
    max_input_bytes: int = Field(default=1024 * 1024, ge=0)
    policy_file_patterns: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PATTERNS)
    )
    layout: LayoutSettings = LayoutSettings()

    @field_validator("policy_file_patterns", mode="before")
    @classmethod
    def normalize_patterns(cls, value: object) -> list[str]:
        if value is None or value == "":
            return list(DEFAULT_PATTERNS)
        if isinstance(value, list):
            normalized: list[str] = []
            for item in value:
                normalized.extend(_split_string_list_value(str(item)))
            return normalized
        return _split_string_list_value(str(value))


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NPV_", env_nested_delimiter="__")

    visualizer: VisualizerSettings = VisualizerSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv(CONFIG_PATH_ENV)
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
