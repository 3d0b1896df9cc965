from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.layout.grid import GridLayoutEngine
from app.config import AppSettings, LayoutSettings, VisualizerSettings
from domain.services.extract_policy_graph import PolicyGraphExtractor


def _clear_npv_env() -> None:
    for key in list(os.environ):
        if key.startswith("NPV_"):
            os.environ.pop(key, None)


_clear_npv_env()


@pytest.fixture(autouse=True)
def clear_npv_env() -> Generator[None, None, None]:
    _clear_npv_env()
    yield
    _clear_npv_env()


@pytest.fixture
def extractor() -> PolicyGraphExtractor:
    return PolicyGraphExtractor(GridLayoutEngine())


@pytest.fixture
def visualizer_settings() -> VisualizerSettings:
    return VisualizerSettings(
        title="Test Visualizer",
        max_input_bytes=64 * 1024,
        layout=LayoutSettings(),
    )


@pytest.fixture
def visualizer_settings_factory(
    visualizer_settings: VisualizerSettings,
) -> Callable[..., VisualizerSettings]:
    def _factory(**overrides: object) -> VisualizerSettings:
        return visualizer_settings.model_copy(update=overrides)

    return _factory


@pytest.fixture
def app_settings(visualizer_settings: VisualizerSettings) -> AppSettings:
    return AppSettings(visualizer=visualizer_settings)


@pytest.fixture
def app_settings_factory(
    visualizer_settings_factory: Callable[..., VisualizerSettings],
) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return AppSettings(visualizer=visualizer_settings_factory(**overrides))

    return _factory
