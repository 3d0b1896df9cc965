from __future__ import annotations

from adapters.documents.yaml_decoder import YamlDocumentDecoder
from adapters.filesystem.policy_source import FileSystemPolicySource
from adapters.layout.grid import GridLayoutEngine
from app.config import AppSettings
from domain.services.extract_policy_graph import PolicyGraphExtractor
from domain.services.visualize_policies import VisualizePolicies


def build_visualizer(settings: AppSettings) -> VisualizePolicies:
    layout = GridLayoutEngine(settings.visualizer.layout.to_layout_config())
    return VisualizePolicies(YamlDocumentDecoder(), PolicyGraphExtractor(layout))


def build_policy_source(settings: AppSettings) -> FileSystemPolicySource:
    return FileSystemPolicySource(settings.visualizer.policy_file_patterns)
