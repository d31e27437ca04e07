"""Repository discovery: languages, tools and workspace layout."""

from shipshape.discovery.classifier import LanguageClassifier, LanguageTally
from shipshape.discovery.engine import DiscoveryEngine, DiscoveryOptions, discover
from shipshape.discovery.frameworks import FrameworkDetectionResult, FrameworkDetector
from shipshape.discovery.models import (
    DiscoveryWarning,
    FileDescriptor,
    Framework,
    FrameworkType,
    LanguageInfo,
    PackageInfo,
    Repository,
    WorkspaceFormat,
    WorkspaceInfo,
)
from shipshape.discovery.render import render_json, render_text
from shipshape.discovery.walker import TreeWalker
from shipshape.discovery.workspaces import WorkspaceDetectionResult, WorkspaceDetector

__all__ = [
    # Orchestration
    "DiscoveryEngine",
    "DiscoveryOptions",
    "discover",
    # Components
    "TreeWalker",
    "LanguageClassifier",
    "LanguageTally",
    "FrameworkDetector",
    "FrameworkDetectionResult",
    "WorkspaceDetector",
    "WorkspaceDetectionResult",
    # Models
    "DiscoveryWarning",
    "FileDescriptor",
    "Framework",
    "FrameworkType",
    "LanguageInfo",
    "PackageInfo",
    "Repository",
    "WorkspaceFormat",
    "WorkspaceInfo",
    # Rendering
    "render_json",
    "render_text",
]
