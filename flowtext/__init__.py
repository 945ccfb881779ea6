"""Text flowcharts for Python snippets, generated by pyflowchart in an isolated runtime."""

from flowtext.invoker import analyze, analyze_sync, build_script
from flowtext.errors import (
    AnalysisError,
    ExecutionError,
    FlowtextError,
    PackageInstallError,
    PackageManagerLoadError,
    RuntimeLoadError,
)
from flowtext.runtime.loader import SingletonAsyncResource, get_resource

__all__ = [
    "AnalysisError",
    "ExecutionError",
    "FlowtextError",
    "PackageInstallError",
    "PackageManagerLoadError",
    "RuntimeLoadError",
    "SingletonAsyncResource",
    "analyze",
    "analyze_sync",
    "build_script",
    "get_resource",
]
