"""A command-line chat client for iFlytek Spark's streaming chat completions."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spark-cli")
except PackageNotFoundError:
    __version__ = "0.0.0"
