from __future__ import annotations

from pathlib import Path


class MarketplaceIndexError(Exception):
    """Base class for failures raised while building the index."""


class FileError(MarketplaceIndexError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class ParseError(FileError):
    """A descriptor or metadata file is missing or not valid JSON/YAML."""


class DescriptorError(FileError):
    """A descriptor parsed fine but does not have the expected shape."""


class MetadataError(FileError):
    """Package metadata lacks a string ``name`` or ``version``."""


class BuildError(MarketplaceIndexError):
    """Aggregate of per-file errors, raised when errors are collected."""

    def __init__(self, errors: list[FileError]) -> None:
        self.errors = list(errors)
        lines = [f"{len(self.errors)} descriptor file(s) failed:"]
        lines.extend(f"  {e}" for e in self.errors)
        super().__init__("\n".join(lines))
