from __future__ import annotations

from .builder import BuildResult, build
from .config import BuildConfig, load_config
from .errors import BuildError, DescriptorError, MarketplaceIndexError, MetadataError, ParseError

__all__ = [
    "BuildConfig",
    "BuildError",
    "BuildResult",
    "DescriptorError",
    "MarketplaceIndexError",
    "MetadataError",
    "ParseError",
    "__version__",
    "build",
    "load_config",
]
__version__ = "0.1.0"
