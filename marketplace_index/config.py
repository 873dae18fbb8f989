from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

import jsonschema

from .util import read_json, read_structured

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
CONFIG_SCHEMA_PATH = SCHEMA_DIR / "config.schema.json"

DEFAULT_SOURCE_DIR = "src"
DEFAULT_OUTPUT_PATH = "public/index.json"
DEFAULT_NAME = "@nothing/marketplace"
DEFAULT_VERSION = "1.0.0"


@dataclass(frozen=True)
class BuildConfig:
    source_dir: Path
    output_path: Path
    metadata_path: Path | None = None
    collect_errors: bool = False
    validate: bool = True

    @classmethod
    def from_working_dir(cls, cwd: Path | None = None) -> "BuildConfig":
        base = (cwd or Path.cwd()).resolve()
        return cls(
            source_dir=base / DEFAULT_SOURCE_DIR,
            output_path=base / DEFAULT_OUTPUT_PATH,
        )

    def with_overrides(self, **overrides) -> "BuildConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path: Path) -> BuildConfig:
    """Load a JSON or YAML build config.

    Relative paths resolve against the config file's directory, so a
    config checked into a repo works from any working directory.
    """
    raw = read_structured(path)
    if raw is None:
        raw = {}
    schema = read_json(CONFIG_SCHEMA_PATH)
    jsonschema.validate(instance=raw, schema=schema)

    base_dir = path.parent.resolve()

    def _resolve(p: str) -> Path:
        q = Path(p)
        return (base_dir / q).resolve() if not q.is_absolute() else q.resolve()

    metadata = raw.get("metadata_path")
    return BuildConfig(
        source_dir=_resolve(str(raw.get("source_dir", DEFAULT_SOURCE_DIR))),
        output_path=_resolve(str(raw.get("output_path", DEFAULT_OUTPUT_PATH))),
        metadata_path=_resolve(str(metadata)) if metadata else None,
        collect_errors=bool(raw.get("collect_errors", False)),
        validate=bool(raw.get("validate", True)),
    )
