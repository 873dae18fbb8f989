"""Aggregate per-extension descriptor files into one marketplace index.

The build is a single pass: enumerate ``*.json`` files in the source
directory, parse each one, collect ``meta.tags``, sort, and write the
index document. Nothing is written unless every descriptor loaded.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

import jsonschema
import yaml

from .collation import identifier_sort_key, tag_sort_key
from .config import DEFAULT_NAME, DEFAULT_VERSION, SCHEMA_DIR, BuildConfig
from .errors import BuildError, DescriptorError, FileError, MetadataError, ParseError
from .util import ensure_dir, log_event, read_json, read_structured, setup_json_logger, write_json

_LOG = setup_json_logger("marketplace_index.builder")

DESCRIPTOR_SUFFIX = ".json"


@dataclass(frozen=True)
class BuildResult:
    output_path: Path
    name: str
    version: str
    extension_count: int
    tag_count: int


def _validator(schema_name: str) -> Any:
    schema = read_json(SCHEMA_DIR / schema_name)
    return jsonschema.Draft202012Validator(schema)


def _first_error(validator: Any, instance: Any) -> str | None:
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path))
    if not errors:
        return None
    e = errors[0]
    loc = "/".join(str(x) for x in e.absolute_path) or "(root)"
    return f"{loc}: {e.message}"


def load_package_metadata(path: Path) -> tuple[str, str]:
    try:
        raw = read_structured(path)
    except FileNotFoundError as exc:
        raise ParseError(path, "package metadata file not found") from exc
    except (ValueError, yaml.YAMLError) as exc:
        raise ParseError(path, f"invalid package metadata: {exc}") from exc

    problem = _first_error(_validator("package_metadata.schema.json"), raw)
    if problem:
        raise MetadataError(path, problem)
    return raw["name"], raw["version"]


def iter_descriptor_files(source_dir: Path) -> Iterator[Path]:
    """Yield descriptor files in filename order.

    Raises ``FileNotFoundError`` when ``source_dir`` does not exist.
    """
    for p in sorted(source_dir.iterdir(), key=lambda x: x.name):
        if p.name.endswith(DESCRIPTOR_SUFFIX) and p.is_file():
            yield p


def load_descriptor(path: Path, *, validator: Any | None = None) -> dict:
    try:
        descriptor = read_json(path)
    except UnicodeDecodeError as exc:
        raise ParseError(path, f"not UTF-8 text: {exc}") from exc
    except ValueError as exc:
        raise ParseError(path, f"invalid JSON: {exc}") from exc

    if validator is not None:
        problem = _first_error(validator, descriptor)
        if problem:
            raise DescriptorError(path, problem)
    elif not isinstance(_meta_of(descriptor).get("tags") or [], list):
        # Unvalidated descriptors still need iterable tags.
        raise DescriptorError(path, "meta/tags: expected a list of tags")
    return descriptor


def load_descriptors(
    paths: Iterable[Path], *, validate: bool = True, collect_errors: bool = False
) -> list[dict]:
    validator = _validator("descriptor.schema.json") if validate else None
    descriptors: list[dict] = []
    failures: list[FileError] = []
    for path in paths:
        try:
            descriptors.append(load_descriptor(path, validator=validator))
        except (ParseError, DescriptorError) as exc:
            if not collect_errors:
                raise
            failures.append(exc)
    if failures:
        raise BuildError(failures)
    return descriptors


def _meta_of(descriptor: Any) -> dict:
    meta = descriptor.get("meta") if isinstance(descriptor, dict) else None
    return meta if isinstance(meta, dict) else {}


def _tags_of(descriptor: Any) -> list:
    tags = _meta_of(descriptor).get("tags")
    return tags if isinstance(tags, list) else []


def collect_tags(descriptors: Iterable[dict]) -> set[str]:
    tags: set[str] = set()
    for d in descriptors:
        tags.update(_tags_of(d))
    return tags


def _identifier_of(descriptor: Any) -> str:
    if isinstance(descriptor, dict):
        return str(descriptor.get("identifier", ""))
    return ""


def sort_extensions(descriptors: Iterable[dict]) -> list[dict]:
    # Stable: equal identifiers keep encounter order.
    return sorted(descriptors, key=lambda d: identifier_sort_key(_identifier_of(d)))


def sort_tags(tags: Iterable[str]) -> list[str]:
    return sorted(set(tags), key=tag_sort_key)


def assemble_index(name: str, version: str, extensions: list[dict], tags: list[str]) -> dict:
    return {
        "name": name,
        "version": version,
        "extensions": extensions,
        "tags": tags,
    }


def write_index(path: Path, index: dict) -> None:
    write_json(path, index)


def build(config: BuildConfig | None = None) -> BuildResult:
    cfg = config or BuildConfig.from_working_dir()
    log_event(
        _LOG,
        "index.build.start",
        source_dir=str(cfg.source_dir),
        output_path=str(cfg.output_path),
        metadata_path=(str(cfg.metadata_path) if cfg.metadata_path else None),
    )

    ensure_dir(cfg.output_path.parent)

    if cfg.metadata_path is not None:
        name, version = load_package_metadata(cfg.metadata_path)
    else:
        name, version = DEFAULT_NAME, DEFAULT_VERSION

    try:
        descriptors = load_descriptors(
            iter_descriptor_files(cfg.source_dir),
            validate=cfg.validate,
            collect_errors=cfg.collect_errors,
        )
    except (ParseError, DescriptorError, BuildError) as exc:
        log_event(_LOG, "index.build.error", error=str(exc), error_type=type(exc).__name__)
        raise

    tags = collect_tags(descriptors)
    index = assemble_index(name, version, sort_extensions(descriptors), sort_tags(tags))
    write_index(cfg.output_path, index)

    result = BuildResult(
        output_path=cfg.output_path,
        name=name,
        version=version,
        extension_count=len(descriptors),
        tag_count=len(tags),
    )
    log_event(
        _LOG,
        "index.build.finish",
        extensions=result.extension_count,
        tags=result.tag_count,
        output_path=str(result.output_path),
    )
    return result
