from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

from .builder import BuildResult, build
from .config import BuildConfig, load_config
from .util import (
    MetricsEmitter,
    log_event,
    set_request_id,
    setup_json_logger,
)

_LOG = setup_json_logger("marketplace_index.cli")


def _display_path(path: Path) -> str:
    try:
        return os.path.relpath(path, Path.cwd()).replace(os.sep, "/")
    except ValueError:
        # Different drive on Windows.
        return str(path)


def resolve_config(args: argparse.Namespace) -> BuildConfig:
    if args.config:
        cfg = load_config(Path(args.config))
    else:
        cfg = BuildConfig.from_working_dir()
    return cfg.with_overrides(
        source_dir=(Path(args.source_dir).resolve() if args.source_dir else None),
        output_path=(Path(args.output).resolve() if args.output else None),
        metadata_path=(Path(args.metadata).resolve() if args.metadata else None),
        collect_errors=(True if args.collect_errors else None),
        validate=(False if args.no_validate else None),
    )


def cmd_build(cfg: BuildConfig) -> BuildResult:
    result = build(cfg)
    print(f"✓ Built {result.extension_count} extensions to {_display_path(result.output_path)}")
    print(f"✓ Total tags: {result.tag_count}")
    return result


def _run_command_with_observability(
    *,
    command_name: str,
    cfg: BuildConfig,
    metrics: MetricsEmitter | None,
) -> int:
    started = time.perf_counter()
    log_event(_LOG, "cli.command.start", command=command_name)
    try:
        result = cmd_build(cfg)
    except Exception as exc:
        latency_ms = (time.perf_counter() - started) * 1000.0
        log_event(
            _LOG,
            "cli.command.error",
            command=command_name,
            error=str(exc),
            latency_ms=round(latency_ms, 3),
        )
        if metrics is not None:
            metrics.emit(
                metric="index.build",
                status="error",
                latency_ms=latency_ms,
                error=type(exc).__name__,
            )
        raise

    latency_ms = (time.perf_counter() - started) * 1000.0
    log_event(
        _LOG,
        "cli.command.finish",
        command=command_name,
        latency_ms=round(latency_ms, 3),
        status="success",
    )
    if metrics is not None:
        metrics.emit(
            metric="index.build",
            status="success",
            latency_ms=latency_ms,
            extensions=result.extension_count,
            tags=result.tag_count,
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="marketplace-index",
        description="Build public/index.json from the extension descriptors in src/.",
    )
    p.add_argument("--config", default=None, help="Optional JSON/YAML build config.")
    p.add_argument("--source-dir", default=None, help="Descriptor directory (default: ./src).")
    p.add_argument(
        "--output", default=None, help="Index output file (default: ./public/index.json)."
    )
    p.add_argument(
        "--metadata",
        default=None,
        help="Package metadata file supplying name/version (e.g. package.json).",
    )
    p.add_argument(
        "--collect-errors",
        action="store_true",
        help="Report every bad descriptor together instead of stopping at the first.",
    )
    p.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip descriptor shape validation (identifier, meta.tags).",
    )
    p.add_argument(
        "--metrics-out",
        default=None,
        help="Append a JSONL metric record for this run to the given path.",
    )
    p.add_argument(
        "--request-id",
        default=None,
        help="Correlation identifier for structured logs and metrics.",
    )
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    set_request_id(args.request_id)
    metrics = MetricsEmitter(Path(args.metrics_out)) if args.metrics_out else None

    cfg = resolve_config(args)
    rc = _run_command_with_observability(command_name="build", cfg=cfg, metrics=metrics)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
