#!/usr/bin/env python3
"""
Post Job Script.

Encode a job file of toolpath operations into Grbl laser G-code.

Usage:
    python -m grbl_laser_post.scripts.post_job --job job.yaml
    python -m grbl_laser_post.scripts.post_job --job job.yaml --output job.nc
    python -m grbl_laser_post.scripts.post_job --job job.yaml --config post.yaml

Job file format (YAML)::

    operations:
      - {op: section_start, jet_mode: etch, comment: Cut outline}
      - {op: rapid, x: 0, y: 0, z: 0}
      - {op: power, on: true}
      - {op: linear, x: 10, y: 0, z: 0, feed: 500}
      - {op: circular, clockwise: true, center: [10, 5, 0], end: [10, 10, 0], feed: 500}
      - {op: dwell, seconds: 0.5}
      - {op: power, on: false}
      - {op: section_end}
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from grbl_laser_post.configs.loader import ConfigError, load_config
from grbl_laser_post.gcode.errors import GCodeError
from grbl_laser_post.gcode.generator import GCodeGenerator
from grbl_laser_post.gcode.host import ArcBoundsError
from grbl_laser_post.job_ir.operations import Job, operations_from_dicts
from grbl_laser_post.utils.fs import atomic_write_text, load_yaml
from grbl_laser_post.utils.logging_config import (
    pop_context,
    push_context,
    setup_logging,
)

logger = logging.getLogger(__name__)


def load_job(path: str | Path) -> Job:
    """Read a YAML job file into operations.

    The root may be a list of operations or a mapping with an
    ``operations`` list.

    Raises
    ------
    ValueError
        If the file is empty or malformed.
    """
    data: Any = load_yaml(path)
    if isinstance(data, dict):
        data = data.get("operations")
    if not isinstance(data, list):
        raise ValueError(f"Job file {path} has no operations list")
    return operations_from_dicts(data)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Encode a toolpath job into Grbl laser G-code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--job",
        "-j",
        type=str,
        required=True,
        help="Job file to encode (YAML format)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Post-processor configuration file (default: shipped post.yaml)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output G-code file (default: stdout)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level=args.log_level,
        json=args.json_logs,
        context={"app": "post"},
    )
    push_context(job=Path(args.job).name)
    try:
        return _post(args)
    finally:
        pop_context(["job"])


def _post(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
        operations = load_job(args.job)
        generator = GCodeGenerator(config)
        program = generator.generate(operations)
    except (ConfigError, GCodeError, ArcBoundsError, ValueError) as exc:
        logger.error("Post-processing failed: %s", exc)
        return 1
    except (FileNotFoundError, yaml.YAMLError) as exc:
        logger.error("Cannot read input: %s", exc)
        return 1

    if generator.warnings:
        logger.warning("%d warning(s) during post-processing", len(generator.warnings))

    if not args.output:
        sys.stdout.write(program)
        return 0
    try:
        atomic_write_text(args.output, program)
    except RuntimeError as exc:
        logger.error("Cannot write output: %s", exc)
        return 1
    logger.info("Wrote %d lines to %s", program.count("\n"), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
