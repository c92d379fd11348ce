"""
Command-line interface for the dataset builder.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import orjson
from rich.console import Console
from rich.panel import Panel

from .classfile import modifiers_to_string, read_declared_methods
from .config import DEFAULT_DB_DIR, DEFAULT_OUT_DIR, DEFAULT_SUBJECTS, PipelineConfig
from .errors import ClassFormatError, DatasetError
from .models import Cardinality
from .pipeline import run_pipeline

console = Console()


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    p = argparse.ArgumentParser(
        description="Build labeled test-to-method datasets enriched with access modifiers."
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_build = sub.add_parser(
        "build", help="Join routes and method data for every subject"
    )
    p_build.add_argument(
        "--subjects",
        type=str,
        default=",".join(DEFAULT_SUBJECTS),
        help="Comma-separated list of subjects, processed in order",
    )
    p_build.add_argument(
        "--db",
        type=str,
        default=str(DEFAULT_DB_DIR),
        help="Database root holding manual-dataset/data and subjects/",
    )
    p_build.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory of <subject>_routes.csv and <subject>_data.csv (overrides --db)",
    )
    p_build.add_argument(
        "--subjects-dir",
        type=str,
        default=None,
        help="Directory of <subject>/classes trees (overrides --db)",
    )
    p_build.add_argument(
        "--out",
        type=str,
        default=str(DEFAULT_OUT_DIR),
        help="Output directory, deleted and recreated on every run",
    )
    p_build.add_argument(
        "--cardinality",
        choices=[c.value for c in Cardinality],
        default=Cardinality.MULTI.value,
        help="multi: keep every duplicate key; single: later duplicates overwrite earlier ones",
    )
    p_build.add_argument(
        "--jsonl",
        action="store_true",
        help="Also write <subject>.jsonl next to each CSV table",
    )

    p_inspect = sub.add_parser(
        "inspect", help="List the declared methods of a class file with their modifiers"
    )
    p_inspect.add_argument("classfile", type=str, help="Path to a .class file")
    p_inspect.add_argument(
        "--out", type=str, default=None, help="Path to output JSON file"
    )

    return p


def _config_from_args(args: argparse.Namespace) -> PipelineConfig:
    subjects = [s.strip() for s in args.subjects.split(",") if s.strip()]
    config = PipelineConfig.from_db_dir(
        Path(args.db),
        subjects=subjects,
        out_dir=Path(args.out),
        cardinality=Cardinality(args.cardinality),
        jsonl=args.jsonl,
    )
    if args.data_dir:
        config.data_dir = Path(args.data_dir)
    if args.subjects_dir:
        config.subjects_dir = Path(args.subjects_dir)
    return config


def _build(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    console.print(Panel(
        f"[cyan]Building labeled datasets[/cyan]\n"
        f"Subjects: {', '.join(config.subjects)}\n"
        f"Data tables: {config.data_dir}\n"
        f"Class corpus: {config.subjects_dir}\n"
        f"Output directory: {config.out_dir}\n"
        f"Cardinality: {config.cardinality.value}",
        title="[bold blue]DB Creator - Build Mode[/bold blue]"
    ))

    try:
        summaries = run_pipeline(config)
    except DatasetError as ex:
        console.print(f"[red]Error:[/red] {ex}")
        return 2

    total = sum(s.rows for s in summaries)
    console.print(
        f"\n[green]✓[/green] Wrote {total} row(s) for {len(summaries)} subject(s) into {config.out_dir}"
    )
    return 0


def _inspect(args: argparse.Namespace) -> int:
    path = Path(args.classfile)
    try:
        methods = read_declared_methods(path.read_bytes())
    except OSError as ex:
        console.print(f"[red]Error:[/red] Cannot read {path}: {ex.strerror or ex}")
        return 2
    except ClassFormatError as ex:
        console.print(f"[red]Error:[/red] Malformed class file {path}: {ex}")
        return 2

    results = [
        {
            "name": m.name,
            "descriptor": m.descriptor,
            "access_flags": m.access_flags,
            "modifiers": modifiers_to_string(m.access_flags),
        }
        for m in methods
    ]
    payload = orjson.dumps(results, option=orjson.OPT_INDENT_2)
    if args.out:
        Path(args.out).write_bytes(payload)
        console.print(f"[green]✓[/green] Listed {len(results)} methods from {path}")
    else:
        sys.stdout.write(payload.decode("utf-8") + "\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    if args.cmd == "build":
        return _build(args)
    if args.cmd == "inspect":
        return _inspect(args)

    ap.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
