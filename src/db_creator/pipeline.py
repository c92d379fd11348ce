"""
Per-subject orchestration: load, join, enrich and write the dataset tables.
"""

from __future__ import annotations

import csv
import dataclasses
import shutil
from pathlib import Path
from typing import Callable, List, Sequence

import orjson
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .classfile import ClassModifierResolver
from .config import PipelineConfig
from .errors import OutputDirectoryError, OutputWriteError
from .joiner import expected_row_count, join_dataset
from .loaders import load_data_table, load_routes_table
from .models import NOT_AVAILABLE, OUTPUT_HEADER, OutputRecord, SubjectSummary

console = Console()


def prepare_output_dir(out_dir: Path) -> None:
    """Delete ``out_dir`` if it exists and create it empty."""
    try:
        if out_dir.is_dir():
            shutil.rmtree(out_dir)
        out_dir.mkdir(parents=True)
    except OSError as ex:
        raise OutputDirectoryError(f"Cannot prepare output directory {out_dir}: {ex}") from ex


def write_csv(path: Path, records: Sequence[OutputRecord]) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_HEADER)
        for rec in records:
            writer.writerow(rec.as_row())


def write_jsonl(path: Path, records: Sequence[OutputRecord]) -> None:
    with path.open("wb") as f:
        for rec in records:
            f.write(orjson.dumps(dataclasses.asdict(rec)) + b"\n")


def _write_output(
    write: Callable[[Path, Sequence[OutputRecord]], None],
    path: Path,
    records: Sequence[OutputRecord],
) -> None:
    try:
        write(path, records)
    except OSError as ex:
        if path.is_file():
            path.unlink()
        raise OutputWriteError(f"Cannot write {path}: {ex}") from ex


def process_subject(subject: str, config: PipelineConfig) -> SubjectSummary:
    """Build the dataset table of one subject.

    The join finishes before the output file is opened, so a fault leaves no
    partial table for this subject behind.
    """
    data = load_data_table(config.data_dir, subject, config.cardinality)
    routes = load_routes_table(config.data_dir, subject, config.cardinality)
    console.print(
        f"[dim]{subject}: {sum(len(v) for v in routes.values())} route(s) over "
        f"{len(routes)} test(s), {len(data)} method id(s)[/dim]"
    )

    resolver = ClassModifierResolver(config.subjects_dir)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(
            f"Joining {subject}", total=expected_row_count(routes, data)
        )
        records = join_dataset(
            subject, routes, data, resolver, on_record=lambda _: progress.advance(task)
        )

    csv_path = config.out_dir / f"{subject}.csv"
    _write_output(write_csv, csv_path, records)
    if config.jsonl:
        _write_output(write_jsonl, config.out_dir / f"{subject}.jsonl", records)

    unresolved = sum(1 for r in records if r.modifiers == NOT_AVAILABLE)
    return SubjectSummary(
        subject=subject, rows=len(records), unresolved=unresolved, csv_path=str(csv_path)
    )


def run_pipeline(config: PipelineConfig) -> List[SubjectSummary]:
    """Process every configured subject in order, stopping at the first fault."""
    prepare_output_dir(config.out_dir)
    summaries: List[SubjectSummary] = []
    for subject in config.subjects:
        console.print(f"\n[bold cyan]Processing subject: {subject}[/bold cyan]")
        summary = process_subject(subject, config)
        note = f", {summary.unresolved} without modifiers" if summary.unresolved else ""
        console.print(f"[green]✓[/green] {subject}: {summary.rows} row(s){note}")
        summaries.append(summary)
    return summaries
