"""
Run configuration for the dataset builder.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import List, Sequence

from .models import Cardinality

DEFAULT_SUBJECTS: List[str] = ["CommonsLang", "Gson", "JFreeChart", "Joda-Time"]
DEFAULT_DB_DIR = Path("db")
DEFAULT_OUT_DIR = Path("out")


@dataclasses.dataclass
class PipelineConfig:
    """Locations and policies for one run."""

    subjects: List[str]
    data_dir: Path
    subjects_dir: Path
    out_dir: Path
    cardinality: Cardinality = Cardinality.MULTI
    jsonl: bool = False

    @classmethod
    def from_db_dir(
        cls,
        db_dir: Path = DEFAULT_DB_DIR,
        subjects: Sequence[str] = DEFAULT_SUBJECTS,
        out_dir: Path = DEFAULT_OUT_DIR,
        cardinality: Cardinality = Cardinality.MULTI,
        jsonl: bool = False,
    ) -> "PipelineConfig":
        """Build a config using the standard ``db/`` layout."""
        return cls(
            subjects=list(subjects),
            data_dir=db_dir / "manual-dataset" / "data",
            subjects_dir=db_dir / "subjects",
            out_dir=out_dir,
            cardinality=cardinality,
            jsonl=jsonl,
        )
