"""
Dataset builder joining test routes with method data and compiled-class modifiers.
"""

from .classfile import ClassModifierResolver, modifiers_to_string, read_declared_methods
from .cli import build_arg_parser, main
from .config import PipelineConfig
from .errors import (
    ClassFormatError,
    DatasetError,
    OrphanRouteError,
    OutputDirectoryError,
    OutputWriteError,
    TableReadError,
)
from .joiner import join_dataset
from .loaders import load_data_table, load_routes_table
from .models import (
    Cardinality,
    DeclaredMethod,
    MethodRecord,
    OutputRecord,
    RouteEntry,
)
from .pipeline import process_subject, run_pipeline

__all__ = [
    "Cardinality",
    "RouteEntry",
    "MethodRecord",
    "OutputRecord",
    "DeclaredMethod",
    "PipelineConfig",
    "DatasetError",
    "TableReadError",
    "OrphanRouteError",
    "OutputDirectoryError",
    "OutputWriteError",
    "ClassFormatError",
    "read_declared_methods",
    "modifiers_to_string",
    "ClassModifierResolver",
    "load_routes_table",
    "load_data_table",
    "join_dataset",
    "process_subject",
    "run_pipeline",
    "build_arg_parser",
    "main",
]
