"""Domain models for the sales export import core.

This package contains the domain model classes shared by ingestion,
reconciliation and the CLI.
"""

from .config_models import ImportConfig, ParserConfig
from .diagnostic import Diagnostic, DiagnosticKind
from .roster import RosterEntry
from .row_data import RawRow
from .run_result import RunResult, RunSummary, StaffTotal
from .sale_record import NormalizedSaleRecord

__all__ = [
    # Configuration models
    "ImportConfig",
    "ParserConfig",
    # Input models
    "RawRow",
    "RosterEntry",
    # Output models
    "Diagnostic",
    "DiagnosticKind",
    "NormalizedSaleRecord",
    "RunResult",
    "RunSummary",
    "StaffTotal",
]
