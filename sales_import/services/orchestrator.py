from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..models.config_models import ParserConfig
from ..models.diagnostic import Diagnostic
from ..models.roster import RosterEntry
from ..models.run_result import RunResult
from ..models.sale_record import NormalizedSaleRecord
from ..tabular.reader import EmptySourceError, MissingColumnsError, StructuralError, ingest
from .reconciler import reconcile_row
from .staff import Roster, coerce_roster

logger = logging.getLogger(__name__)

"""Service orchestration for the sales export import core.

run_import coordinates one run: ingestion (header matching and structural
validation complete before any row is looked at), then row reconciliation in
source order, then assembly of the RunResult. Expected data problems never
escape as exceptions; they come back as Diagnostics.
"""

__all__ = [
    "run_import",
]


def _structural_code(error: StructuralError) -> str:
    if isinstance(error, EmptySourceError):
        return "EMPTY_SOURCE"
    if isinstance(error, MissingColumnsError):
        return "MISSING_COLUMNS"
    return "STRUCTURAL"


def run_import(
    source: Any,
    roster: Roster | Mapping[str, int] | Iterable[RosterEntry],
    config: ParserConfig | None = None,
) -> RunResult:
    """Ingest and reconcile one source.

    Args:
        source: decoded sheet (DataFrame / row lists) or delimited text (str / bytes)
        roster: Roster, identifier -> user id mapping, or RosterEntry values
        config: parser switches (defaults apply when omitted)

    Returns:
        RunResult. success is False only for structural failures, in which case
        records is empty.

    Raises:
        TypeError: roster is None or source has an unsupported type
    """
    roster = coerce_roster(roster)
    config = config or ParserConfig()

    try:
        table = ingest(source, config)
    except StructuralError as e:
        code = _structural_code(e)
        logger.debug(f"structural failure: {e}")
        errors = [Diagnostic.error(e.row_index, code, problem) for problem in e.problems]
        return RunResult.structural_failure(errors)

    warnings: list[Diagnostic] = list(table.match.warnings)
    errors: list[Diagnostic] = []
    records: list[NormalizedSaleRecord] = []

    for row in table.rows:
        outcome = reconcile_row(row, roster, config)
        if outcome.record is not None:
            records.append(outcome.record)
        for diag in outcome.diagnostics:
            (errors if diag.is_error else warnings).append(diag)
            logger.debug(diag.message)

    logger.info(
        f"rows={len(table.rows)} accepted={len(records)} warnings={len(warnings)} errors={len(errors)}"
    )
    return RunResult(success=True, records=records, warnings=warnings, errors=errors)
