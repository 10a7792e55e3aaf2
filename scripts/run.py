# scripts/run.py
from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from alloclean.dataloader.config_loader import ConfigLoader
from alloclean.dataloader.postload_handler import LoadResultHandler
from alloclean.dataloader.records_loader import RecordsLoader
from alloclean.errors import AllocleanError
from alloclean.export.dataset_export import export_package
from alloclean.metrics.logger import write_metrics
from alloclean.metrics.summary import summarize_findings
from alloclean.schemas.models import EntityKind
from alloclean.session.state import SessionState
from alloclean.validator.orchestrator import ValidationOrchestrator


def _setup_logging() -> None:
    """
    @brief
    Initializes global logging configuration.

    @details
    INFO level with a compact "[LEVEL] message" console format, shared by every
    alloclean module through `logging.getLogger(__name__)`.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _parse_args() -> argparse.Namespace:
    """
    @brief
    Parses command-line arguments for the cleaning pipeline.

    @details
    Any of the three entity files may be omitted; the corresponding collection
    stays empty and cross-reference checks run against what was supplied.
    """
    parser = argparse.ArgumentParser(
        prog="alloclean-run",
        description="Run the Alloclean pipeline: load → validate → correct → export",
    )

    # (1) Config path argument (optional, defaults apply when absent)
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config YAML (default: built-in defaults)",
    )

    # (2) Entity files
    parser.add_argument("--requesters", type=str, default=None, help="Requesters CSV")
    parser.add_argument("--resources", type=str, default=None, help="Resources CSV")
    parser.add_argument("--work-items", type=str, default=None, help="Work items CSV")

    # (3) Output directory argument
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (default: output_dir from config)",
    )

    # (4) Apply every auto-applicable correction before export
    parser.add_argument(
        "--auto-correct",
        action="store_true",
        help="Apply all automatic corrections before export (overrides config)",
    )

    return parser.parse_args()


def run_pipeline(
    config_path: Path | None,
    inputs: dict[EntityKind, Path],
    output_dir: Path | None = None,
    auto_correct: bool | None = None,
) -> dict[str, Any]:
    """
    @brief
    Executes the full cleaning pipeline.

    @details
    (1) Load configuration and every supplied entity file.
    (2) Validate all collections together.
    (3) Optionally apply every auto-applicable correction (re-validating).
    (4) Write the validation report, metrics and the export package.
    Controlled failures raise AllocleanError so the driver can be embedded in
    batch workflows.

    @params
        config_path : Path | None
            YAML configuration, or None for defaults.
        inputs : dict[EntityKind, Path]
            CSV path per entity kind; missing kinds stay empty.
        output_dir : Path | None
            Artifact directory; falls back to `output_dir` from the config.
        auto_correct : bool | None
            Overrides `auto_correct` from the config when not None.

    @returns
        Dictionary with finding counts, number of corrected records and artifact paths.
    """
    # (1) Start timer and load configuration
    t0 = time.perf_counter()
    cfg = ConfigLoader().load_or_default(config_path)
    out_dir = output_dir or Path(cfg.output_dir or "data/output")
    out_dir.mkdir(parents=True, exist_ok=True)
    session = SessionState(cfg)

    # (2) Load entity files into the session
    loader = RecordsLoader()
    handler = LoadResultHandler(output_dir=out_dir)
    load_issues: dict[str, Path] = {}
    for kind, path in inputs.items():
        logging.info("Loading %s: %s", kind.value, path)
        result = loader.load(path, kind)
        session.upload(kind, handler.handle(result))
        if not result.success:
            load_issues[kind.value] = handler.issues_path(result)

    initial = len(session.findings)
    logging.info(
        "Initial validation: %d error(s), %d warning(s)",
        len(session.errors),
        len(session.warnings),
    )

    # (3) Corrections
    changed = 0
    do_correct = cfg.auto_correct if auto_correct is None else auto_correct
    if do_correct:
        changed = session.apply_all()
    for offer in session.offers():
        if not offer.auto_applicable:
            logging.info("Suggestion: %s (%s)", offer.title, offer.description)

    # (4) Report, metrics and export
    orchestrator = ValidationOrchestrator(cfg.validation)
    report_path: Path | None = None
    if cfg.validation.write_report:
        report = orchestrator.build_report(session.findings, session.collections)
        report_path = orchestrator.save_report(report, out_dir=out_dir)

    metrics_path = write_metrics(summarize_findings(session.findings), out_dir=out_dir)
    exported = export_package(
        session.collections,
        session.rules,
        session.priorities,
        session.findings,
        out_dir,
        cfg.export,
    )

    dt = time.perf_counter() - t0
    logging.info("Pipeline finished in %.2f s", dt)

    return {
        "valid": not session.errors,
        "initial_findings": initial,
        "errors": len(session.errors),
        "warnings": len(session.warnings),
        "corrected_records": changed,
        "runtime_seconds": dt,
        "artifacts": {
            "validation_report": report_path,
            "metrics": metrics_path,
            "load_issues": load_issues,
            **exported,
        },
    }


def main() -> int:
    """
    @brief
    CLI entry point for the cleaning pipeline.

    @details
    Exit codes:
      0 – no error-severity findings remain
      1 – controlled failure (config/input/export) or remaining errors
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args()

    inputs: dict[EntityKind, Path] = {}
    for kind, value in (
        (EntityKind.REQUESTER, args.requesters),
        (EntityKind.RESOURCE, args.resources),
        (EntityKind.WORK_ITEM, args.work_items),
    ):
        if value:
            inputs[kind] = Path(value)

    try:
        result = run_pipeline(
            Path(args.config) if args.config else None,
            inputs,
            Path(args.output) if args.output else None,
            auto_correct=True if args.auto_correct else None,
        )
        logging.info(
            "Findings: %d error(s), %d warning(s); %d record(s) corrected",
            result["errors"],
            result["warnings"],
            result["corrected_records"],
        )
        return 0 if result["valid"] else 1

    except AllocleanError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
