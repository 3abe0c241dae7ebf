"""Assessment orchestrator — connects to each endpoint, collects, and exports once."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from . import collectors
from .config import AppConfig, Credential
from .models import AssessmentResult
from .report import export_inventory, export_report_json, write_summary
from .session import vcenter_session

logger = logging.getLogger(__name__)


def _collect_endpoint(si, server: str, result: AssessmentResult, now: datetime) -> None:
    """Run all six collectors against one connected endpoint."""
    content = si.content
    steps = [
        ("endpoints", lambda: collectors.collect_endpoint(content, server)),
        ("hosts", lambda: collectors.collect_hosts(content, server, now)),
        ("clusters", lambda: collectors.collect_clusters(content, server)),
        ("datastores", lambda: collectors.collect_datastores(content, server)),
        ("vms", lambda: collectors.collect_vms(content, server, now)),
        ("networks", lambda: collectors.collect_networks(content, server)),
    ]
    for idx, (category, collect) in enumerate(steps, 1):
        logger.info("[%s] Collecting %s (%d/%d) …", server, category, idx, len(steps))
        try:
            collected = collect()
        except Exception as e:
            logger.error("[%s] Collection of %s failed: %s", server, category, e)
            continue
        result.merge(category, collected)


def assess_endpoints(
    endpoints: list[str],
    credential: Credential,
    *,
    port: int = 443,
    disable_ssl: bool = True,
    now: datetime | None = None,
) -> AssessmentResult:
    """Connect → collect → disconnect for each endpoint in turn."""
    now = now or datetime.now(timezone.utc)
    result = AssessmentResult()
    for idx, server in enumerate(endpoints, 1):
        logger.info("Assessing endpoint %d/%d: %s", idx, len(endpoints), server)
        try:
            with vcenter_session(server, credential, port=port, disable_ssl=disable_ssl) as si:
                _collect_endpoint(si, server, result, now)
        except Exception as e:
            logger.error("Skipping %s: %s", server, e)
            result.skipped_endpoints.append(server)
            continue
        result.assessed_endpoints.append(server)
    logger.info(
        "Assessment finished: %d endpoint(s) assessed, %d skipped, %d blocker(s), %d warning(s)",
        len(result.assessed_endpoints), len(result.skipped_endpoints),
        len(result.blockers), len(result.warnings),
    )
    return result


def make_run_dir(output_dir: Path, started: datetime | None = None) -> Path:
    started = started or datetime.now()
    run_dir = output_dir / f"vcenter_assessment_{started:%Y%m%d_%H%M%S}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def export_results(result: AssessmentResult, run_dir: Path) -> list[Path]:
    """Write CSVs, the JSON report and the text summary; return all files written."""
    files = export_inventory(result, run_dir)
    files.append(export_report_json(result, run_dir))
    summary = write_summary(result, files, run_dir)
    return files + [summary]


def run_assessment(cfg: AppConfig, credential: Credential, run_dir: Path) -> AssessmentResult:
    result = assess_endpoints(
        cfg.vcenter.hosts,
        credential,
        port=cfg.vcenter.port,
        disable_ssl=cfg.vcenter.disable_ssl,
    )
    export_results(result, run_dir)
    return result
