"""Report output: CSV inventory files, text summary, JSON findings and console views."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import asdict, fields
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import AssessmentResult, Finding

logger = logging.getLogger(__name__)
console = Console()

# (file name, AssessmentResult attribute)
INVENTORY_FILES = [
    ("01_vcenter_info.csv", "endpoints"),
    ("02_hosts.csv", "hosts"),
    ("03_clusters.csv", "clusters"),
    ("04_datastores.csv", "datastores"),
    ("05_vms.csv", "vms"),
    ("06_networks.csv", "networks"),
]

SUMMARY_FILE = "assessment_summary.txt"
REPORT_FILE = "assessment_report.json"

NEXT_STEPS = [
    "Resolve every blocker before scheduling the upgrade.",
    "Review warnings and plan remediation (hardware versions, VMware Tools, snapshots).",
    "Check host hardware against the VMware Compatibility Guide.",
    "Confirm datastore free space and VMFS versions.",
    "Take a file-based backup of vCenter before upgrading.",
    "Upgrade vCenter first, then ESXi hosts, then VM hardware and VMware Tools.",
]


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------

def _write_csv(records: list, path: Path) -> None:
    columns = [f.name for f in fields(records[0])]
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=columns)
        writer.writeheader()
        for record in records:
            writer.writerow(asdict(record))


def export_inventory(result: AssessmentResult, run_dir: Path) -> list[Path]:
    """Write one CSV per non-empty inventory category; return the files written."""
    written = []
    for file_name, attr in INVENTORY_FILES:
        records = getattr(result, attr)
        if not records:
            logger.warning("No %s collected; skipping %s", attr, file_name)
            continue
        path = run_dir / file_name
        _write_csv(records, path)
        logger.info("Wrote %d row(s) to %s", len(records), path)
        written.append(path)
    return written


# ---------------------------------------------------------------------------
# Text summary
# ---------------------------------------------------------------------------

def _finding_lines(findings: list[Finding]) -> list[str]:
    if not findings:
        return ["  None found."]
    return [f"  - [{f.server}] {f.message}" for f in findings]


def render_summary(result: AssessmentResult, files: list[Path]) -> str:
    lines = [
        "vCenter Upgrade Assessment Summary",
        "=" * 34,
        "",
        f"Endpoints assessed: {', '.join(result.assessed_endpoints) or 'none'}",
    ]
    if result.skipped_endpoints:
        lines.append(f"Endpoints skipped (connection failed): {', '.join(result.skipped_endpoints)}")
    lines += [
        "",
        f"BLOCKERS ({len(result.blockers)})",
        *_finding_lines(result.blockers),
        "",
        f"WARNINGS ({len(result.warnings)})",
        *_finding_lines(result.warnings),
        "",
        "NEXT STEPS",
        *(f"  [ ] {step}" for step in NEXT_STEPS),
        "",
        "GENERATED FILES",
    ]
    lines += [f"  {p.name}" for p in files] or ["  None."]
    return "\n".join(lines) + "\n"


def write_summary(result: AssessmentResult, files: list[Path], run_dir: Path) -> Path:
    path = run_dir / SUMMARY_FILE
    path.write_text(render_summary(result, files), encoding="utf-8")
    logger.info("Summary written to %s", path)
    return path


# ---------------------------------------------------------------------------
# Export to JSON
# ---------------------------------------------------------------------------

def export_report_json(result: AssessmentResult, run_dir: Path) -> Path:
    """Export counts and all findings to a JSON file."""
    report = {
        "assessed_endpoints": result.assessed_endpoints,
        "skipped_endpoints": result.skipped_endpoints,
        "summary": {attr: len(getattr(result, attr)) for _, attr in INVENTORY_FILES},
        "blockers": [asdict(f) for f in result.blockers],
        "warnings": [asdict(f) for f in result.warnings],
    }
    path = run_dir / REPORT_FILE
    path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    logger.info("Report exported to %s", path)
    return path


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------

def print_assessment_summary(result: AssessmentResult, run_dir: Path) -> None:
    """Print a high-level summary of what was assessed."""
    blocker_style = "bold red" if result.blockers else "bold green"
    summary = (
        f"[bold cyan]Endpoints:[/] {', '.join(result.assessed_endpoints) or 'none'}\n"
        f"[bold]Hosts:[/] {len(result.hosts)}    "
        f"[bold]Clusters:[/] {len(result.clusters)}    "
        f"[bold]Datastores:[/] {len(result.datastores)}\n"
        f"[bold]VMs:[/] {len(result.vms)}    "
        f"[bold]Port groups:[/] {len(result.networks)}\n"
        f"\n"
        f"[{blocker_style}]Blockers:[/] {len(result.blockers)}    "
        f"[bold yellow]Warnings:[/] {len(result.warnings)}\n"
        f"[bold]Output:[/] {run_dir}"
    )
    if result.skipped_endpoints:
        summary += f"\n[bold red]Skipped:[/] {', '.join(result.skipped_endpoints)}"
    console.print(Panel(summary, title="[bold green]Assessment Summary", border_style="green"))


def print_findings_table(result: AssessmentResult) -> None:
    """Print blockers and warnings."""
    if not result.blockers and not result.warnings:
        console.print("[bold green]✓ No blockers or warnings detected.[/]\n")
        return

    table = Table(title="Upgrade Blockers & Warnings", show_lines=True)
    table.add_column("Severity", justify="center")
    table.add_column("Server", style="bold")
    table.add_column("Finding", style="yellow")

    for f in result.blockers:
        table.add_row("[red]BLOCKER[/]", f.server, f.message)
    for f in result.warnings:
        table.add_row("[yellow]WARNING[/]", f.server, f.message)

    console.print(table)
