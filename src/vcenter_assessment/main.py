"""Command-line entry point for the vCenter upgrade assessment."""

from __future__ import annotations

import argparse
import importlib.util
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler
from rich.panel import Panel

from .config import load_config, resolve_credential
from .report import console, print_assessment_summary, print_findings_table

logger = logging.getLogger("vcenter_assessment")

LOG_FILE = "assessment.log"


class _RunLogFormatter(logging.Formatter):
    """Tags file log lines INFO / WARN / ERROR."""

    _TAGS = {"WARNING": "WARN", "CRITICAL": "ERROR"}

    def format(self, record: logging.LogRecord) -> str:
        record.tag = self._TAGS.get(record.levelname, record.levelname)
        return super().format(record)


def _setup_logging(verbose: bool = False, log_path: Path | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [RichHandler(console=console, show_path=False, markup=False)]
    if log_path is not None:
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(_RunLogFormatter("%(asctime)s [%(tag)s] %(message)s"))
        handlers.append(file_handler)
    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vc-assess",
        description="Assess vCenter inventory for vSphere 7 upgrade blockers and warnings.",
    )
    parser.add_argument(
        "servers",
        nargs="*",
        help="vCenter servers to assess (default: VCENTER_HOSTS).",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory for the run folder (default: ASSESSMENT_OUTPUT_DIR or current directory).",
    )
    parser.add_argument("-u", "--user", help="vCenter username (default: VCENTER_USER or prompt).")
    parser.add_argument("-p", "--password", help="vCenter password (default: VCENTER_PASSWORD or prompt).")
    parser.add_argument("--port", type=int, default=None, help="vCenter port (default: 443).")
    parser.add_argument(
        "--verify-ssl",
        action="store_true",
        help="Verify the vCenter TLS certificate.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if importlib.util.find_spec("pyVmomi") is None:
        console.print("[bold red]Error:[/] pyVmomi is not installed. Run: pip install pyvmomi")
        return 1

    # ── Load configuration ──────────────────────────────────────────────
    cfg = load_config()
    if args.servers:
        cfg.vcenter.hosts = args.servers
    if args.output_dir is not None:
        cfg.output.output_dir = args.output_dir
    if args.user:
        cfg.vcenter.username = args.user
    if args.password:
        cfg.vcenter.password = args.password
    if args.port is not None:
        cfg.vcenter.port = args.port
    if args.verify_ssl:
        cfg.vcenter.disable_ssl = False

    if not cfg.vcenter.hosts:
        console.print("[bold red]Error:[/] no vCenter servers given. Pass them as arguments or set VCENTER_HOSTS.")
        return 1

    try:
        credential = resolve_credential(cfg.vcenter)
    except (ValueError, EOFError, KeyboardInterrupt) as e:
        console.print(f"[bold red]Error:[/] {e or 'credential entry aborted'}")
        return 1

    from .assessment import make_run_dir, run_assessment

    try:
        run_dir = make_run_dir(cfg.output.output_dir)
    except OSError as e:
        console.print(f"[bold red]Error:[/] cannot create run directory in {cfg.output.output_dir}: {e}")
        return 1
    _setup_logging(args.verbose, run_dir / LOG_FILE)

    console.print(Panel(
        "[bold blue]vCenter Upgrade Assessment[/]\n"
        f"Servers: {', '.join(cfg.vcenter.hosts)}",
        border_style="blue",
    ))
    if cfg.vcenter.disable_ssl:
        logger.warning("TLS certificate verification is disabled for vCenter connections")

    try:
        result = run_assessment(cfg, credential, run_dir)
    except Exception as e:
        console.print(f"[bold red]Assessment failed:[/] {e}")
        logger.exception("Assessment error")
        return 1

    console.print()
    print_assessment_summary(result, run_dir)
    print_findings_table(result)
    console.print("\n[bold green]Done![/]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
