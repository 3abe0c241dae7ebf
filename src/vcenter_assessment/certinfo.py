"""Print the TLS certificate presented by a management endpoint.

The certificate is fetched without validation so that self-signed and expired
certificates can still be inspected.
"""

from __future__ import annotations

import argparse
import ssl
import sys
from dataclasses import dataclass
from datetime import datetime, timezone

import OpenSSL
from rich.console import Console
from rich.table import Table

console = Console()


@dataclass(frozen=True)
class CertificateInfo:
    subject: str
    issuer: str
    not_before: datetime
    not_after: datetime
    expired: bool


def _format_name(name: OpenSSL.crypto.X509Name) -> str:
    return ", ".join(
        f"{key.decode('utf-8')}={value.decode('utf-8')}"
        for key, value in name.get_components()
    )


def _asn1_time(raw: bytes) -> datetime:
    # ASN.1 GENERALIZEDTIME, e.g. b"20301231235959Z"
    return datetime.strptime(raw.decode("ascii"), "%Y%m%d%H%M%SZ").replace(tzinfo=timezone.utc)


def describe_certificate(pem: str, now: datetime | None = None) -> CertificateInfo:
    now = now or datetime.now(timezone.utc)
    x509 = OpenSSL.crypto.load_certificate(OpenSSL.crypto.FILETYPE_PEM, pem)
    not_after = _asn1_time(x509.get_notAfter())
    return CertificateInfo(
        subject=_format_name(x509.get_subject()),
        issuer=_format_name(x509.get_issuer()),
        not_before=_asn1_time(x509.get_notBefore()),
        not_after=not_after,
        expired=not_after < now,
    )


def fetch_certificate(host: str, port: int = 443, timeout: float = 10.0) -> CertificateInfo:
    pem = ssl.get_server_certificate((host, port), timeout=timeout)
    return describe_certificate(pem)


def print_certificate(host: str, port: int, info: CertificateInfo) -> None:
    table = Table(title=f"Certificate for {host}:{port}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Subject", info.subject)
    table.add_row("Issuer", info.issuer)
    table.add_row("Valid from", f"{info.not_before:%Y-%m-%d %H:%M:%S} UTC")
    table.add_row("Valid until", f"{info.not_after:%Y-%m-%d %H:%M:%S} UTC")
    table.add_row("Expired", "[red]yes[/]" if info.expired else "[green]no[/]")
    console.print(table)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="vc-certinfo",
        description="Show the TLS certificate of a vCenter or ESXi endpoint.",
    )
    parser.add_argument("host", help="Endpoint host name or address.")
    parser.add_argument("--port", type=int, default=443, help="TLS port (default: 443).")
    args = parser.parse_args(argv)

    try:
        info = fetch_certificate(args.host, args.port)
    except (OSError, OpenSSL.crypto.Error) as e:
        console.print(f"[bold red]Could not read certificate from {args.host}:{args.port}:[/] {e}")
        return 1

    print_certificate(args.host, args.port, info)
    return 0


if __name__ == "__main__":
    sys.exit(main())
