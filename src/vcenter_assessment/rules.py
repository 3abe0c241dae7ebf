"""Upgrade-readiness rule checks.

Every check reads fields of an already-projected record and returns a list of
findings. Nothing here touches the vSphere API, so the rules can be evaluated
(and tested) against plain records.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Iterable

from .models import (
    EndpointInfo,
    Finding,
    HostInfo,
    Severity,
    VolumeInfo,
    WorkloadInfo,
)

MIN_SUPPORTED_VERSION = (7, 0)
USAGE_WARNING_PERCENT = 80.0
MIN_VMFS_MAJOR = 6
MIN_HARDWARE_VERSION = 14
TOOLS_OK = "toolsOk"
SNAPSHOT_MAX_AGE = timedelta(hours=72)
HARDWARE_MAX_AGE_YEARS = 8

KNOWN_HW_VENDORS = re.compile(
    r"\b(dell|hpe?|hewlett[- ]packard|lenovo|cisco|supermicro|fujitsu|ibm)\b",
    re.IGNORECASE,
)

_VERSION_RE = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?")
_HW_VERSION_RE = re.compile(r"^vmx-(\d+)$")


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_version(version: str) -> tuple[int, int, int]:
    """Parse ``major.minor[.patch]`` into a tuple of ints.

    Raises ValueError when the string does not start with a dotted version.
    """
    match = _VERSION_RE.match(version or "")
    if not match:
        raise ValueError(f"Unparseable version string: {version!r}")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def version_below(version: str, minimum: tuple[int, int] = MIN_SUPPORTED_VERSION) -> bool:
    major, minor, _ = parse_version(version)
    return (major, minor) < minimum


def hardware_version_number(hw_version: str) -> int:
    """``vmx-19`` -> 19."""
    match = _HW_VERSION_RE.match((hw_version or "").strip())
    if not match:
        raise ValueError(f"Unparseable hardware version: {hw_version!r}")
    return int(match.group(1))


def filesystem_major(fs_version: str) -> int | None:
    """Numeric major part of a VMFS version such as ``6.82``; None if absent."""
    match = re.match(r"^\s*(\d+)", fs_version or "")
    return int(match.group(1)) if match else None


def usage_percent(capacity: float, free: float) -> float:
    if capacity <= 0:
        return 0.0
    return round((capacity - free) / capacity * 100, 2)


def count_old_snapshots(create_times: Iterable[datetime], now: datetime) -> int:
    return sum(1 for created in create_times if now - created > SNAPSHOT_MAX_AGE)


# ---------------------------------------------------------------------------
# Rule checks
# ---------------------------------------------------------------------------

def check_endpoint(endpoint: EndpointInfo) -> list[Finding]:
    try:
        below = version_below(endpoint.version)
    except ValueError:
        return [Finding(
            Severity.BLOCKER, endpoint.server,
            f"vCenter {endpoint.server} version could not be determined ({endpoint.version or 'empty'})",
        )]
    if below:
        return [Finding(
            Severity.BLOCKER, endpoint.server,
            f"vCenter {endpoint.server} version {endpoint.version} is below 7.0",
        )]
    return []


def check_host(host: HostInfo, current_year: int) -> list[Finding]:
    findings = []
    if version_below(host.version):
        findings.append(Finding(
            Severity.BLOCKER, host.server,
            f"Host {host.name} ESXi version {host.version} is below 7.0",
        ))
    if (
        host.bios_release_year
        and KNOWN_HW_VENDORS.search(host.vendor or "")
        and current_year - host.bios_release_year > HARDWARE_MAX_AGE_YEARS
    ):
        findings.append(Finding(
            Severity.WARNING, host.server,
            f"Host {host.name} hardware ({host.vendor} {host.model}, BIOS {host.bios_release_year}) "
            f"is older than {HARDWARE_MAX_AGE_YEARS} years; verify it is on the compatibility guide",
        ))
    return findings


def check_volume(volume: VolumeInfo) -> list[Finding]:
    findings = []
    if volume.capacity_gb > 0 and volume.usage_percent > USAGE_WARNING_PERCENT:
        findings.append(Finding(
            Severity.WARNING, volume.server,
            f"Datastore {volume.name} is {volume.usage_percent:.1f}% full",
        ))
    if volume.type.upper() == "VMFS":
        major = filesystem_major(volume.filesystem_version)
        if major is not None and major < MIN_VMFS_MAJOR:
            findings.append(Finding(
                Severity.WARNING, volume.server,
                f"Datastore {volume.name} uses VMFS {volume.filesystem_version}; upgrade to VMFS 6",
            ))
    return findings


def check_workload(vm: WorkloadInfo) -> list[Finding]:
    findings = []
    if vm.hardware_version < MIN_HARDWARE_VERSION:
        findings.append(Finding(
            Severity.WARNING, vm.server,
            f"VM {vm.name} hardware version {vm.hardware_version} is below {MIN_HARDWARE_VERSION}",
        ))
    if vm.tools_status != TOOLS_OK:
        findings.append(Finding(
            Severity.WARNING, vm.server,
            f"VM {vm.name} VMware Tools status is {vm.tools_status or 'unknown'}",
        ))
    if vm.old_snapshot_count > 0:
        findings.append(Finding(
            Severity.WARNING, vm.server,
            f"VM {vm.name} has {vm.old_snapshot_count} snapshot(s) older than 72 hours",
        ))
    return findings
