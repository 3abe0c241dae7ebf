"""Data models for assessed vCenter inventory and upgrade findings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    BLOCKER = "blocker"
    WARNING = "warning"


@dataclass(frozen=True)
class Finding:
    """A blocker or warning raised by a rule check."""
    severity: Severity
    server: str
    message: str


# ---------------------------------------------------------------------------
# Inventory records (one flat row per object, written straight to CSV)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EndpointInfo:
    """The vCenter (or standalone ESXi) endpoint itself."""
    server: str = ""
    product_name: str = ""
    full_name: str = ""
    version: str = ""
    build: str = ""
    instance_uuid: str = ""
    api_version: str = ""


@dataclass(frozen=True)
class HostInfo:
    """An ESXi host."""
    server: str = ""
    name: str = ""
    version: str = ""
    build: str = ""
    connection_state: str = ""
    power_state: str = ""
    vendor: str = ""
    model: str = ""
    bios_release_year: int = 0    # 0 when the BIOS date is not reported
    cpu_model: str = ""
    cpu_cores: int = 0
    cpu_mhz_total: int = 0
    cpu_usage_mhz: int = 0
    memory_mb: int = 0
    memory_usage_mb: int = 0
    cluster: str = "standalone"
    vm_count: int = 0


@dataclass(frozen=True)
class ClusterInfo:
    """A compute cluster; counts and totals are summed over member hosts."""
    server: str = ""
    name: str = ""
    drs_enabled: bool = False
    ha_enabled: bool = False
    evc_mode: str = ""
    vsan_enabled: bool = False
    host_count: int = 0
    vm_count: int = 0
    total_cpu_mhz: int = 0
    total_memory_mb: int = 0


@dataclass(frozen=True)
class VolumeInfo:
    """A datastore."""
    server: str = ""
    name: str = ""
    type: str = ""               # VMFS, NFS, vsan, vvol ...
    filesystem_version: str = ""
    capacity_gb: float = 0.0
    free_space_gb: float = 0.0
    usage_percent: float = 0.0
    accessible: bool = False
    vm_count: int = 0


@dataclass(frozen=True)
class WorkloadInfo:
    """A virtual machine."""
    server: str = ""
    name: str = ""
    power_state: str = ""
    host: str = ""
    guest_os: str = ""
    hardware_version: int = 0
    num_cpus: int = 0
    memory_mb: int = 0
    provisioned_gb: float = 0.0
    used_gb: float = 0.0
    nic_count: int = 0
    disk_count: int = 0
    tools_status: str = ""
    snapshot_count: int = 0
    old_snapshot_count: int = 0


@dataclass(frozen=True)
class NetworkInfo:
    """A port group on a standard or distributed switch."""
    server: str = ""
    switch_name: str = ""
    switch_type: str = ""        # Standard, Distributed
    portgroup: str = ""
    vlan_id: int = 0
    host: str = ""               # empty for distributed switches
    uplinks: str = ""
    num_ports: int = 0
    mtu: int = 0


# ---------------------------------------------------------------------------
# Collection results
# ---------------------------------------------------------------------------

@dataclass
class CollectionResult:
    """Records plus findings returned by a single collector."""
    records: list = field(default_factory=list)
    blockers: list[Finding] = field(default_factory=list)
    warnings: list[Finding] = field(default_factory=list)

    def add(self, findings: list[Finding]) -> None:
        for finding in findings:
            if finding.severity == Severity.BLOCKER:
                self.blockers.append(finding)
            else:
                self.warnings.append(finding)


@dataclass
class AssessmentResult:
    """Everything gathered across all endpoints in one run."""
    endpoints: list[EndpointInfo] = field(default_factory=list)
    hosts: list[HostInfo] = field(default_factory=list)
    clusters: list[ClusterInfo] = field(default_factory=list)
    datastores: list[VolumeInfo] = field(default_factory=list)
    vms: list[WorkloadInfo] = field(default_factory=list)
    networks: list[NetworkInfo] = field(default_factory=list)
    blockers: list[Finding] = field(default_factory=list)
    warnings: list[Finding] = field(default_factory=list)
    assessed_endpoints: list[str] = field(default_factory=list)
    skipped_endpoints: list[str] = field(default_factory=list)

    def merge(self, category: str, collected: CollectionResult) -> None:
        getattr(self, category).extend(collected.records)
        self.blockers.extend(collected.blockers)
        self.warnings.extend(collected.warnings)
