"""Inventory collectors — walk one category of vCenter objects each.

Every collector lists its objects through a container view, projects each one
into a flat record with a ``project_*`` adapter, runs the category's rule
checks and returns a :class:`CollectionResult`. A failure on one object is
logged and that object skipped; it never aborts the pass.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from pyVmomi import vim

from . import rules
from .models import (
    ClusterInfo,
    CollectionResult,
    EndpointInfo,
    Finding,
    HostInfo,
    NetworkInfo,
    VolumeInfo,
    WorkloadInfo,
)

logger = logging.getLogger(__name__)

GIB = 1024 ** 3
MIB = 1024 * 1024


# ---------------------------------------------------------------------------
# Helper: container view traversal
# ---------------------------------------------------------------------------

def _get_all_objects(content: vim.ServiceContent, obj_type: list, folder=None):
    """Return all managed objects of given type(s)."""
    container = content.viewManager.CreateContainerView(
        folder or content.rootFolder, obj_type, recursive=True
    )
    try:
        return list(container.view)
    finally:
        container.Destroy()


def _item_name(obj, idx: int) -> str:
    try:
        return obj.name or f"unknown-{idx}"
    except Exception:
        return f"unknown-{idx}"


def _collect(
    kind: str,
    objects: Iterable[Any],
    project: Callable[[Any], list],
    check: Callable[[Any], list[Finding]],
) -> CollectionResult:
    result = CollectionResult()
    objects = list(objects)
    errors = 0
    for idx, obj in enumerate(objects, 1):
        name = _item_name(obj, idx)
        try:
            records = project(obj)
            findings = [f for record in records for f in check(record)]
        except Exception as e:
            errors += 1
            logger.error("Error processing %s '%s': %s", kind, name, e)
            continue
        result.records.extend(records)
        result.add(findings)
    logger.info(
        "Collected %d %s record(s) (%d errors) from %d objects",
        len(result.records), kind, errors, len(objects),
    )
    return result


def _no_checks(_record) -> list[Finding]:
    return []


def _host_cpu_mhz(h) -> int:
    hw = h.summary.hardware if h.summary else None
    if not hw:
        return 0
    return int((hw.cpuMhz or 0) * (hw.numCpuCores or 0))


def _host_memory_mb(h) -> int:
    hw = h.summary.hardware if h.summary else None
    return int((hw.memorySize or 0) / MIB) if hw else 0


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

def project_endpoint(about, server: str) -> EndpointInfo:
    return EndpointInfo(
        server=server,
        product_name=about.name or "",
        full_name=about.fullName or "",
        version=about.version or "",
        build=about.build or "",
        instance_uuid=about.instanceUuid or "",
        api_version=about.apiVersion or "",
    )


def collect_endpoint(content: vim.ServiceContent, server: str) -> CollectionResult:
    return _collect(
        "endpoint",
        [content.about],
        lambda about: [project_endpoint(about, server)],
        rules.check_endpoint,
    )


# ---------------------------------------------------------------------------
# ESXi hosts
# ---------------------------------------------------------------------------

def _cluster_membership(content: vim.ServiceContent) -> dict[str, str]:
    """Map host MoRef ID -> cluster name."""
    membership = {}
    for cl in _get_all_objects(content, [vim.ClusterComputeResource]):
        for member in cl.host or []:
            membership[str(member._moId)] = cl.name
    return membership


def project_host(h, server: str, membership: dict[str, str]) -> HostInfo:
    summary = h.summary
    product = summary.config.product if summary and summary.config else None
    version = product.version if product else ""
    rules.parse_version(version)

    hw = summary.hardware if summary else None
    quick = summary.quickStats if summary else None
    runtime = h.runtime
    bios = h.hardware.biosInfo if h.hardware else None
    release = getattr(bios, "releaseDate", None)

    return HostInfo(
        server=server,
        name=h.name,
        version=version,
        build=(product.build or "") if product else "",
        connection_state=str(runtime.connectionState) if runtime else "",
        power_state=str(runtime.powerState) if runtime else "",
        vendor=(hw.vendor or "") if hw else "",
        model=(hw.model or "") if hw else "",
        bios_release_year=release.year if release else 0,
        cpu_model=(hw.cpuModel or "") if hw else "",
        cpu_cores=(hw.numCpuCores or 0) if hw else 0,
        cpu_mhz_total=_host_cpu_mhz(h),
        cpu_usage_mhz=(quick.overallCpuUsage or 0) if quick else 0,
        memory_mb=_host_memory_mb(h),
        memory_usage_mb=(quick.overallMemoryUsage or 0) if quick else 0,
        cluster=membership.get(str(h._moId), "standalone"),
        vm_count=len(h.vm) if h.vm else 0,
    )


def collect_hosts(
    content: vim.ServiceContent, server: str, now: datetime | None = None
) -> CollectionResult:
    now = now or datetime.now(timezone.utc)
    membership = _cluster_membership(content)
    return _collect(
        "host",
        _get_all_objects(content, [vim.HostSystem]),
        lambda h: [project_host(h, server, membership)],
        lambda rec: rules.check_host(rec, now.year),
    )


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------

def project_cluster(cl, server: str) -> ClusterInfo:
    members = list(cl.host or [])
    configuration = cl.configuration
    vsan = getattr(cl.configurationEx, "vsanConfigInfo", None) if cl.configurationEx else None
    return ClusterInfo(
        server=server,
        name=cl.name,
        drs_enabled=bool(configuration.drsConfig.enabled) if configuration and configuration.drsConfig else False,
        ha_enabled=bool(configuration.dasConfig.enabled) if configuration and configuration.dasConfig else False,
        evc_mode=(cl.summary.currentEVCModeKey or "") if cl.summary else "",
        vsan_enabled=bool(vsan.enabled) if vsan else False,
        host_count=len(members),
        vm_count=sum(len(h.vm or []) for h in members),
        total_cpu_mhz=sum(_host_cpu_mhz(h) for h in members),
        total_memory_mb=sum(_host_memory_mb(h) for h in members),
    )


def collect_clusters(content: vim.ServiceContent, server: str) -> CollectionResult:
    return _collect(
        "cluster",
        _get_all_objects(content, [vim.ClusterComputeResource]),
        lambda cl: [project_cluster(cl, server)],
        _no_checks,
    )


# ---------------------------------------------------------------------------
# Datastores
# ---------------------------------------------------------------------------

def project_datastore(ds, server: str) -> VolumeInfo:
    summary = ds.summary
    capacity = summary.capacity or 0
    free = summary.freeSpace or 0
    vmfs = getattr(ds.info, "vmfs", None) if ds.info else None
    return VolumeInfo(
        server=server,
        name=ds.name,
        type=summary.type or "",
        filesystem_version=str(vmfs.version) if vmfs and vmfs.version else "",
        capacity_gb=round(capacity / GIB, 2),
        free_space_gb=round(free / GIB, 2),
        usage_percent=rules.usage_percent(capacity, free),
        accessible=bool(summary.accessible),
        vm_count=len(ds.vm) if ds.vm else 0,
    )


def collect_datastores(content: vim.ServiceContent, server: str) -> CollectionResult:
    return _collect(
        "datastore",
        _get_all_objects(content, [vim.Datastore]),
        lambda ds: [project_datastore(ds, server)],
        rules.check_volume,
    )


# ---------------------------------------------------------------------------
# Virtual machines
# ---------------------------------------------------------------------------

def _snapshot_times(vm) -> list[datetime]:
    snapshot = vm.snapshot
    if not snapshot:
        return []
    times = []
    pending = list(snapshot.rootSnapshotList or [])
    while pending:
        node = pending.pop()
        times.append(node.createTime)
        pending.extend(node.childSnapshotList or [])
    return times


def project_vm(vm, server: str, now: datetime) -> WorkloadInfo | None:
    """Project a VM; returns None for templates."""
    config = vm.config
    if config is None:
        raise ValueError("VM has no configuration (inaccessible or orphaned)")
    if config.template:
        return None

    summary = vm.summary
    storage = summary.storage if summary else None
    committed = (storage.committed or 0) if storage else 0
    uncommitted = (storage.uncommitted or 0) if storage else 0
    cfg_summary = summary.config if summary else None
    runtime = vm.runtime
    snapshots = _snapshot_times(vm)

    return WorkloadInfo(
        server=server,
        name=vm.name,
        power_state=str(runtime.powerState) if runtime else "",
        host=runtime.host.name if runtime and runtime.host else "",
        guest_os=config.guestFullName or "",
        hardware_version=rules.hardware_version_number(config.version),
        num_cpus=config.hardware.numCPU or 0,
        memory_mb=config.hardware.memoryMB or 0,
        provisioned_gb=round((committed + uncommitted) / GIB, 2),
        used_gb=round(committed / GIB, 2),
        nic_count=(cfg_summary.numEthernetCards or 0) if cfg_summary else 0,
        disk_count=(cfg_summary.numVirtualDisks or 0) if cfg_summary else 0,
        tools_status=str(vm.guest.toolsStatus) if vm.guest and vm.guest.toolsStatus else "",
        snapshot_count=len(snapshots),
        old_snapshot_count=rules.count_old_snapshots(snapshots, now),
    )


def collect_vms(
    content: vim.ServiceContent, server: str, now: datetime | None = None
) -> CollectionResult:
    now = now or datetime.now(timezone.utc)

    def project(vm) -> list[WorkloadInfo]:
        record = project_vm(vm, server, now)
        return [record] if record else []

    return _collect(
        "VM",
        _get_all_objects(content, [vim.VirtualMachine]),
        project,
        rules.check_workload,
    )


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------

def _pnic_name(key: str) -> str:
    # "key-vim.host.PhysicalNic-vmnic0" -> "vmnic0"
    return key.rsplit("-", 1)[-1]


def project_standard_networks(h, server: str) -> list[NetworkInfo]:
    """One record per port group on each standard vSwitch of a host."""
    net = h.config.network if h.config else None
    if not net:
        return []
    switches = {vs.name: vs for vs in net.vswitch or []}
    records = []
    for pg in net.portgroup or []:
        spec = pg.spec
        vs = switches.get(spec.vswitchName)
        records.append(NetworkInfo(
            server=server,
            switch_name=spec.vswitchName,
            switch_type="Standard",
            portgroup=spec.name,
            vlan_id=int(spec.vlanId or 0),
            host=h.name,
            uplinks=";".join(_pnic_name(k) for k in (vs.pnic or [])) if vs else "",
            num_ports=(vs.numPorts or 0) if vs else 0,
            mtu=(vs.mtu or 0) if vs else 0,
        ))
    return records


def project_distributed_networks(dvs, server: str) -> list[NetworkInfo]:
    """One record per distributed port group; no owning host."""
    config = dvs.config
    uplink_policy = getattr(config, "uplinkPortPolicy", None) if config else None
    uplinks = ";".join(getattr(uplink_policy, "uplinkPortName", None) or [])
    records = []
    for pg in dvs.portgroup or []:
        pg_config = pg.config
        if pg_config and pg_config.uplink:
            continue
        vlan_id = 0
        port_cfg = getattr(pg_config, "defaultPortConfig", None)
        vlan = getattr(port_cfg, "vlan", None)
        if vlan is not None and isinstance(getattr(vlan, "vlanId", None), int):
            vlan_id = vlan.vlanId
        records.append(NetworkInfo(
            server=server,
            switch_name=dvs.name,
            switch_type="Distributed",
            portgroup=pg.name,
            vlan_id=vlan_id,
            host="",
            uplinks=uplinks,
            num_ports=(pg_config.numPorts or 0) if pg_config else 0,
            mtu=(config.maxMtu or 0) if config else 0,
        ))
    return records


def collect_networks(content: vim.ServiceContent, server: str) -> CollectionResult:
    result = _collect(
        "host network",
        _get_all_objects(content, [vim.HostSystem]),
        lambda h: project_standard_networks(h, server),
        _no_checks,
    )
    try:
        switches = _get_all_objects(content, [vim.DistributedVirtualSwitch])
    except Exception as e:
        logger.error("Error listing distributed switches: %s", e)
        return result
    distributed = _collect(
        "distributed switch",
        switches,
        lambda dvs: project_distributed_networks(dvs, server),
        _no_checks,
    )
    result.records.extend(distributed.records)
    return result
