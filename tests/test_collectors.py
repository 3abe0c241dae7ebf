"""Tests for the inventory collectors against fake vSphere objects."""

from __future__ import annotations

import logging
from datetime import timedelta
from types import SimpleNamespace as NS

import pytest
from pyVmomi import vim

from vcenter_assessment import collectors
from vcenter_assessment.models import Severity

from .fakes import (
    NOW,
    FakeViewManager,
    make_about,
    make_cluster,
    make_content,
    make_datastore,
    make_dvs,
    make_host,
    make_snapshot,
    make_vm,
)


class ExplodingDatastore:
    name = "ds-broken"

    @property
    def summary(self):
        raise RuntimeError("property collector fault")


def _errors(caplog):
    return [r for r in caplog.records if r.levelno == logging.ERROR]


def test_collect_endpoint():
    content = make_content(about=make_about(version="6.5.0", build="8307201"))
    result = collectors.collect_endpoint(content, "vc01")

    (endpoint,) = result.records
    assert endpoint.server == "vc01"
    assert endpoint.version == "6.5.0"
    assert endpoint.build == "8307201"
    assert endpoint.product_name == "VMware vCenter Server"
    assert len(result.blockers) == 1
    assert result.warnings == []


def test_collect_hosts_projects_fields_and_cluster():
    clustered = make_host(name="esx01", moid="host-1", bios_year=2021)
    standalone = make_host(name="esx02", moid="host-2", bios_year=2021, vm_count=0)
    content = make_content(
        hosts=[clustered, standalone],
        clusters=[make_cluster(name="Prod", hosts=[clustered])],
    )

    result = collectors.collect_hosts(content, "vc01", NOW)

    by_name = {h.name: h for h in result.records}
    assert by_name["esx01"].cluster == "Prod"
    assert by_name["esx02"].cluster == "standalone"
    assert by_name["esx01"].cpu_mhz_total == 2400 * 16
    assert by_name["esx01"].memory_mb == 256 * 1024
    assert by_name["esx01"].vm_count == 2
    assert by_name["esx01"].bios_release_year == 2021
    assert result.blockers == [] and result.warnings == []


def test_collect_hosts_drops_unparseable_version(caplog):
    content = make_content(hosts=[make_host(name="esx01"), make_host(name="esx-odd", version="unknown")])

    with caplog.at_level(logging.INFO):
        result = collectors.collect_hosts(content, "vc01", NOW)

    assert [h.name for h in result.records] == ["esx01"]
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "esx-odd" in errors[0].getMessage()


def test_collect_hosts_flags_old_version_and_hardware():
    content = make_content(hosts=[make_host(name="esx-old", version="6.7.0", bios_year=2015)])
    result = collectors.collect_hosts(content, "vc01", NOW)
    assert len(result.blockers) == 1
    assert len(result.warnings) == 1


def test_collect_clusters_aggregates_member_hosts():
    members = [
        make_host(name="esx01", moid="host-1", vm_count=3, cores=8, cpu_mhz=2000, memory_gb=128),
        make_host(name="esx02", moid="host-2", vm_count=5, cores=16, cpu_mhz=2500, memory_gb=256),
    ]
    content = make_content(clusters=[make_cluster(name="Prod", hosts=members, vsan=True)])

    (cluster,) = collectors.collect_clusters(content, "vc01").records

    assert cluster.host_count == 2
    assert cluster.vm_count == 8
    assert cluster.total_cpu_mhz == 8 * 2000 + 16 * 2500
    assert cluster.total_memory_mb == (128 + 256) * 1024
    assert cluster.drs_enabled and cluster.ha_enabled and cluster.vsan_enabled
    assert cluster.evc_mode == "intel-skylake"


def test_collect_datastores_usage_warning():
    content = make_content(datastores=[make_datastore(name="ds-full", capacity_gb=100, free_gb=15)])

    result = collectors.collect_datastores(content, "vc01")

    (ds,) = result.records
    assert ds.usage_percent == 85.0
    assert ds.filesystem_version == "6.82"
    assert len(result.warnings) == 1
    assert "ds-full" in result.warnings[0].message


def test_collect_datastores_zero_capacity():
    content = make_content(datastores=[make_datastore(name="ds-empty", capacity_gb=0, free_gb=0, ds_type="NFS")])

    result = collectors.collect_datastores(content, "vc01")

    (ds,) = result.records
    assert ds.usage_percent == 0.0
    assert ds.filesystem_version == ""
    assert result.warnings == []


def test_collector_failure_isolation(caplog):
    stores = [make_datastore(name=f"ds{i}") for i in range(1, 6)]
    stores[2] = ExplodingDatastore()
    content = make_content(datastores=stores)

    with caplog.at_level(logging.INFO):
        result = collectors.collect_datastores(content, "vc01")

    assert [ds.name for ds in result.records] == ["ds1", "ds2", "ds4", "ds5"]
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "ds-broken" in errors[0].getMessage()


def test_collect_vms_snapshots_and_findings():
    snapshots = [
        make_snapshot(timedelta(hours=200), children=[make_snapshot(timedelta(hours=10))]),
        make_snapshot(timedelta(hours=72, seconds=1)),
    ]
    content = make_content(vms=[
        make_vm(name="app01"),
        make_vm(name="legacy01", hw_version="vmx-11", tools="toolsNotRunning", snapshots=snapshots),
        make_vm(name="tmpl-win2019", template=True),
    ])

    result = collectors.collect_vms(content, "vc01", NOW)

    by_name = {vm.name: vm for vm in result.records}
    assert set(by_name) == {"app01", "legacy01"}
    legacy = by_name["legacy01"]
    assert legacy.hardware_version == 11
    assert legacy.snapshot_count == 3
    assert legacy.old_snapshot_count == 2
    assert legacy.provisioned_gb == 100.0
    assert legacy.used_gb == 40.0
    assert legacy.nic_count == 1 and legacy.disk_count == 2
    assert legacy.host == "esx01.lab.local"
    assert len(result.warnings) == 3
    assert all(f.severity == Severity.WARNING for f in result.warnings)


def test_collect_vms_drops_bad_hardware_version(caplog):
    content = make_content(vms=[make_vm(name="odd", hw_version="vmx-"), make_vm(name="ok")])
    result = collectors.collect_vms(content, "vc01", NOW)
    assert [vm.name for vm in result.records] == ["ok"]
    assert len(_errors(caplog)) == 1


def test_collect_networks_standard_and_distributed():
    host = make_host(name="esx01")
    content = make_content(hosts=[host], switches=[make_dvs(name="dvs-prod")])

    result = collectors.collect_networks(content, "vc01")

    standard = [n for n in result.records if n.switch_type == "Standard"]
    distributed = [n for n in result.records if n.switch_type == "Distributed"]
    assert [n.portgroup for n in standard] == ["Management Network", "VM Network"]
    assert standard[1].vlan_id == 20
    assert standard[0].host == "esx01"
    assert standard[0].uplinks == "vmnic0;vmnic1"
    assert standard[0].mtu == 1500

    (dvpg,) = distributed
    assert dvpg.portgroup == "dvpg-web"
    assert dvpg.vlan_id == 100
    assert dvpg.host == ""
    assert dvpg.uplinks == "uplink1;uplink2"
    assert dvpg.mtu == 9000


def test_collect_networks_trunk_vlan_is_zero():
    dvs = make_dvs()
    dvs.portgroup[1].config.defaultPortConfig.vlan = NS(vlanId=[NS(start=100, end=200)])
    content = make_content(switches=[dvs])
    (record,) = collectors.collect_networks(content, "vc01").records
    assert record.vlan_id == 0


def test_collect_endpoint_keeps_record_with_unknown_version():
    content = make_content(about=make_about(version="unknown"))

    result = collectors.collect_endpoint(content, "vc01")

    assert len(result.records) == 1
    assert result.records[0].version == "unknown"
    (blocker,) = result.blockers
    assert "could not be determined" in blocker.message


class BrokenSwitchViewManager(FakeViewManager):
    def CreateContainerView(self, container, obj_type, recursive=True):
        if obj_type[0] is vim.DistributedVirtualSwitch:
            raise RuntimeError("dvs fault")
        return super().CreateContainerView(container, obj_type, recursive)


def test_collect_networks_keeps_standard_when_switch_listing_fails(caplog):
    content = make_content(hosts=[make_host(name="esx01")])
    content.viewManager = BrokenSwitchViewManager(content.viewManager.inventory)

    result = collectors.collect_networks(content, "vc01")

    assert [n.portgroup for n in result.records] == ["Management Network", "VM Network"]
    errors = _errors(caplog)
    assert len(errors) == 1
    assert "dvs fault" in errors[0].getMessage()


class FailingContainerView:
    destroyed = False

    @property
    def view(self):
        raise RuntimeError("session expired")

    def Destroy(self):
        self.destroyed = True


def test_container_view_destroyed_when_listing_fails():
    container = FailingContainerView()
    content = NS(rootFolder=NS(), viewManager=NS(CreateContainerView=lambda *a, **kw: container))

    with pytest.raises(RuntimeError):
        collectors._get_all_objects(content, [vim.Datastore])

    assert container.destroyed
