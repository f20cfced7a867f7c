"""Resource model parsing tests."""

from __future__ import annotations

import pytest

from conftest import cluster_spec, make_object
from pinot_operator.resources.models import (
    ClusterSpec,
    ManagedResource,
    NodeType,
    ResourceKind,
    StatusSnapshot,
    TableSpec,
)


def test_cluster_object_parses_wire_keys() -> None:
    spec = cluster_spec()
    spec["plugins"] = ["pinot-s3", "pinot-parquet"]
    spec["external"]["deepStorage"] = {"spec": [{"nodeType": "server", "data": "s3://bucket/pinot"}]}
    spec["auth"] = {"type": "basic-auth", "secretRef": {"name": "pinot-admin", "namespace": "data"}}

    resource = ManagedResource.from_object(
        ResourceKind.CLUSTER, make_object(ResourceKind.CLUSTER, "c1", spec, generation=3)
    )

    assert resource.key == "default/c1"
    assert resource.generation == 3
    assert resource.resource_version == "100"
    parsed: ClusterSpec = resource.spec
    assert parsed.deployment_order == ["controller", "broker"]
    assert [n.name for n in parsed.nodes] == ["n1", "n2"]
    assert parsed.nodes[1].replica_count == 2
    assert parsed.workload_template("k8s-default").ports[0].container_port == 9000
    assert parsed.runtime_config("pinot-default").runtime_options == "-Xmx1G"
    assert parsed.external.coordination_endpoint == "zk:2181"
    assert parsed.external.deep_storage_for("server") == "s3://bucket/pinot"
    assert parsed.external.deep_storage_for("broker") is None
    assert parsed.plugins == ["pinot-s3", "pinot-parquet"]
    assert resource.raw["spec"]["auth"]["secretRef"]["name"] == "pinot-admin"


def test_malformed_cluster_fields_parse_leniently() -> None:
    spec = ClusterSpec.from_dict(
        {
            "deploymentOrder": "controller",
            "nodes": [{"name": "n1", "nodeType": "CONTROLLER", "replicas": "many"}, "junk"],
            "k8sConfig": None,
        }
    )

    assert spec.deployment_order == []
    assert len(spec.nodes) == 1
    assert spec.nodes[0].node_type == "controller"
    assert spec.nodes[0].replica_count == 1
    assert spec.workload_templates == []


def test_table_spec_normalizes_type() -> None:
    spec = TableSpec.from_dict(
        {
            "pinotCluster": "c1",
            "pinotSchema": "events",
            "pinotTableType": "OFFLINE",
            "tables.json": "{}",
            "segmentReload": True,
        }
    )

    assert spec.table_type == "offline"
    assert spec.segment_reload is True


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("cluster", ResourceKind.CLUSTER),
        ("Pinot", ResourceKind.CLUSTER),
        ("pinotschemas", ResourceKind.SCHEMA),
        ("tables", ResourceKind.TABLE),
        ("PinotTenant", ResourceKind.TENANT),
    ],
)
def test_resource_kind_parse(value: str, expected: ResourceKind) -> None:
    assert ResourceKind.parse(value) is expected


def test_resource_kind_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        ResourceKind.parse("segment")


def test_status_snapshot_wire_format_per_kind() -> None:
    snapshot = StatusSnapshot(
        type="Table",
        status="Ready",
        last_update_time="2026-01-01T00:00:00Z",
        reload_status=["seg: ok"],
        current_payload='{"tableName": "events"}',
    )

    table_status = snapshot.to_dict(ResourceKind.TABLE)
    schema_status = snapshot.to_dict(ResourceKind.SCHEMA)

    assert table_status["lastUpdateTime"] == "2026-01-01T00:00:00Z"
    assert table_status["reloadStatus"] == ["seg: ok"]
    assert table_status["currentTable.json"] == '{"tableName": "events"}'
    assert "currentSchemas.json" in schema_status
    assert StatusSnapshot.from_dict(table_status).reload_status == ["seg: ok"]


def test_coordinator_is_controller() -> None:
    assert NodeType.coordinator() is NodeType.CONTROLLER
    assert NodeType.is_known("minion")
    assert not NodeType.is_known("gateway")
