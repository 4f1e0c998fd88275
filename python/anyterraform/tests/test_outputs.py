"""Tests for reading node and load-balancer outputs back from terraform."""

from __future__ import annotations

import asyncio

import pytest

from anyterraform.errors import (
    CardinalityMismatchError,
    OutputCardinalityError,
    OutputQueryError,
    UnexpectedOutputCardinalityError,
)
from anyterraform.utils.terraform.outputs import (
    get_load_balancer,
    get_node_group,
    get_nodes,
)
from fakes import FakeTool, role_outputs


def test_nodes_without_internal_ips() -> None:
    tool = FakeTool(role_outputs("worker", ["1.1.1.1", "2.2.2.2"], ["a", "b"]))

    group = asyncio.run(get_node_group(tool, "worker"))

    assert group.expected_count == 2
    assert [(n.ip, n.host, n.internal_ip) for n in group.nodes] == [
        ("1.1.1.1", "a", None),
        ("2.2.2.2", "b", None),
    ]
    assert tool.queried == ["worker_pub_ips", "worker_priv_ips", "worker_hosts"]


def test_nodes_are_paired_positionally() -> None:
    tool = FakeTool(
        role_outputs(
            "etcd", ["1.1.1.1", "2.2.2.2"], ["a", "b"], ["10.0.0.1", "10.0.0.2"]
        )
    )

    nodes = asyncio.run(get_nodes(tool, "etcd")).to_node_group().nodes

    assert nodes[1].ip == "2.2.2.2"
    assert nodes[1].host == "b"
    assert nodes[1].internal_ip == "10.0.0.2"


def test_host_count_mismatch() -> None:
    tool = FakeTool(role_outputs("master", ["1.1.1.1", "2.2.2.2"], ["a", "b", "c"]))

    with pytest.raises(CardinalityMismatchError) as excinfo:
        asyncio.run(get_nodes(tool, "master"))

    assert isinstance(excinfo.value, OutputCardinalityError)
    assert (excinfo.value.expected, excinfo.value.actual) == (2, 3)
    assert "expected to get 2 host names" in str(excinfo.value)
    assert "but got 3" in str(excinfo.value)


def test_internal_ip_count_mismatch() -> None:
    tool = FakeTool(
        role_outputs("worker", ["1.1.1.1", "2.2.2.2"], ["a", "b"], ["10.0.0.1"])
    )

    with pytest.raises(CardinalityMismatchError) as excinfo:
        asyncio.run(get_nodes(tool, "worker"))

    assert excinfo.value.what == "internal IPs"
    assert (excinfo.value.expected, excinfo.value.actual) == (2, 1)


def test_null_output_value_is_an_empty_list() -> None:
    tool = FakeTool(
        {
            "ingress_pub_ips": ["1.1.1.1"],
            "ingress_priv_ips": '{"sensitive": false, "type": "list", "value": null}',
            "ingress_hosts": ["a"],
        }
    )

    group = asyncio.run(get_node_group(tool, "ingress"))

    assert group.nodes[0].internal_ip is None


def test_undecodable_output_carries_raw_text() -> None:
    tool = FakeTool(
        {
            "master_pub_ips": "Error: output not found",
            "master_priv_ips": [],
            "master_hosts": [],
        }
    )

    with pytest.raises(OutputQueryError) as excinfo:
        asyncio.run(get_nodes(tool, "master"))

    assert excinfo.value.key == "master_pub_ips"
    assert excinfo.value.raw_output == "Error: output not found"


def test_failed_query_propagates() -> None:
    tool = FakeTool({"master_pub_ips": ["1.1.1.1"]})

    with pytest.raises(OutputQueryError) as excinfo:
        asyncio.run(get_nodes(tool, "master"))

    assert excinfo.value.key == "master_priv_ips"


def test_single_load_balancer() -> None:
    tool = FakeTool({"master_lb": ["lb.example.com"]})

    assert asyncio.run(get_load_balancer(tool, "master")) == "lb.example.com"
    assert tool.queried == ["master_lb"]


@pytest.mark.parametrize("values", [[], ["lb-1", "lb-2"]])
def test_load_balancer_must_be_exactly_one(values: list) -> None:
    tool = FakeTool({"master_lb": values})

    with pytest.raises(UnexpectedOutputCardinalityError) as excinfo:
        asyncio.run(get_load_balancer(tool, "master"))

    assert excinfo.value.expected == 1
    assert excinfo.value.actual == len(values)
