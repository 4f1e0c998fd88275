"""
anyterraform/utils/terraform/outputs.py

Reads node and load-balancer information back out of Terraform.

Provider templates publish, for each role R:

    R_pub_ips   addresses used to reach each node
    R_priv_ips  private addresses (may be empty)
    R_hosts     hostnames
    R_lb        exactly one load-balanced endpoint (only queried for master)

The three node lists are positional: element i of each describes node i.
Their lengths are checked before any node is built.
"""

from __future__ import annotations

import logging
from typing import List

from pydantic import BaseModel, ValidationError

from anyterraform.errors import (
    CardinalityMismatchError,
    OutputQueryError,
    UnexpectedOutputCardinalityError,
)
from anyterraform.models.plan import Node, NodeGroup
from anyterraform.models.terraform import TerraformOutput
from anyterraform.utils.terraform.commands import InfrastructureTool

logger = logging.getLogger(__name__)


class TerraformNodes(BaseModel):
    """The raw node lists of one role, after their lengths were validated."""

    ips: List[str]
    internal_ips: List[str]
    hosts: List[str]

    def to_node_group(self) -> NodeGroup:
        """Pair the lists up positionally into a NodeGroup."""
        nodes = [
            Node(
                ip=ip,
                host=self.hosts[i],
                internal_ip=self.internal_ips[i] if self.internal_ips else None,
            )
            for i, ip in enumerate(self.ips)
        ]
        return NodeGroup(expected_count=len(nodes), nodes=nodes)


async def get_output_values(tool: InfrastructureTool, key: str) -> List[str]:
    """Query output `key` and decode its list of string values.

    Raises:
        OutputQueryError: If the query fails or its JSON cannot be decoded.
    """
    raw = await tool.output(key)
    try:
        return TerraformOutput.model_validate_json(raw).value
    except ValidationError as exc:
        raise OutputQueryError(key, f"could not decode output: {exc}", raw) from exc


async def get_load_balancer(tool: InfrastructureTool, role: str) -> str:
    """Return the single load-balanced endpoint published for `role`.

    Raises:
        UnexpectedOutputCardinalityError: Unless exactly one value is returned.
        OutputQueryError: If the query fails.
    """
    values = await get_output_values(tool, f"{role}_lb")
    if len(values) != 1:
        raise UnexpectedOutputCardinalityError(role, len(values))
    return values[0]


async def get_nodes(tool: InfrastructureTool, role: str) -> TerraformNodes:
    """Collect and validate the node lists published for `role`.

    Raises:
        CardinalityMismatchError: If the number of hostnames differs from the
            number of IPs, or internal IPs are present but their number differs.
        OutputQueryError: If any query fails.
    """
    ips = await get_output_values(tool, f"{role}_pub_ips")
    internal_ips = await get_output_values(tool, f"{role}_priv_ips")
    hosts = await get_output_values(tool, f"{role}_hosts")

    if len(ips) != len(hosts):
        raise CardinalityMismatchError(role, "host names", len(ips), len(hosts))

    # Internal IPs are optional, but when present there must be one per node.
    if internal_ips and len(ips) != len(internal_ips):
        raise CardinalityMismatchError(
            role, "internal IPs", len(ips), len(internal_ips)
        )

    logger.debug("Terraform reported %d %s node(s)", len(ips), role)
    return TerraformNodes(ips=ips, internal_ips=internal_ips, hosts=hosts)


async def get_node_group(tool: InfrastructureTool, role: str) -> NodeGroup:
    """Shorthand for `(await get_nodes(tool, role)).to_node_group()`."""
    return (await get_nodes(tool, role)).to_node_group()


__all__ = [
    "TerraformNodes",
    "get_output_values",
    "get_load_balancer",
    "get_nodes",
    "get_node_group",
]
