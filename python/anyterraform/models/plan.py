"""
anyterraform/models/plan.py

Defines the Pydantic models describing a cluster topology (the "plan"):
 - Node, NodeGroup, MasterNodeGroup
 - ProvisionerConfig, SSHSettings
 - ClusterTopology, with YAML load/dump helpers
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class Node(BaseModel):
    """A single provisioned machine.

    Attributes:
        host: The machine's hostname.
        ip: The address used to reach the machine.
        internal_ip: The machine's private address, if the provider has one.
    """

    host: str
    ip: str
    internal_ip: Optional[str] = None


class NodeGroup(BaseModel):
    """A homogeneous set of nodes serving one cluster function."""

    expected_count: int = Field(default=0, ge=0)
    nodes: List[Node] = Field(default_factory=list)


class MasterNodeGroup(NodeGroup):
    """The master group, which sits behind a load-balanced endpoint.

    Both load-balanced fields currently always hold the same value.
    """

    load_balanced_fqdn: str = ""
    load_balanced_short_name: str = ""


class ProvisionerConfig(BaseModel):
    """Which provider to provision with, plus its provider-specific options."""

    provider: str
    options: Dict[str, Any] = Field(default_factory=dict)


class SSHSettings(BaseModel):
    user: str = "kismaticuser"
    key: str = ""
    port: int = Field(default=22, ge=1, le=65535)


MANDATORY_ROLES = ("master", "etcd", "worker")
OPTIONAL_ROLES = ("ingress", "storage")


def check_cluster_name(value: str) -> str:
    """Cluster names become directory and file names: no slashes or newlines."""
    if not value.strip():
        raise ValueError("cluster_name must not be empty.")
    if any(x in value for x in ["/", "\\", "\n"]) or value in (".", ".."):
        raise ValueError("Slashes/newlines are not allowed in 'cluster_name'.")
    return value


class ClusterTopology(BaseModel):
    """
    Abstract description of a cluster: how many nodes of each role it needs and
    which provider should create them. After provisioning, each group also
    lists the nodes that were actually created.

    master, etcd and worker must expect at least one node; ingress and storage
    may expect zero, in which case they are left untouched by provisioning.
    """

    cluster_name: str
    provisioner: ProvisionerConfig
    ssh: SSHSettings = Field(default_factory=SSHSettings)
    master: MasterNodeGroup
    etcd: NodeGroup
    worker: NodeGroup
    ingress: NodeGroup = Field(default_factory=NodeGroup)
    storage: NodeGroup = Field(default_factory=NodeGroup)

    @field_validator("cluster_name")
    @classmethod
    def validate_cluster_name(cls, value: str) -> str:
        return check_cluster_name(value)

    @model_validator(mode="after")
    def check_mandatory_counts(self) -> ClusterTopology:
        missing = [
            role for role in MANDATORY_ROLES if self.group(role).expected_count <= 0
        ]
        if missing:
            raise ValueError(
                f"Expected count must be greater than zero for: {', '.join(missing)}"
            )
        return self

    def group(self, role: str) -> NodeGroup:
        """Return the node group for a role name."""
        if role not in MANDATORY_ROLES + OPTIONAL_ROLES:
            raise KeyError(f"Unknown role group: {role}")
        group: NodeGroup = getattr(self, role)
        return group

    def to_yaml(self, *, sort_keys: bool = False) -> str:
        """
        Serialize this ClusterTopology to a YAML string using PyYAML.
        """
        return yaml.safe_dump(self.model_dump(), sort_keys=sort_keys)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> ClusterTopology:
        """
        Deserialize a ClusterTopology from a YAML string.
        """
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data)


__all__ = [
    "Node",
    "NodeGroup",
    "MasterNodeGroup",
    "ProvisionerConfig",
    "SSHSettings",
    "ClusterTopology",
    "check_cluster_name",
    "MANDATORY_ROLES",
    "OPTIONAL_ROLES",
]
