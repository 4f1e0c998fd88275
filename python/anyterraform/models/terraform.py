"""
anyterraform/models/terraform.py

Defines Pydantic models related to Terraform:
 - TerraformOutput: the envelope printed by `terraform output -json <key>`.
 - ClusterVariables: the variables every provider template receives, written
   to `terraform.tfvars`.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class TerraformOutput(BaseModel):
    """A single Terraform output holding an ordered list of strings.

    Attributes:
        sensitive: True if the output is marked sensitive.
        type: Optional Terraform type hint (e.g. ["list", "string"]).
        value: The ordered values of the output.
    """

    sensitive: bool = False
    type: Optional[Any] = None
    value: List[str]

    @field_validator("value", mode="before")
    @classmethod
    def null_to_empty(cls, value: Any) -> Any:
        """Terraform prints `null` for outputs whose list is unset."""
        return [] if value is None else value


class ClusterVariables(BaseModel):
    """Topology-derived variables handed to every provider template."""

    kismatic_version: str
    cluster_owner: str
    private_ssh_key_path: str
    public_ssh_key_path: str
    cluster_name: str
    master_count: int = Field(ge=0)
    etcd_count: int = Field(ge=0)
    worker_count: int = Field(ge=0)
    ingress_count: int = Field(ge=0)
    storage_count: int = Field(ge=0)


__all__ = ["TerraformOutput", "ClusterVariables"]
