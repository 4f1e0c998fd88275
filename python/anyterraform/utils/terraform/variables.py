"""
anyterraform/utils/terraform/variables.py

Writes Terraform input variables into a cluster's state directory:

  - terraform.tfvars       topology-derived ClusterVariables
  - provider.auto.tfvars   the provider-specific options, verbatim

Terraform merges both sources when it plans. Both files are JSON.
"""

from __future__ import annotations

import os
import json
import logging
from typing import Any, Mapping

import aiofiles

from anyterraform.errors import SerializationError, WriteError
from anyterraform.models.plan import ClusterTopology
from anyterraform.models.terraform import ClusterVariables
from anyterraform.secrets.ssh_keys import KeyPairPaths

CLUSTER_VARS_FILENAME = "terraform.tfvars"
PROVIDER_VARS_FILENAME = "provider.auto.tfvars"

logger = logging.getLogger(__name__)


def cluster_variables(
    topology: ClusterTopology,
    key_pair: KeyPairPaths,
    kismatic_version: str,
    cluster_owner: str,
) -> ClusterVariables:
    """Derive the variables every provider template receives."""
    return ClusterVariables(
        kismatic_version=kismatic_version,
        cluster_owner=cluster_owner,
        private_ssh_key_path=key_pair.private_key,
        public_ssh_key_path=key_pair.public_key,
        cluster_name=topology.cluster_name,
        master_count=topology.master.expected_count,
        etcd_count=topology.etcd.expected_count,
        worker_count=topology.worker.expected_count,
        ingress_count=topology.ingress.expected_count,
        storage_count=topology.storage.expected_count,
    )


def _encode(data: Mapping[str, Any], what: str) -> str:
    try:
        return json.dumps(data, indent=2)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"could not encode {what}: {exc}") from exc


async def _write(path: str, content: str, what: str) -> None:
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)
    except OSError as exc:
        raise WriteError(f"error writing {what} to {path}: {exc}") from exc


async def write_terraform_variables(
    cluster_state_dir: str,
    variables: ClusterVariables,
    provider_options: Mapping[str, Any],
) -> None:
    """Serialize both variable sources into `cluster_state_dir`.

    Args:
        cluster_state_dir (str): The cluster's state directory.
        variables (ClusterVariables): Topology-derived variables.
        provider_options (Mapping[str, Any]): Provider-specific options.

    Raises:
        SerializationError: If either source cannot be encoded as JSON.
        WriteError: If either file cannot be written.
    """
    cluster_vars = _encode(variables.model_dump(), "terraform variables")
    provider_vars = _encode(dict(provider_options), "provider-specific options")

    await _write(
        os.path.join(cluster_state_dir, CLUSTER_VARS_FILENAME),
        cluster_vars,
        "terraform variables",
    )
    await _write(
        os.path.join(cluster_state_dir, PROVIDER_VARS_FILENAME),
        provider_vars,
        "tfvars file for provider-specific options",
    )
    logger.debug("Wrote terraform variables into %s", cluster_state_dir)
