"""
filename: anyterraform/deployment/provision.py

Provisions and destroys cluster infrastructure with Terraform, using any
provider directory that follows the provider layout:

    <providers_dir>/<provider>/provider.yaml   + the provider's *.tf files

Per-cluster state (SSH keys, variables, plan artifact, terraform state) lives
in <state_dir>/<cluster_name>/.
"""

from __future__ import annotations

import os
import sys
import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional, TextIO

from anyterraform.errors import (
    CardinalityMismatchError,
    ConfigurationError,
    WriteError,
)
from anyterraform.models.plan import (
    OPTIONAL_ROLES,
    ClusterTopology,
    MasterNodeGroup,
    NodeGroup,
    check_cluster_name,
)
from anyterraform.models.settings import ProvisionerSettings
from anyterraform.secrets.environment import EnvironmentSecretsGetter, SecretsGetter
from anyterraform.secrets.ssh_keys import ensure_key_pair
from anyterraform.utils.terraform import (
    InfrastructureTool,
    TerraformCLI,
    cluster_variables,
    get_load_balancer,
    get_node_group,
    load_provider_descriptor,
    provider_dir_for,
    read_provider_descriptor,
    write_terraform_variables,
)

ToolFactory = Callable[[str, Mapping[str, str]], InfrastructureTool]

logger = logging.getLogger(__name__)


def _require_nodes(role: str, planned: NodeGroup, populated: NodeGroup) -> NodeGroup:
    if not populated.nodes:
        raise CardinalityMismatchError(role, "nodes", planned.expected_count, 0)
    return populated


async def build_populated_plan(
    tool: InfrastructureTool, topology: ClusterTopology
) -> ClusterTopology:
    """Return a copy of `topology` with every node group filled from Terraform.

    Order: master (and its load balancer), etcd, worker, then ingress and
    storage only when the topology expects nodes for them. Groups are replaced,
    not merged. The first failure propagates; no partial plan is returned.

    Raises:
        OutputQueryError: If an output cannot be queried or decoded.
        OutputCardinalityError: If outputs disagree in length, the master load
            balancer is not exactly one value, or a queried role has no nodes.
    """
    updates: Dict[str, Any] = {}

    masters = _require_nodes(
        "master", topology.master, await get_node_group(tool, "master")
    )
    master_lb = await get_load_balancer(tool, "master")
    updates["master"] = MasterNodeGroup(
        expected_count=masters.expected_count,
        nodes=masters.nodes,
        load_balanced_fqdn=master_lb,
        load_balanced_short_name=master_lb,
    )

    for role in ("etcd", "worker"):
        updates[role] = _require_nodes(
            role, topology.group(role), await get_node_group(tool, role)
        )

    for role in OPTIONAL_ROLES:
        if topology.group(role).expected_count > 0:
            updates[role] = _require_nodes(
                role, topology.group(role), await get_node_group(tool, role)
            )

    return topology.model_copy(update=updates)


class AnyTerraform:
    """
    Uses Terraform to provision infrastructure with any provider that follows
    the provider layout.

    Args:
        settings (ProvisionerSettings): Directories, binary and ownership info.
        secrets_getter (Optional[SecretsGetter]): Resolves provider credentials.
            Defaults to reading them from the process environment.
        output (Optional[TextIO]): Receives Terraform's lifecycle output.
            Defaults to stdout.
        tool_factory (Optional[ToolFactory]): Builds the tool for a cluster
            state directory and its secret environment. Defaults to TerraformCLI.
    """

    def __init__(
        self,
        settings: ProvisionerSettings,
        secrets_getter: Optional[SecretsGetter] = None,
        output: Optional[TextIO] = None,
        tool_factory: Optional[ToolFactory] = None,
    ) -> None:
        self.settings = settings
        self.secrets_getter = secrets_getter or EnvironmentSecretsGetter()
        self.output = output if output is not None else sys.stdout
        self._tool_factory = tool_factory or self._terraform_cli

    def _terraform_cli(
        self, working_dir: str, secret_env: Mapping[str, str]
    ) -> InfrastructureTool:
        return TerraformCLI(
            working_dir,
            binary_path=self.settings.binary_path,
            secret_env=secret_env,
            output=self.output,
        )

    def cluster_state_dir(self, cluster_name: str) -> str:
        """Absolute path of the cluster's state directory."""
        try:
            check_cluster_name(cluster_name)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        return os.path.abspath(os.path.join(self.settings.state_dir, cluster_name))

    async def provision(self, topology: ClusterTopology) -> ClusterTopology:
        """Create the infrastructure for `topology` and return it populated.

        Steps:
          1) Load the provider descriptor.
          2) Create the cluster state directory.
          3) Generate the cluster SSH key pair, or reuse it.
          4) Write the Terraform variables.
          5) Resolve the provider's secrets.
          6) terraform init, plan, apply.
          7) Read nodes and load balancer back into the topology.

        The caller's topology is not modified.
        """
        cluster_name = topology.cluster_name
        provider = topology.provisioner.provider
        provider_dir = os.path.abspath(
            provider_dir_for(self.settings.providers_dir, provider)
        )
        descriptor = await read_provider_descriptor(provider_dir, provider)

        state_dir = self.cluster_state_dir(cluster_name)
        try:
            os.makedirs(state_dir, mode=0o700, exist_ok=True)
        except OSError as exc:
            raise WriteError(
                f"error creating directory to keep cluster state: {exc}"
            ) from exc

        # Blocking: RSA generation and key file writes.
        key_pair = await asyncio.to_thread(ensure_key_pair, state_dir, cluster_name)
        planned = topology.model_copy(
            update={"ssh": topology.ssh.model_copy(update={"key": key_pair.private_key})}
        )

        await write_terraform_variables(
            state_dir,
            cluster_variables(
                planned,
                key_pair,
                self.settings.kismatic_version,
                self.settings.cluster_owner,
            ),
            planned.provisioner.options,
        )

        secret_env = await self.secrets_getter.get_as_environment_variables(
            cluster_name, descriptor.environment_variables
        )
        tool = self._tool_factory(state_dir, secret_env)

        logger.info("[%s] => init+plan+apply with provider %r", cluster_name, provider)
        await tool.init(provider_dir)
        await tool.plan(provider_dir, cluster_name)
        await tool.apply(cluster_name)

        populated = await build_populated_plan(tool, planned)
        logger.info("[%s] => provisioned.", cluster_name)
        return populated

    async def destroy(self, provider: str, cluster_name: str) -> None:
        """Tear down all infrastructure Terraform tracks for `cluster_name`.

        Raises:
            ConfigurationError: If the provider is unknown or the cluster has no
                state directory.
            SecretResolutionError: If the provider's secrets are unavailable.
            ExternalToolError: If terraform destroy fails.
        """
        descriptor = await load_provider_descriptor(self.settings.providers_dir, provider)

        state_dir = self.cluster_state_dir(cluster_name)
        if not os.path.isdir(state_dir):
            raise ConfigurationError(
                f"no state found for cluster {cluster_name!r} at {state_dir}"
            )

        secret_env = await self.secrets_getter.get_as_environment_variables(
            cluster_name, descriptor.environment_variables
        )
        tool = self._tool_factory(state_dir, secret_env)

        logger.info("[%s] => destroy with provider %r", cluster_name, provider)
        await tool.destroy()
        logger.info("[%s] => destroyed.", cluster_name)


__all__ = ["AnyTerraform", "build_populated_plan", "ToolFactory"]
