"""
anyterraform/utils/terraform/__init__.py

Provides a convenient import interface for the Terraform submodules:

- providers.py for locating providers and loading their descriptors
- variables.py for writing Terraform input variables
- commands.py for the Terraform lifecycle (init, plan, apply, destroy, output)
- outputs.py for reading node and load-balancer outputs back
"""

from anyterraform.utils.terraform.providers import (
    load_provider_descriptor,
    provider_dir_for,
    read_provider_descriptor,
)
from anyterraform.utils.terraform.variables import (
    cluster_variables,
    write_terraform_variables,
)
from anyterraform.utils.terraform.commands import (
    InfrastructureTool,
    TerraformCLI,
    build_command_env,
)
from anyterraform.utils.terraform.outputs import (
    TerraformNodes,
    get_load_balancer,
    get_nodes,
    get_node_group,
)

__all__ = [
    "load_provider_descriptor",
    "provider_dir_for",
    "read_provider_descriptor",
    "cluster_variables",
    "write_terraform_variables",
    "InfrastructureTool",
    "TerraformCLI",
    "build_command_env",
    "TerraformNodes",
    "get_load_balancer",
    "get_nodes",
    "get_node_group",
]
