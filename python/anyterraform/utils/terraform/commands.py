"""
anyterraform/utils/terraform/commands.py

Implements the Terraform lifecycle against one cluster's state directory.

`InfrastructureTool` is the five-operation contract the provisioner relies on
(init, plan, apply, destroy, output). `TerraformCLI` fulfils it by running the
terraform binary with:

  - the working directory set to the cluster state directory
  - the process environment, plus resolved provider secrets, plus
    TF_IN_AUTOMATION=True

Lifecycle commands stream their combined output to a sink; output queries
capture it. Nothing is retried: a failed command raises immediately.
"""

from __future__ import annotations

import os
import sys
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, TextIO

from anyterraform.errors import ExternalToolError, OutputQueryError
from anyterraform.utils.async_command_runner import (
    CommandError,
    run_command,
    run_command_streaming,
)

AUTOMATION_ENV = {"TF_IN_AUTOMATION": "True"}

logger = logging.getLogger(__name__)


class InfrastructureTool(ABC):
    """Abstract declarative infrastructure tool, bound to one working directory."""

    @abstractmethod
    async def init(self, provider_dir: str) -> None:
        """Prepare the working directory for the provider's configuration."""
        pass

    @abstractmethod
    async def plan(self, provider_dir: str, plan_name: str) -> str:
        """Write a plan artifact named `plan_name`; return its path."""
        pass

    @abstractmethod
    async def apply(self, plan_name: str) -> None:
        """Apply a previously written plan artifact without prompting."""
        pass

    @abstractmethod
    async def destroy(self) -> None:
        """Destroy everything tracked in the working directory without prompting."""
        pass

    @abstractmethod
    async def output(self, key: str) -> str:
        """Return the raw JSON text of output `key`.

        Raises:
            OutputQueryError: If the query itself fails.
        """
        pass


def build_command_env(secret_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Environment overrides for every Terraform invocation.

    The result is layered on top of the process environment by the runner.
    """
    env = dict(secret_env or {})
    env.update(AUTOMATION_ENV)
    return env


class TerraformCLI(InfrastructureTool):
    """Runs the terraform binary in a cluster's state directory.

    Args:
        working_dir (str): The cluster state directory.
        binary_path (str): Path to (or name of) the terraform binary.
        secret_env (Optional[Mapping[str, str]]): Resolved provider secrets.
        output (Optional[TextIO]): Sink receiving lifecycle command output.
            Defaults to stdout.
    """

    def __init__(
        self,
        working_dir: str,
        *,
        binary_path: str = "terraform",
        secret_env: Optional[Mapping[str, str]] = None,
        output: Optional[TextIO] = None,
    ) -> None:
        self.working_dir = working_dir
        self.binary_path = binary_path
        self.env = build_command_env(secret_env)
        self.sink = output if output is not None else sys.stdout

    async def _run(self, operation: str, args: List[str]) -> None:
        logger.info("Running terraform %s in %s", operation, self.working_dir)
        try:
            await run_command_streaming(
                [self.binary_path] + args,
                self.sink,
                env=self.env,
                cwd=self.working_dir,
            )
        except CommandError as exc:
            raise ExternalToolError(operation, str(exc), exc.output) from exc

    async def init(self, provider_dir: str) -> None:
        await self._run("init", ["init", provider_dir])

    async def plan(self, provider_dir: str, plan_name: str) -> str:
        await self._run("plan", ["plan", f"-out={plan_name}", provider_dir])
        return os.path.join(self.working_dir, plan_name)

    async def apply(self, plan_name: str) -> None:
        await self._run("apply", ["apply", "-input=false", plan_name])

    async def destroy(self) -> None:
        await self._run("destroy", ["destroy", "-force"])

    async def output(self, key: str) -> str:
        logger.debug("Querying terraform output %r", key)
        try:
            return await run_command(
                [self.binary_path, "output", "-json", key],
                sensitive=False,
                env=self.env,
                cwd=self.working_dir,
                combine_output=True,
            )
        except CommandError as exc:
            raise OutputQueryError(key, str(exc), exc.output) from exc


__all__ = [
    "AUTOMATION_ENV",
    "InfrastructureTool",
    "TerraformCLI",
    "build_command_env",
]
