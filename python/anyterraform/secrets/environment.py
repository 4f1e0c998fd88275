"""
anyterraform/secrets/environment.py

Secrets getters hand Terraform the cloud credentials a provider declares in its
descriptor. A getter receives the provider's `environmentVariables` mapping
(logical secret name -> environment variable name) and returns the variables
to set, or raises SecretResolutionError.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

from anyterraform.errors import SecretResolutionError


class SecretsGetter(ABC):
    """Provides secrets required when interacting with cloud provider APIs."""

    @abstractmethod
    async def get_as_environment_variables(
        self, cluster_name: str, expected_env_vars: Mapping[str, str]
    ) -> Dict[str, str]:
        """
        Resolve every expected variable for `cluster_name`.

        Args:
            cluster_name (str): The cluster the secrets are for.
            expected_env_vars (Mapping[str, str]):
                Logical secret name -> environment variable name.

        Returns:
            Dict[str, str]: Environment variable name -> value.

        Raises:
            SecretResolutionError: If any required secret is unavailable.
        """
        pass


class EnvironmentSecretsGetter(SecretsGetter):
    """
    Reads secrets from a mapping of environment variables, by default the
    current process environment. Every expected variable must be set and
    non-empty.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = environ

    async def get_as_environment_variables(
        self, cluster_name: str, expected_env_vars: Mapping[str, str]
    ) -> Dict[str, str]:
        environ = os.environ if self._environ is None else self._environ
        missing = sorted(
            f"{var} ({name})"
            for name, var in expected_env_vars.items()
            if not environ.get(var)
        )
        if missing:
            raise SecretResolutionError(
                f"could not get secrets required for provisioning cluster "
                f"{cluster_name!r}; missing environment variables: {', '.join(missing)}"
            )
        return {var: environ[var] for var in expected_env_vars.values()}


__all__ = ["SecretsGetter", "EnvironmentSecretsGetter"]
