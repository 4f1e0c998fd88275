"""
anyterraform/utils/terraform/providers.py

Locates a provider's Terraform directory and loads its `provider.yaml`
descriptor:

    <providers_dir>/<provider>/provider.yaml
        description: "..."
        environmentVariables:
            <logical secret name>: <environment variable name>
"""

from __future__ import annotations

import os
import logging

import aiofiles
import yaml
from pydantic import ValidationError

from anyterraform.errors import (
    DescriptorParseError,
    DescriptorReadError,
    ProviderNotFoundError,
)
from anyterraform.models.provider import ProviderDescriptor

PROVIDER_DESCRIPTOR_FILENAME = "provider.yaml"

logger = logging.getLogger(__name__)


def provider_dir_for(providers_dir: str, provider: str) -> str:
    """Return the provider's directory, raising if it does not exist.

    Raises:
        ProviderNotFoundError: If there is no directory for `provider`.
    """
    if not provider or any(x in provider for x in ["/", "\\"]):
        raise ProviderNotFoundError(provider, providers_dir)
    provider_dir = os.path.join(providers_dir, provider)
    if not os.path.isdir(provider_dir):
        raise ProviderNotFoundError(provider, provider_dir)
    return provider_dir


async def load_provider_descriptor(
    providers_dir: str, provider: str
) -> ProviderDescriptor:
    """Read and validate the descriptor of `provider`.

    Args:
        providers_dir (str): Root directory holding one directory per provider.
        provider (str): The provider name, e.g. "aws".

    Returns:
        ProviderDescriptor: The parsed, immutable descriptor.

    Raises:
        ProviderNotFoundError: If the provider directory does not exist.
        DescriptorReadError: If `provider.yaml` cannot be read.
        DescriptorParseError: If `provider.yaml` is malformed.
    """
    return await read_provider_descriptor(
        provider_dir_for(providers_dir, provider), provider
    )


async def read_provider_descriptor(
    provider_dir: str, provider: str
) -> ProviderDescriptor:
    """Like load_provider_descriptor, for an already resolved `provider_dir`."""
    descriptor_file = os.path.join(provider_dir, PROVIDER_DESCRIPTOR_FILENAME)

    try:
        async with aiofiles.open(descriptor_file, "r", encoding="utf-8") as f:
            raw = await f.read()
    except OSError as exc:
        raise DescriptorReadError(
            f"could not read provider descriptor {descriptor_file}: {exc}"
        ) from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise DescriptorParseError(
            f"could not unmarshal provider descriptor from {descriptor_file!r}: {exc}"
        ) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DescriptorParseError(
            f"provider descriptor {descriptor_file!r} must be a mapping"
        )

    try:
        descriptor = ProviderDescriptor.model_validate({**data, "name": provider})
    except ValidationError as exc:
        raise DescriptorParseError(
            f"invalid provider descriptor {descriptor_file!r}: {exc}"
        ) from exc

    logger.debug(
        "Loaded provider %r expecting secrets %s",
        provider,
        sorted(descriptor.environment_variables),
    )
    return descriptor
