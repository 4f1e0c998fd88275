# anyterraform/models/provider.py

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class ProviderDescriptor(BaseModel):
    """
    Capabilities a provider declares in its `provider.yaml`.

    `environment_variables` maps a logical secret name (e.g. "access_key") to
    the environment variable Terraform expects it in (e.g. "AWS_ACCESS_KEY_ID").
    Loaded once per provision/destroy call and never modified.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    environment_variables: Dict[str, str] = Field(
        default_factory=dict, alias="environmentVariables"
    )


__all__ = ["ProviderDescriptor"]
