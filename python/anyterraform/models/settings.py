# anyterraform/models/settings.py

from pydantic_settings import BaseSettings


class ProvisionerSettings(BaseSettings):
    """
    Pydantic settings for the Terraform provisioner.
    By default, these fields map to environment variables prefixed with
    `ANYTERRAFORM_`, e.g. `ANYTERRAFORM_STATE_DIR`, `ANYTERRAFORM_BINARY_PATH`.
    """

    providers_dir: str = "terraform/providers"
    state_dir: str = "terraform/clusters"
    binary_path: str = "terraform"
    kismatic_version: str = "dev"
    cluster_owner: str = ""

    class Config:
        # `ANYTERRAFORM_CLUSTER_OWNER="alice"` populates cluster_owner.
        env_prefix = "ANYTERRAFORM_"
