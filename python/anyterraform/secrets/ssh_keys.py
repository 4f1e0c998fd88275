"""
anyterraform/secrets/ssh_keys.py

Per-cluster SSH key pair management:
 - key_pair_paths: the fixed on-disk names of a cluster's key pair
 - generate_key_pair: create both files as one logical operation
 - ensure_key_pair: generate once, reuse afterwards, refuse half-present pairs

A key pair whose counterpart is missing is never regenerated here: machines
may already have been provisioned with the surviving half.
"""

from __future__ import annotations

import os
import logging
import tempfile
from typing import List, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import BaseModel

from anyterraform.errors import InconsistentKeyStateError, WriteError

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 2048


class KeyPairPaths(BaseModel):
    """Where a cluster's SSH key pair lives."""

    public_key: str
    private_key: str


def key_pair_paths(cluster_state_dir: str, cluster_name: str) -> KeyPairPaths:
    return KeyPairPaths(
        public_key=os.path.join(cluster_state_dir, f"{cluster_name}-ssh.pub"),
        private_key=os.path.join(cluster_state_dir, f"{cluster_name}-ssh.pem"),
    )


def _generate_rsa_key_pair() -> Tuple[str, str]:
    """Return (public_key, private_key): OpenSSH public, unencrypted PEM private."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)

    private_key = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")

    public_key = key.public_key().public_bytes(
        serialization.Encoding.OpenSSH,
        serialization.PublicFormat.OpenSSH,
    ).decode("utf-8")

    return public_key, private_key


def _write_temp(directory: str, content: str, mode: int) -> str:
    fd, path = tempfile.mkstemp(dir=directory, prefix=".ssh-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(path, mode)
    except BaseException:
        os.remove(path)
        raise
    return path


def generate_key_pair(paths: KeyPairPaths) -> None:
    """Generate a key pair and persist it at `paths`.

    Both keys are first written to temporary files beside their destinations
    and then renamed into place. If anything fails, every file written so far
    is removed, so a failure never leaves just one of the two keys behind.

    Raises:
        WriteError: If the key pair cannot be generated or persisted.
    """
    public_key, private_key = _generate_rsa_key_pair()
    directory = os.path.dirname(paths.private_key) or "."

    created: List[str] = []
    try:
        priv_tmp = _write_temp(directory, private_key, 0o600)
        created.append(priv_tmp)
        pub_tmp = _write_temp(directory, public_key + "\n", 0o644)
        created.append(pub_tmp)

        os.replace(priv_tmp, paths.private_key)
        created[0] = paths.private_key
        os.replace(pub_tmp, paths.public_key)
        created[1] = paths.public_key
    except OSError as exc:
        for path in created:
            if os.path.lexists(path):
                os.remove(path)
        raise WriteError(f"error generating SSH key pair: {exc}") from exc


def ensure_key_pair(cluster_state_dir: str, cluster_name: str) -> KeyPairPaths:
    """Make sure the cluster's SSH key pair exists, generating it at most once.

    Args:
        cluster_state_dir (str): The cluster's state directory (must exist).
        cluster_name (str): Name of the cluster, used in the key file names.

    Returns:
        KeyPairPaths: The public and private key paths.

    Raises:
        InconsistentKeyStateError: If exactly one of the two key files exists.
            Nothing is written in that case.
        WriteError: If a new key pair cannot be persisted.
    """
    paths = key_pair_paths(cluster_state_dir, cluster_name)
    pub_exists = os.path.exists(paths.public_key)
    priv_exists = os.path.exists(paths.private_key)

    if pub_exists != priv_exists:
        if pub_exists:
            raise InconsistentKeyStateError(
                "public", paths.public_key, paths.private_key
            )
        raise InconsistentKeyStateError("private", paths.private_key, paths.public_key)

    if not pub_exists:
        logger.info("Generating SSH key pair for cluster %r", cluster_name)
        generate_key_pair(paths)
    else:
        logger.debug("Reusing SSH key pair at %s", paths.private_key)

    return paths


__all__ = ["KeyPairPaths", "key_pair_paths", "generate_key_pair", "ensure_key_pair"]
