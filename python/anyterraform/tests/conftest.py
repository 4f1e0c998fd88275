"""Pytest fixtures shared by the anyterraform test suite."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Callable, Dict

import pytest

from anyterraform.models.plan import ClusterTopology
from fakes import role_outputs


@pytest.fixture
def consistent_outputs() -> Dict[str, object]:
    """Outputs for a one-node-per-role cluster without ingress or storage."""
    outputs: Dict[str, object] = {}
    outputs.update(role_outputs("master", ["1.1.1.1"], ["master-1"], ["10.0.0.1"]))
    outputs.update(role_outputs("etcd", ["2.2.2.2"], ["etcd-1"], ["10.0.0.2"]))
    outputs.update(role_outputs("worker", ["3.3.3.3"], ["worker-1"], ["10.0.0.3"]))
    outputs["master_lb"] = ["lb.example.com"]
    return outputs


@pytest.fixture
def topology() -> ClusterTopology:
    return ClusterTopology.model_validate(
        {
            "cluster_name": "demo",
            "provisioner": {"provider": "aws", "options": {"region": "us-east-1"}},
            "master": {"expected_count": 1},
            "etcd": {"expected_count": 1},
            "worker": {"expected_count": 1},
            "ingress": {"expected_count": 0},
            "storage": {"expected_count": 0},
        }
    )


@pytest.fixture
def providers_dir(tmp_path: Path) -> Path:
    """A providers root holding an `aws` provider that needs two secrets."""
    root = tmp_path / "providers"
    aws = root / "aws"
    aws.mkdir(parents=True)
    (aws / "provider.yaml").write_text(
        "description: Amazon Web Services\n"
        "environmentVariables:\n"
        "  access_key: AWS_ACCESS_KEY_ID\n"
        "  secret_key: AWS_SECRET_ACCESS_KEY\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write an executable shell script into tmp_path and return its path."""

    def _write(name: str, body: str) -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP)
        return path

    return _write
