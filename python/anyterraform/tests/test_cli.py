"""End-to-end tests of the CLI against a shell-script terraform."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

from anyterraform.cli.provision import main
from anyterraform.models.plan import ClusterTopology

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="uses a /bin/sh stand-in for terraform"
)

FAKE_TERRAFORM = """\
echo "$*" >> "$(pwd)/calls.log"
if [ "$1" = "output" ]; then
  case "$3" in
    *_pub_ips) value='["1.1.1.1"]' ;;
    *_priv_ips) value='[]' ;;
    master_hosts) value='["master-1"]' ;;
    *_hosts) value='["node-1"]' ;;
    *_lb) value='["lb.example.com"]' ;;
    *) echo "unknown output $3" >&2; exit 1 ;;
  esac
  printf '{"sensitive":false,"type":["list","string"],"value":%s}\\n' "$value"
fi
exit 0
"""

PLAN_YAML = """\
cluster_name: demo
provisioner:
  provider: aws
master:
  expected_count: 1
etcd:
  expected_count: 1
worker:
  expected_count: 1
"""


@pytest.fixture
def plan_file(tmp_path: Path) -> Path:
    path = tmp_path / "plan.yaml"
    path.write_text(PLAN_YAML, encoding="utf-8")
    return path


@pytest.fixture
def terraform(write_script: Callable[[str, str], Path]) -> Path:
    return write_script("terraform", FAKE_TERRAFORM)


@pytest.fixture(autouse=True)
def aws_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIA")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "s3cr3t")


def test_provision_writes_populated_plan(
    tmp_path: Path, providers_dir: Path, plan_file: Path, terraform: Path
) -> None:
    out = tmp_path / "provisioned.yaml"

    code = main(
        [
            "provision",
            str(plan_file),
            "--providers-dir",
            str(providers_dir),
            "--state-dir",
            str(tmp_path / "clusters"),
            "--terraform",
            str(terraform),
            "--out",
            str(out),
        ]
    )

    assert code == 0
    populated = ClusterTopology.from_yaml(out.read_text(encoding="utf-8"))
    assert populated.master.nodes[0].host == "master-1"
    assert populated.master.load_balanced_short_name == "lb.example.com"
    assert populated.worker.nodes[0].ip == "1.1.1.1"
    assert populated.ssh.key.endswith("demo-ssh.pem")

    calls = (tmp_path / "clusters" / "demo" / "calls.log").read_text(encoding="utf-8")
    assert "ingress" not in calls
    assert "storage" not in calls
    assert calls.splitlines()[2] == "apply -input=false demo"


def test_destroy(
    tmp_path: Path, providers_dir: Path, terraform: Path
) -> None:
    (tmp_path / "clusters" / "demo").mkdir(parents=True)

    code = main(
        [
            "destroy",
            "demo",
            "--provider",
            "aws",
            "--providers-dir",
            str(providers_dir),
            "--state-dir",
            str(tmp_path / "clusters"),
            "--terraform",
            str(terraform),
        ]
    )

    assert code == 0
    calls = (tmp_path / "clusters" / "demo" / "calls.log").read_text(encoding="utf-8")
    assert calls.splitlines() == ["destroy -force"]


def test_unknown_provider_exits_non_zero(
    tmp_path: Path,
    providers_dir: Path,
    plan_file: Path,
    terraform: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    plan_file.write_text(
        PLAN_YAML.replace("provider: aws", "provider: nope"), encoding="utf-8"
    )

    code = main(
        [
            "provision",
            str(plan_file),
            "--providers-dir",
            str(providers_dir),
            "--state-dir",
            str(tmp_path / "clusters"),
            "--terraform",
            str(terraform),
        ]
    )

    assert code == 1
    assert "provider 'nope' is not supported" in capsys.readouterr().err
