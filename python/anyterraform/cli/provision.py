"""
anyterraform/cli/provision.py

Thin CLI wrapper around the provisioner. Each subcommand invokes exactly one
method of anyterraform.deployment.provision.AnyTerraform:

  - `provision` subcommand -> AnyTerraform.provision
  - `destroy` subcommand   -> AnyTerraform.destroy

Terraform's own output goes to stderr; `provision` writes the populated plan
as YAML to --out (or stdout).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import yaml
from pydantic import ValidationError

from anyterraform.deployment.provision import AnyTerraform
from anyterraform.errors import ProvisionError
from anyterraform.models.plan import ClusterTopology
from anyterraform.models.settings import ProvisionerSettings


def _build_settings(args: argparse.Namespace) -> ProvisionerSettings:
    """Environment-derived settings, overridden by any flags given."""
    overrides = {
        field: value
        for field, value in (
            ("providers_dir", args.providers_dir),
            ("state_dir", args.state_dir),
            ("binary_path", args.terraform),
        )
        if value is not None
    }
    return ProvisionerSettings(**overrides)


async def run_provision(args: argparse.Namespace) -> None:
    """Provision the plan file given on the command line."""
    with open(args.plan, "r", encoding="utf-8") as fplan:
        topology = ClusterTopology.from_yaml(fplan.read())

    provisioner = AnyTerraform(_build_settings(args), output=sys.stderr)
    populated = await provisioner.provision(topology)

    if args.out:
        with open(args.out, "w", encoding="utf-8") as fout:
            fout.write(populated.to_yaml())
        print(f"Wrote provisioned plan to '{args.out}'", file=sys.stderr)
    else:
        sys.stdout.write(populated.to_yaml())


async def run_destroy(args: argparse.Namespace) -> None:
    """Destroy the infrastructure of a previously provisioned cluster."""
    provisioner = AnyTerraform(_build_settings(args), output=sys.stderr)
    await provisioner.destroy(args.provider, args.cluster_name)
    print(f"Destroyed infrastructure of cluster '{args.cluster_name}'", file=sys.stderr)


def _add_common_args(subparser: argparse.ArgumentParser) -> None:
    """
    Add CLI arguments shared by every subcommand. Unset flags fall back to the
    ANYTERRAFORM_* environment variables.
    """
    subparser.add_argument(
        "--providers-dir", help="Directory holding one directory per provider."
    )
    subparser.add_argument(
        "--state-dir", help="Directory holding per-cluster Terraform state."
    )
    subparser.add_argument("--terraform", help="Path to the terraform binary.")
    subparser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anyterraform",
        description="Provision or destroy cluster infrastructure with Terraform.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    provision_parser = subparsers.add_parser(
        "provision",
        help="Create infrastructure for a plan file and print the populated plan.",
    )
    _add_common_args(provision_parser)
    provision_parser.add_argument("plan", help="Path to the cluster plan (YAML).")
    provision_parser.add_argument(
        "--out", help="Write the populated plan here instead of stdout."
    )
    provision_parser.set_defaults(func=run_provision)

    destroy_parser = subparsers.add_parser(
        "destroy",
        help="Destroy all infrastructure of a cluster.",
    )
    _add_common_args(destroy_parser)
    destroy_parser.add_argument("--provider", required=True, help="Provider name.")
    destroy_parser.add_argument("cluster_name", help="Name of the cluster.")
    destroy_parser.set_defaults(func=run_destroy)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point. Returns 0 on success, 1 on any provisioning failure.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        asyncio.run(args.func(args))
    except (ProvisionError, ValidationError, yaml.YAMLError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
