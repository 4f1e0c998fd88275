"""Tests for the environment-backed secrets getter."""

from __future__ import annotations

import asyncio

import pytest

from anyterraform.errors import SecretResolutionError
from anyterraform.secrets.environment import EnvironmentSecretsGetter

EXPECTED = {"access_key": "AWS_ACCESS_KEY_ID", "secret_key": "AWS_SECRET_ACCESS_KEY"}


def test_resolves_expected_variables_only() -> None:
    getter = EnvironmentSecretsGetter(
        {"AWS_ACCESS_KEY_ID": "AKIA", "AWS_SECRET_ACCESS_KEY": "s3cr3t", "HOME": "/root"}
    )

    env = asyncio.run(getter.get_as_environment_variables("demo", EXPECTED))

    assert env == {"AWS_ACCESS_KEY_ID": "AKIA", "AWS_SECRET_ACCESS_KEY": "s3cr3t"}


def test_reports_every_missing_variable() -> None:
    getter = EnvironmentSecretsGetter({"AWS_SECRET_ACCESS_KEY": ""})

    with pytest.raises(SecretResolutionError) as excinfo:
        asyncio.run(getter.get_as_environment_variables("demo", EXPECTED))

    message = str(excinfo.value)
    assert "AWS_ACCESS_KEY_ID (access_key)" in message
    assert "AWS_SECRET_ACCESS_KEY (secret_key)" in message
    assert "'demo'" in message


def test_defaults_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DO_TOKEN", "abc")

    env = asyncio.run(
        EnvironmentSecretsGetter().get_as_environment_variables(
            "demo", {"token": "DO_TOKEN"}
        )
    )

    assert env == {"DO_TOKEN": "abc"}
