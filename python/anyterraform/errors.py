"""
anyterraform/errors.py

Exception hierarchy for provisioning. Every error is fatal for the current
invocation; nothing in this package retries or downgrades them.

    ProvisionError
     ├── ConfigurationError
     │    ├── ProviderNotFoundError
     │    ├── DescriptorReadError
     │    └── DescriptorParseError
     ├── StateConsistencyError
     │    └── InconsistentKeyStateError
     ├── SecretResolutionError
     ├── MaterializationError
     │    ├── SerializationError
     │    └── WriteError
     ├── ExternalToolError
     ├── OutputQueryError
     └── OutputCardinalityError
          ├── UnexpectedOutputCardinalityError
          └── CardinalityMismatchError
"""

from __future__ import annotations

from typing import Optional


class ProvisionError(Exception):
    """Base class for all provisioning failures."""


class ConfigurationError(ProvisionError):
    """The caller's input (provider name, descriptor) must be fixed."""


class ProviderNotFoundError(ConfigurationError):
    def __init__(self, provider: str, provider_dir: str) -> None:
        super().__init__(
            f"provider {provider!r} is not supported (no directory at {provider_dir})"
        )
        self.provider = provider
        self.provider_dir = provider_dir


class DescriptorReadError(ConfigurationError):
    """The provider descriptor file could not be read."""


class DescriptorParseError(ConfigurationError):
    """The provider descriptor file is not valid YAML of the expected shape."""


class StateConsistencyError(ProvisionError):
    """On-disk state is inconsistent and needs an operator to intervene."""


class InconsistentKeyStateError(StateConsistencyError):
    """Only one half of a cluster's SSH key pair exists on disk.

    Attributes:
        present_path: The key file that was found.
        missing_path: Its counterpart, which was not found.
    """

    def __init__(self, present_kind: str, present_path: str, missing_path: str) -> None:
        super().__init__(
            f"found an existing {present_kind} key at {present_path}, but did not "
            f"find the corresponding key at {missing_path}. The corresponding key "
            "must be recovered if possible. Otherwise, the existing key must be deleted"
        )
        self.present_path = present_path
        self.missing_path = missing_path


class SecretResolutionError(ProvisionError):
    """A secret required by the provider could not be resolved."""


class MaterializationError(ProvisionError):
    """Terraform input files could not be produced."""


class SerializationError(MaterializationError):
    """Variables could not be encoded."""


class WriteError(MaterializationError):
    """Encoded variables could not be written to the state directory."""


class ExternalToolError(ProvisionError):
    """An external tool invocation exited unsuccessfully.

    Attributes:
        operation: The tool operation that failed ("init", "plan", ...).
        exit_detail: A short description of how it failed.
        output: Whatever the tool wrote to stdout/stderr.
    """

    def __init__(self, operation: str, exit_detail: str, output: str = "") -> None:
        super().__init__(f"error running terraform {operation}: {exit_detail}")
        self.operation = operation
        self.exit_detail = exit_detail
        self.output = output


class OutputQueryError(ProvisionError):
    """An output query failed or returned something that could not be decoded.

    Attributes:
        key: The output key queried.
        raw_output: The raw tool output, for diagnosis.
    """

    def __init__(self, key: str, message: str, raw_output: str = "") -> None:
        super().__init__(f"error collecting terraform output {key!r}: {message}")
        self.key = key
        self.raw_output = raw_output


class OutputCardinalityError(ProvisionError):
    """Output values do not have the expected cardinality.

    Attributes:
        expected: The count that was required.
        actual: The count that was received.
        role: The role group the outputs belong to, when known.
    """

    def __init__(
        self, message: str, expected: int, actual: int, role: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.role = role


class UnexpectedOutputCardinalityError(OutputCardinalityError):
    def __init__(self, role: str, actual: int) -> None:
        super().__init__(
            f"expected to get 1 load balancer for {role!r}, but got {actual}",
            expected=1,
            actual=actual,
            role=role,
        )


class CardinalityMismatchError(OutputCardinalityError):
    def __init__(self, role: str, what: str, expected: int, actual: int) -> None:
        super().__init__(
            f"expected to get {expected} {what} for {role!r}, but got {actual}",
            expected=expected,
            actual=actual,
            role=role,
        )
        self.what = what
