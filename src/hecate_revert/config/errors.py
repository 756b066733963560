"""Errors raised while reading settings from the environment or the command line."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but cannot be used, e.g. a URL without a host."""

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class MissingConfigurationError(ConfigurationError):
    def __init__(self, *variables: str) -> None:
        super().__init__(
            f"Missing configuration for: {', '.join(variables)}",
            variable=variables[0] if variables else None,
        )
        self.variables = variables
