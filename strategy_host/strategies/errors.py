"""Exceptions raised by the strategy host.

Load failures are not wrapped: missing files surface as ``FileNotFoundError``,
malformed scripts as ``SyntaxError`` and top-level script failures as whatever
the script raised.
"""

from __future__ import annotations


class StrategyHostError(Exception):
    """Base class for host-specific failures."""


class BindingError(StrategyHostError):
    """A script object cannot be bound to the strategy contract."""


class PureVirtualCallError(StrategyHostError, NotImplementedError):
    """A contract method was invoked but the script provides no override."""

    def __init__(self, class_name: str, method: str) -> None:
        self.class_name = class_name
        self.method = method
        super().__init__(f'Tried to call pure virtual function "{class_name}::{method}"')


class RuntimeStateError(StrategyHostError):
    """The script runtime was used outside its init/teardown lifecycle."""


class HostStateError(StrategyHostError):
    """A host lifecycle step was attempted out of order."""
