"""Errors raised while resolving and persisting a node's Pod CIDR.

Nothing in this package retries. Each error carries enough context (the
offending value, node name or file path) for the bootstrap caller to log a
useful message and abort startup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class PodCIDRError(Exception):
    """Base class for all errors raised by :mod:`podcidr`."""


class InvalidCIDR(PodCIDRError, ValueError):
    """A string is not an ``address/prefix`` network with clear host bits."""

    def __init__(self, value: str, message: str | None = None) -> None:
        self.value = value
        super().__init__(message or f"invalid CIDR address: {value}")


class NodeLookupFailed(PodCIDRError):
    """The node object could not be fetched from the API server."""

    def __init__(self, node_name: str, reason: str) -> None:
        self.node_name = node_name
        if node_name:
            super().__init__(f"failed to get node '{node_name}': {reason}")
        else:
            super().__init__(f"node lookup failed: {reason}")


class SpecReadFailed(PodCIDRError):
    """The CNI configuration could not be read or parsed."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"failed to read CNI config {self.path}: {reason}")


class SpecWriteFailed(PodCIDRError):
    """The CNI configuration could not be patched."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"failed to update CNI config {self.path}: {reason}")
