"""Pod CIDR resolution and CNI configuration sync.

The package answers two questions during node bootstrap:

* which Pod CIDR belongs to this node, picking between an explicit value,
  the Node object's ``spec.podCIDR`` and the ``kube-router.io/pod-cidr``
  annotation; and
* what the node's CNI configuration currently says, and how to write the
  resolved value into its ``ipam`` block without reformatting the file.

Routing, firewalling and tunnel setup that consume the value live elsewhere.
"""

from .cidr import parse_cidr  # noqa: F401
from .cni import extract_subnet, insert_subnet  # noqa: F401
from .exceptions import (  # noqa: F401
    InvalidCIDR,
    NodeLookupFailed,
    PodCIDRError,
    SpecReadFailed,
    SpecWriteFailed,
)
from .resolver import resolve_node_cidr  # noqa: F401

__all__ = [
    "InvalidCIDR",
    "NodeLookupFailed",
    "PodCIDRError",
    "SpecReadFailed",
    "SpecWriteFailed",
    "extract_subnet",
    "insert_subnet",
    "parse_cidr",
    "resolve_node_cidr",
]
