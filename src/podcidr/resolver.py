"""Decide which Pod CIDR is authoritative for this node."""

from __future__ import annotations

import logging
import os
import socket

from .cidr import canonical_cidr, parse_cidr
from .constants import NODE_NAME_ENV, POD_CIDR_ANNOTATION
from .exceptions import InvalidCIDR, NodeLookupFailed
from .node import NodeStore

LOG = logging.getLogger(__name__)


def resolve_node_name(hostname_override: str = "") -> str:
    """Return the name this node is registered under.

    ``hostname_override`` wins, then ``$NODE_NAME`` (the downward API
    convention), then the kernel host name.
    """

    name = hostname_override or os.environ.get(NODE_NAME_ENV, "") or socket.gethostname()
    name = name.strip()
    if not name:
        raise NodeLookupFailed("", "unable to determine node name")
    return name


def resolve_node_cidr(
    node_store: NodeStore,
    node_name: str,
    explicit_override: str = "",
    *,
    strict: bool = False,
) -> str:
    """Return the Pod CIDR for ``node_name``.

    Sources, first match wins:

    1. ``explicit_override`` when non-empty; the node is never fetched.
    2. ``spec.podCIDR`` of the node object.
    3. The ``kube-router.io/pod-cidr`` annotation, which is always validated
       and returned in canonical form.

    The override and ``spec.podCIDR`` are returned verbatim and only
    validated when ``strict`` is set. An empty string means no source
    provided a value; callers must treat it as undetermined.
    """

    if explicit_override:
        if strict:
            parse_cidr(explicit_override)
        LOG.info("Using explicitly configured pod CIDR %s", explicit_override)
        return explicit_override

    node = node_store.get_node(node_name)

    if node.pod_cidr:
        if strict:
            try:
                parse_cidr(node.pod_cidr)
            except InvalidCIDR as exc:
                raise InvalidCIDR(
                    node.pod_cidr, f"error parsing pod CIDR in node spec: {exc}"
                ) from exc
        LOG.info("Using pod CIDR %s from node %s spec", node.pod_cidr, node_name)
        return node.pod_cidr

    annotation = node.annotations.get(POD_CIDR_ANNOTATION)
    if annotation is not None:
        try:
            cidr = canonical_cidr(annotation)
        except InvalidCIDR as exc:
            raise InvalidCIDR(
                annotation, f"error parsing pod CIDR in node annotation: {exc}"
            ) from exc
        LOG.info(
            "Using pod CIDR %s from node %s annotation %s",
            cidr,
            node_name,
            POD_CIDR_ANNOTATION,
        )
        return cidr

    LOG.warning(
        "Node %s has neither spec.podCIDR nor a %s annotation; pod CIDR is undetermined",
        node_name,
        POD_CIDR_ANNOTATION,
    )
    return ""
