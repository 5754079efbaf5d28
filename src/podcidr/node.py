"""Read-only access to the node object published by the control plane."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from .exceptions import NodeLookupFailed

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeRef:
    """The parts of a Node object relevant to Pod CIDR resolution.

    Attributes
    ----------
    name:
        Node name, unique within the cluster.
    pod_cidr:
        ``spec.podCIDR`` as assigned by the controller manager, or an empty
        string when the cluster does not allocate node ranges.
    annotations:
        ``metadata.annotations``; may carry the fallback Pod CIDR.
    """

    name: str
    pod_cidr: str = ""
    annotations: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_v1_node(cls, node: client.V1Node) -> "NodeRef":
        metadata = node.metadata or client.V1ObjectMeta()
        spec = node.spec or client.V1NodeSpec()
        annotations: Dict[str, str] = dict(metadata.annotations or {})
        return cls(
            name=metadata.name or "",
            pod_cidr=spec.pod_cidr or "",
            annotations=annotations,
        )


class NodeStore(ABC):
    """Source of node objects, keyed by name."""

    @abstractmethod
    def get_node(self, name: str) -> NodeRef:
        """Return the node called ``name`` or raise :class:`NodeLookupFailed`."""


class KubernetesNodeStore(NodeStore):
    """Fetch nodes through the Kubernetes CoreV1 API.

    Each call is a single blocking ``GET``; timeouts and retries belong to
    whoever drives the bootstrap sequence.
    """

    def __init__(self, core_v1: client.CoreV1Api) -> None:
        self._core_v1 = core_v1

    def get_node(self, name: str) -> NodeRef:
        LOG.debug("Fetching node object '%s'", name)
        try:
            node = self._core_v1.read_node(name=name)
        except ApiException as exc:
            if exc.status == 404:
                raise NodeLookupFailed(name, "node not found") from exc
            raise NodeLookupFailed(name, f"API error {exc.status}: {exc.reason}") from exc
        except HTTPError as exc:
            raise NodeLookupFailed(name, str(exc)) from exc
        return NodeRef.from_v1_node(node)


def load_core_v1(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """Build a CoreV1 client, preferring in-cluster credentials.

    An explicit ``kubeconfig`` skips the in-cluster attempt.
    """

    try:
        if kubeconfig:
            config.load_kube_config(config_file=kubeconfig)
            LOG.info("Loaded kubeconfig %s", kubeconfig)
        else:
            try:
                config.load_incluster_config()
                LOG.info("Loaded in-cluster Kubernetes config")
            except ConfigException:
                config.load_kube_config()
                LOG.info("Loaded default kubeconfig")
    except (ConfigException, OSError) as exc:
        raise NodeLookupFailed("", f"cannot load Kubernetes config: {exc}") from exc
    return client.CoreV1Api()
