"""Entry point for the pod CIDR bootstrap step."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from oslo_config import cfg

from podcidr.cni import extract_subnet, insert_subnet
from podcidr.constants import DEFAULT_CONFIG_PATH
from podcidr.exceptions import InvalidCIDR, PodCIDRError
from podcidr.node import KubernetesNodeStore, NodeRef, NodeStore, load_core_v1
from podcidr.resolver import resolve_node_cidr, resolve_node_name

from . import opts
from .config import AgentConfig, load_config

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


class _LazyNodeStore(NodeStore):
    """Defer Kubernetes client setup until a node is actually fetched."""

    def __init__(self, kubeconfig: Optional[str]) -> None:
        self._kubeconfig = kubeconfig

    def get_node(self, name: str) -> NodeRef:
        return KubernetesNodeStore(load_core_v1(self._kubeconfig)).get_node(name)


def sync_pod_cidr(
    config: AgentConfig,
    node_store: Optional[NodeStore] = None,
    *,
    dry_run: bool = False,
) -> str:
    """Resolve the node's pod CIDR and write it into the CNI config.

    Returns the resolved CIDR, or an empty string when it is undetermined,
    in which case the CNI config is left alone.
    """

    if node_store is None:
        node_store = _LazyNodeStore(config.kubernetes.kubeconfig)

    node_name = config.node.name
    if not config.node.pod_cidr:
        node_name = resolve_node_name(config.node.name)

    cidr = resolve_node_cidr(
        node_store,
        node_name,
        config.node.pod_cidr,
        strict=config.node.strict_validation,
    )
    if not cidr:
        LOG.warning("Pod CIDR undetermined; leaving %s unchanged", config.cni.conf_path)
        return ""

    try:
        current = extract_subnet(config.cni.conf_path)
    except InvalidCIDR as exc:
        LOG.warning("Overwriting unusable subnet: %s", exc)
        current = None

    if current is not None and str(current) == cidr:
        LOG.info("%s already uses pod CIDR %s", config.cni.conf_path, cidr)
        return cidr

    if current is not None:
        LOG.info(
            "Replacing subnet %s with %s in %s", current, cidr, config.cni.conf_path
        )

    if dry_run:
        LOG.info("Dry run: would write subnet %s to %s", cidr, config.cni.conf_path)
        return cidr

    insert_subnet(config.cni.conf_path, cidr)
    return cidr


def _apply_overrides(config: AgentConfig, args: argparse.Namespace) -> AgentConfig:
    if args.node_name:
        config.node.name = args.node_name
    if args.pod_cidr:
        config.node.pod_cidr = args.pod_cidr
    if args.strict:
        config.node.strict_validation = True
    if args.kubeconfig:
        config.kubernetes.kubeconfig = args.kubeconfig
    if args.cni_conf:
        config.cni.conf_path = args.cni_conf
    return config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Resolve this node's pod CIDR and sync it into the CNI config"
    )
    sources = parser.add_mutually_exclusive_group()
    sources.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to the YAML configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    sources.add_argument(
        "--config-file",
        action="append",
        default=[],
        help="oslo.config INI file with a [podcidr] section; may be repeated",
    )
    parser.add_argument("--node-name", help="Name of this node's Node object")
    parser.add_argument(
        "--pod-cidr",
        help="Use this pod CIDR instead of reading it from the Node object",
    )
    parser.add_argument("--cni-conf", type=Path, help="CNI configuration file to patch")
    parser.add_argument("--kubeconfig", help="Kubeconfig to use outside the cluster")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Validate the pod CIDR from every source, not only the annotation",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and compare but do not write the CNI config",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.config_file:
        try:
            config = opts.load_settings(args.config_file)
        except cfg.Error as exc:
            LOG.error("Failed to load configuration %s: %s", args.config_file, exc)
            return 1
    else:
        config_path = args.config
        if config_path is None and DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH

        try:
            config = load_config(config_path) if config_path else AgentConfig()
        except (OSError, ValueError) as exc:
            LOG.error("Failed to load configuration %s: %s", config_path, exc)
            return 1
    config = _apply_overrides(config, args)

    try:
        cidr = sync_pod_cidr(config, dry_run=args.dry_run)
    except PodCIDRError as exc:
        LOG.error("Pod CIDR bootstrap failed: %s", exc)
        return 1

    if cidr:
        print(cidr)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
