"""YAML configuration loader for the pod CIDR bootstrap agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from podcidr.constants import DEFAULT_CNI_CONF_PATH


@dataclass
class NodeConfig:
    name: str = ""
    pod_cidr: str = ""
    strict_validation: bool = False


@dataclass
class KubernetesConfig:
    kubeconfig: Optional[str] = None


@dataclass
class CNIConfig:
    conf_path: Path = DEFAULT_CNI_CONF_PATH


@dataclass
class AgentConfig:
    node: NodeConfig = field(default_factory=NodeConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    cni: CNIConfig = field(default_factory=CNIConfig)


def _section(data: dict, name: str) -> dict:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_bool(section: dict, key: str, default: bool) -> bool:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def _parse_node(section: dict) -> NodeConfig:
    return NodeConfig(
        name=str(section.get("name") or ""),
        pod_cidr=str(section.get("pod_cidr") or ""),
        strict_validation=_parse_bool(section, "strict_validation", False),
    )


def _parse_kubernetes(section: dict) -> KubernetesConfig:
    kubeconfig = section.get("kubeconfig")
    return KubernetesConfig(kubeconfig=str(kubeconfig) if kubeconfig else None)


def _parse_cni(section: dict) -> CNIConfig:
    return CNIConfig(conf_path=Path(section.get("conf_path") or DEFAULT_CNI_CONF_PATH))


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if data is None:
        return AgentConfig()
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    return AgentConfig(
        node=_parse_node(_section(data, "node")),
        kubernetes=_parse_kubernetes(_section(data, "kubernetes")),
        cni=_parse_cni(_section(data, "cni")),
    )
