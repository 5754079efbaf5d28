from typing import Dict

import pytest

from podcidr.constants import POD_CIDR_ANNOTATION
from podcidr.exceptions import InvalidCIDR, NodeLookupFailed
from podcidr.node import NodeRef, NodeStore
from podcidr.resolver import resolve_node_cidr, resolve_node_name


class FakeNodeStore(NodeStore):
    def __init__(self, *nodes: NodeRef) -> None:
        self.nodes: Dict[str, NodeRef] = {node.name: node for node in nodes}
        self.lookups: list[str] = []

    def get_node(self, name: str) -> NodeRef:
        self.lookups.append(name)
        try:
            return self.nodes[name]
        except KeyError:
            raise NodeLookupFailed(name, "node not found") from None


def test_resolve_from_node_spec():
    store = FakeNodeStore(NodeRef(name="test-node", pod_cidr="172.17.0.0/24"))

    assert resolve_node_cidr(store, "test-node") == "172.17.0.0/24"


def test_resolve_from_annotation():
    store = FakeNodeStore(
        NodeRef(name="test-node", annotations={POD_CIDR_ANNOTATION: "172.17.0.0/24"})
    )

    assert resolve_node_cidr(store, "test-node") == "172.17.0.0/24"


def test_resolve_annotation_is_canonicalised():
    store = FakeNodeStore(
        NodeRef(name="test-node", annotations={POD_CIDR_ANNOTATION: "FD00:0:0:1:0::/64"})
    )

    assert resolve_node_cidr(store, "test-node") == "fd00:0:0:1::/64"


def test_resolve_invalid_annotation():
    store = FakeNodeStore(
        NodeRef(name="test-node", annotations={POD_CIDR_ANNOTATION: "172.17.0.0"})
    )

    with pytest.raises(InvalidCIDR) as excinfo:
        resolve_node_cidr(store, "test-node")

    assert excinfo.value.value == "172.17.0.0"
    assert str(excinfo.value) == (
        "error parsing pod CIDR in node annotation: invalid CIDR address: 172.17.0.0"
    )


def test_resolve_netmask_annotation_is_rejected():
    store = FakeNodeStore(
        NodeRef(
            name="test-node",
            annotations={POD_CIDR_ANNOTATION: "172.17.0.0/255.255.255.0"},
        )
    )

    with pytest.raises(InvalidCIDR) as excinfo:
        resolve_node_cidr(store, "test-node")

    assert excinfo.value.value == "172.17.0.0/255.255.255.0"


def test_spec_wins_over_annotation():
    store = FakeNodeStore(
        NodeRef(
            name="test-node",
            pod_cidr="172.18.0.0/24",
            annotations={POD_CIDR_ANNOTATION: "172.17.0.0/24"},
        )
    )

    assert resolve_node_cidr(store, "test-node") == "172.18.0.0/24"


def test_explicit_override_wins_without_lookup():
    store = FakeNodeStore(NodeRef(name="test-node", pod_cidr="172.18.0.0/24"))

    cidr = resolve_node_cidr(store, "test-node", "172.17.0.0/24")

    assert cidr == "172.17.0.0/24"
    assert store.lookups == []


def test_explicit_override_is_not_validated_by_default():
    assert resolve_node_cidr(FakeNodeStore(), "test-node", "10.0.0.1/8") == "10.0.0.1/8"


def test_node_spec_is_not_validated_by_default():
    store = FakeNodeStore(NodeRef(name="test-node", pod_cidr="10.0.0.1/8"))

    assert resolve_node_cidr(store, "test-node") == "10.0.0.1/8"


def test_strict_mode_validates_override():
    with pytest.raises(InvalidCIDR):
        resolve_node_cidr(FakeNodeStore(), "test-node", "10.0.0.1/8", strict=True)


def test_strict_mode_validates_node_spec():
    store = FakeNodeStore(NodeRef(name="test-node", pod_cidr="10.0.0.1/8"))

    with pytest.raises(InvalidCIDR) as excinfo:
        resolve_node_cidr(store, "test-node", strict=True)

    assert "node spec" in str(excinfo.value)


def test_strict_mode_returns_valid_values_verbatim():
    store = FakeNodeStore(NodeRef(name="test-node", pod_cidr="10.244.1.0/24"))

    assert resolve_node_cidr(store, "test-node", strict=True) == "10.244.1.0/24"


def test_missing_node():
    with pytest.raises(NodeLookupFailed) as excinfo:
        resolve_node_cidr(FakeNodeStore(), "test-node")

    assert excinfo.value.node_name == "test-node"


def test_no_source_returns_empty_string():
    store = FakeNodeStore(NodeRef(name="test-node", annotations={"other": "x"}))

    assert resolve_node_cidr(store, "test-node") == ""


def test_resolve_node_name_prefers_override(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("NODE_NAME", "from-env")

    assert resolve_node_name("from-flag") == "from-flag"


def test_resolve_node_name_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("NODE_NAME", "from-env")

    assert resolve_node_name() == "from-env"


def test_resolve_node_name_from_hostname(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("NODE_NAME", raising=False)
    monkeypatch.setattr("podcidr.resolver.socket.gethostname", lambda: "host-1")

    assert resolve_node_name() == "host-1"


def test_resolve_node_name_empty(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("NODE_NAME", raising=False)
    monkeypatch.setattr("podcidr.resolver.socket.gethostname", lambda: "")

    with pytest.raises(NodeLookupFailed):
        resolve_node_name()
