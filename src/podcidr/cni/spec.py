"""Read and patch ``ipam.subnet`` in a CNI network configuration."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Type, Union

from ..cidr import Network, parse_cidr
from ..constants import IPAM_KEY, PLUGINS_KEY, SUBNET_KEY
from ..exceptions import InvalidCIDR, SpecReadFailed, SpecWriteFailed
from .document import ArrayNode, Document, ObjectNode, ScalarNode

LOG = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _ipam_of(plugin: ObjectNode) -> Optional[ObjectNode]:
    ipam = plugin.get(IPAM_KEY)
    return ipam if isinstance(ipam, ObjectNode) else None


@dataclass(frozen=True)
class SingleConfig:
    """A ``.conf`` document: the root object is the plugin description."""

    root: ObjectNode

    def ipam(self) -> Optional[ObjectNode]:
        return _ipam_of(self.root)


@dataclass(frozen=True)
class ConfigList:
    """A ``.conflist`` document with a chained ``plugins`` array."""

    root: ObjectNode
    plugins: ArrayNode

    def ipam(self) -> Optional[ObjectNode]:
        """Return the ``ipam`` object of the first plugin that has one."""

        for plugin in self.plugins.items:
            if isinstance(plugin, ObjectNode):
                ipam = _ipam_of(plugin)
                if ipam is not None:
                    return ipam
        return None


CNIConfig = Union[SingleConfig, ConfigList]


def detect_shape(document: Document) -> CNIConfig:
    root = document.root
    if not isinstance(root, ObjectNode):
        raise ValueError("CNI config must be a JSON object")
    plugins = root.get(PLUGINS_KEY)
    if isinstance(plugins, ArrayNode):
        return ConfigList(root, plugins)
    return SingleConfig(root)


def _load(
    path: Path, error: Type[Union[SpecReadFailed, SpecWriteFailed]]
) -> Tuple[Document, CNIConfig]:
    try:
        text = path.read_bytes().decode("utf-8")
    except OSError as exc:
        raise error(path, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise error(path, f"not valid UTF-8: {exc}") from exc

    try:
        document = Document(text)
        return document, detect_shape(document)
    except json.JSONDecodeError as exc:
        raise error(path, f"invalid JSON: {exc}") from exc
    except ValueError as exc:
        raise error(path, str(exc)) from exc


def extract_subnet(path: PathLike) -> Optional[Network]:
    """Return the network in ``ipam.subnet``, or ``None`` when it is not set.

    A missing ``ipam`` section is not an error either. Unreadable or
    unparsable files raise :class:`SpecReadFailed`; a subnet that is not a
    valid CIDR string raises :class:`InvalidCIDR`.
    """

    path = Path(path)
    document, config = _load(path, SpecReadFailed)

    ipam = config.ipam()
    if ipam is None:
        LOG.debug("No ipam section in %s", path)
        return None

    subnet = ipam.get(SUBNET_KEY)
    if subnet is None:
        LOG.debug("No subnet set in %s", path)
        return None

    if not isinstance(subnet, ScalarNode) or not isinstance(subnet.value, str):
        raw = document.raw(subnet)
        raise InvalidCIDR(raw, f"invalid subnet in {path}: {raw} is not a string")

    try:
        return parse_cidr(subnet.value)
    except InvalidCIDR as exc:
        raise InvalidCIDR(subnet.value, f"invalid subnet in {path}: {exc}") from exc


def insert_subnet(path: PathLike, subnet: str) -> None:
    """Set ``ipam.subnet`` to ``subnet``, changing nothing else in the file.

    The target is the root ``ipam`` object of a single config, or that of the
    first plugin carrying one in a config list. No plugin entry is ever
    created; a document without any ``ipam`` object raises
    :class:`SpecWriteFailed`. The file is replaced atomically and left
    untouched when it already holds ``subnet``.
    """

    path = Path(path)
    document, config = _load(path, SpecWriteFailed)

    ipam = config.ipam()
    if ipam is None:
        raise SpecWriteFailed(path, "no ipam section to attach a subnet to")

    patched = document.set_member(ipam, SUBNET_KEY, subnet)
    if patched.text == document.text:
        LOG.debug("%s already has subnet %s", path, subnet)
        return

    _replace_file(path, patched.text)
    LOG.info("Wrote subnet %s to %s", subnet, path)


def _replace_file(path: Path, text: str) -> None:
    # Resolve symlinks so the link itself survives the rename.
    target = Path(os.path.realpath(path))
    try:
        st = target.stat()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(text.encode("utf-8"))
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_name, stat.S_IMODE(st.st_mode))
            if os.geteuid() == 0:
                os.chown(tmp_name, st.st_uid, st.st_gid)
            os.replace(tmp_name, target)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
    except OSError as exc:
        raise SpecWriteFailed(path, exc.strerror or str(exc)) from exc

    _fsync_dir(target.parent)


def _fsync_dir(directory: Path) -> None:
    # Persist the rename; failure here does not undo the replace.
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as exc:
        LOG.warning("Cannot open %s to sync the rename: %s", directory, exc)
        return
    try:
        os.fsync(fd)
    except OSError as exc:
        LOG.warning("Cannot sync %s: %s", directory, exc)
    finally:
        os.close(fd)
