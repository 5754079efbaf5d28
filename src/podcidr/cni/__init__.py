"""CNI network configuration access."""

from .document import Document  # noqa: F401
from .spec import (  # noqa: F401
    ConfigList,
    SingleConfig,
    detect_shape,
    extract_subnet,
    insert_subnet,
)

__all__ = [
    "ConfigList",
    "Document",
    "SingleConfig",
    "detect_shape",
    "extract_subnet",
    "insert_subnet",
]
