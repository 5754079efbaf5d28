"""CIDR parsing helpers."""

from __future__ import annotations

import ipaddress
from typing import Union

from .exceptions import InvalidCIDR

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_cidr(value: str) -> Network:
    """Parse ``value`` as an ``address/prefix`` network.

    A bare address is rejected rather than read as a host route, and so is a
    network whose address has host bits set under its prefix. Netmask and
    hostmask suffixes and IPv6 scope IDs are not prefix lengths and are
    rejected too.
    """

    if not isinstance(value, str):
        raise InvalidCIDR(str(value))
    address, sep, prefix = value.partition("/")
    if not sep or "%" in address or not (prefix.isascii() and prefix.isdigit()):
        raise InvalidCIDR(value)
    try:
        return ipaddress.ip_network(value, strict=True)
    except ValueError as exc:
        raise InvalidCIDR(value) from exc


def canonical_cidr(value: str) -> str:
    return str(parse_cidr(value))


def is_valid_cidr(value: str) -> bool:
    try:
        parse_cidr(value)
    except InvalidCIDR:
        return False
    return True
