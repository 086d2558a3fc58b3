"""Routing table entries: message builder and add, delete and dump requests."""

from __future__ import annotations

import enum
import ipaddress
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .core import (
    AddressFamily,
    Handle,
    MessageKind,
    NetlinkFlags,
    send_ack_request,
    send_dump_request,
)


class RouteProtocol(enum.IntEnum):
    UNSPEC = 0
    ICMP_REDIRECT = 1
    KERNEL = 2
    BOOT = 3
    STATIC = 4
    GATED = 8
    RA = 9
    MRT = 10
    ZEBRA = 11
    BIRD = 12
    DNROUTED = 13
    XORP = 14
    NTK = 15
    DHCP = 16
    MROUTED = 17
    KEEPALIVED = 18
    BABEL = 42
    OPENR = 99
    BGP = 186
    ISIS = 187
    OSPF = 188
    RIP = 189
    EIGRP = 192


class RouteScope(enum.IntEnum):
    UNIVERSE = 0
    SITE = 200
    LINK = 253
    HOST = 254
    NOWHERE = 255


class RouteType(enum.IntEnum):
    UNSPEC = 0
    UNICAST = 1
    LOCAL = 2
    BROADCAST = 3
    ANYCAST = 4
    MULTICAST = 5
    BLACKHOLE = 6
    UNREACHABLE = 7
    PROHIBIT = 8
    THROW = 9
    NAT = 10
    XRESOLVE = 11


class RouteAttributeKind(enum.IntEnum):
    DESTINATION = 1
    SOURCE = 2
    IIF = 3
    OIF = 4
    GATEWAY = 5
    PRIORITY = 6
    PREF_SOURCE = 7
    TABLE = 15


@dataclass(frozen=True)
class RouteAttribute:
    kind: RouteAttributeKind
    value: Any


@dataclass
class RouteHeader:
    RT_TABLE_UNSPEC: ClassVar[int] = 0
    RT_TABLE_MAIN: ClassVar[int] = 254

    address_family: AddressFamily = AddressFamily.UNSPEC
    destination_prefix_length: int = 0
    source_prefix_length: int = 0
    tos: int = 0
    table: int = 0
    protocol: RouteProtocol = RouteProtocol.UNSPEC
    scope: RouteScope = RouteScope.UNIVERSE
    kind: RouteType = RouteType.UNSPEC
    flags: int = 0


@dataclass
class RouteMessage:
    header: RouteHeader = field(default_factory=RouteHeader)
    attributes: list[RouteAttribute] = field(default_factory=list)


class InvalidRouteMessage(ValueError):
    """An address, prefix or family that does not fit the route being built."""

    def __init__(self, reason, address=None, prefix_length=None, family=None):
        super().__init__(reason)
        self.address = address
        self.prefix_length = prefix_length
        self.family = family


_FAMILY_LIMITS = {AddressFamily.INET: (4, 32), AddressFamily.INET6: (6, 128)}


class RouteMessageBuilder:
    """Builds a RouteMessage for the main table, static, universe, unicast.

    With no family given, the family is taken from the first address set.
    """

    def __init__(self, family: AddressFamily = AddressFamily.UNSPEC) -> None:
        self.message = RouteMessage()
        header = self.message.header
        header.table = RouteHeader.RT_TABLE_MAIN
        header.protocol = RouteProtocol.STATIC
        header.scope = RouteScope.UNIVERSE
        header.kind = RouteType.UNICAST
        header.address_family = AddressFamily(family)

    @classmethod
    def v4(cls) -> RouteMessageBuilder:
        return cls(AddressFamily.INET)

    @classmethod
    def v6(cls) -> RouteMessageBuilder:
        return cls(AddressFamily.INET6)

    def _push(self, kind: RouteAttributeKind, value: Any) -> RouteMessageBuilder:
        self.message.attributes.append(RouteAttribute(kind, value))
        return self

    def input_interface(self, index: int) -> RouteMessageBuilder:
        return self._push(RouteAttributeKind.IIF, index)

    def output_interface(self, index: int) -> RouteMessageBuilder:
        return self._push(RouteAttributeKind.OIF, index)

    def priority(self, priority: int) -> RouteMessageBuilder:
        """Set the route priority (metric)."""
        return self._push(RouteAttributeKind.PRIORITY, priority)

    def table_id(self, table: int) -> RouteMessageBuilder:
        """Set the table; ids above 255 go into an attribute."""
        if table > 255:
            return self._push(RouteAttributeKind.TABLE, table)
        self.message.header.table = table
        return self

    def protocol(self, protocol: RouteProtocol) -> RouteMessageBuilder:
        self.message.header.protocol = protocol
        return self

    def scope(self, scope: RouteScope) -> RouteMessageBuilder:
        self.message.header.scope = scope
        return self

    def kind(self, kind: RouteType) -> RouteMessageBuilder:
        self.message.header.kind = kind
        return self

    def _checked(self, addr, prefix_length, describe):
        ip = ipaddress.ip_address(addr)
        header = self.message.header
        if header.address_family == AddressFamily.UNSPEC:
            header.address_family = (
                AddressFamily.INET if ip.version == 4 else AddressFamily.INET6
            )
        family = header.address_family
        if family not in _FAMILY_LIMITS:
            raise InvalidRouteMessage(
                f"invalid address family {family.name}", family=family
            )
        version, max_length = _FAMILY_LIMITS[family]
        bad_length = prefix_length is not None and not 0 <= prefix_length <= max_length
        if ip.version != version or bad_length:
            raise InvalidRouteMessage(describe(ip), ip, prefix_length, family)
        return ip

    def source_prefix(self, addr, prefix_length: int) -> RouteMessageBuilder:
        ip = self._checked(
            addr, prefix_length, lambda ip: f"invalid source prefix {ip}/{prefix_length}"
        )
        self.message.header.source_prefix_length = prefix_length
        return self._push(RouteAttributeKind.SOURCE, ip)

    def pref_source(self, addr) -> RouteMessageBuilder:
        ip = self._checked(addr, None, lambda ip: f"invalid preferred source {ip}")
        return self._push(RouteAttributeKind.PREF_SOURCE, ip)

    def destination_prefix(self, addr, prefix_length: int) -> RouteMessageBuilder:
        ip = self._checked(
            addr,
            prefix_length,
            lambda ip: f"invalid destination prefix {ip}/{prefix_length}",
        )
        self.message.header.destination_prefix_length = prefix_length
        return self._push(RouteAttributeKind.DESTINATION, ip)

    def gateway(self, addr) -> RouteMessageBuilder:
        ip = self._checked(addr, None, lambda ip: f"invalid gateway {ip}")
        return self._push(RouteAttributeKind.GATEWAY, ip)

    def build(self) -> RouteMessage:
        return self.message


class RouteAddRequest:
    """Create a route, like `ip route add`."""

    def __init__(self, handle: Handle, message: RouteMessage) -> None:
        self.handle = handle
        self.message = message
        self._replace = False

    def replace(self) -> RouteAddRequest:
        """Replace an existing matching route instead of failing."""
        self._replace = True
        return self

    def execute(self) -> None:
        mode = NetlinkFlags.REPLACE if self._replace else NetlinkFlags.EXCL
        flags = NetlinkFlags.REQUEST | NetlinkFlags.ACK | mode | NetlinkFlags.CREATE
        send_ack_request(self.handle, MessageKind.NEW_ROUTE, self.message, flags)


class RouteDelRequest:
    """Delete a route, like `ip route del`."""

    def __init__(self, handle: Handle, message: RouteMessage) -> None:
        self.handle = handle
        self.message = message

    def execute(self) -> None:
        send_ack_request(
            self.handle,
            MessageKind.DEL_ROUTE,
            self.message,
            NetlinkFlags.REQUEST | NetlinkFlags.ACK,
        )


class RouteGetRequest:
    """Dump routes, like `ip route show`."""

    def __init__(self, handle: Handle, message: RouteMessage) -> None:
        self.handle = handle
        self.message = message

    def execute(self) -> Iterator[RouteMessage]:
        return send_dump_request(
            self.handle, MessageKind.GET_ROUTE, self.message, MessageKind.NEW_ROUTE
        )


class RouteHandle:
    """Entry point for route requests."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def get(self, route: RouteMessage) -> RouteGetRequest:
        return RouteGetRequest(self.handle, route)

    def add(self, route: RouteMessage) -> RouteAddRequest:
        return RouteAddRequest(self.handle, route)

    def del_(self, route: RouteMessage) -> RouteDelRequest:
        return RouteDelRequest(self.handle, route)