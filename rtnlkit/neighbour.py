"""Neighbour cache entries: add, delete and dump requests."""

from __future__ import annotations

import enum
import ipaddress
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .core import (
    AddressFamily,
    Handle,
    IpVersion,
    MessageKind,
    NetlinkFlags,
    send_ack_request,
    send_dump_request,
)
from .route import RouteType


class NeighbourState(enum.IntFlag):
    NONE = 0x00
    INCOMPLETE = 0x01
    REACHABLE = 0x02
    STALE = 0x04
    DELAY = 0x08
    PROBE = 0x10
    FAILED = 0x20
    NOARP = 0x40
    PERMANENT = 0x80


class NeighbourFlags(enum.IntFlag):
    USE = 0x01
    SELF = 0x02
    MASTER = 0x04
    PROXY = 0x08
    EXT_LEARNED = 0x10
    OFFLOADED = 0x20
    STICKY = 0x40
    ROUTER = 0x80


class NeighbourAttributeKind(enum.IntEnum):
    DESTINATION = 1
    LINK_LOCAL_ADDRESS = 2
    CACHE_INFO = 3
    PROBES = 4
    VLAN = 5
    PORT = 6
    VNI = 7
    IFINDEX = 8
    MASTER = 9


@dataclass(frozen=True)
class NeighbourAttribute:
    kind: NeighbourAttributeKind
    value: Any


@dataclass
class NeighbourHeader:
    family: AddressFamily = AddressFamily.UNSPEC
    ifindex: int = 0
    state: NeighbourState = NeighbourState.NONE
    flags: NeighbourFlags = NeighbourFlags(0)
    kind: RouteType = RouteType.UNSPEC


@dataclass
class NeighbourMessage:
    header: NeighbourHeader = field(default_factory=NeighbourHeader)
    attributes: list[NeighbourAttribute] = field(default_factory=list)

    def _set(self, kind: NeighbourAttributeKind, value: Any) -> None:
        """Replace the first attribute of this kind, or append one."""
        new = NeighbourAttribute(kind, value)
        for position, attribute in enumerate(self.attributes):
            if attribute.kind is kind:
                self.attributes[position] = new
                return
        self.attributes.append(new)


def _family_of(ip) -> AddressFamily:
    return AddressFamily.INET if ip.version == 4 else AddressFamily.INET6


class NeighbourAddRequest:
    """Create a neighbour entry, like `ip neighbour add`."""

    def __init__(self, handle: Handle, message: NeighbourMessage) -> None:
        self.handle = handle
        self.message = message
        self._replace = False

    def state(self, state: NeighbourState) -> NeighbourAddRequest:
        """Set the bitmask of states of the entry."""
        self.message.header.state = NeighbourState(state)
        return self

    def flags(self, flags: NeighbourFlags) -> NeighbourAddRequest:
        self.message.header.flags = NeighbourFlags(flags)
        return self

    def kind(self, kind: RouteType) -> NeighbourAddRequest:
        self.message.header.kind = kind
        return self

    def link_local_address(self, addr: bytes) -> NeighbourAddRequest:
        """Set the link layer address, replacing one already set."""
        self.message._set(NeighbourAttributeKind.LINK_LOCAL_ADDRESS, bytes(addr))
        return self

    def destination(self, addr) -> NeighbourAddRequest:
        """Set the destination address, replacing one already set."""
        self.message._set(
            NeighbourAttributeKind.DESTINATION, ipaddress.ip_address(addr)
        )
        return self

    def replace(self) -> NeighbourAddRequest:
        """Replace an existing matching entry instead of failing."""
        self._replace = True
        return self

    def execute(self) -> None:
        mode = NetlinkFlags.REPLACE if self._replace else NetlinkFlags.EXCL
        flags = NetlinkFlags.REQUEST | NetlinkFlags.ACK | mode | NetlinkFlags.CREATE
        send_ack_request(self.handle, MessageKind.NEW_NEIGHBOUR, self.message, flags)


class NeighbourDelRequest:
    """Delete a neighbour entry, like `ip neighbour delete`."""

    def __init__(self, handle: Handle, message: NeighbourMessage) -> None:
        self.handle = handle
        self.message = message

    def execute(self) -> None:
        send_ack_request(
            self.handle,
            MessageKind.DEL_NEIGHBOUR,
            self.message,
            NetlinkFlags.REQUEST | NetlinkFlags.ACK,
        )


class NeighbourGetRequest:
    """Dump neighbour entries, like `ip neighbour show`."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle
        self.message = NeighbourMessage()

    def proxies(self) -> NeighbourGetRequest:
        """List neighbour proxies, like `ip neighbour show proxy`."""
        self.message.header.flags |= NeighbourFlags.PROXY
        return self

    def set_family(self, ip_version: IpVersion) -> NeighbourGetRequest:
        self.message.header.family = ip_version.family()
        return self

    def execute(self) -> Iterator[NeighbourMessage]:
        return send_dump_request(
            self.handle,
            MessageKind.GET_NEIGHBOUR,
            self.message,
            MessageKind.NEW_NEIGHBOUR,
        )


class NeighbourHandle:
    """Entry point for neighbour requests."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def get(self) -> NeighbourGetRequest:
        return NeighbourGetRequest(self.handle)

    def add(self, index: int, destination) -> NeighbourAddRequest:
        """Add a permanent neighbour entry for destination on interface index."""
        ip = ipaddress.ip_address(destination)
        message = NeighbourMessage(
            NeighbourHeader(
                family=_family_of(ip),
                ifindex=index,
                state=NeighbourState.PERMANENT,
                kind=RouteType.UNSPEC,
            ),
            [NeighbourAttribute(NeighbourAttributeKind.DESTINATION, ip)],
        )
        return NeighbourAddRequest(self.handle, message)

    def add_bridge(self, index: int, lla: bytes) -> NeighbourAddRequest:
        """Add a forwarding database entry, like `bridge fdb add`."""
        message = NeighbourMessage(
            NeighbourHeader(
                family=AddressFamily.BRIDGE,
                ifindex=index,
                state=NeighbourState.PERMANENT,
                kind=RouteType.UNSPEC,
            ),
            [NeighbourAttribute(NeighbourAttributeKind.LINK_LOCAL_ADDRESS, bytes(lla))],
        )
        return NeighbourAddRequest(self.handle, message)

    def del_(self, message: NeighbourMessage) -> NeighbourDelRequest:
        return NeighbourDelRequest(self.handle, message)