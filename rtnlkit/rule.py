"""Routing policy rules: add, delete and dump requests."""

from __future__ import annotations

import enum
import ipaddress
import warnings
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
from .route import RouteHeader


class RuleAction(enum.IntEnum):
    UNSPEC = 0
    TO_TABLE = 1
    GOTO = 2
    NOP = 3
    BLACKHOLE = 6
    UNREACHABLE = 7
    PROHIBIT = 8


class RuleAttributeKind(enum.IntEnum):
    DESTINATION = 1
    SOURCE = 2
    IIFNAME = 3
    GOTO = 4
    PRIORITY = 6
    FW_MARK = 10
    FLOW = 11
    TABLE = 15
    FW_MASK = 16
    OIFNAME = 17


@dataclass(frozen=True)
class RuleAttribute:
    kind: RuleAttributeKind
    value: Any


@dataclass
class RuleHeader:
    family: AddressFamily = AddressFamily.UNSPEC
    dst_len: int = 0
    src_len: int = 0
    tos: int = 0
    table: int = 0
    action: RuleAction = RuleAction.UNSPEC
    flags: int = 0


@dataclass
class RuleMessage:
    header: RuleHeader = field(default_factory=RuleHeader)
    attributes: list[RuleAttribute] = field(default_factory=list)


_FAMILY_VERSIONS = {AddressFamily.INET: 4, AddressFamily.INET6: 6}


class RuleAddRequest:
    """Create a rule, like `ip rule add`.

    Address prefixes can only be set after choosing a family with v4() or v6().
    """

    def __init__(self, handle: Handle) -> None:
        self.handle = handle
        self.message = RuleMessage()
        self.message.header.table = RouteHeader.RT_TABLE_MAIN
        self.message.header.action = RuleAction.UNSPEC
        self._replace = False

    def _push(self, kind: RuleAttributeKind, value: Any) -> RuleAddRequest:
        self.message.attributes.append(RuleAttribute(kind, value))
        return self

    def input_interface(self, ifname: str) -> RuleAddRequest:
        return self._push(RuleAttributeKind.IIFNAME, ifname)

    def output_interface(self, ifname: str) -> RuleAddRequest:
        return self._push(RuleAttributeKind.OIFNAME, ifname)

    def table(self, table: int) -> RuleAddRequest:
        """Set the table in the header. Deprecated: use table_id()."""
        warnings.warn(
            "table() is deprecated, use table_id() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        self.message.header.table = table
        return self

    def table_id(self, table: int) -> RuleAddRequest:
        """Set the table; ids above 255 go into an attribute."""
        if table > 255:
            return self._push(RuleAttributeKind.TABLE, table)
        self.message.header.table = table
        return self

    def tos(self, tos: int) -> RuleAddRequest:
        self.message.header.tos = tos
        return self

    def action(self, action: RuleAction) -> RuleAddRequest:
        self.message.header.action = action
        return self

    def priority(self, priority: int) -> RuleAddRequest:
        return self._push(RuleAttributeKind.PRIORITY, priority)

    def fw_mark(self, fw_mark: int) -> RuleAddRequest:
        return self._push(RuleAttributeKind.FW_MARK, fw_mark)

    def _set_family(self, family: AddressFamily) -> RuleAddRequest:
        self.message.header.family = family
        self._replace = False
        return self

    def v4(self) -> RuleAddRequest:
        """Make this an IPv4 rule."""
        return self._set_family(AddressFamily.INET)

    def v6(self) -> RuleAddRequest:
        """Make this an IPv6 rule."""
        return self._set_family(AddressFamily.INET6)

    def _address(self, addr):
        family = self.message.header.family
        if family not in _FAMILY_VERSIONS:
            raise ValueError("choose v4() or v6() before setting an address prefix")
        ip = ipaddress.ip_address(addr)
        if ip.version != _FAMILY_VERSIONS[family]:
            raise ValueError(f"address {ip} does not match family {family.name}")
        return ip

    def source_prefix(self, addr, prefix_length: int) -> RuleAddRequest:
        ip = self._address(addr)
        self.message.header.src_len = prefix_length
        return self._push(RuleAttributeKind.SOURCE, ip)

    def destination_prefix(self, addr, prefix_length: int) -> RuleAddRequest:
        ip = self._address(addr)
        self.message.header.dst_len = prefix_length
        return self._push(RuleAttributeKind.DESTINATION, ip)

    def replace(self) -> RuleAddRequest:
        """Replace an existing matching rule instead of failing."""
        self._replace = True
        return self

    def execute(self) -> None:
        mode = NetlinkFlags.REPLACE if self._replace else NetlinkFlags.EXCL
        flags = NetlinkFlags.REQUEST | NetlinkFlags.ACK | mode | NetlinkFlags.CREATE
        send_ack_request(self.handle, MessageKind.NEW_RULE, self.message, flags)


class RuleDelRequest:
    """Delete a rule, like `ip rule del`."""

    def __init__(self, handle: Handle, message: RuleMessage) -> None:
        self.handle = handle
        self.message = message

    def execute(self) -> None:
        send_ack_request(
            self.handle,
            MessageKind.DEL_RULE,
            self.message,
            NetlinkFlags.REQUEST | NetlinkFlags.ACK,
        )


class RuleGetRequest:
    """Dump rules of one IP version, like `ip rule show`."""

    def __init__(self, handle: Handle, ip_version: IpVersion) -> None:
        self.handle = handle
        self.message = RuleMessage(
            RuleHeader(
                family=ip_version.family(),
                dst_len=0,
                src_len=0,
                tos=0,
                table=RouteHeader.RT_TABLE_UNSPEC,
                action=RuleAction.UNSPEC,
            )
        )

    def execute(self) -> Iterator[RuleMessage]:
        return send_dump_request(
            self.handle, MessageKind.GET_RULE, self.message, MessageKind.NEW_RULE
        )


class RuleHandle:
    """Entry point for rule requests."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def get(self, ip_version: IpVersion) -> RuleGetRequest:
        return RuleGetRequest(self.handle, ip_version)

    def add(self) -> RuleAddRequest:
        return RuleAddRequest(self.handle)

    def del_(self, rule: RuleMessage) -> RuleDelRequest:
        return RuleDelRequest(self.handle, rule)