"""Shared request plumbing: flags, message envelopes, errors and the handle."""

from __future__ import annotations

import enum
import itertools
import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any


class AddressFamily(enum.IntEnum):
    """Address families used in rtnetlink headers."""

    UNSPEC = 0
    INET = 2
    BRIDGE = 7
    INET6 = 10


class IpVersion(enum.Enum):
    """Internet Protocol version."""

    V4 = 4
    V6 = 6

    def family(self) -> AddressFamily:
        """Return the address family matching this IP version."""
        return AddressFamily.INET if self is IpVersion.V4 else AddressFamily.INET6


class NetlinkFlags(enum.IntFlag):
    """Flags of the netlink message header."""

    REQUEST = 0x01
    MULTI = 0x02
    ACK = 0x04
    ECHO = 0x08
    ROOT = 0x100
    MATCH = 0x200
    DUMP = 0x300
    REPLACE = 0x100
    EXCL = 0x200
    CREATE = 0x400
    APPEND = 0x800


class MessageKind(enum.IntEnum):
    """Netlink and rtnetlink message types."""

    NOOP = 1
    ERROR = 2
    DONE = 3
    OVERRUN = 4
    NEW_ROUTE = 24
    DEL_ROUTE = 25
    GET_ROUTE = 26
    NEW_NEIGHBOUR = 28
    DEL_NEIGHBOUR = 29
    GET_NEIGHBOUR = 30
    NEW_RULE = 32
    DEL_RULE = 33
    GET_RULE = 34
    NEW_QUEUE_DISCIPLINE = 36
    DEL_QUEUE_DISCIPLINE = 37
    GET_QUEUE_DISCIPLINE = 38
    NEW_TRAFFIC_CLASS = 40
    DEL_TRAFFIC_CLASS = 41
    GET_TRAFFIC_CLASS = 42
    NEW_TRAFFIC_FILTER = 44
    DEL_TRAFFIC_FILTER = 45
    GET_TRAFFIC_FILTER = 46
    NEW_TRAFFIC_CHAIN = 100
    DEL_TRAFFIC_CHAIN = 101
    GET_TRAFFIC_CHAIN = 102


@dataclass
class ErrorPayload:
    """Payload of an error or acknowledgement message; code 0 is an ack."""

    code: int = 0
    request: NetlinkMessage | None = None

    @property
    def is_ack(self) -> bool:
        return self.code == 0


@dataclass
class NetlinkMessage:
    """A netlink message: its type, header flags, sequence and payload."""

    kind: MessageKind
    payload: Any = None
    flags: NetlinkFlags = NetlinkFlags(0)
    sequence: int = 0


class RtnlError(Exception):
    """Base class of every error raised by this package."""


class NetlinkError(RtnlError):
    """The kernel answered a request with an error."""

    def __init__(self, payload: ErrorPayload) -> None:
        self.payload = payload
        self.code = payload.code
        super().__init__(f"netlink error {payload.code}: {os.strerror(-payload.code)}")


class UnexpectedMessageError(RtnlError):
    """A reply of a type the request did not expect."""

    def __init__(self, message: NetlinkMessage) -> None:
        self.message = message
        super().__init__(f"unexpected netlink message of type {message.kind!r}")


class InvalidNlaError(RtnlError):
    """An attribute could not be added to a message."""


Transport = Callable[[NetlinkMessage], Iterable[NetlinkMessage]]


class Handle:
    """Sends requests over a transport and hands back the replies."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._sequence = itertools.count(1)

    def request(self, message: NetlinkMessage) -> Iterator[NetlinkMessage]:
        """Stamp the message with a sequence number, send it and return its replies."""
        message.sequence = next(self._sequence)
        try:
            return iter(self._transport(message))
        except OSError as exc:
            raise RtnlError(f"request failed: {exc}") from exc


def send_ack_request(
    handle: Handle, kind: MessageKind, message: Any, flags: NetlinkFlags
) -> None:
    """Send a request and raise NetlinkError if any reply is an error."""
    request = NetlinkMessage(kind, message, NetlinkFlags(flags))
    for reply in handle.request(request):
        if reply.kind is MessageKind.ERROR and not reply.payload.is_ack:
            raise NetlinkError(reply.payload)


def send_dump_request(
    handle: Handle, kind: MessageKind, message: Any, reply_kind: MessageKind
) -> Iterator[Any]:
    """Send a dump request and yield the payloads of the replies of reply_kind."""
    request = NetlinkMessage(kind, message, NetlinkFlags.REQUEST | NetlinkFlags.DUMP)
    for reply in handle.request(request):
        if reply.kind is reply_kind:
            yield reply.payload
        elif reply.kind is MessageKind.ERROR:
            if not reply.payload.is_ack:
                raise NetlinkError(reply.payload)
        elif reply.kind is MessageKind.DONE:
            return
        else:
            raise UnexpectedMessageError(reply)