"""Traffic control: qdisc and filter creation requests and their messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .core import (
    AddressFamily,
    Handle,
    InvalidNlaError,
    MessageKind,
    NetlinkFlags,
    send_ack_request,
)

_U32_MAX = 0xFFFFFFFF
_U16_MAX = 0xFFFF


@dataclass(frozen=True)
class TcHandle:
    """A traffic control handle: a 16-bit major and a 16-bit minor number."""

    ROOT: ClassVar[TcHandle]
    INGRESS: ClassVar[TcHandle]
    UNSPEC: ClassVar[TcHandle]
    MIN_PRIORITY: ClassVar[int] = 0xFFE0
    MIN_INGRESS: ClassVar[int] = 0xFFF2
    MIN_EGRESS: ClassVar[int] = 0xFFF3

    major: int = 0
    minor: int = 0

    def __post_init__(self) -> None:
        for name in ("major", "minor"):
            value = getattr(self, name)
            if not 0 <= value <= _U16_MAX:
                raise ValueError(f"{name} {value} does not fit in 16 bits")

    @classmethod
    def from_u32(cls, value: int) -> TcHandle:
        """Split a 32-bit handle into its major and minor halves."""
        if not 0 <= value <= _U32_MAX:
            raise ValueError(f"handle {value} does not fit in 32 bits")
        return cls(value >> 16, value & _U16_MAX)

    def to_u32(self) -> int:
        """Join major and minor into one 32-bit value."""
        return (self.major << 16) | self.minor

    def __int__(self) -> int:
        return self.to_u32()

    def __str__(self) -> str:
        return f"{self.major:x}:{self.minor:x}"


TcHandle.ROOT = TcHandle(0xFFFF, 0xFFFF)
TcHandle.INGRESS = TcHandle(0xFFFF, 0xFFF1)
TcHandle.UNSPEC = TcHandle(0, 0)


@dataclass
class TcHeader:
    TCM_IFINDEX_MAGIC_BLOCK: ClassVar[int] = 0xFFFFFFFF

    family: AddressFamily = AddressFamily.UNSPEC
    index: int = 0
    handle: TcHandle = TcHandle(0, 0)
    parent: TcHandle = TcHandle(0, 0)
    info: int = 0


class TcAttributeKind(enum.IntEnum):
    UNSPEC = 0
    KIND = 1
    OPTIONS = 2
    STATS = 3
    XSTATS = 4
    RATE = 5
    FCNT = 6
    STATS2 = 7
    STAB = 8
    PAD = 9
    DUMP_INVISIBLE = 10
    CHAIN = 11
    HW_OFFLOAD = 12
    INGRESS_BLOCK = 13
    EGRESS_BLOCK = 14


@dataclass(frozen=True)
class TcAttribute:
    kind: TcAttributeKind
    value: Any


@dataclass
class TcMessage:
    header: TcHeader = field(default_factory=TcHeader)
    attributes: list[TcAttribute] = field(default_factory=list)

    @classmethod
    def with_index(cls, index: int) -> TcMessage:
        """A message for the interface with the given index."""
        return cls(TcHeader(index=index))


@dataclass(frozen=True)
class TcU32Key:
    """One match of a u32 selector: value and mask at an offset."""

    mask: int = 0
    val: int = 0
    off: int = 0
    offmask: int = 0


class TcU32SelectorFlags(enum.IntFlag):
    NONE = 0
    TERMINAL = 0x01
    OFFSET = 0x02
    VAROFFSET = 0x04
    EAT = 0x08


@dataclass
class TcU32Selector:
    flags: TcU32SelectorFlags = TcU32SelectorFlags.NONE
    offshift: int = 0
    nkeys: int = 0
    offmask: int = 0
    off: int = 0
    offoff: int = 0
    hoff: int = 0
    hmask: int = 0
    keys: list[TcU32Key] = field(default_factory=list)


class TcActionType(enum.IntEnum):
    UNSPEC = -1
    OK = 0
    RECLASSIFY = 1
    SHOT = 2
    PIPE = 3
    STOLEN = 4
    QUEUED = 5
    REPEAT = 6
    REDIRECT = 7
    TRAP = 8


class TcMirrorActionType(enum.IntEnum):
    UNSPEC = 0
    EGRESS_REDIR = 1
    EGRESS_MIRROR = 2
    INGRESS_REDIR = 3
    INGRESS_MIRROR = 4


@dataclass
class TcMirror:
    """Parameters of a mirred action."""

    index: int = 0
    capab: int = 0
    action: TcActionType = TcActionType.OK
    refcnt: int = 0
    bindcnt: int = 0
    eaction: TcMirrorActionType = TcMirrorActionType.UNSPEC
    ifindex: int = 0


@dataclass
class TcAction:
    """A filter action: its kind name and its options."""

    MIRROR_KIND: ClassVar[str] = "mirred"

    kind: str = ""
    options: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class TcFilterU32Option:
    """One option of a u32 filter."""

    CLASS_ID: ClassVar[int] = 1
    HASH: ClassVar[int] = 2
    LINK: ClassVar[int] = 3
    DIVISOR: ClassVar[int] = 4
    SELECTOR: ClassVar[int] = 5
    POLICE: ClassVar[int] = 6
    ACTION: ClassVar[int] = 7
    INDEV: ClassVar[int] = 8
    PCNT: ClassVar[int] = 9
    MARK: ClassVar[int] = 10
    FLAGS: ClassVar[int] = 11

    KIND: ClassVar[str] = "u32"

    kind: int
    value: Any


class TrafficFilterNewRequest:
    """Create or change a filter, like `tc filter add|change|replace`."""

    def __init__(self, handle: Handle, ifindex: int, flags: int) -> None:
        self._handle = handle
        self.message = TcMessage.with_index(ifindex)
        self.flags = NetlinkFlags.REQUEST | NetlinkFlags(flags)

    def execute(self) -> None:
        send_ack_request(
            self._handle,
            MessageKind.NEW_TRAFFIC_FILTER,
            self.message,
            NetlinkFlags.ACK | self.flags,
        )

    def index(self, index: int) -> TrafficFilterNewRequest:
        """Set the interface index; exclusive with block()."""
        self.message.header.index = index
        return self

    def block(self, block_index: int) -> TrafficFilterNewRequest:
        """Attach to a shared block instead of an interface."""
        magic = TcHeader.TCM_IFINDEX_MAGIC_BLOCK
        self.message.header.index = magic - (1 << 32) if magic >= 1 << 31 else magic
        self.message.header.parent = TcHandle.from_u32(block_index)
        return self

    def parent(self, parent: int) -> TrafficFilterNewRequest:
        self.message.header.parent = TcHandle.from_u32(parent)
        return self

    def root(self) -> TrafficFilterNewRequest:
        self.message.header.parent = TcHandle.ROOT
        return self

    def ingress(self) -> TrafficFilterNewRequest:
        self.message.header.parent = TcHandle(0xFFFF, TcHandle.MIN_INGRESS)
        return self

    def egress(self) -> TrafficFilterNewRequest:
        self.message.header.parent = TcHandle(0xFFFF, TcHandle.MIN_EGRESS)
        return self

    def priority(self, priority: int) -> TrafficFilterNewRequest:
        """Set the filter priority (`pref PRIO`)."""
        self.message.header.info = TcHandle(priority, priority).to_u32()
        return self

    def protocol(self, protocol: int) -> TrafficFilterNewRequest:
        """Set the protocol, keeping the priority in the upper half."""
        major = (self.message.header.info >> 16) & _U16_MAX
        self.message.header.info = TcHandle(major, protocol).to_u32()
        return self

    def u32(self, options) -> TrafficFilterNewRequest:
        """Make this a u32 filter with the given options."""
        if any(a.kind is TcAttributeKind.KIND for a in self.message.attributes):
            raise InvalidNlaError("message kind has already been set.")
        self.message.attributes.append(
            TcAttribute(TcAttributeKind.KIND, TcFilterU32Option.KIND)
        )
        self.message.attributes.append(
            TcAttribute(TcAttributeKind.OPTIONS, list(options))
        )
        return self

    def redirect(self, dst_index: int) -> TrafficFilterNewRequest:
        """Redirect all matched traffic to the egress of interface dst_index.

        Set parent and protocol before calling this.
        """
        selector = TcU32Selector(
            flags=TcU32SelectorFlags.TERMINAL, nkeys=1, keys=[TcU32Key()]
        )
        mirror = TcMirror(
            action=TcActionType.STOLEN,
            eaction=TcMirrorActionType.EGRESS_REDIR,
            ifindex=dst_index,
        )
        action = TcAction(kind=TcAction.MIRROR_KIND, options=[mirror])
        return self.u32(
            [
                TcFilterU32Option(TcFilterU32Option.SELECTOR, selector),
                TcFilterU32Option(TcFilterU32Option.ACTION, [action]),
            ]
        )


class QDiscNewRequest:
    """Create or change a queueing discipline, like `tc qdisc add`."""

    def __init__(self, handle: Handle, message: TcMessage, flags: int) -> None:
        self._handle = handle
        self.message = message
        self.flags = NetlinkFlags.REQUEST | NetlinkFlags(flags)

    def execute(self) -> None:
        send_ack_request(
            self._handle,
            MessageKind.NEW_QUEUE_DISCIPLINE,
            self.message,
            NetlinkFlags.ACK | self.flags,
        )

    def handle(self, major: int, minor: int) -> QDiscNewRequest:
        self.message.header.handle = TcHandle(major, minor)
        return self

    def root(self) -> QDiscNewRequest:
        self.message.header.parent = TcHandle.ROOT
        return self

    def parent(self, parent: int) -> QDiscNewRequest:
        self.message.header.parent = TcHandle.from_u32(parent)
        return self

    def ingress(self) -> QDiscNewRequest:
        """Make this an ingress qdisc."""
        self.message.header.parent = TcHandle.INGRESS
        self.message.header.handle = TcHandle.from_u32(0xFFFF0000)
        self.message.attributes.append(TcAttribute(TcAttributeKind.KIND, "ingress"))
        return self