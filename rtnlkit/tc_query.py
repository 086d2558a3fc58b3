"""Traffic control: qdisc deletion, dump requests and the tc entry points."""

from __future__ import annotations

from collections.abc import Iterator

from .core import (
    Handle,
    MessageKind,
    NetlinkFlags,
    send_ack_request,
    send_dump_request,
)
from .tc import (
    QDiscNewRequest,
    TcHandle,
    TcHeader,
    TcMessage,
    TrafficFilterNewRequest,
)


class QDiscDelRequest:
    """Delete a queueing discipline, like `tc qdisc del`."""

    def __init__(self, handle: Handle, message: TcMessage) -> None:
        self._handle = handle
        self.message = message

    def execute(self) -> None:
        send_ack_request(
            self._handle,
            MessageKind.DEL_QUEUE_DISCIPLINE,
            self.message,
            NetlinkFlags.REQUEST | NetlinkFlags.ACK,
        )


class QDiscGetRequest:
    """Dump queueing disciplines, like `tc qdisc show`."""

    def __init__(self, handle: Handle) -> None:
        self._handle = handle
        self.message = TcMessage()

    def execute(self) -> Iterator[TcMessage]:
        return send_dump_request(
            self._handle,
            MessageKind.GET_QUEUE_DISCIPLINE,
            self.message,
            MessageKind.NEW_QUEUE_DISCIPLINE,
        )

    def index(self, index: int) -> QDiscGetRequest:
        self.message.header.index = index
        return self

    def ingress(self) -> QDiscGetRequest:
        """Ask for the ingress qdisc."""
        self.message.header.parent = TcHandle.INGRESS
        return self


class TrafficClassGetRequest:
    """Dump the traffic classes of an interface, like `tc class show`."""

    def __init__(self, handle: Handle, ifindex: int) -> None:
        self._handle = handle
        self.message = TcMessage(TcHeader(index=ifindex))

    def execute(self) -> Iterator[TcMessage]:
        return send_dump_request(
            self._handle,
            MessageKind.GET_TRAFFIC_CLASS,
            self.message,
            MessageKind.NEW_TRAFFIC_CLASS,
        )


class TrafficFilterGetRequest:
    """Dump the filters of an interface, like `tc filter show`."""

    def __init__(self, handle: Handle, ifindex: int) -> None:
        self._handle = handle
        self.message = TcMessage(TcHeader(index=ifindex))

    def execute(self) -> Iterator[TcMessage]:
        return send_dump_request(
            self._handle,
            MessageKind.GET_TRAFFIC_FILTER,
            self.message,
            MessageKind.NEW_TRAFFIC_FILTER,
        )

    def root(self) -> TrafficFilterGetRequest:
        self.message.header.parent = TcHandle.ROOT
        return self


class TrafficChainGetRequest:
    """Dump the filter chains of an interface, like `tc chain show`."""

    def __init__(self, handle: Handle, ifindex: int) -> None:
        self._handle = handle
        self.message = TcMessage(TcHeader(index=ifindex))

    def execute(self) -> Iterator[TcMessage]:
        return send_dump_request(
            self._handle,
            MessageKind.GET_TRAFFIC_CHAIN,
            self.message,
            MessageKind.NEW_TRAFFIC_CHAIN,
        )


class QDiscHandle:
    """Entry point for qdisc requests."""

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def get(self) -> QDiscGetRequest:
        return QDiscGetRequest(self.handle)

    def add(self, index: int) -> QDiscNewRequest:
        """Create a qdisc; fail if it already exists."""
        return QDiscNewRequest(
            self.handle,
            TcMessage.with_index(index),
            NetlinkFlags.EXCL | NetlinkFlags.CREATE,
        )

    def change(self, index: int) -> QDiscNewRequest:
        """Change a qdisc in place; it cannot be moved."""
        return QDiscNewRequest(self.handle, TcMessage.with_index(index), 0)

    def replace(self, index: int) -> QDiscNewRequest:
        """Replace a matching qdisc, creating it if missing."""
        return QDiscNewRequest(
            self.handle,
            TcMessage.with_index(index),
            NetlinkFlags.CREATE | NetlinkFlags.REPLACE,
        )

    def link(self, index: int) -> QDiscNewRequest:
        """Replace a qdisc that must already exist."""
        return QDiscNewRequest(
            self.handle, TcMessage.with_index(index), NetlinkFlags.REPLACE
        )

    def del_(self, index: int) -> QDiscDelRequest:
        return QDiscDelRequest(self.handle, TcMessage.with_index(index))


class TrafficClassHandle:
    """Entry point for traffic class requests on one interface."""

    def __init__(self, handle: Handle, ifindex: int) -> None:
        self.handle = handle
        self.ifindex = ifindex

    def get(self) -> TrafficClassGetRequest:
        return TrafficClassGetRequest(self.handle, self.ifindex)


class TrafficFilterHandle:
    """Entry point for filter requests on one interface."""

    def __init__(self, handle: Handle, ifindex: int) -> None:
        self.handle = handle
        self.ifindex = ifindex

    def get(self) -> TrafficFilterGetRequest:
        return TrafficFilterGetRequest(self.handle, self.ifindex)

    def add(self) -> TrafficFilterNewRequest:
        """Add a filter; fail if it already exists."""
        return TrafficFilterNewRequest(
            self.handle, self.ifindex, NetlinkFlags.EXCL | NetlinkFlags.CREATE
        )

    def change(self) -> TrafficFilterNewRequest:
        """Change a filter in place; it cannot be moved."""
        return TrafficFilterNewRequest(self.handle, self.ifindex, 0)

    def replace(self) -> TrafficFilterNewRequest:
        """Replace a matching filter, creating it if missing."""
        return TrafficFilterNewRequest(self.handle, self.ifindex, NetlinkFlags.CREATE)


class TrafficChainHandle:
    """Entry point for filter chain requests on one interface."""

    def __init__(self, handle: Handle, ifindex: int) -> None:
        self.handle = handle
        self.ifindex = ifindex

    def get(self) -> TrafficChainGetRequest:
        return TrafficChainGetRequest(self.handle, self.ifindex)