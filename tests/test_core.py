import errno
import socket

import pytest

from rtnlkit.core import (
    AddressFamily,
    ErrorPayload,
    Handle,
    IpVersion,
    MessageKind,
    NetlinkError,
    NetlinkFlags,
    NetlinkMessage,
    RtnlError,
    UnexpectedMessageError,
    send_ack_request,
    send_dump_request,
)


class FakeTransport:
    def __init__(self, *replies):
        self.replies = list(replies)
        self.sent = []

    def __call__(self, message):
        self.sent.append(message)
        return list(self.replies)


def test_ip_version_family():
    assert IpVersion.V4.family() is AddressFamily.INET
    assert IpVersion.V6.family() is AddressFamily.INET6


def test_ip_version_family_matches_socket_constants():
    assert IpVersion.V4.family() == socket.AF_INET
    assert IpVersion.V6.family() == socket.AF_INET6


def test_dump_request_sets_root_and_match_flags():
    transport = FakeTransport(NetlinkMessage(MessageKind.DONE))
    results = list(
        send_dump_request(
            Handle(transport), MessageKind.GET_ROUTE, None, MessageKind.NEW_ROUTE
        )
    )
    assert results == []
    flags = transport.sent[0].flags
    assert flags == NetlinkFlags.REQUEST | NetlinkFlags.ROOT | NetlinkFlags.MATCH


def test_handle_assigns_increasing_sequence_numbers():
    transport = FakeTransport()
    handle = Handle(transport)
    first = NetlinkMessage(MessageKind.GET_ROUTE)
    second = NetlinkMessage(MessageKind.GET_ROUTE)
    list(handle.request(first))
    list(handle.request(second))
    assert second.sequence > first.sequence
    assert transport.sent == [first, second]


def test_handle_wraps_os_errors():
    def broken(message):
        raise OSError(errno.EBADF, "closed")

    with pytest.raises(RtnlError):
        Handle(broken).request(NetlinkMessage(MessageKind.GET_ROUTE))


def test_ack_request_sends_flags_and_accepts_ack():
    transport = FakeTransport(NetlinkMessage(MessageKind.ERROR, ErrorPayload(0)))
    flags = NetlinkFlags.REQUEST | NetlinkFlags.ACK
    assert send_ack_request(Handle(transport), MessageKind.DEL_ROUTE, "body", flags) is None
    sent = transport.sent[0]
    assert sent.kind is MessageKind.DEL_ROUTE
    assert sent.flags == flags
    assert sent.payload == "body"


def test_ack_request_raises_on_error():
    transport = FakeTransport(
        NetlinkMessage(MessageKind.ERROR, ErrorPayload(-errno.EEXIST))
    )
    with pytest.raises(NetlinkError) as info:
        send_ack_request(
            Handle(transport), MessageKind.NEW_ROUTE, None, NetlinkFlags.REQUEST
        )
    assert info.value.code == -errno.EEXIST


def test_dump_request_yields_matching_payloads_until_done():
    transport = FakeTransport(
        NetlinkMessage(MessageKind.NEW_ROUTE, "a"),
        NetlinkMessage(MessageKind.NEW_ROUTE, "b"),
        NetlinkMessage(MessageKind.DONE),
        NetlinkMessage(MessageKind.NEW_ROUTE, "after"),
    )
    results = list(
        send_dump_request(
            Handle(transport), MessageKind.GET_ROUTE, None, MessageKind.NEW_ROUTE
        )
    )
    assert results == ["a", "b"]
    assert transport.sent[0].flags == NetlinkFlags.REQUEST | NetlinkFlags.DUMP


def test_dump_request_rejects_unexpected_kind():
    reply = NetlinkMessage(MessageKind.NEW_RULE, "rule")
    transport = FakeTransport(reply)
    stream = send_dump_request(
        Handle(transport), MessageKind.GET_ROUTE, None, MessageKind.NEW_ROUTE
    )
    with pytest.raises(UnexpectedMessageError) as info:
        list(stream)
    assert info.value.message is reply


def test_dump_request_raises_on_error():
    transport = FakeTransport(
        NetlinkMessage(MessageKind.NEW_ROUTE, "a"),
        NetlinkMessage(MessageKind.ERROR, ErrorPayload(-errno.EOPNOTSUPP)),
    )
    stream = send_dump_request(
        Handle(transport), MessageKind.GET_ROUTE, None, MessageKind.NEW_ROUTE
    )
    assert next(stream) == "a"
    with pytest.raises(NetlinkError) as info:
        next(stream)
    assert info.value.code == -errno.EOPNOTSUPP