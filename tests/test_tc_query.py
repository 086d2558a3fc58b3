import pytest

from rtnlkit.core import (
    AddressFamily,
    ErrorPayload,
    Handle,
    MessageKind,
    NetlinkError,
    NetlinkFlags,
    NetlinkMessage,
    UnexpectedMessageError,
)
from rtnlkit.tc import TcAttribute, TcAttributeKind, TcHandle, TcHeader, TcMessage
from rtnlkit.tc_query import (
    QDiscHandle,
    TrafficChainHandle,
    TrafficClassHandle,
    TrafficFilterHandle,
)

IFINDEX = 7


class FakeKernel:
    def __init__(self, replies=()):
        self.replies = list(replies)
        self.requests = []

    def __call__(self, message):
        self.requests.append(message)
        return list(self.replies)


def done():
    return NetlinkMessage(MessageKind.DONE)


def ack():
    return NetlinkMessage(MessageKind.ERROR, ErrorPayload(0))


def error(code):
    return NetlinkMessage(MessageKind.ERROR, ErrorPayload(code))


def test_get_qdiscs():
    loopback = TcMessage(
        TcHeader(
            index=1,
            handle=TcHandle.from_u32(0),
            parent=TcHandle.from_u32(0xFFFFFFFF),
            info=2,
        ),
        [
            TcAttribute(TcAttributeKind.KIND, "noqueue"),
            TcAttribute(TcAttributeKind.HW_OFFLOAD, 0),
        ],
    )
    kernel = FakeKernel([NetlinkMessage(MessageKind.NEW_QUEUE_DISCIPLINE, loopback), done()])
    qdiscs = list(QDiscHandle(Handle(kernel)).get().execute())

    request = kernel.requests[0]
    assert request.kind is MessageKind.GET_QUEUE_DISCIPLINE
    assert request.flags == NetlinkFlags.REQUEST | NetlinkFlags.DUMP

    first = qdiscs[0]
    assert first.header.family == AddressFamily.UNSPEC
    assert first.header.index == 1
    assert first.header.handle == TcHandle.from_u32(0)
    assert first.header.parent == TcHandle.from_u32(0xFFFFFFFF)
    assert first.header.info == 2
    assert first.attributes[0] == TcAttribute(TcAttributeKind.KIND, "noqueue")
    assert first.attributes[1] == TcAttribute(TcAttributeKind.HW_OFFLOAD, 0)


def test_get_traffic_classes():
    tclass = TcMessage(
        TcHeader(index=IFINDEX, parent=TcHandle.from_u32(0xFFFFFFFF)),
        [TcAttribute(TcAttributeKind.KIND, "htb")],
    )
    kernel = FakeKernel([NetlinkMessage(MessageKind.NEW_TRAFFIC_CLASS, tclass), done()])
    tclasses = list(TrafficClassHandle(Handle(kernel), IFINDEX).get().execute())

    request = kernel.requests[0]
    assert request.kind is MessageKind.GET_TRAFFIC_CLASS
    assert request.payload.header.index == IFINDEX
    assert len(tclasses) == 1
    assert tclasses[0].header.index == IFINDEX
    assert tclasses[0].header.parent == TcHandle.from_u32(0xFFFFFFFF)
    assert tclasses[0].attributes[0] == TcAttribute(TcAttributeKind.KIND, "htb")


def test_get_traffic_filters():
    def basic():
        return TcMessage(
            TcHeader(index=IFINDEX, parent=TcHandle.from_u32(0xFFFF + 1)),
            [TcAttribute(TcAttributeKind.KIND, "basic")],
        )

    kernel = FakeKernel(
        [
            NetlinkMessage(MessageKind.NEW_TRAFFIC_FILTER, basic()),
            NetlinkMessage(MessageKind.NEW_TRAFFIC_FILTER, basic()),
            done(),
        ]
    )
    filters = list(TrafficFilterHandle(Handle(kernel), IFINDEX).get().execute())

    assert kernel.requests[0].kind is MessageKind.GET_TRAFFIC_FILTER
    assert len(filters) == 2
    for item in filters:
        assert item.header.family == AddressFamily.UNSPEC
        assert item.header.index == IFINDEX
        assert item.header.parent == TcHandle(1, 0)
        assert item.attributes[0] == TcAttribute(TcAttributeKind.KIND, "basic")


def test_get_traffic_chains():
    chain = TcMessage(
        TcHeader(index=IFINDEX, parent=TcHandle.from_u32(0xFFFF + 1)),
        [TcAttribute(TcAttributeKind.CHAIN, 0)],
    )
    kernel = FakeKernel([NetlinkMessage(MessageKind.NEW_TRAFFIC_CHAIN, chain), done()])
    chains = list(TrafficChainHandle(Handle(kernel), IFINDEX).get().execute())

    assert kernel.requests[0].kind is MessageKind.GET_TRAFFIC_CHAIN
    assert kernel.requests[0].payload.header.index == IFINDEX
    assert len(chains) <= 1
    assert chains[0].attributes[0] == TcAttribute(TcAttributeKind.CHAIN, 0)


def test_chain_not_supported_raises_netlink_error():
    kernel = FakeKernel([error(-95)])
    with pytest.raises(NetlinkError) as info:
        list(TrafficChainHandle(Handle(kernel), IFINDEX).get().execute())
    assert info.value.code == -95


def test_dump_unexpected_reply():
    kernel = FakeKernel([NetlinkMessage(MessageKind.NEW_ROUTE, None)])
    with pytest.raises(UnexpectedMessageError):
        list(QDiscHandle(Handle(kernel)).get().execute())


def test_qdisc_get_index_and_ingress():
    kernel = FakeKernel([done()])
    result = list(QDiscHandle(Handle(kernel)).get().index(3).ingress().execute())
    assert result == []
    header = kernel.requests[0].payload.header
    assert header.index == 3
    assert header.parent == TcHandle.INGRESS


def test_filter_get_root():
    kernel = FakeKernel([done()])
    list(TrafficFilterHandle(Handle(kernel), IFINDEX).get().root().execute())
    assert kernel.requests[0].payload.header.parent == TcHandle.ROOT


@pytest.mark.parametrize(
    "method, extra",
    [
        ("add", NetlinkFlags.EXCL | NetlinkFlags.CREATE),
        ("change", NetlinkFlags(0)),
        ("replace", NetlinkFlags.CREATE | NetlinkFlags.REPLACE),
        ("link", NetlinkFlags.REPLACE),
    ],
)
def test_qdisc_new_flags(method, extra):
    kernel = FakeKernel([ack()])
    request = getattr(QDiscHandle(Handle(kernel)), method)(IFINDEX)
    request.ingress().execute()
    sent = kernel.requests[0]
    assert sent.kind is MessageKind.NEW_QUEUE_DISCIPLINE
    assert sent.flags == NetlinkFlags.REQUEST | NetlinkFlags.ACK | extra
    assert sent.payload.header.index == IFINDEX


@pytest.mark.parametrize(
    "method, extra",
    [
        ("add", NetlinkFlags.EXCL | NetlinkFlags.CREATE),
        ("change", NetlinkFlags(0)),
        ("replace", NetlinkFlags.CREATE),
    ],
)
def test_filter_new_flags(method, extra):
    kernel = FakeKernel([ack()])
    request = getattr(TrafficFilterHandle(Handle(kernel), IFINDEX), method)()
    request.parent(0xFFFF0000).protocol(0x0003).redirect(2).execute()
    sent = kernel.requests[0]
    assert sent.kind is MessageKind.NEW_TRAFFIC_FILTER
    assert sent.flags == NetlinkFlags.REQUEST | NetlinkFlags.ACK | extra
    assert sent.payload.header.index == IFINDEX


def test_qdisc_del_sends_request():
    kernel = FakeKernel([ack()])
    QDiscHandle(Handle(kernel)).del_(IFINDEX).execute()
    sent = kernel.requests[0]
    assert sent.kind is MessageKind.DEL_QUEUE_DISCIPLINE
    assert sent.flags == NetlinkFlags.REQUEST | NetlinkFlags.ACK
    assert sent.payload.header.index == IFINDEX


def test_qdisc_del_error():
    kernel = FakeKernel([error(-2)])
    with pytest.raises(NetlinkError) as info:
        QDiscHandle(Handle(kernel)).del_(IFINDEX).execute()
    assert info.value.code == -2


def test_qdisc_add_error():
    kernel = FakeKernel([error(-17)])
    with pytest.raises(NetlinkError) as info:
        QDiscHandle(Handle(kernel)).add(IFINDEX).ingress().execute()
    assert info.value.code == -17