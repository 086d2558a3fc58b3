# rtnlkit

rtnlkit builds rtnetlink requests for these objects:

- routes
- routing policy rules
- neighbour entries
- traffic control: qdiscs, classes, filters and chains

You send the requests through a `Handle`. A request is a Python object that you
set up by chaining method calls, then send with `execute()`.

- **Add, change and delete requests** read every reply. If a reply is an error
  message with a non-zero code, they raise `NetlinkError`.
- **Get requests** return a generator of the reply payloads. The request is
  sent when you start iterating. Iteration stops at the `DONE` message.

## What this package does not do

rtnlkit does not open a netlink socket. It also does not encode messages to
the kernel's binary format or decode them from it. Both are left to a
*transport* that you supply.

## The handle and the transport

A transport is a callable. It takes an `rtnlkit.core.NetlinkMessage` and
returns an iterable of reply `NetlinkMessage` objects.

`Handle.request` does three things:

1. It stamps each request with an increasing sequence number.
2. It calls the transport.
3. If the transport raises an `OSError`, it wraps that error in `RtnlError`.

The example below uses a fake transport. It records each request and answers
with an acknowledgement:

```python
from rtnlkit.core import ErrorPayload, Handle, MessageKind, NetlinkMessage

sent = []

def transport(message):
    sent.append(message)
    return [NetlinkMessage(MessageKind.ERROR, ErrorPayload(code=0))]

handle = Handle(transport)
```

An `ErrorPayload` with code 0 is an acknowledgement. A negative code is an
error number, for example `-17` for "File exists".

## Routes (`rtnlkit.route`)

`RouteMessageBuilder` builds a `RouteMessage`. Its header starts with these
values:

- table: main (254)
- protocol: `RouteProtocol.STATIC`
- scope: `RouteScope.UNIVERSE`
- type: `RouteType.UNICAST`

You can set the address family in two ways:

- Call `RouteMessageBuilder.v4()` or `RouteMessageBuilder.v6()` to fix the
  family up front.
- Use a plain `RouteMessageBuilder()`. It takes the family from the first
  address you give it.

The builder raises `InvalidRouteMessage`, a `ValueError`, in these cases:

- an address does not match the family
- a prefix length is outside 0–32 for IPv4 or 0–128 for IPv6
- the family is neither IPv4 nor IPv6

```python
from rtnlkit.route import RouteHandle, RouteMessageBuilder

route = (
    RouteMessageBuilder.v4()
    .destination_prefix("10.0.0.0", 24)
    .gateway("192.0.2.1")
    .output_interface(2)
    .priority(100)
    .build()
)
routes = RouteHandle(handle)
routes.add(route).replace().execute()
routes.del_(route).execute()
for message in routes.get(RouteMessageBuilder.v4().build()).execute():
    print(message.header, message.attributes)
```

`table_id(n)` sets the routing table:

- An ID of 255 or less is written into the header.
- A larger ID is added as a `TABLE` attribute.

The builder has more setters: `input_interface`, `pref_source`,
`source_prefix`, `protocol`, `scope` and `kind`.

## Rules (`rtnlkit.rule`)

```python
from rtnlkit.core import IpVersion
from rtnlkit.rule import RuleAction, RuleHandle

rules = RuleHandle(handle)
(
    rules.add()
    .v4()
    .source_prefix("10.1.0.0", 16)
    .table_id(100)
    .priority(1000)
    .fw_mark(7)
    .action(RuleAction.TO_TABLE)
    .execute()
)
ipv4_rules = list(rules.get(IpVersion.V4).execute())
```

Setting up a rule works as follows:

- `source_prefix` and `destination_prefix` need a family first, set with
  `v4()` or `v6()`. They raise `ValueError` if no family is set, or if the
  address does not match it.
- `table()` still works, but it issues a `DeprecationWarning`. Use `table_id()`
  instead.
- The other setters are `input_interface`, `output_interface` and `tos`.
- `replace()` replaces a matching rule instead of failing.

## Neighbours (`rtnlkit.neighbour`)

```python
from rtnlkit.neighbour import NeighbourHandle, NeighbourState

neighbours = NeighbourHandle(handle)
(
    neighbours.add(2, "192.0.2.10")
    .link_local_address(bytes.fromhex("020000000001"))
    .state(NeighbourState.REACHABLE)
    .execute()
)
proxies = list(neighbours.get().proxies().execute())
```

These requests create and list entries:

- `add(index, destination)` creates a permanent entry. Its family is taken
  from the address.
- `add_bridge(index, lla)` creates a bridge forwarding-database entry.
- `get().set_family(IpVersion.V6)` limits a dump to one family.

On an add request, `destination` and `link_local_address` replace an attribute
of the same kind if one is already set.

## Traffic control (`rtnlkit.tc`, `rtnlkit.tc_query`)

`rtnlkit.tc_query` holds the entry points:

- `QDiscHandle`
- `TrafficClassHandle`
- `TrafficFilterHandle`
- `TrafficChainHandle`

`rtnlkit.tc` holds the message types and the creation requests.

```python
from rtnlkit.tc_query import QDiscHandle, TrafficFilterHandle

QDiscHandle(handle).add(3).ingress().execute()
(
    TrafficFilterHandle(handle, 3)
    .add()
    .parent(0xFFFF0000)
    .protocol(0x0003)
    .redirect(4)
    .execute()
)
```

`QDiscHandle` has one method per kind of request:

| Method | Netlink flags | Behaviour |
| --- | --- | --- |
| `add` | `EXCL \| CREATE` | Creates a qdisc; fails if it exists |
| `change` | none | Changes a qdisc in place |
| `replace` | `CREATE \| REPLACE` | Replaces a matching qdisc, or creates it |
| `link` | `REPLACE` | Replaces a qdisc that must already exist |
| `del_` | — | Deletes the qdisc |

`TrafficFilterHandle` has the methods `add`, `change` and `replace`.

On a filter request:

- `u32(options)` makes the filter a u32 filter with the given options. It
  raises `InvalidNlaError` if the filter kind is already set.
- `redirect(dst_index)` adds a u32 filter with a mirred egress-redirect
  action. Call `parent` and `protocol` before it.
- `priority` and `protocol` both write to the header's `info` field. The
  priority goes in the upper half and the protocol in the lower half.

`TcHandle` holds a 16-bit major and a 16-bit minor number:

- `TcHandle.from_u32` builds one from a 32-bit value.
- `to_u32` converts it back to a 32-bit value.

## Errors

Errors raised while sending requests derive from `rtnlkit.core.RtnlError`:

- `NetlinkError` carries the `code` the kernel returned.
- `UnexpectedMessageError` is raised when a dump gets a reply of the wrong
  kind.
- `InvalidNlaError` is raised when an attribute cannot be added.

The route builder's `InvalidRouteMessage` is a `ValueError`, not an
`RtnlError`.