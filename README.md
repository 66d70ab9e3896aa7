# gont

Building blocks for describing and inspecting emulated network topologies
made of Linux network namespaces.

## Modules

- **`gont.names`** – `NAMES` is a list of networking pioneers;
  `get_random_name()` picks one of them at random.
- **`gont.addresses`** – interface addresses and routes:
  `address_ip("10.0.0.1/24")` and `address_ipv4(10, 0, 0, 1, 24)` return
  `ipaddress` interface objects; `route_net(network, gw)`,
  `default_gateway_ip("fc::1:1")` and `default_gateway_ipv4(10, 0, 1, 1)`
  return a `Route` (`dst`, `gw`). `customize(opts, *extra)` returns a new
  list with the base options followed by the extra ones.
- **`gont.filters`** – nftables expressions (`Meta`, `Cmp`, `Payload`,
  `Range`, `Verdict`) grouped into statements: interface name, index and
  group matches (`input_interface_name`, `output_interface_group`, …),
  `protocol`, `transport_protocol`, address ranges (`source`, `destination`,
  `source_ip`, `destination_ip`, `source_ipv4`, `destination_ipv4`), ports and
  port ranges (`source_port`, `destination_port_range`, …) and the `DROP`
  verdict. `filter_rule(hook, *statements)` joins them into a `FilterRule`.
- **`gont.qdisc`** – traffic-control settings. `with_netem(...)` builds
  `Netem` attributes from `Latency`, `Jitter` (both `timedelta`, stored in
  microseconds), `Gap`, `Loss`, `Reordering`, `Duplicate`, `Corruption` and
  `LimitNetem`; `with_tbf(...)` builds `Tbf` attributes from `Rate`,
  `Buffer`, `PeakRate`, `MinBurst` and `LimitTbf`.
- **`gont.events`** – `Event` is a trace event with `to_dict`/`from_dict`,
  `to_json`, CBOR `marshal`/`unmarshal`, stream `write_to`/`read_from` and a
  human readable `fprint`. `Breakpoint`, `Variable` and `Stackframe` describe
  debugger state attached to an event; `Level` names log levels.
- **`gont.tracing`** – emits tracepoints from the running process
  (`print_message`, `printf`, `print_with_data`, `printf_with_data`).
  Events go to the callback set with `start_with_callback` and, after
  `start(bufsize)`, as CBOR to the existing file named by the
  `GONT_TRACEFILE` environment variable; `stop()` closes it and
  `traced(cb, bufsize)` wraps a call in `start`/`stop`. `log_handler()`
  returns a `TraceHandler`, a `logging.Handler` that turns log records into
  events.
- **`gont.tracer`** – `Tracer` collects events, orders them by time (holding
  them back for about a second) and delivers them to queues (`Channel`),
  callbacks (`Callback`), open files (`File`) and files by name
  (`Filename`), the latter two as JSON lines. It is a context manager;
  `pipe()` returns a writable pipe from which CBOR events are read.
- **`gont.teardown`** – lists networks and nodes kept under a state directory
  (`network_names`, `node_names`), picks an unused network name
  (`generate_network_name`) and removes networks and nodes
  (`teardown_all_networks`, `teardown_network`, `teardown_node`). Removing a
  node runs `umount` on its mounted namespace and deletes its entry under
  `/var/run/netns`, so it needs the matching privileges.
- **`gont.netfiles`** – writes the files mounted into nodes:
  `write_hosts_file` / `generate_hosts_file` from (host, interface, address)
  entries, `read_nsswitch_config`, `write_nsswitch_config`,
  `patch_nsswitch_config` (drops `resolve`, `mymachines` and `myhostname`
  from the `hosts` database) and `hide_nscd_socket`.

## Installation

```
pip install gont
```

## Example

```python
from gont import filters, tracing
from gont.tracer import Tracer, Callback

rule = filters.filter_rule(
    "input",
    filters.protocol(2),
    filters.transport_protocol(1),
    filters.source_ip("10.0.3.0/24"),
    filters.DROP,
)

events = []
with Tracer(Callback(events.append)):
    tracing.printf_with_data({"Hello": "World"}, "This is my first trace message: %s", "Hurra")

print(events[0].message)
```

## What the package does not do

The package describes topologies and manages their files; it does not build
them. It does not create network namespaces, virtual Ethernet links,
bridges, routers or NAT tables, does not install filter rules or queuing
disciplines in the kernel, does not capture packets and does not attach a
debugger. There is no command-line tool.

## Running the tests

```
pip install gont[test]
pytest
```