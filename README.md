# bootsrv

Building blocks for a bare-metal network boot service: the pieces that
decide what a PXE-booting machine is sent, build its iPXE boot script,
hand it an iPXE binary over TFTP and collect its syslog output.

## What is inside

- `bootsrv.ipxe_script` – `Script`, a chainable builder for iPXE scripts
  (`set`, `echo`, `kernel`, `initrd`, `chain`, `dhcp`, `boot`, `shell`,
  `sleep`, `phone_home`, `or_`, `args`, …), plus constants for the iPXE
  settings such as `UUID` and `BOARD_SERIAL`.
- `bootsrv.ipxe_options` – the iPXE encapsulated DHCP options (option 175):
  `parse_options`, `serialize_options`, `format_options`,
  `get_encapsulated_options`, `has_feature`, `is_ipxe`, `is_packet_ipxe`
  and `setup`, which fills a reply's option map.
- `bootsrv.syslog_message` – `Message`, a parser for RFC 5424 and legacy
  BSD syslog datagrams, with the `Facility` and `Severity` enums.
- `bootsrv.syslog_receiver` – `Receiver`, a UDP listener that parses
  incoming syslog messages on worker threads and writes them to the
  `bootsrv.syslog` logger.
- `bootsrv.mac` – `MACAddr`, a 48-bit hardware address value, with
  `ZERO_MAC` and `ONES_MAC`.
- `bootsrv.api_errors` – `HTTPError`, built from an API error body with
  `HTTPError.from_body`, and `is_not_exist`.
- `bootsrv.models` – dataclasses for instances, addresses, ports,
  operating systems and network interfaces, each with `from_dict`.
- `bootsrv.cacher`, `bootsrv.tinkerbell` – hardware and discovery records
  for the two supported data models, and `new_discovery` to build one from
  a JSON document (the model is chosen by argument or by the
  `DATA_MODEL_VERSION` environment variable).
- `bootsrv.tftp` – `open_transfer` and `Transfer` for serving file content
  to a TFTP client; the caller supplies the files as a name-to-bytes map.
- `bootsrv.metrics` – `Counter`, `Gauge`, `Histogram`, labelled
  `MetricVec` families, `linear_buckets`, a `timer` context manager and
  `Metrics`, which holds the service's metric families.
- `bootsrv.modes` – the `Mode` enum and `modes_from_query`.
- `bootsrv.rsa_keys` – `KeyPair` and the process-wide key used to decrypt
  passwords sent back by machines (`init_rsa`, `decrypt_password`,
  `serve_public_key`).
- `bootsrv.boot_scripts` – boot-script selection: `register_slug`,
  `register_distro`, `register_default_installer` and
  `render_boot_script`.

## Examples

Building an iPXE script:

```python
from bootsrv.ipxe_script import Script

script = Script()
script.set("iface", "eth0").or_("shell")
script.kernel("http://boot.example.com/vmlinuz", "console=ttyS0")
script.initrd("http://boot.example.com/initramfs")
script.boot()

print(script.to_bytes().decode())
```

Parsing a syslog datagram:

```python
from bootsrv.syslog_message import Message

message = Message(b"<34>1 2021-03-01T12:00:00Z host app 42 ID47 - booting")
if message.parse():
    print(message.facility(), message.severity())  # auth CRIT
```

Receiving syslog over UDP:

```python
import logging
from bootsrv.syslog_receiver import Receiver

logging.basicConfig(level=logging.DEBUG)
with Receiver.start("127.0.0.1:5514", parsers=2) as receiver:
    receiver.wait(10)
```

Working with hardware addresses:

```python
from bootsrv.mac import MACAddr

mac = MACAddr.parse("02:00:00:00:00:01")
print(mac.is_zero(), mac.is_ones())
```

Registering a boot script for an operating system distribution:

```python
from bootsrv.boot_scripts import register_distro

def install_example(job, script):
    script.kernel("http://boot.example.com/example/vmlinuz")
    script.initrd("http://boot.example.com/example/initrd")
    script.boot()

register_distro("example", install_example)
```

`render_boot_script` expects a job object with `instance`, `hardware`
(offering `operating_system()`) and `interface_name(index)`; a
`DiscoveryCacher` or `DiscoveryTinkerbellV1` record supplies the hardware
side.

## What it does not do

This package has no command to run and no servers other than the syslog
receiver. It does not answer DHCP requests, serve HTTP or TFTP on the
network, or talk to a provisioning API; it carries no iPXE binaries of its
own. Those parts are left to the application that uses these building
blocks.

## Requirements

Python 3.10 or later, with `cryptography`.