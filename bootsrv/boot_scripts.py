"""iPXE boot scripts served to machines, chosen by operating system."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional

from .ipxe_script import Script

_log = logging.getLogger("bootsrv.job")

BootScript = Callable[[Any, Script], None]

_by_distro: dict[str, BootScript] = {}
_by_slug: dict[str, BootScript] = {}
_default_installer: Optional[BootScript] = None


def register_default_installer(builder: BootScript) -> None:
    """Set the builder used when no slug or distro builder matches."""
    global _default_installer
    if _default_installer is not None:
        raise ValueError("default installer already registered!")
    _default_installer = builder


def register_distro(name: str, builder: BootScript) -> None:
    if name in _by_distro:
        raise ValueError(f"distro {name!r} already registered!")
    _by_distro[name] = builder


def register_slug(name: str, builder: BootScript) -> None:
    if name in _by_slug:
        raise ValueError(f"slug {name!r} already registered!")
    _by_slug[name] = builder


def auto(job: Any, script: Script) -> None:
    """Hand the script to the builder for the job's operating system."""
    if job.instance is None:
        _log.info("no device to boot, providing an iPXE shell")
        shell(job, script)
        return
    os = job.hardware.operating_system()
    builder = _by_slug.get(os.slug) or _by_distro.get(os.distro) or _default_installer
    if builder is not None:
        builder(job, script)
        return
    _log.error("unsupported slug/distro slug=%s distro=%s", os.slug, os.distro)
    shell(job, script)


def shell(job: Any, script: Script) -> None:
    script.shell()


_SCRIPTS: dict[str, BootScript] = {"auto": auto, "shell": shell}


def render_boot_script(job: Any, name: str, public_fqdn: str, syslog_fqdn: str) -> bytes:
    """Build the named boot script for ``job``; LookupError if there is none."""
    builder = _SCRIPTS.get(name)
    if builder is None:
        _log.error("boot script not found script=%s", name)
        raise LookupError(f"boot script not found: {name}")
    script = Script()
    script.reset()
    script.set("iface", job.interface_name(0))
    script.or_("shell")
    script.set("tinkerbell", "http://" + public_fqdn)
    script.set("syslog_host", syslog_fqdn)
    script.set("ipxe_cloud_config", "packet")
    script.echo("Packet.net Baremetal - iPXE boot")
    builder(job, script)
    return bytes(script.to_bytes())