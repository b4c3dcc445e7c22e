"""Hardware and discovery for the tinkerbell (version 1) data model."""

from __future__ import annotations

import ipaddress
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from .mac import ONES_MAC, MACAddr
from .models import IP, Instance, Metadata, Network, OperatingSystem, Port, _mapping


@dataclass
class HardwareTinkerbellV1:
    """A hardware record in the tinkerbell data model."""

    id: str = ""
    network: Network = field(default_factory=Network)
    metadata: Metadata = field(default_factory=Metadata)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> HardwareTinkerbellV1:
        data = _mapping(data, "hardware")
        hardware_id = data.get("id") or ""
        if not isinstance(hardware_id, str):
            raise ValueError("id: expected str")
        return cls(
            id=hardware_id,
            network=Network.from_dict(data.get("network")),
            metadata=Metadata.from_dict(data.get("metadata")),
        )

    def hardware_allow_pxe(self, mac: object) -> bool:
        return self.network.interface_by_mac(mac).netboot.allow_pxe

    def hardware_allow_workflow(self, mac: object) -> bool:
        return self.network.interface_by_mac(mac).netboot.allow_workflow

    def hardware_arch(self, mac: object) -> str:
        return self.network.interface_by_mac(mac).dhcp.arch

    def hardware_bonding_mode(self) -> int:
        return self.metadata.bonding_mode

    def hardware_facility_code(self) -> str:
        return self.metadata.facility.facility_code

    def hardware_id(self) -> str:
        return self.id

    def hardware_ips(self) -> list[IP]:
        return []

    def hardware_provisioner(self) -> str:
        return self.metadata.provisioner_engine

    def hardware_manufacturer(self) -> str:
        return self.metadata.manufacturer.slug

    def hardware_plan_slug(self) -> str:
        return self.metadata.facility.plan_slug

    def hardware_plan_version_slug(self) -> str:
        return self.metadata.facility.plan_version_slug

    def hardware_state(self) -> str:
        return self.metadata.state

    def hardware_osie_version(self) -> str:
        return ""

    def hardware_uefi(self, mac: object) -> bool:
        return self.network.interface_by_mac(mac).dhcp.uefi

    def interfaces(self) -> list[Port]:
        return []

    def osie_base_url(self, mac: object) -> str:
        return self.network.interface_by_mac(mac).netboot.osie.base_url

    def kernel_path(self, mac: object) -> str:
        return self.network.interface_by_mac(mac).netboot.osie.kernel

    def initrd_path(self, mac: object) -> str:
        return self.network.interface_by_mac(mac).netboot.osie.initrd

    def operating_system(self) -> OperatingSystem:
        """The instance's operating system, created empty if missing."""
        if self.metadata.instance is None:
            self.metadata.instance = Instance()
        instance = self.metadata.instance
        if instance.os is None:
            instance.os = OperatingSystem()
        return instance.os


@dataclass
class DiscoveryTinkerbellV1:
    """A discovered tinkerbell hardware record and the MAC it was found by.

    ``fallback_lease_time`` and ``fallback_dns_servers`` are used when an
    interface does not specify its own.
    """

    hw: HardwareTinkerbellV1 = field(default_factory=HardwareTinkerbellV1)
    mac: Optional[MACAddr] = None
    fallback_lease_time: timedelta = timedelta(0)
    fallback_dns_servers: list[ipaddress.IPv4Address] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> DiscoveryTinkerbellV1:
        return cls(hw=HardwareTinkerbellV1.from_dict(data))

    def lease_time(self, mac: object) -> timedelta:
        seconds = self.hw.network.interface_by_mac(mac).dhcp.lease_time
        if seconds == 0:
            return self.fallback_lease_time
        return timedelta(seconds=seconds)

    def hardware(self) -> HardwareTinkerbellV1:
        return self.hw

    def dns_servers(self, mac: object) -> list[ipaddress.IPv4Address]:
        names = self.hw.network.interface_by_mac(mac).dhcp.name_servers
        if not names:
            return list(self.fallback_dns_servers)
        servers = []
        for entry in ",".join(names).split(","):
            try:
                servers.append(ipaddress.IPv4Address(entry.strip()))
            except ValueError:
                continue
        return servers

    def instance(self) -> Optional[Instance]:
        return self.hw.metadata.instance

    def current_mac(self) -> Optional[MACAddr]:
        return self.mac

    def mode(self) -> str:
        return "hardware"

    def get_ip(self, mac: object) -> IP:
        return self.hw.network.interface_by_mac(mac).dhcp.ip

    def get_mac(self, ip: object) -> Optional[MACAddr]:
        return self.hw.network.interface_by_ip(ip).dhcp.mac

    def primary_data_mac(self) -> MACAddr:
        return ONES_MAC

    def hostname(self) -> str:
        instance = self.instance()
        return "" if instance is None else instance.hostname

    def set_mac(self, mac: Optional[MACAddr]) -> None:
        self.mac = mac