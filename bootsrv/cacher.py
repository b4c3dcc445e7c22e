"""Hardware and discovery for the cacher (legacy) data model."""

from __future__ import annotations

import ipaddress
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional, Union

from .mac import ONES_MAC, ZERO_MAC, MACAddr
from .models import (
    IP,
    Instance,
    IPAddress,
    Manufacturer,
    OperatingSystem,
    Port,
    ServicesVersion,
    _bool,
    _int,
    _manufacturer,
    _mapping,
    _str,
    _str_list,
    _typed,
    management_private_ipv4,
    management_public_ipv4,
)
from .tinkerbell import DiscoveryTinkerbellV1

MacLike = Union[MACAddr, str, None]


def _mac_key(mac: object) -> str:
    return "" if mac is None else str(mac).lower()


@dataclass
class HardwareCacher:
    """A hardware record in the cacher data model."""

    id: str = ""
    name: str = ""
    state: str = ""
    bonding_mode: int = 0
    network_ports: list[Port] = field(default_factory=list)
    manufacturer: Manufacturer = field(default_factory=Manufacturer)
    plan_slug: str = ""
    plan_version_slug: str = ""
    arch: str = ""
    facility_code: str = ""
    ipmi: IP = field(default_factory=IP)
    ips: list[IP] = field(default_factory=list)
    preinstall_os: OperatingSystem = field(default_factory=OperatingSystem)
    private_subnets: list[str] = field(default_factory=list)
    uefi: bool = False
    allow_pxe: bool = False
    allow_workflow: bool = False
    services_version: ServicesVersion = field(default_factory=ServicesVersion)
    instance: Optional[Instance] = None
    provisioner_engine: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> HardwareCacher:
        data = _mapping(data, "hardware")
        services = _mapping(data.get("services"), "services")
        instance = data.get("instance")
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            state=_str(data, "state"),
            bonding_mode=_int(data, "bonding_mode"),
            network_ports=[Port.from_dict(p) for p in _typed(data, "network_ports", list, [])],
            manufacturer=_manufacturer(data.get("manufacturer")),
            plan_slug=_str(data, "plan_slug"),
            plan_version_slug=_str(data, "plan_version_slug"),
            arch=_str(data, "arch"),
            facility_code=_str(data, "facility_code"),
            ipmi=IP.from_dict(data.get("management")),
            ips=[IP.from_dict(ip) for ip in _typed(data, "ip_addresses", list, [])],
            preinstall_os=OperatingSystem.from_dict(
                data.get("preinstalled_operating_system_version")
            ),
            private_subnets=_str_list(data, "private_subnets"),
            uefi=_bool(data, "efi_boot"),
            allow_pxe=_bool(data, "allow_pxe"),
            allow_workflow=_bool(data, "allow_workflow"),
            services_version=ServicesVersion(osie=_str(services, "osie")),
            instance=None if instance is None else Instance.from_dict(instance),
            provisioner_engine=_str(data, "provisioner_engine"),
        )

    def management(self) -> tuple[Optional[IPAddress], Optional[IPAddress], Optional[IPAddress]]:
        """The BMC's address, netmask and gateway."""
        return self.ipmi.address, self.ipmi.netmask, self.ipmi.gateway

    def interfaces(self) -> list[Port]:
        """All ports except the BMC's."""
        return [port for port in self.network_ports if port.type != "ipmi"]

    def hardware_allow_pxe(self, mac: object) -> bool:
        return self.allow_pxe

    def hardware_allow_workflow(self, mac: object) -> bool:
        return self.allow_workflow

    def hardware_arch(self, mac: object) -> str:
        return self.arch

    def hardware_bonding_mode(self) -> int:
        return self.bonding_mode

    def hardware_facility_code(self) -> str:
        return self.facility_code

    def hardware_id(self) -> str:
        return self.id

    def hardware_ips(self) -> list[IP]:
        return self.ips

    def hardware_ipmi(self) -> IP:
        return self.ipmi

    def hardware_manufacturer(self) -> str:
        return self.manufacturer.slug

    def hardware_provisioner(self) -> str:
        return self.provisioner_engine

    def hardware_plan_slug(self) -> str:
        return self.plan_slug

    def hardware_plan_version_slug(self) -> str:
        return self.plan_version_slug

    def hardware_osie_version(self) -> str:
        return self.services_version.osie

    def hardware_state(self) -> str:
        return self.state

    def hardware_uefi(self, mac: object) -> bool:
        return self.uefi

    def osie_base_url(self, mac: object) -> str:
        return ""

    def kernel_path(self, mac: object) -> str:
        return ""

    def initrd_path(self, mac: object) -> str:
        return ""

    def operating_system(self) -> OperatingSystem:
        """The instance's operating system version, created empty if missing."""
        if self.instance is None:
            self.instance = Instance()
        if self.instance.osv is None:
            self.instance.osv = OperatingSystem()
        return self.instance.osv


@dataclass
class DiscoveryCacher:
    """A discovered cacher hardware record and the MAC it was found by.

    ``fallback_lease_time`` and ``fallback_dns_servers`` are handed out to
    every interface, as this data model carries neither.
    """

    hw: HardwareCacher = field(default_factory=HardwareCacher)
    mac: Optional[MACAddr] = None
    fallback_lease_time: timedelta = timedelta(0)
    fallback_dns_servers: list[ipaddress.IPv4Address] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> DiscoveryCacher:
        return cls(hw=HardwareCacher.from_dict(data))

    def hardware(self) -> HardwareCacher:
        return self.hw

    def dns_servers(self, mac: object) -> list[ipaddress.IPv4Address]:
        return list(self.fallback_dns_servers)

    def instance(self) -> Optional[Instance]:
        return self.hw.instance

    def lease_time(self, mac: object) -> timedelta:
        return self.fallback_lease_time

    def current_mac(self) -> MACAddr:
        """The MAC set on this discovery, else the primary data MAC."""
        if self.mac is None:
            return self.primary_data_mac()
        return self.mac

    def mac_type(self, mac: MacLike) -> str:
        key = _mac_key(mac)
        for port in self.hw.network_ports:
            if _mac_key(port.mac()) == key:
                return port.type
        return "NOTFOUND"

    def mac_is_type(self, mac: MacLike, port_type: str) -> bool:
        key = _mac_key(mac)
        for port in self.hw.network_ports:
            if _mac_key(port.mac()) == key:
                return port.type == port_type
        return False

    def mode(self) -> str:
        """Whether the MAC belongs to the instance, BMC, hardware or a new BMC."""
        if self.instance_ip(self.mac) is not None:
            return "instance"
        if self.management_ip(self.mac) is not None:
            return "management"
        if self.hardware_ip(self.mac) is not None:
            return "hardware"
        if self.discovered_ip(self.mac) is not None:
            return "discovered"
        return ""

    def get_ip(self, mac: MacLike) -> IP:
        """The address configuration for the interface with hardware address ``mac``."""
        for lookup in (self.instance_ip, self.management_ip, self.hardware_ip, self.discovered_ip):
            ip = lookup(mac)
            if ip is not None:
                return ip
        return IP()

    def get_mac(self, ip: object) -> MACAddr:
        return self.primary_data_mac()

    def instance_ip(self, mac: MacLike) -> Optional[IP]:
        """The address to offer the instance; the hardware's while (de)provisioning."""
        instance = self.instance()
        key = _mac_key(mac)
        if (
            instance is None
            or not instance.id
            or not self.mac_is_type(key, "data")
            or str(self.primary_data_mac()) != key
        ):
            return None
        ip = instance.find_ip(management_public_ipv4)
        if ip is not None:
            return ip
        ip = instance.find_ip(management_private_ipv4)
        if ip is not None:
            return ip
        if instance.state in ("provisioning", "deprovisioning"):
            return self._hardware_ip()
        return None

    def hardware_ip(self, mac: MacLike) -> Optional[IP]:
        """The address to offer the hardware when there is no instance."""
        key = _mac_key(mac)
        if not self.mac_is_type(key, "data"):
            return None
        if str(self.primary_data_mac()) != key:
            return None
        return self._hardware_ip()

    def _hardware_ip(self) -> Optional[IP]:
        return next(
            (ip for ip in self.hw.hardware_ips() if ip.family == 4 and not ip.public), None
        )

    def management_ip(self, mac: MacLike) -> Optional[IP]:
        """The BMC's address, if ``mac`` is an enrolled BMC."""
        if self.mac_is_type(mac, "ipmi") and self.hw.name:
            return self.hw.ipmi
        return None

    def discovered_ip(self, mac: MacLike) -> Optional[IP]:
        """The BMC's address, if ``mac`` is a newly discovered BMC."""
        if self.mac_is_type(mac, "ipmi") and not self.hw.name:
            return self.hw.ipmi
        return None

    def primary_data_mac(self) -> MACAddr:
        """The MAC of eth0, else the lowest data MAC, else the zero MAC."""
        mac = ONES_MAC
        for port in self.hw.network_ports:
            if port.type != "data":
                continue
            port_mac = port.data_mac or ZERO_MAC
            if port.name == "eth0":
                mac = port_mac
                break
            if _mac_key(port.mac()) < str(mac):
                mac = port_mac
        return ZERO_MAC if mac.is_ones() else mac

    def management_mac(self) -> MACAddr:
        """The MAC of the BMC interface, or the zero MAC."""
        for port in self.hw.network_ports:
            if port.type == "ipmi":
                return port.data_mac or ZERO_MAC
        return ZERO_MAC

    def hostname(self) -> str:
        mode = self.mode()
        if mode in ("discovered", "management", "hardware"):
            return self.hw.name
        if mode == "instance":
            if self.hw.state == "deprovisioning":
                return self.hw.name
            return self.instance().hostname
        raise ValueError(f"unknown mode: {mode}")

    def set_mac(self, mac: Optional[MACAddr]) -> None:
        self.mac = mac


def new_discovery(
    data: Union[bytes, str], data_model_version: Optional[str] = None
) -> Union[DiscoveryCacher, DiscoveryTinkerbellV1]:
    """Build a discovery from a JSON hardware document.

    The data model comes from ``data_model_version``, or from the
    ``DATA_MODEL_VERSION`` environment variable when it is None.
    """
    raw = data.encode() if isinstance(data, str) else bytes(data)
    if raw in (b"", b"{}"):
        raise ValueError("empty response from db")
    if data_model_version is None:
        data_model_version = os.environ.get("DATA_MODEL_VERSION", "")
    kinds = {"": DiscoveryCacher, "1": DiscoveryTinkerbellV1}
    kind = kinds.get(data_model_version)
    if kind is None:
        raise ValueError("unknown DATA_MODEL_VERSION")
    try:
        return kind.from_dict(json.loads(raw))
    except ValueError as exc:
        raise ValueError(f"unmarshal json for discovery: {exc}") from exc