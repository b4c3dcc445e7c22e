"""Data models shared by the cacher and tinkerbell hardware descriptions."""

from __future__ import annotations

import ipaddress
import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .mac import MACAddr

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_SERVICES_VERSION_LINE = re.compile(r"^\s*#\s*services\s*=\s*({.*})\s*$", re.ASCII)

_ROOT_CRYPT_FIELD = "crypted_root_password"
_HASH_FIELD = "password_hash"


def _mapping(value: object, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{what}: expected an object, got {type(value).__name__}")
    return value


def _typed(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _str(data: Mapping[str, Any], key: str) -> str:
    return _typed(data, key, str, "")


def _bool(data: Mapping[str, Any], key: str) -> bool:
    return _typed(data, key, bool, False)


def _int(data: Mapping[str, Any], key: str) -> int:
    return _typed(data, key, int, 0)


def _str_list(data: Mapping[str, Any], key: str) -> list[str]:
    values = _typed(data, key, list, [])
    if not all(isinstance(v, str) for v in values):
        raise ValueError(f"{key}: expected a list of strings")
    return list(values)


def _ip(data: Mapping[str, Any], key: str) -> Optional[IPAddress]:
    text = _str(data, key)
    return ipaddress.ip_address(text) if text else None


def _mac(data: Mapping[str, Any], key: str) -> Optional[MACAddr]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a MAC address string")
    return MACAddr.parse(value)


def _mac_text(mac: object) -> str:
    return "" if mac is None else str(mac).lower()


def _ip_text(ip: object) -> str:
    return "" if ip is None else str(ip)


def _go_json(document: Mapping[str, Any]) -> str:
    text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    for char, escape in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026"),
                         ("\u2028", "\\u2028"), ("\u2029", "\\u2029")):
        text = text.replace(char, escape)
    return text


@dataclass
class OperatingSystem:
    slug: str = ""
    distro: str = ""
    version: str = ""
    image_tag: str = ""
    os_slug: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> OperatingSystem:
        data = _mapping(data, "operating system")
        return cls(
            slug=_str(data, "slug"),
            distro=_str(data, "distro"),
            version=_str(data, "version"),
            image_tag=_str(data, "image_tag"),
            os_slug=_str(data, "os_slug"),
        )


@dataclass
class IP:
    """An address assignment for a hardware interface."""

    address: Optional[IPAddress] = None
    netmask: Optional[IPAddress] = None
    gateway: Optional[IPAddress] = None
    family: int = 0
    public: bool = False
    management: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> IP:
        data = _mapping(data, "ip")
        return cls(
            address=_ip(data, "address"),
            netmask=_ip(data, "netmask"),
            gateway=_ip(data, "gateway"),
            family=_int(data, "address_family"),
            public=_bool(data, "public"),
            management=_bool(data, "management"),
        )


@dataclass
class Port:
    """A network port of a piece of hardware."""

    id: str = ""
    type: str = ""
    name: str = ""
    data_mac: Optional[MACAddr] = None
    bond: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Port:
        data = _mapping(data, "port")
        port_data = _mapping(data.get("data"), "port data")
        return cls(
            id=_str(data, "id"),
            type=_str(data, "type"),
            name=_str(data, "name"),
            data_mac=_mac(port_data, "mac"),
            bond=_str(port_data, "bond"),
        )

    def mac(self) -> Optional[MACAddr]:
        """The port's hardware address, or None if unset or all zeros."""
        if self.data_mac is not None and not self.data_mac.is_zero():
            return self.data_mac
        return None


@dataclass
class ServicesVersion:
    osie: str = ""


@dataclass
class Instance:
    """An instance (device) as described by the API."""

    id: str = ""
    state: str = ""
    hostname: str = ""
    allow_pxe: bool = False
    rescue: bool = False
    os: Optional[OperatingSystem] = None
    osv: Optional[OperatingSystem] = None
    always_pxe: bool = False
    ipxe_script_url: str = ""
    ips: list[IP] = field(default_factory=list)
    userdata: str = ""
    crypted_root_password: str = ""
    password_hash: str = ""
    tags: list[str] = field(default_factory=list)
    ssh_keys: list[str] = field(default_factory=list)
    network_ready: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Instance:
        data = _mapping(data, "instance")
        os_data = data.get("operating_system")
        osv_data = data.get("operating_system_version")
        return cls(
            id=_str(data, "id"),
            state=_str(data, "state"),
            hostname=_str(data, "hostname"),
            allow_pxe=_bool(data, "allow_pxe"),
            rescue=_bool(data, "rescue"),
            os=None if os_data is None else OperatingSystem.from_dict(os_data),
            osv=None if osv_data is None else OperatingSystem.from_dict(osv_data),
            always_pxe=_bool(data, "always_pxe"),
            ipxe_script_url=_str(data, "ipxe_script_url"),
            ips=[IP.from_dict(ip) for ip in _typed(data, "ip_addresses", list, [])],
            userdata=_str(data, "userdata"),
            crypted_root_password=_str(data, _ROOT_CRYPT_FIELD),
            password_hash=_str(data, _HASH_FIELD),
            tags=_str_list(data, "tags"),
            ssh_keys=_str_list(data, "ssh_keys"),
            network_ready=_bool(data, "network_ready"),
        )

    def find_ip(self, pred: Callable[[IP], bool]) -> Optional[IP]:
        """Return the first address matching ``pred``."""
        return next((ip for ip in self.ips if pred(ip)), None)

    def services_version(self) -> ServicesVersion:
        """Service versions from a ``# services={...}`` line in the userdata."""
        for line in self.userdata.split("\n"):
            match = _SERVICES_VERSION_LINE.match(line.removesuffix("\r"))
            if match is None:
                continue
            try:
                document = json.loads(match.group(1))
                return ServicesVersion(osie=_str(_mapping(document, "services"), "osie"))
            except ValueError:
                return ServicesVersion()
        return ServicesVersion()


def management_public_ipv4(ip: IP) -> bool:
    return ip.public and ip.management and ip.family == 4


def management_private_ipv4(ip: IP) -> bool:
    return not ip.public and ip.management and ip.family == 4


@dataclass
class Event:
    type: str = ""
    body: str = ""
    private: bool = False

    def to_json(self) -> str:
        document: dict[str, Any] = {"type": self.type}
        if self.body:
            document["body"] = self.body
        document["private"] = self.private
        return _go_json(document)


@dataclass
class Manufacturer:
    id: str = ""
    slug: str = ""


@dataclass
class DHCP:
    mac: Optional[MACAddr] = None
    ip: IP = field(default_factory=IP)
    hostname: str = ""
    lease_time: int = 0
    name_servers: list[str] = field(default_factory=list)
    time_servers: list[str] = field(default_factory=list)
    arch: str = ""
    uefi: bool = False
    iface_name: str = ""


@dataclass
class OSIE:
    base_url: str = ""
    kernel: str = ""
    initrd: str = ""


@dataclass
class Netboot:
    allow_pxe: bool = False
    allow_workflow: bool = False
    ipxe_url: str = ""
    ipxe_contents: str = ""
    osie: OSIE = field(default_factory=OSIE)


def _manufacturer(data: object) -> Manufacturer:
    data = _mapping(data, "manufacturer")
    return Manufacturer(id=_str(data, "id"), slug=_str(data, "slug"))


def _dhcp(data: object) -> DHCP:
    data = _mapping(data, "dhcp")
    return DHCP(
        mac=_mac(data, "mac"),
        ip=IP.from_dict(data.get("ip")),
        hostname=_str(data, "hostname"),
        lease_time=_int(data, "lease_time"),
        name_servers=_str_list(data, "name_servers"),
        time_servers=_str_list(data, "time_servers"),
        arch=_str(data, "arch"),
        uefi=_bool(data, "uefi"),
        iface_name=_str(data, "iface_name"),
    )


def _netboot(data: object) -> Netboot:
    data = _mapping(data, "netboot")
    ipxe = _mapping(data.get("ipxe"), "ipxe")
    osie = _mapping(data.get("osie"), "osie")
    return Netboot(
        allow_pxe=_bool(data, "allow_pxe"),
        allow_workflow=_bool(data, "allow_workflow"),
        ipxe_url=_str(ipxe, "url"),
        ipxe_contents=_str(ipxe, "contents"),
        osie=OSIE(
            base_url=_str(osie, "base_url"),
            kernel=_str(osie, "kernel"),
            initrd=_str(osie, "initrd"),
        ),
    )


@dataclass
class NetworkInterface:
    dhcp: DHCP = field(default_factory=DHCP)
    netboot: Netboot = field(default_factory=Netboot)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> NetworkInterface:
        data = _mapping(data, "interface")
        return cls(dhcp=_dhcp(data.get("dhcp")), netboot=_netboot(data.get("netboot")))


@dataclass
class Network:
    interfaces: list[NetworkInterface] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Network:
        data = _mapping(data, "network")
        return cls(
            interfaces=[
                NetworkInterface.from_dict(i) for i in _typed(data, "interfaces", list, [])
            ]
        )

    def interface_by_mac(self, mac: object) -> NetworkInterface:
        """The interface with hardware address ``mac``, or an empty one."""
        target = _mac_text(mac)
        for interface in self.interfaces:
            if _mac_text(interface.dhcp.mac) == target:
                return interface
        return NetworkInterface()

    def interface_by_ip(self, ip: object) -> NetworkInterface:
        """The interface assigned address ``ip``, or an empty one."""
        target = _ip_text(ip)
        for interface in self.interfaces:
            if _ip_text(interface.dhcp.ip.address) == target:
                return interface
        return NetworkInterface()


@dataclass
class Facility:
    plan_slug: str = ""
    plan_version_slug: str = ""
    facility_code: str = ""


@dataclass
class Metadata:
    state: str = ""
    bonding_mode: int = 0
    manufacturer: Manufacturer = field(default_factory=Manufacturer)
    instance: Optional[Instance] = None
    preinstalled_os: OperatingSystem = field(default_factory=OperatingSystem)
    private_subnets: list[str] = field(default_factory=list)
    facility: Facility = field(default_factory=Facility)
    provisioner_engine: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Metadata:
        data = _mapping(data, "metadata")
        custom = _mapping(data.get("custom"), "custom")
        facility = _mapping(data.get("facility"), "facility")
        instance = data.get("instance")
        return cls(
            state=_str(data, "state"),
            bonding_mode=_int(data, "bonding_mode"),
            manufacturer=_manufacturer(data.get("manufacturer")),
            instance=None if instance is None else Instance.from_dict(instance),
            preinstalled_os=OperatingSystem.from_dict(
                custom.get("preinstalled_operating_system_version")
            ),
            private_subnets=_str_list(custom, "private_subnets"),
            facility=Facility(
                plan_slug=_str(facility, "plan_slug"),
                plan_version_slug=_str(facility, "plan_version_slug"),
                facility_code=_str(facility, "facility_code"),
            ),
            provisioner_engine=_str(data, "provisioner_engine"),
        )