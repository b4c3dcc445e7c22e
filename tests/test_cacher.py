import json
from datetime import timedelta
from ipaddress import ip_address

import pytest

from bootsrv.cacher import DiscoveryCacher, HardwareCacher, new_discovery
from bootsrv.mac import ZERO_MAC, MACAddr
from bootsrv.models import IP, Instance, Port
from bootsrv.tinkerbell import DiscoveryTinkerbellV1

DATA_MAC = MACAddr.parse("02:00:00:00:00:01")
OTHER_MAC = MACAddr.parse("02:00:00:00:00:02")
IPMI_MAC = MACAddr.parse("02:00:00:00:00:0a")


def _ipmi_hardware(name):
    return HardwareCacher(
        name=name,
        network_ports=[Port(type="ipmi", data_mac=IPMI_MAC)],
        ipmi=IP(
            address=ip_address("192.168.0.2"),
            gateway=ip_address("192.168.0.1"),
            netmask=ip_address("192.168.0.255"),
        ),
    )


def _hardware_ip():
    return IP(address=ip_address("10.0.0.5"), family=4, public=False, management=True)


def _instance_discovery(instance_state="active", hardware_state="in_use", instance_ips=True):
    ips = [IP(address=ip_address("192.0.2.10"), family=4, public=True, management=True)]
    hw = HardwareCacher(
        id="hardware-id",
        name="hw-name",
        state=hardware_state,
        network_ports=[
            Port(type="data", name="eth0", data_mac=DATA_MAC),
            Port(type="ipmi", data_mac=IPMI_MAC),
        ],
        ips=[_hardware_ip()],
        instance=Instance(
            id="instance-id",
            hostname="instance-host",
            state=instance_state,
            ips=ips if instance_ips else [],
        ),
    )
    d = DiscoveryCacher(hw=hw)
    d.set_mac(DATA_MAC)
    return d


def test_management_mode_uses_ipmi_config():
    d = DiscoveryCacher(hw=_ipmi_hardware("TestSetupManagement"))
    d.set_mac(IPMI_MAC)
    assert d.mode() == "management"
    ip = d.get_ip(IPMI_MAC)
    assert ip.address == ip_address("192.168.0.2")
    assert ip.gateway == ip_address("192.168.0.1")
    assert ip.netmask == ip_address("192.168.0.255")
    assert d.hostname() == "TestSetupManagement"


def test_discovered_mode_without_name():
    d = DiscoveryCacher(hw=_ipmi_hardware(""))
    d.set_mac(IPMI_MAC)
    assert d.mode() == "discovered"
    assert d.discovered_ip(IPMI_MAC) is d.hw.ipmi
    assert d.management_ip(IPMI_MAC) is None
    assert d.hostname() == ""


def test_instance_mode():
    d = _instance_discovery()
    assert d.mode() == "instance"
    assert d.get_ip(DATA_MAC).address == ip_address("192.0.2.10")
    assert d.hostname() == "instance-host"


def test_instance_hostname_while_deprovisioning_is_hardware_name():
    d = _instance_discovery(hardware_state="deprovisioning")
    assert d.hostname() == "hw-name"


def test_instance_ip_falls_back_to_hardware_ip_while_provisioning():
    d = _instance_discovery(instance_state="provisioning", instance_ips=False)
    assert d.instance_ip(DATA_MAC) == _hardware_ip()


def test_instance_ip_none_when_active_without_addresses():
    d = _instance_discovery(instance_ips=False)
    assert d.instance_ip(DATA_MAC) is None
    assert d.mode() == "hardware"


def test_hardware_mode_without_instance():
    d = _instance_discovery()
    d.hw.instance = None
    assert d.mode() == "hardware"
    assert d.get_ip(str(DATA_MAC)) == _hardware_ip()
    assert d.hostname() == "hw-name"


def test_unknown_mac_has_no_mode():
    d = _instance_discovery()
    d.set_mac(OTHER_MAC)
    assert d.mode() == ""
    assert d.get_ip(OTHER_MAC) == IP()
    with pytest.raises(ValueError, match="unknown mode"):
        d.hostname()


def test_mac_type_and_is_type():
    d = _instance_discovery()
    assert d.mac_type(IPMI_MAC) == "ipmi"
    assert d.mac_type(OTHER_MAC) == "NOTFOUND"
    assert d.mac_is_type(str(DATA_MAC).upper(), "data")
    assert not d.mac_is_type(DATA_MAC, "ipmi")


def test_primary_data_mac_prefers_eth0():
    hw = HardwareCacher(
        network_ports=[
            Port(type="data", name="eth1", data_mac=DATA_MAC),
            Port(type="data", name="eth0", data_mac=OTHER_MAC),
        ]
    )
    assert DiscoveryCacher(hw=hw).primary_data_mac() == OTHER_MAC


def test_primary_data_mac_lowest_without_eth0():
    hw = HardwareCacher(
        network_ports=[
            Port(type="data", name="eth1", data_mac=OTHER_MAC),
            Port(type="data", name="eth2", data_mac=DATA_MAC),
            Port(type="ipmi", data_mac=ZERO_MAC),
        ]
    )
    assert DiscoveryCacher(hw=hw).primary_data_mac() == DATA_MAC


def test_primary_data_mac_zero_without_data_ports():
    d = DiscoveryCacher(hw=_ipmi_hardware("x"))
    assert d.primary_data_mac() == ZERO_MAC
    assert d.current_mac() == ZERO_MAC
    assert d.management_mac() == IPMI_MAC


def test_current_mac_prefers_set_mac():
    d = _instance_discovery()
    d.set_mac(OTHER_MAC)
    assert d.current_mac() == OTHER_MAC
    d.set_mac(None)
    assert d.current_mac() == DATA_MAC
    assert d.get_mac(ip_address("192.0.2.10")) == DATA_MAC


def test_interfaces_skip_ipmi():
    d = _instance_discovery()
    assert [p.type for p in d.hardware().interfaces()] == ["data"]


def test_operating_system_created_when_missing():
    hw = HardwareCacher()
    os_ = hw.operating_system()
    assert hw.instance is not None
    assert hw.instance.osv is os_
    assert hw.operating_system() is os_


def test_fallbacks_are_returned():
    d = DiscoveryCacher(
        fallback_lease_time=timedelta(hours=2),
        fallback_dns_servers=[ip_address("192.0.2.53")],
    )
    assert d.lease_time(DATA_MAC) == timedelta(hours=2)
    assert d.dns_servers(DATA_MAC) == [ip_address("192.0.2.53")]


def test_from_dict_reads_json_keys():
    hw = HardwareCacher.from_dict(
        {
            "id": "hw-1",
            "name": "node",
            "state": "in_use",
            "efi_boot": True,
            "allow_pxe": True,
            "allow_workflow": True,
            "arch": "x86_64",
            "plan_slug": "plan",
            "plan_version_slug": "plan-v",
            "facility_code": "fac",
            "bonding_mode": 4,
            "management": {"address": "192.0.2.2", "netmask": "255.255.255.0"},
            "network_ports": [{"type": "data", "name": "eth0", "data": {"mac": str(DATA_MAC)}}],
            "services": {"osie": "osie-v"},
            "manufacturer": {"slug": "maker"},
            "provisioner_engine": "tinkerbell",
        }
    )
    assert hw.hardware_id() == "hw-1"
    assert hw.hardware_state() == "in_use"
    assert hw.hardware_uefi(DATA_MAC) is True
    assert hw.hardware_allow_pxe(DATA_MAC) is True
    assert hw.hardware_allow_workflow(DATA_MAC) is True
    assert hw.hardware_arch(DATA_MAC) == "x86_64"
    assert hw.hardware_plan_slug() == "plan"
    assert hw.hardware_plan_version_slug() == "plan-v"
    assert hw.hardware_facility_code() == "fac"
    assert hw.hardware_bonding_mode() == 4
    assert hw.hardware_osie_version() == "osie-v"
    assert hw.hardware_manufacturer() == "maker"
    assert hw.hardware_provisioner() == "tinkerbell"
    assert hw.hardware_ipmi().address == ip_address("192.0.2.2")
    assert hw.management()[1] == ip_address("255.255.255.0")
    assert hw.network_ports[0].mac() == DATA_MAC
    assert (hw.osie_base_url(DATA_MAC), hw.kernel_path(DATA_MAC), hw.initrd_path(DATA_MAC)) == ("", "", "")


def test_new_discovery_cacher():
    d = new_discovery(json.dumps({"id": "hw-id"}), "")
    assert isinstance(d, DiscoveryCacher)
    assert d.hardware().hardware_id() == "hw-id"


def test_new_discovery_tinkerbell():
    d = new_discovery(json.dumps({"id": "hw-id"}).encode(), "1")
    assert isinstance(d, DiscoveryTinkerbellV1)
    assert d.hardware().hardware_id() == "hw-id"


def test_new_discovery_uses_environment(monkeypatch):
    monkeypatch.setenv("DATA_MODEL_VERSION", "1")
    d = new_discovery(b'{"id":"a"}')
    assert isinstance(d, DiscoveryTinkerbellV1)
    assert d.hardware().hardware_id() == "a"
    assert d.mode() == "hardware"


@pytest.mark.parametrize("body", [b"", b"{}", ""])
def test_new_discovery_empty(body):
    with pytest.raises(ValueError, match="empty response from db"):
        new_discovery(body, "")


def test_new_discovery_unknown_version():
    with pytest.raises(ValueError, match="unknown DATA_MODEL_VERSION"):
        new_discovery(b'{"id":"a"}', "2")


def test_new_discovery_bad_json():
    with pytest.raises(ValueError, match="unmarshal json for discovery"):
        new_discovery(b"{", "")