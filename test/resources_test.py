import pytest

from azure_lb_sample.model import ResourceIds, ResourceKind, resource_name
from azure_lb_sample.resources import (
    FrontendSpec,
    HttpLoadBalancingRule,
    HttpsLoadBalancingRule,
    NetworkInterfaceSpec,
    PublicIpSpec,
    VirtualMachineSpec,
    VirtualNetworkSpec,
    default_vm_payload,
    internet_facing_load_balancer,
    with_idle_timeout,
)

ids = ResourceIds("sub", "rg1")


def test_resource_ids() -> None:
    assert ids.resource_group_id == "/subscriptions/sub/resourceGroups/rg1"
    assert ids.of(ResourceKind.load_balancer, "lb") == (
        "/subscriptions/sub/resourceGroups/rg1/providers/Microsoft.Network/loadBalancers/lb"
    )
    assert ids.subnet("vnet", "Front-end").endswith("/virtualNetworks/vnet/subnets/Front-end")
    assert ids.inbound_nat_rule("lb", "nat").endswith("/loadBalancers/lb/inboundNatRules/nat")
    assert ResourceIds("sub", "rg2").of(ResourceKind.availability_set, "av") == (
        "/subscriptions/sub/resourceGroups/rg2/providers/Microsoft.Compute/availabilitySets/av"
    )
    assert resource_name(ids.backend_pool("lb", "pool")) == "pool"


def test_virtual_network() -> None:
    js = VirtualNetworkSpec("vnet").payload("eastus", ids)
    assert js["address_space"] == {"address_prefixes": ["172.16.0.0/16"]}
    assert js["subnets"] == [
        {"name": "Front-end", "address_prefix": "172.16.1.0/24"},
        {"name": "Back-end", "address_prefix": "172.16.3.0/24"},
    ]


def test_public_ip() -> None:
    js = PublicIpSpec("pip1-LB", dns_label="pip1-LB").payload("eastus", ids)
    assert js["sku"] == {"name": "Standard"}
    assert js["public_ip_allocation_method"] == "Static"
    assert js["dns_settings"] == {"domain_name_label": "pip1-lb"}
    assert "dns_settings" not in PublicIpSpec("ip").payload("eastus", ids)


def test_frontend() -> None:
    public = FrontendSpec("fe", public_ip="ip").payload(ids)
    assert public["public_ip_address"]["id"].endswith("/publicIPAddresses/ip")
    internal = FrontendSpec("fe", network="vnet", subnet="Front-end").payload(ids)
    assert internal["subnet"]["id"] == ids.subnet("vnet", "Front-end")
    assert internal["private_ip_allocation_method"] == "Dynamic"
    with pytest.raises(ValueError):
        FrontendSpec("fe")
    with pytest.raises(ValueError):
        FrontendSpec("fe", public_ip="ip", network="vnet", subnet="Front-end")


def test_load_balancer() -> None:
    spec = internet_facing_load_balancer("lb", FrontendSpec("fe", public_ip="ip"), backend_pools=("bap1", "bap2"))
    js = spec.payload("eastus", ids)
    assert js["sku"] == {"name": "Standard"}
    assert [p["name"] for p in js["backend_address_pools"]] == ["bap1", "bap2"]
    probes = {p["name"]: p for p in js["probes"]}
    assert {name: (p["protocol"], p["port"]) for name, p in probes.items()} == {
        "httpProbe": ("Http", 80),
        "httpsProbe": ("Https", 443),
    }
    assert all(p["request_path"] == "/" for p in probes.values())
    rules = {r["name"]: r for r in js["load_balancing_rules"]}
    assert rules[HttpLoadBalancingRule]["frontend_port"] == rules[HttpLoadBalancingRule]["backend_port"] == 80
    assert rules[HttpsLoadBalancingRule]["frontend_port"] == rules[HttpsLoadBalancingRule]["backend_port"] == 443
    assert rules[HttpLoadBalancingRule]["backend_address_pool"]["id"] == ids.backend_pool("lb", "bap1")
    assert rules[HttpsLoadBalancingRule]["backend_address_pool"]["id"] == ids.backend_pool("lb", "bap2")
    assert rules[HttpsLoadBalancingRule]["probe"]["id"] == ids.probe("lb", "httpsProbe")
    assert all(r["frontend_ip_configuration"]["id"] == ids.frontend("lb", "fe") for r in rules.values())
    assert all("idle_timeout_in_minutes" not in r for r in rules.values())
    nat = [(r["frontend_port"], r["backend_port"]) for r in js["inbound_nat_rules"]]
    assert nat == [(5000, 22), (5001, 23), (5002, 22), (5003, 23)]


def test_basic_load_balancer_uses_http_probes() -> None:
    spec = internet_facing_load_balancer(
        "lb", FrontendSpec("fe", public_ip="ip"), backend_pools=("bap1", "bap2"), sku="Basic"
    )
    js = spec.payload("eastus", ids)
    assert js["sku"] == {"name": "Basic"}
    assert {p["protocol"] for p in js["probes"]} == {"Http"}


def test_network_interface() -> None:
    spec = NetworkInterfaceSpec(
        "nic1", "vnet", "Front-end", load_balancer="lb", backend_pools=("bap1", "bap2"), nat_rules=("n1", "n2")
    )
    ip_config = spec.payload("eastus", ids)["ip_configurations"][0]
    assert ip_config["subnet"]["id"] == ids.subnet("vnet", "Front-end")
    assert [r["id"] for r in ip_config["load_balancer_backend_address_pools"]] == [
        ids.backend_pool("lb", "bap1"),
        ids.backend_pool("lb", "bap2"),
    ]
    assert [r["id"] for r in ip_config["load_balancer_inbound_nat_rules"]] == [
        ids.inbound_nat_rule("lb", "n1"),
        ids.inbound_nat_rule("lb", "n2"),
    ]
    plain = NetworkInterfaceSpec("nic2", "vnet", "Back-end").payload("eastus", ids)["ip_configurations"][0]
    assert "load_balancer_backend_address_pools" not in plain


def test_virtual_machine_with_password() -> None:
    js = VirtualMachineSpec("vm1", "nic1", availability_set="av").payload("eastus", ids)
    assert js["hardware_profile"] == {"vm_size": "Standard_D2a_v4"}
    assert js["storage_profile"]["image_reference"]["publisher"] == "Canonical"
    assert js["storage_profile"]["os_disk"]["name"] == "vm1-osdisk"
    assert js["os_profile"]["admin_username"] == "tirekicker"
    assert js["os_profile"]["admin_password"] == "azure12345QWE!"
    assert "linux_configuration" not in js["os_profile"]
    assert js["network_profile"]["network_interfaces"] == [
        {"id": ids.of(ResourceKind.network_interface, "nic1"), "primary": True}
    ]
    assert js["availability_set"]["id"] == ids.of(ResourceKind.availability_set, "av")


def test_virtual_machine_with_ssh_key() -> None:
    spec = VirtualMachineSpec("vm1", "nic1", admin_username="admin", ssh_public_key="ssh-rsa AAAA")
    js = spec.payload("eastus", ids)
    os_profile = js["os_profile"]
    assert "admin_password" not in os_profile
    assert os_profile["linux_configuration"]["disable_password_authentication"] is True
    assert os_profile["linux_configuration"]["ssh"]["public_keys"] == [
        {"path": "/home/admin/.ssh/authorized_keys", "key_data": "ssh-rsa AAAA"}
    ]
    assert "availability_set" not in js


def test_default_vm_payload() -> None:
    js = default_vm_payload("westus", "vm", "nic-id")
    assert js["hardware_profile"] == {"vm_size": "Standard_B4ms"}
    assert js["storage_profile"]["os_disk"]["os_type"] == "Windows"
    assert js["storage_profile"]["os_disk"]["managed_disk"] == {"storage_account_type": "Standard_LRS"}
    # deterministic for the same input
    assert default_vm_payload("westus", "vm", "nic-id") == js


def test_with_idle_timeout() -> None:
    spec = internet_facing_load_balancer("lb", FrontendSpec("fe", public_ip="ip"), backend_pools=("bap1", "bap2"))
    js = spec.payload("eastus", ids)
    updated = with_idle_timeout(js, [HttpLoadBalancingRule, HttpsLoadBalancingRule], 15)
    assert all(r["idle_timeout_in_minutes"] == 15 for r in updated["load_balancing_rules"])
    # the input is not changed
    assert all("idle_timeout_in_minutes" not in r for r in js["load_balancing_rules"])
    for key in ("backend_address_pools", "probes", "inbound_nat_rules", "frontend_ip_configurations"):
        assert updated[key] == js[key]
    with pytest.raises(KeyError):
        with_idle_timeout(js, ["unknown"], 15)
