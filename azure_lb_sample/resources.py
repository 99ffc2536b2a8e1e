"""
Request payloads for all resources created by the sample.

Payloads are plain json dictionaries using the attribute names of the azure sdk models
(snake_case with flattened properties), i.e. the same shape Model.as_dict() returns.
"""

from __future__ import annotations

import copy
from typing import Iterable, List, Optional, Tuple

from attr import frozen, field

from azure_lb_sample.model import Json, ResourceIds, ResourceKind
from azure_lb_sample.utils import create_password, create_username

HttpProbe = "httpProbe"
HttpsProbe = "httpsProbe"
HttpLoadBalancingRule = "httpRule"
HttpsLoadBalancingRule = "httpsRule"
NatRule5000to22forVM1 = "nat5000to22forVM1"
NatRule5001to23forVM1 = "nat5001to23forVM1"
NatRule5002to22forVM2 = "nat5002to22forVM2"
NatRule5003to23forVM2 = "nat5003to23forVM2"

FrontendSubnet = "Front-end"
BackendSubnet = "Back-end"

# NAT rules that give direct ssh/telnet access to the first and the second VM
NatRulesPerVm: Tuple[Tuple[str, str], ...] = (
    (NatRule5000to22forVM1, NatRule5001to23forVM1),
    (NatRule5002to22forVM2, NatRule5003to23forVM2),
)


@frozen
class SubnetSpec:
    name: str
    address_prefix: str

    def payload(self) -> Json:
        return {"name": self.name, "address_prefix": self.address_prefix}


@frozen
class VirtualNetworkSpec:
    name: str
    address_prefixes: Tuple[str, ...] = ("172.16.0.0/16",)
    subnets: Tuple[SubnetSpec, ...] = (
        SubnetSpec(FrontendSubnet, "172.16.1.0/24"),
        SubnetSpec(BackendSubnet, "172.16.3.0/24"),
    )

    def payload(self, location: str, _: ResourceIds) -> Json:
        return {
            "location": location,
            "address_space": {"address_prefixes": list(self.address_prefixes)},
            "subnets": [subnet.payload() for subnet in self.subnets],
        }


@frozen
class PublicIpSpec:
    name: str
    dns_label: Optional[str] = None
    # standard sku public ips only support static allocation
    allocation_method: str = "Static"
    sku: str = "Standard"

    def payload(self, location: str, _: ResourceIds) -> Json:
        js: Json = {
            "location": location,
            "sku": {"name": self.sku},
            "public_ip_allocation_method": self.allocation_method,
        }
        if self.dns_label:
            js["dns_settings"] = {"domain_name_label": self.dns_label.lower()}
        return js


@frozen
class FrontendSpec:
    """
    A frontend either uses a public ip address (Internet facing) or a private address of a subnet (internal).
    """

    name: str
    public_ip: Optional[str] = None
    network: Optional[str] = None
    subnet: Optional[str] = None

    def __attrs_post_init__(self) -> None:
        if (self.public_ip is None) == (self.network is None or self.subnet is None):
            raise ValueError(f"Frontend {self.name} needs either a public ip or a network and subnet")

    def payload(self, ids: ResourceIds) -> Json:
        if self.public_ip is not None:
            return {
                "name": self.name,
                "public_ip_address": {"id": ids.of(ResourceKind.public_ip_address, self.public_ip)},
            }
        assert self.network is not None and self.subnet is not None
        return {
            "name": self.name,
            "private_ip_allocation_method": "Dynamic",
            "subnet": {"id": ids.subnet(self.network, self.subnet)},
        }


@frozen
class ProbeSpec:
    name: str
    port: int
    protocol: str = "Http"
    request_path: str = "/"
    interval_in_seconds: int = 15
    number_of_probes: int = 2

    def payload(self) -> Json:
        js: Json = {
            "name": self.name,
            "protocol": self.protocol,
            "port": self.port,
            "interval_in_seconds": self.interval_in_seconds,
            "number_of_probes": self.number_of_probes,
        }
        if self.protocol.lower() in ("http", "https"):
            js["request_path"] = self.request_path
        return js


@frozen
class LoadBalancingRuleSpec:
    name: str
    frontend: str
    frontend_port: int
    backend_pool: str
    probe: str
    backend_port: Optional[int] = None  # same as frontend port if not defined
    protocol: str = "Tcp"
    idle_timeout_in_minutes: Optional[int] = None

    def payload(self, load_balancer: str, ids: ResourceIds) -> Json:
        js: Json = {
            "name": self.name,
            "protocol": self.protocol,
            "frontend_port": self.frontend_port,
            "backend_port": self.backend_port if self.backend_port is not None else self.frontend_port,
            "frontend_ip_configuration": {"id": ids.frontend(load_balancer, self.frontend)},
            "backend_address_pool": {"id": ids.backend_pool(load_balancer, self.backend_pool)},
            "probe": {"id": ids.probe(load_balancer, self.probe)},
            "enable_floating_ip": False,
            "load_distribution": "Default",
        }
        if self.idle_timeout_in_minutes is not None:
            js["idle_timeout_in_minutes"] = self.idle_timeout_in_minutes
        return js


@frozen
class InboundNatRuleSpec:
    name: str
    frontend: str
    frontend_port: int
    backend_port: int
    protocol: str = "Tcp"

    def payload(self, load_balancer: str, ids: ResourceIds) -> Json:
        return {
            "name": self.name,
            "protocol": self.protocol,
            "frontend_port": self.frontend_port,
            "backend_port": self.backend_port,
            "frontend_ip_configuration": {"id": ids.frontend(load_balancer, self.frontend)},
            "enable_floating_ip": False,
        }


@frozen
class LoadBalancerSpec:
    name: str
    frontends: Tuple[FrontendSpec, ...]
    backend_pools: Tuple[str, ...] = ()
    probes: Tuple[ProbeSpec, ...] = ()
    rules: Tuple[LoadBalancingRuleSpec, ...] = ()
    nat_rules: Tuple[InboundNatRuleSpec, ...] = ()
    sku: str = "Standard"

    def payload(self, location: str, ids: ResourceIds) -> Json:
        return {
            "location": location,
            "sku": {"name": self.sku},
            "frontend_ip_configurations": [fe.payload(ids) for fe in self.frontends],
            "backend_address_pools": [{"name": pool} for pool in self.backend_pools],
            "probes": [probe.payload() for probe in self.probes],
            "load_balancing_rules": [rule.payload(self.name, ids) for rule in self.rules],
            "inbound_nat_rules": [rule.payload(self.name, ids) for rule in self.nat_rules],
        }


def internet_facing_load_balancer(
    name: str,
    frontend: FrontendSpec,
    *,
    backend_pools: Tuple[str, str],
    sku: str = "Standard",
) -> LoadBalancerSpec:
    """
    The load balancer layout of the sample:
    - two load balancing rules for HTTP (80) and HTTPS (443), one backend pool and one probe each
    - two HTTP/HTTPS probes on request path /
    - two inbound NAT rules per VM that map a public port to SSH (22) and TELNET (23)
    """
    fe = frontend.name
    http_pool, https_pool = backend_pools
    return LoadBalancerSpec(
        name=name,
        frontends=(frontend,),
        backend_pools=backend_pools,
        probes=(
            ProbeSpec(HttpProbe, port=80, protocol="Http"),
            ProbeSpec(HttpsProbe, port=443, protocol="Https" if sku.lower() == "standard" else "Http"),
        ),
        rules=(
            LoadBalancingRuleSpec(HttpLoadBalancingRule, fe, 80, http_pool, HttpProbe),
            LoadBalancingRuleSpec(HttpsLoadBalancingRule, fe, 443, https_pool, HttpsProbe),
        ),
        nat_rules=(
            InboundNatRuleSpec(NatRule5000to22forVM1, fe, 5000, 22),
            InboundNatRuleSpec(NatRule5001to23forVM1, fe, 5001, 23),
            InboundNatRuleSpec(NatRule5002to22forVM2, fe, 5002, 22),
            InboundNatRuleSpec(NatRule5003to23forVM2, fe, 5003, 23),
        ),
        sku=sku,
    )


@frozen
class NetworkInterfaceSpec:
    name: str
    network: str
    subnet: str
    load_balancer: Optional[str] = None
    backend_pools: Tuple[str, ...] = ()
    nat_rules: Tuple[str, ...] = ()
    ip_configuration: str = "primary"

    def payload(self, location: str, ids: ResourceIds) -> Json:
        ip_config: Json = {
            "name": self.ip_configuration,
            "primary": True,
            "private_ip_allocation_method": "Dynamic",
            "subnet": {"id": ids.subnet(self.network, self.subnet)},
        }
        if self.load_balancer is not None:
            lb = self.load_balancer
            ip_config["load_balancer_backend_address_pools"] = [
                {"id": ids.backend_pool(lb, pool)} for pool in self.backend_pools
            ]
            ip_config["load_balancer_inbound_nat_rules"] = [{"id": ids.inbound_nat_rule(lb, r)} for r in self.nat_rules]
        return {"location": location, "ip_configurations": [ip_config]}


@frozen
class AvailabilitySetSpec:
    name: str
    fault_domain_count: int = 2
    update_domain_count: int = 4
    # managed disks require an aligned availability set
    sku: str = "Aligned"

    def payload(self, location: str, _: ResourceIds) -> Json:
        return {
            "location": location,
            "platform_fault_domain_count": self.fault_domain_count,
            "platform_update_domain_count": self.update_domain_count,
            "sku": {"name": self.sku},
        }


@frozen
class ImageReference:
    publisher: str
    offer: str
    sku: str
    version: str = "latest"
    os_type: str = "Linux"

    def payload(self) -> Json:
        return {"publisher": self.publisher, "offer": self.offer, "sku": self.sku, "version": self.version}


UbuntuServerLts = ImageReference("Canonical", "0001-com-ubuntu-server-jammy", "22_04-lts-gen2")
WindowsDesktop = ImageReference("MicrosoftWindowsDesktop", "Windows-10", "win10-21h2-ent", os_type="Windows")


def default_vm_payload(
    location: str,
    vm_name: str,
    nic_id: str,
    *,
    size: str = "Standard_B4ms",
    image: ImageReference = WindowsDesktop,
    admin_username: Optional[str] = None,
    admin_password: Optional[str] = None,
    ssh_public_key: Optional[str] = None,
    availability_set_id: Optional[str] = None,
    os_disk_name: Optional[str] = None,
) -> Json:
    """
    Default virtual machine payload: managed standard LRS os disk created from the given image,
    one primary network interface.
    If an ssh public key is given, password authentication is disabled.
    """
    username = admin_username or create_username()
    os_profile: Json = {"computer_name": vm_name, "admin_username": username}
    if ssh_public_key:
        os_profile["linux_configuration"] = {
            "disable_password_authentication": True,
            "ssh": {"public_keys": [{"path": f"/home/{username}/.ssh/authorized_keys", "key_data": ssh_public_key}]},
        }
    else:
        os_profile["admin_password"] = admin_password or create_password()
    js: Json = {
        "location": location,
        "hardware_profile": {"vm_size": size},
        "storage_profile": {
            "image_reference": image.payload(),
            "os_disk": {
                "name": os_disk_name or f"{vm_name}-osdisk",
                "os_type": image.os_type,
                "create_option": "FromImage",
                "caching": "ReadWrite",
                "managed_disk": {"storage_account_type": "Standard_LRS"},
            },
        },
        "os_profile": os_profile,
        "network_profile": {"network_interfaces": [{"id": nic_id, "primary": True}]},
    }
    if availability_set_id:
        js["availability_set"] = {"id": availability_set_id}
    return js


@frozen
class VirtualMachineSpec:
    name: str
    network_interface: str
    size: str = "Standard_D2a_v4"
    image: ImageReference = UbuntuServerLts
    admin_username: str = field(factory=create_username)
    admin_password: Optional[str] = None
    ssh_public_key: Optional[str] = None
    availability_set: Optional[str] = None

    def payload(self, location: str, ids: ResourceIds) -> Json:
        return default_vm_payload(
            location,
            self.name,
            ids.of(ResourceKind.network_interface, self.network_interface),
            size=self.size,
            image=self.image,
            admin_username=self.admin_username,
            admin_password=self.admin_password,
            ssh_public_key=self.ssh_public_key,
            availability_set_id=ids.of(ResourceKind.availability_set, self.availability_set)
            if self.availability_set
            else None,
        )


def with_idle_timeout(load_balancer: Json, rule_names: Iterable[str], minutes: int) -> Json:
    """
    Returns a copy of the given load balancer where the TCP idle timeout of the named rules is changed.
    All other properties are left untouched, so the result can be written back as a whole.
    """
    updated = copy.deepcopy(load_balancer)
    wanted = set(rule_names)
    found: List[str] = []
    for rule in updated.get("load_balancing_rules") or []:
        if rule.get("name") in wanted:
            rule["idle_timeout_in_minutes"] = minutes
            found.append(rule["name"])
    if missing := wanted.difference(found):
        raise KeyError(f"Load balancer {load_balancer.get('name')} has no rule(s): {', '.join(sorted(missing))}")
    return updated
