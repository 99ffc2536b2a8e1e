from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Tuple

from attr import frozen

Json = Dict[str, Any]


class ResourceKind(Enum):
    public_ip_address = ("Microsoft.Network", "publicIPAddresses")
    virtual_network = ("Microsoft.Network", "virtualNetworks")
    load_balancer = ("Microsoft.Network", "loadBalancers")
    network_interface = ("Microsoft.Network", "networkInterfaces")
    availability_set = ("Microsoft.Compute", "availabilitySets")
    virtual_machine = ("Microsoft.Compute", "virtualMachines")

    @property
    def provider(self) -> str:
        return self.value[0]

    @property
    def resource_type(self) -> str:
        return self.value[1]

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ")


# payload property holding named child resources -> segment used in the child resource id
ChildSegments: Dict[str, str] = {
    "subnets": "subnets",
    "frontend_ip_configurations": "frontendIPConfigurations",
    "backend_address_pools": "backendAddressPools",
    "load_balancing_rules": "loadBalancingRules",
    "probes": "probes",
    "inbound_nat_rules": "inboundNatRules",
    "ip_configurations": "ipConfigurations",
}


@frozen
class ResourceIds:
    """
    Builds Azure Resource Manager identifiers for resources of one resource group.

    /subscriptions/{sub}/resourceGroups/{rg}/providers/{provider}/{type}/{name}[/{segment}/{child}]
    """

    subscription_id: str
    resource_group: str

    @property
    def resource_group_id(self) -> str:
        return f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}"

    def of(self, kind: ResourceKind, name: str, *children: Tuple[str, str]) -> str:
        rid = f"{self.resource_group_id}/providers/{kind.provider}/{kind.resource_type}/{name}"
        for segment, child in children:
            rid += f"/{segment}/{child}"
        return rid

    def subnet(self, network: str, subnet: str) -> str:
        return self.of(ResourceKind.virtual_network, network, ("subnets", subnet))

    def frontend(self, load_balancer: str, frontend: str) -> str:
        return self.of(ResourceKind.load_balancer, load_balancer, ("frontendIPConfigurations", frontend))

    def backend_pool(self, load_balancer: str, pool: str) -> str:
        return self.of(ResourceKind.load_balancer, load_balancer, ("backendAddressPools", pool))

    def probe(self, load_balancer: str, probe: str) -> str:
        return self.of(ResourceKind.load_balancer, load_balancer, ("probes", probe))

    def inbound_nat_rule(self, load_balancer: str, rule: str) -> str:
        return self.of(ResourceKind.load_balancer, load_balancer, ("inboundNatRules", rule))


def resource_name(resource_id: str) -> str:
    return resource_id.rstrip("/").rsplit("/", 1)[-1]
