from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from attr import define, field, evolve

from azure_lb_sample.azure_client import ManagementClient, Operation
from azure_lb_sample.config import SampleConfig
from azure_lb_sample.model import Json, ResourceKind
from azure_lb_sample.printer import (
    describe_availability_set,
    describe_load_balancer,
    describe_network_interface,
    describe_public_ip,
    describe_virtual_machine,
    describe_virtual_network,
)
from azure_lb_sample.resources import (
    AvailabilitySetSpec,
    FrontendSpec,
    HttpLoadBalancingRule,
    HttpsLoadBalancingRule,
    NatRulesPerVm,
    NetworkInterfaceSpec,
    PublicIpSpec,
    VirtualMachineSpec,
    VirtualNetworkSpec,
    internet_facing_load_balancer,
    with_idle_timeout,
)
from azure_lb_sample.utils import Narrator, create_random_name

log = logging.getLogger("azure_lb_sample")


class CleanupStatus(Enum):
    deleted = "deleted"
    not_found = "not_found"  # nothing was created
    failed = "failed"


@define
class WorkflowResult:
    resource_group: str
    completed: List[str] = field(factory=list)
    failed_step: Optional[str] = None
    error: Optional[Exception] = None
    cleanup: Optional[CleanupStatus] = None
    cleanup_error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.cleanup == CleanupStatus.deleted


@define
class SampleNames:
    resource_group: str
    virtual_network: str
    load_balancer_1: str
    load_balancer_2: str
    network_interface_1: str
    network_interface_2: str
    availability_set: str
    virtual_machine_1: str
    virtual_machine_2: str

    # both load balancers use the names of the first one for ips, frontends and pools

    @property
    def public_ip_1(self) -> str:
        return f"pip1-{self.load_balancer_1}"

    @property
    def public_ip_2(self) -> str:
        return f"pip2-{self.load_balancer_1}"

    @property
    def frontend(self) -> str:
        return f"{self.load_balancer_1}-FE1"

    @property
    def backend_pools(self) -> Tuple[str, str]:
        return f"{self.load_balancer_1}-BAP1", f"{self.load_balancer_1}-BAP2"

    @staticmethod
    def generate(**overrides: str) -> SampleNames:
        names = SampleNames(
            resource_group=create_random_name("NetworkSampleRG"),
            virtual_network=create_random_name("vnet"),
            load_balancer_1=create_random_name("intlb1"),
            load_balancer_2=create_random_name("intlb2"),
            network_interface_1=create_random_name("nic1"),
            network_interface_2=create_random_name("nic2"),
            availability_set=create_random_name("av"),
            virtual_machine_1=create_random_name("lVM1"),
            virtual_machine_2=create_random_name("lVM2"),
        )
        return evolve(names, **overrides)


class LoadBalancerWorkflow:
    """
    Azure network sample for managing Internet facing load balancers.

    - Create an Internet facing load balancer that receives network traffic on
      port 80 and 443 and sends load-balanced traffic to two virtual machines
    - Create NAT rules for SSH and TELNET access to virtual machines behind the load balancer
    - Create health probes
    - Create two network interfaces in the frontend subnet and associate them to backend pools and NAT rules
    - Create two virtual machines in the frontend subnet and assign the network interfaces
    - Update the load balancer: configure a TCP idle timeout
    - Create another load balancer, list all load balancers and remove the second one

    The resource group is always deleted at the end, which removes all created resources.
    """

    def __init__(
        self,
        client: ManagementClient,
        config: SampleConfig,
        narrator: Optional[Narrator] = None,
        names: Optional[SampleNames] = None,
    ) -> None:
        self.config = config
        self.narrator = narrator or Narrator()
        self.names = names or SampleNames.generate()
        self.client = client.for_resource_group(self.names.resource_group)
        self.network: Json = {}
        self.load_balancer_1: Json = {}
        self.load_balancer_2: Json = {}
        self.network_interfaces: List[Json] = []
        self.availability_set: Json = {}
        self.virtual_machines: List[Json] = []

    def steps(self) -> List[Tuple[str, Callable[[], None]]]:
        public = not self.config.internal_frontend
        steps: List[Tuple[str, Callable[[], None], bool]] = [
            ("resource_group", self.create_resource_group, True),
            ("virtual_network", self.create_virtual_network, True),
            ("public_ip", self.create_public_ip_1, public),
            ("load_balancer", self.create_load_balancer_1, True),
            ("network_interfaces", self.create_network_interfaces, True),
            ("availability_set", self.create_availability_set, True),
            ("virtual_machines", self.create_virtual_machines, True),
            ("load_balancer_update", self.update_load_balancer, True),
            ("public_ip_2", self.create_public_ip_2, public),
            ("load_balancer_2", self.create_load_balancer_2, True),
            ("list_load_balancers", self.list_load_balancers, True),
            ("delete_load_balancer_2", self.delete_load_balancer_2, True),
        ]
        return [(name, fn) for name, fn, enabled in steps if enabled]

    def run(self) -> WorkflowResult:
        result = WorkflowResult(self.names.resource_group)
        current: Optional[str] = None
        try:
            for name, step in self.steps():
                current = name
                step()
                result.completed.append(name)
        except Exception as e:
            log.exception(f"Step {current} failed: {e}")
            self.narrator.log(f"Step {current} failed: {e}")
            result.failed_step = current
            result.error = e
        finally:
            self.cleanup(result)
        return result

    def cleanup(self, result: WorkflowResult) -> None:
        rg = self.names.resource_group
        try:
            self.narrator.log("Deleting Resource Group...")
            if self.client.delete_resource_group(rg):
                result.cleanup = CleanupStatus.deleted
                self.narrator.log(f"Deleted Resource Group: {rg}")
            else:
                result.cleanup = CleanupStatus.not_found
                self.narrator.log("Did not create any resources in Azure. No clean up is necessary")
        except Exception as e:
            log.exception(f"Failed to delete resource group {rg}: {e}")
            self.narrator.log(f"Failed to delete resource group {rg}: {e}")
            result.cleanup = CleanupStatus.failed
            result.cleanup_error = e

    def create_resource_group(self) -> None:
        self.narrator.log("Creating resource group...")
        rg = self.client.create_resource_group(self.names.resource_group, self.config.region)
        self.narrator.log(f"Created a resource group with name: {rg.get('name', self.names.resource_group)}")

    def create_virtual_network(self) -> None:
        self.narrator.log("Creating virtual network with a frontend and a backend subnets...")
        spec = VirtualNetworkSpec(self.names.virtual_network)
        self.network = self._create(ResourceKind.virtual_network, spec.name, spec.payload)
        self.narrator.log("Created a virtual network")
        self.narrator.log(describe_virtual_network(self.network))

    def create_public_ip_1(self) -> None:
        self.narrator.log("Creating a public IP address...")
        ip = self._create_public_ip(self.names.public_ip_1)
        self.narrator.log("Created a public IP address")
        self.narrator.log(describe_public_ip(ip))

    def create_public_ip_2(self) -> None:
        self.narrator.log("Creating another public IP address...")
        ip = self._create_public_ip(self.names.public_ip_2)
        self.narrator.log("Created another public IP address")
        self.narrator.log(describe_public_ip(ip))

    def create_load_balancer_1(self) -> None:
        self.narrator.log("Creating a Internet facing load balancer with ...")
        self._log_load_balancer_layout()
        self.load_balancer_1 = self._create_load_balancer(self.names.load_balancer_1, self.names.public_ip_1)
        self.narrator.log("Created a load balancer")
        self.narrator.log(describe_load_balancer(self.load_balancer_1))

    def create_load_balancer_2(self) -> None:
        self.narrator.log("Creating another Internet facing load balancer with ...")
        self._log_load_balancer_layout()
        self.load_balancer_2 = self._create_load_balancer(self.names.load_balancer_2, self.names.public_ip_2)
        self.narrator.log("Created another load balancer")
        self.narrator.log(describe_load_balancer(self.load_balancer_2))

    def create_network_interfaces(self) -> None:
        self.narrator.log("Creating two network interfaces in the frontend subnet ...")
        self.narrator.log("- And associating network interfaces to backend pools and NAT rules")
        specs = [
            NetworkInterfaceSpec(
                name=nic,
                network=self.names.virtual_network,
                subnet=self.config.frontend_subnet,
                load_balancer=self.names.load_balancer_1,
                backend_pools=self.names.backend_pools,
                nat_rules=nat_rules,
            )
            for nic, nat_rules in zip(
                (self.names.network_interface_1, self.names.network_interface_2),
                NatRulesPerVm,
            )
        ]
        self.network_interfaces = self._create_batch(
            ResourceKind.network_interface,
            {spec.name: spec.payload(self.config.region, self.client.ids) for spec in specs},
        )
        self.narrator.log("Created two network interfaces")
        for title, nic in zip(("ONE", "TWO"), self.network_interfaces):
            self.narrator.log(f"Network Interface {title} -")
            self.narrator.log(describe_network_interface(nic))
            self.narrator.log()

    def create_availability_set(self) -> None:
        self.narrator.log("Creating an availability set ...")
        spec = AvailabilitySetSpec(self.names.availability_set)
        self.availability_set = self._create(ResourceKind.availability_set, spec.name, spec.payload)
        self.narrator.log(f"Created first availability set: {self.availability_set.get('id')}")
        self.narrator.log(describe_availability_set(self.availability_set))

    def create_virtual_machines(self) -> None:
        self.narrator.log("Creating two virtual machines in the frontend subnet ...")
        self.narrator.log("- And assigning network interfaces")
        specs = [
            VirtualMachineSpec(
                name=vm,
                network_interface=nic,
                size=self.config.vm_size,
                admin_username=self.config.admin_username,
                ssh_public_key=self.config.ssh_public_key,
                availability_set=self.names.availability_set,
            )
            for vm, nic in (
                (self.names.virtual_machine_1, self.names.network_interface_1),
                (self.names.virtual_machine_2, self.names.network_interface_2),
            )
        ]
        started = time.monotonic()
        self.virtual_machines = self._create_batch(
            ResourceKind.virtual_machine,
            {spec.name: spec.payload(self.config.region, self.client.ids) for spec in specs},
        )
        self.narrator.log(f"Created 2 Linux VMs: (took {time.monotonic() - started:.1f} seconds)")
        self.narrator.log()
        for title, vm in zip(("ONE", "TWO"), self.virtual_machines):
            self.narrator.log(f"Virtual Machine {title} -")
            self.narrator.log(describe_virtual_machine(vm))
            self.narrator.log()

    def update_load_balancer(self) -> None:
        minutes = self.config.idle_timeout_in_minutes
        self.narrator.log("Updating the load balancer ...")
        current = self.client.get(ResourceKind.load_balancer, self.names.load_balancer_1)
        updated = with_idle_timeout(current, (HttpLoadBalancingRule, HttpsLoadBalancingRule), minutes)
        self.load_balancer_1 = self.client.create_or_update(
            ResourceKind.load_balancer, self.names.load_balancer_1, updated
        )
        self.narrator.log(f"Update the load balancer with a TCP idle timeout to {minutes} minutes")

    def list_load_balancers(self) -> None:
        load_balancers = self.client.list(ResourceKind.load_balancer, subscription_wide=True)
        self.narrator.log("Walking through the list of load balancers")
        for lb in load_balancers:
            self.narrator.log(describe_load_balancer(lb))

    def delete_load_balancer_2(self) -> None:
        name = self.names.load_balancer_2
        self.narrator.log(f"Deleting load balancer {name} ({self.load_balancer_2.get('id')})")
        self.client.delete(ResourceKind.load_balancer, name)
        self.narrator.log(f"Deleted load balancer {name}")

    def _log_load_balancer_layout(self) -> None:
        self.narrator.log("- A frontend IP address")
        self.narrator.log(
            "- Two backend address pools which contain network interfaces for the virtual\n"
            "  machines to receive HTTP and HTTPS network traffic from the load balancer"
        )
        self.narrator.log(
            "- Two load balancing rules for HTTP and HTTPS to map public ports on the load\n"
            "  balancer to ports in the backend address pool"
        )
        self.narrator.log(
            "- Two probes which contain HTTP and HTTPS health probes used to check availability\n"
            "  of virtual machines in the backend address pool"
        )
        self.narrator.log(
            "- Two inbound NAT rules which contain rules that map a public port on the load\n"
            "  balancer to a port for a specific virtual machine in the backend address pool\n"
            "  - this provides direct VM connectivity for SSH to port 22 and TELNET to port 23"
        )

    def _frontend(self, public_ip: str) -> FrontendSpec:
        if self.config.internal_frontend:
            return FrontendSpec(
                self.names.frontend, network=self.names.virtual_network, subnet=self.config.frontend_subnet
            )
        return FrontendSpec(self.names.frontend, public_ip=public_ip)

    def _create_public_ip(self, name: str) -> Json:
        sku = self.config.load_balancer_sku
        # the public ip sku has to match the load balancer sku
        allocation = "Static" if sku.lower() == "standard" else "Dynamic"
        spec = PublicIpSpec(name, dns_label=name, sku=sku, allocation_method=allocation)
        return self._create(ResourceKind.public_ip_address, name, spec.payload)

    def _create_load_balancer(self, name: str, public_ip: str) -> Json:
        spec = internet_facing_load_balancer(
            name,
            self._frontend(public_ip),
            backend_pools=self.names.backend_pools,
            sku=self.config.load_balancer_sku,
        )
        return self._create(ResourceKind.load_balancer, name, spec.payload)

    def _create(self, kind: ResourceKind, name: str, payload: Callable[..., Json]) -> Json:
        return self.client.create_or_update(kind, name, payload(self.config.region, self.client.ids))

    def _create_batch(self, kind: ResourceKind, payloads: Dict[str, Json]) -> List[Json]:
        # start all operations before waiting for any of them
        operations: List[Tuple[str, Operation]] = []
        error: Optional[Exception] = None
        for name, payload in payloads.items():
            try:
                operations.append((name, self.client.begin_create_or_update(kind, name, payload)))
            except Exception as e:
                error = e
                break
        # wait for every started operation, the first error is raised once all are done
        results: List[Json] = []
        for name, operation in operations:
            try:
                results.append(operation.result())
            except Exception as e:
                log.warning(f"Failed to create {kind.display_name} {name}: {e}")
                error = error or e
        if error is not None:
            raise error
        return results
