from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from attr import define
from azure.core.exceptions import ResourceNotFoundError
from azure.core.polling import LROPoller
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient

from azure_lb_sample.config import AzureCredentials, SampleConfig
from azure_lb_sample.model import Json, ResourceIds, ResourceKind

log = logging.getLogger("azure_lb_sample")


def to_json(result: Any) -> Json:
    if result is None:
        return {}
    if isinstance(result, dict):
        return result
    return result.as_dict()  # type: ignore


class Operation(ABC):
    """
    Handle of a create or update call. The call might still run remotely: result() blocks until it is done.
    """

    @abstractmethod
    def result(self) -> Json:
        pass


class PollerOperation(Operation):
    def __init__(self, poller: LROPoller[Any]) -> None:
        self.poller = poller

    def result(self) -> Json:
        return to_json(self.poller.result())


@define
class CompletedOperation(Operation):
    value: Json

    def result(self) -> Json:
        return self.value


class ManagementClient(ABC):
    subscription_id: str
    resource_group: str

    @property
    def ids(self) -> ResourceIds:
        return ResourceIds(self.subscription_id, self.resource_group)

    @abstractmethod
    def create_resource_group(self, name: str, location: str) -> Json:
        pass

    @abstractmethod
    def delete_resource_group(self, name: str) -> bool:
        """
        Delete the resource group with all contained resources.
        Returns False if the resource group does not exist.
        """

    @abstractmethod
    def begin_create_or_update(self, kind: ResourceKind, name: str, payload: Json) -> Operation:
        pass

    def create_or_update(self, kind: ResourceKind, name: str, payload: Json) -> Json:
        return self.begin_create_or_update(kind, name, payload).result()

    @abstractmethod
    def get(self, kind: ResourceKind, name: str) -> Json:
        pass

    @abstractmethod
    def list(self, kind: ResourceKind, subscription_wide: bool = False) -> List[Json]:
        pass

    @abstractmethod
    def delete(self, kind: ResourceKind, name: str) -> bool:
        pass

    @abstractmethod
    def for_resource_group(self, name: str) -> ManagementClient:
        pass

    @staticmethod
    def __create_management_client(
        config: SampleConfig,
        credential: Optional[AzureCredentials] = None,
        resource_group: str = "",
    ) -> ManagementClient:
        return AzureManagementClient(config, credential or config.credentials(), resource_group)

    create = __create_management_client


# operation group of every resource kind: (client, attribute)
OperationGroups: Dict[ResourceKind, Tuple[str, str]] = {
    ResourceKind.public_ip_address: ("network", "public_ip_addresses"),
    ResourceKind.virtual_network: ("network", "virtual_networks"),
    ResourceKind.load_balancer: ("network", "load_balancers"),
    ResourceKind.network_interface: ("network", "network_interfaces"),
    ResourceKind.availability_set: ("compute", "availability_sets"),
    ResourceKind.virtual_machine: ("compute", "virtual_machines"),
}
# kinds that are created and deleted synchronously (no long running operation)
SynchronousKinds = {ResourceKind.availability_set}
# method that lists all resources of the subscription
ListAllMethods: Dict[ResourceKind, str] = {ResourceKind.availability_set: "list_by_subscription"}


class AzureManagementClient(ManagementClient):
    def __init__(
        self,
        config: SampleConfig,
        credential: AzureCredentials,
        resource_group: str = "",
        resource: Optional[ResourceManagementClient] = None,
        network: Optional[NetworkManagementClient] = None,
        compute: Optional[ComputeManagementClient] = None,
    ) -> None:
        self.config = config
        self.credential = credential
        self.subscription_id = config.subscription_id
        self.resource_group = resource_group
        self.resource = resource or ResourceManagementClient(credential, self.subscription_id)
        self.network = network or NetworkManagementClient(credential, self.subscription_id)
        self.compute = compute or ComputeManagementClient(credential, self.subscription_id)

    def __operations(self, kind: ResourceKind) -> Any:
        client, group = OperationGroups[kind]
        return getattr(getattr(self, client), group)

    def create_resource_group(self, name: str, location: str) -> Json:
        log.debug(f"Create resource group {name} in {location}")
        return to_json(self.resource.resource_groups.create_or_update(name, {"location": location}))

    def delete_resource_group(self, name: str) -> bool:
        log.debug(f"Delete resource group {name}")
        try:
            self.resource.resource_groups.begin_delete(name).result()
        except ResourceNotFoundError:
            return False  # nothing to delete
        return True

    def begin_create_or_update(self, kind: ResourceKind, name: str, payload: Json) -> Operation:
        log.debug(f"Create or update {kind.display_name} {self.resource_group}/{name}")
        operations = self.__operations(kind)
        if kind in SynchronousKinds:
            return CompletedOperation(to_json(operations.create_or_update(self.resource_group, name, payload)))
        return PollerOperation(operations.begin_create_or_update(self.resource_group, name, payload))

    def get(self, kind: ResourceKind, name: str) -> Json:
        return to_json(self.__operations(kind).get(self.resource_group, name))

    def list(self, kind: ResourceKind, subscription_wide: bool = False) -> List[Json]:
        operations = self.__operations(kind)
        if subscription_wide:
            items = getattr(operations, ListAllMethods.get(kind, "list_all"))()
        else:
            items = operations.list(self.resource_group)
        return [to_json(item) for item in items]

    def delete(self, kind: ResourceKind, name: str) -> bool:
        log.debug(f"Delete {kind.display_name} {self.resource_group}/{name}")
        operations = self.__operations(kind)
        try:
            if kind in SynchronousKinds:
                operations.delete(self.resource_group, name)
            else:
                operations.begin_delete(self.resource_group, name).result()
        except ResourceNotFoundError:
            return False  # Resource not found to delete
        return True

    def for_resource_group(self, name: str) -> ManagementClient:
        return AzureManagementClient(
            self.config, self.credential, name, resource=self.resource, network=self.network, compute=self.compute
        )
