from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from attr import define, field
from azure.core.exceptions import ResourceNotFoundError
from pytest import fixture

from azure_lb_sample.azure_client import ManagementClient, Operation
from azure_lb_sample.config import SampleConfig
from azure_lb_sample.model import ChildSegments, Json, ResourceIds, ResourceKind
from azure_lb_sample.utils import Narrator
from azure_lb_sample.workflow import SampleNames

Call = Tuple[str, Optional[ResourceKind], str]


def referenced_ids(js: Any) -> Iterator[str]:
    if isinstance(js, dict):
        for key, value in js.items():
            if key == "id" and isinstance(value, str):
                yield value
            else:
                yield from referenced_ids(value)
    elif isinstance(js, list):
        for item in js:
            yield from referenced_ids(item)


@define
class FakeState:
    resource_groups: Dict[str, Json] = field(factory=dict)
    resources: Dict[str, Json] = field(factory=dict)
    # ids of all existing resources and their child resources (lower case)
    known_ids: Set[str] = field(factory=set)
    calls: List[Call] = field(factory=list)
    failures: Dict[Tuple[str, Optional[ResourceKind], Optional[str]], Exception] = field(factory=dict)


class FakeOperation(Operation):
    def __init__(self, client: InMemoryManagementClient, kind: ResourceKind, name: str, payload: Json) -> None:
        self.client = client
        self.kind = kind
        self.name = name
        self.payload = payload
        self.value: Optional[Json] = None

    def result(self) -> Json:
        if self.value is None:
            self.value = self.client.apply(self.kind, self.name, self.payload)
        return self.value


class InMemoryManagementClient(ManagementClient):
    """
    Fake of the remote management service.
    Records every call, assigns ids to resources and their children
    and rejects resources that reference something that does not exist.
    """

    def __init__(self, subscription_id: str = "test", resource_group: str = "", state: Optional[FakeState] = None):
        self.subscription_id = subscription_id
        self.resource_group = resource_group
        self.state = state or FakeState()

    def fail(
        self, operation: str, error: Exception, kind: Optional[ResourceKind] = None, name: Optional[str] = None
    ) -> None:
        """
        Let the given operation fail. Without a name, the operation fails for every resource of the kind.
        """
        self.state.failures[(operation, kind, name)] = error

    def _record(self, operation: str, kind: Optional[ResourceKind], name: str) -> None:
        self.state.calls.append((operation, kind, name))
        failures = self.state.failures
        if error := failures.get((operation, kind, name)) or failures.get((operation, kind, None)):
            raise error

    @property
    def calls(self) -> List[Call]:
        return self.state.calls

    def operations(self, *names: str) -> List[Tuple[str, Optional[ResourceKind]]]:
        return [(op, kind) for op, kind, _ in self.state.calls if op in names]

    def create_resource_group(self, name: str, location: str) -> Json:
        self._record("create_resource_group", None, name)
        rg = {"id": ResourceIds(self.subscription_id, name).resource_group_id, "name": name, "location": location}
        self.state.resource_groups[name.lower()] = rg
        return copy.deepcopy(rg)

    def delete_resource_group(self, name: str) -> bool:
        self._record("delete_resource_group", None, name)
        if self.state.resource_groups.pop(name.lower(), None) is None:
            return False
        prefix = ResourceIds(self.subscription_id, name).resource_group_id.lower() + "/"
        for rid in [rid for rid in self.state.resources if rid.startswith(prefix)]:
            del self.state.resources[rid]
        self.state.known_ids = {rid for rid in self.state.known_ids if not rid.startswith(prefix)}
        return True

    def has_resource_group(self, name: str) -> bool:
        return name.lower() in self.state.resource_groups

    def begin_create_or_update(self, kind: ResourceKind, name: str, payload: Json) -> Operation:
        self._record("begin_create_or_update", kind, name)
        return FakeOperation(self, kind, name, copy.deepcopy(payload))

    def apply(self, kind: ResourceKind, name: str, payload: Json) -> Json:
        self._record("completed", kind, name)
        if not self.has_resource_group(self.resource_group):
            raise ResourceNotFoundError(f"Resource group '{self.resource_group}' could not be found.")
        rid = self.ids.of(kind, name)
        resource = {**payload, "id": rid, "name": name, "type": f"{kind.provider}/{kind.resource_type}"}
        resource["provisioning_state"] = "Succeeded"
        own_ids = {rid.lower()}
        for prop, segment in ChildSegments.items():
            for child in resource.get(prop) or []:
                child["id"] = f"{rid}/{segment}/{child['name']}"
                own_ids.add(child["id"].lower())
        for ref in referenced_ids(payload):
            if ref.lower() not in own_ids and ref.lower() not in self.state.known_ids:
                raise ResourceNotFoundError(
                    f"InvalidResourceReference: Resource {ref} referenced by resource {rid} was not found."
                )
        # children of the previous version are replaced
        self._forget(rid)
        self.state.resources[rid.lower()] = resource
        self.state.known_ids.update(own_ids)
        return copy.deepcopy(resource)

    def _forget(self, rid: str) -> None:
        lower = rid.lower()
        self.state.known_ids = {i for i in self.state.known_ids if i != lower and not i.startswith(lower + "/")}

    def get(self, kind: ResourceKind, name: str) -> Json:
        self._record("get", kind, name)
        rid = self.ids.of(kind, name)
        if (resource := self.state.resources.get(rid.lower())) is None:
            raise ResourceNotFoundError(f"The Resource '{rid}' was not found.")
        return copy.deepcopy(resource)

    def list(self, kind: ResourceKind, subscription_wide: bool = False) -> List[Json]:
        self._record("list", kind, "*" if subscription_wide else self.resource_group)
        prefix = "/subscriptions/" if subscription_wide else self.ids.resource_group_id.lower() + "/"
        marker = f"/providers/{kind.provider}/{kind.resource_type}/".lower()
        return [
            copy.deepcopy(r)
            for rid, r in self.state.resources.items()
            if rid.startswith(prefix.lower()) and marker in rid
        ]

    def delete(self, kind: ResourceKind, name: str) -> bool:
        self._record("delete", kind, name)
        rid = self.ids.of(kind, name)
        if self.state.resources.pop(rid.lower(), None) is None:
            return False
        self._forget(rid)
        return True

    def for_resource_group(self, name: str) -> ManagementClient:
        return InMemoryManagementClient(self.subscription_id, name, self.state)


@fixture
def config() -> SampleConfig:
    return SampleConfig(subscription_id="test")


@fixture
def client() -> InMemoryManagementClient:
    return InMemoryManagementClient()


@fixture
def narrative() -> List[str]:
    return []


@fixture
def narrator(narrative: List[str]) -> Narrator:
    return Narrator(sink=narrative.append)


@fixture
def names() -> SampleNames:
    return SampleNames.generate(resource_group="rg1")
