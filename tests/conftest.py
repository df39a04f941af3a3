"""Shared fixtures."""

from typing import Dict, List, Optional

import pytest

from infrakit_aliyun.models.ecs import (
    CreateInstanceArgs,
    DiskItem,
    InstanceAttributes,
    PaginationResult,
)
from infrakit_aliyun.providers.base import ComputeClient, ComputeError, INSTANCE_NOT_FOUND, RemoteExecutor


class FakeComputeClient(ComputeClient):
    """In-memory compute client recording every call in order.

    ``failures`` maps a method name to the exception it should raise.
    ``unlisted_polls`` is how many lookups miss an instance before it shows up.
    """

    poll_interval = 0.01

    def __init__(self):
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.instances: Dict[str, dict] = {}
        self.disks: Dict[str, List[DiskItem]] = {}
        self.pages: List[tuple] = []
        self.created_args: Optional[CreateInstanceArgs] = None
        self.public_ip = "47.0.0.1"
        self.unlisted_polls = 0
        self._next_id = 1

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    @property
    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def add_instance(self, instance_id: str, status: str = "Running", **fields) -> dict:
        record = {"InstanceId": instance_id, "RegionId": "cn-hangzhou", "Status": status}
        record.update(fields)
        self.instances[instance_id] = record
        return record

    async def create_instance(self, args):
        self._record("create_instance", args)
        self.created_args = args
        instance_id = f"i-{self._next_id:04d}"
        self._next_id += 1
        self.add_instance(instance_id, status="Stopped")
        return instance_id

    async def start_instance(self, instance_id):
        self._record("start_instance", instance_id)
        self.instances[instance_id]["Status"] = "Running"

    async def stop_instance(self, instance_id, force=False):
        self._record("stop_instance", instance_id, force)
        self.instances[instance_id]["Status"] = "Stopped"

    async def delete_instance(self, instance_id):
        self._record("delete_instance", instance_id)
        self.instances.pop(instance_id, None)

    async def describe_instance(self, instance_id):
        self._record("describe_instance", instance_id)
        if self.unlisted_polls > 0:
            self.unlisted_polls -= 1
            raise ComputeError(f"Instance {instance_id} not found", code=INSTANCE_NOT_FOUND)
        if instance_id not in self.instances:
            raise ComputeError(f"Instance {instance_id} not found", code=INSTANCE_NOT_FOUND)
        return InstanceAttributes.model_validate(self.instances[instance_id])

    async def describe_instances(self, region, tags=None, pagination=None):
        self._record("describe_instances", region, dict(tags or {}), pagination)
        if self.pages:
            instances, result = self.pages.pop(0)
            return [InstanceAttributes.model_validate(item) for item in instances], result
        return [InstanceAttributes.model_validate(item) for item in self.instances.values()], None

    async def describe_disks(self, region, zone_id=None, tags=None, portable=None):
        self._record("describe_disks", region, zone_id, dict(tags or {}), portable)
        volume = next(iter((tags or {}).values()), None)
        return list(self.disks.get(volume, []))

    async def attach_disk(self, instance_id, disk_id, device=None):
        self._record("attach_disk", instance_id, disk_id)

    async def allocate_public_ip_address(self, instance_id):
        self._record("allocate_public_ip_address", instance_id)
        return self.public_ip

    async def add_tags(self, region, resource_id, tags, resource_type="instance"):
        self._record("add_tags", region, resource_id, dict(tags))

    def generate_client_token(self):
        return "a" * 32


class FakeExecutor(RemoteExecutor):
    """Remote executor remembering what it was asked to run."""

    def __init__(self, host, port, username, password, failure: Optional[Exception] = None):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.failure = failure
        self.commands: List[str] = []
        self.closed = False

    async def connect(self):
        if self.failure:
            raise self.failure

    async def run(self, command):
        self.commands.append(command)
        return "ok"

    async def close(self):
        self.closed = True


@pytest.fixture
def compute():
    """A fresh fake compute client."""
    return FakeComputeClient()


@pytest.fixture
def pages():
    """Helper building paginated responses."""
    def build(total, page_number, page_size, ids):
        instances = [{"InstanceId": instance_id, "Status": "Running"} for instance_id in ids]
        return instances, PaginationResult(total_count=total, page_number=page_number, page_size=page_size)
    return build


class ExecutorRecorder:
    """Executor factory keeping every executor it hands out."""

    def __init__(self):
        self.created: List[FakeExecutor] = []
        self.failure: Optional[Exception] = None

    def __call__(self, host, port, username, password):
        executor = FakeExecutor(host, port, username, password, failure=self.failure)
        self.created.append(executor)
        return executor


@pytest.fixture
def executors():
    """Recording executor factory for the SSH fallback."""
    return ExecutorRecorder()
