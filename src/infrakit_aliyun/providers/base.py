"""Base interfaces for the compute API and remote execution."""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Tuple

from infrakit_aliyun.models.ecs import (
    CreateInstanceArgs,
    DiskItem,
    InstanceAttributes,
    Pagination,
    PaginationResult,
)
from infrakit_aliyun.utils.wait import wait_for


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0

# Error code for an instance id the API does not (yet) know about.
INSTANCE_NOT_FOUND = "InvalidInstanceId.NotFound"


class InstanceStatus(str, Enum):
    """ECS instance status."""
    PENDING = "Pending"
    STARTING = "Starting"
    RUNNING = "Running"
    STOPPING = "Stopping"
    STOPPED = "Stopped"


class ComputeError(Exception):
    """Error returned by the compute API."""

    def __init__(self, message: str, code: Optional[str] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.request_id = request_id

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class ComputeClient(ABC):
    """Compute API interface that all cloud clients must implement.

    Implementations hold one long-lived API client and are safe to share
    between concurrent calls.
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL

    @abstractmethod
    async def create_instance(self, args: CreateInstanceArgs) -> str:
        """Create an instance and return its id."""

    @abstractmethod
    async def start_instance(self, instance_id: str) -> None:
        """Start a stopped instance."""

    @abstractmethod
    async def stop_instance(self, instance_id: str, force: bool = False) -> None:
        """Stop a running instance."""

    @abstractmethod
    async def delete_instance(self, instance_id: str) -> None:
        """Delete a stopped instance."""

    @abstractmethod
    async def describe_instance(self, instance_id: str) -> InstanceAttributes:
        """Describe a single instance."""

    @abstractmethod
    async def describe_instances(
        self,
        region: str,
        tags: Optional[Dict[str, str]] = None,
        pagination: Optional[Pagination] = None,
    ) -> Tuple[List[InstanceAttributes], Optional[PaginationResult]]:
        """Describe one page of instances matching all the given tags."""

    @abstractmethod
    async def describe_disks(
        self,
        region: str,
        zone_id: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
        portable: Optional[bool] = None,
    ) -> List[DiskItem]:
        """Describe disks matching all the given filters."""

    @abstractmethod
    async def attach_disk(self, instance_id: str, disk_id: str, device: Optional[str] = None) -> None:
        """Attach a disk to an instance."""

    @abstractmethod
    async def allocate_public_ip_address(self, instance_id: str) -> str:
        """Allocate a public address for a classic network instance."""

    @abstractmethod
    async def add_tags(self, region: str, resource_id: str, tags: Dict[str, str], resource_type: str = "instance") -> None:
        """Add (or overwrite) tags on a resource."""

    @abstractmethod
    def generate_client_token(self) -> str:
        """Return a fresh idempotency token."""

    async def wait_for_instance(self, instance_id: str, status: InstanceStatus, timeout: float) -> InstanceAttributes:
        """Wait until the instance reports the given status.

        A freshly created instance may not be listed yet, so a not-found
        answer counts as not ready until the timeout.
        """
        expected = InstanceStatus(status).value

        async def poll() -> Optional[InstanceAttributes]:
            try:
                return await self.describe_instance(instance_id)
            except ComputeError as e:
                if e.code != INSTANCE_NOT_FOUND:
                    raise
                logger.debug(f"Instance {instance_id} not visible yet")
                return None

        return await wait_for(
            poll,
            lambda instance: instance is not None and instance.status == expected,
            timeout=timeout,
            interval=self.poll_interval,
            description=f"instance {instance_id} to be {expected}",
        )


class RemoteExecutor(ABC):
    """Runs commands on a remote host."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the session."""

    @abstractmethod
    async def run(self, command: str) -> str:
        """Run a command and return its output."""

    @abstractmethod
    async def close(self) -> None:
        """Close the session."""

    async def __aenter__(self) -> "RemoteExecutor":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
