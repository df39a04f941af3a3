"""Instance provisioning workflows for Aliyun ECS."""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError

from infrakit_aliyun.agent.mapper import instance_ip, to_description
from infrakit_aliyun.models.config import ProvisionerConfig
from infrakit_aliyun.models.ecs import CreateInstanceArgs, CreateInstanceRequest, Pagination
from infrakit_aliyun.models.instance import InstanceDescription, InstanceSpec, VendorInfo
from infrakit_aliyun.providers.base import ComputeClient, InstanceStatus, RemoteExecutor
from infrakit_aliyun.providers.ssh import ssh_executor
from infrakit_aliyun.utils.tags import merge_tags


logger = logging.getLogger(__name__)

# Tag correlating volume identifiers (attachment IDs) with ECS disks.
VOLUME_TAG = "docker-infrakit-volume"

INTERNET_CHARGE_TYPE = "PayByTraffic"

VENDOR_INFO = VendorInfo(
    name="infrakit-instance-aliyun",
    version="0.3.0",
    url="https://github.com/AliyunContainerService/infrakit.aliyun",
)

ExecutorFactory = Callable[[str, int, str, Optional[str]], RemoteExecutor]

T = TypeVar("T")


class InstanceError(Exception):
    """Workflow error, carrying the instance id when one is known."""

    def __init__(self, message: str, instance_id: Optional[str] = None):
        super().__init__(message)
        self.instance_id = instance_id


class ProvisionError(InstanceError):
    """Provisioning failed after the instance was created."""


def is_user_data_supported(args: CreateInstanceArgs) -> bool:
    """User data is only available to instances placed in a VSwitch."""
    return bool(args.v_switch_id)


class Provisioner:
    """Provisions, describes, labels and destroys ECS instances."""

    def __init__(
        self,
        client: ComputeClient,
        region: str,
        private_ip_only: bool = True,
        config: Optional[ProvisionerConfig] = None,
        namespace: Optional[Dict[str, str]] = None,
        executor_factory: ExecutorFactory = ssh_executor,
    ):
        """Initialize provisioner."""
        self.client = client
        self.region = region
        self.private_ip_only = private_ip_only
        self.config = config or ProvisionerConfig()
        self.namespace = dict(namespace or {})
        self.executor_factory = executor_factory

    def vendor_info(self) -> VendorInfo:
        """Return vendor name, version and URL."""
        return VENDOR_INFO

    async def validate(self, properties: Any) -> None:
        """Validate instance properties.

        No checks are performed yet; every request is accepted.
        """
        return None

    async def provision(self, spec: InstanceSpec) -> str:
        """Create, tag, attach and start a new instance.

        Raises ``ValueError`` for invalid input before any remote side effect.
        Once the instance exists, failures raise ``ProvisionError`` whose
        ``instance_id`` identifies the partially provisioned instance.
        """
        request = self._parse_request(spec)
        args = request.create_instance_args
        args.region_id = self.region

        disk_ids = await self._lookup_volumes(spec, args)

        if not args.image_id:
            args.image_id = self.config.default_image_id
        args.client_token = self.client.generate_client_token()

        # Classic network instances need a charge type to get a public address
        if not args.internet_charge_type and not args.v_switch_id and not self.private_ip_only:
            args.internet_charge_type = INTERNET_CHARGE_TYPE
            args.internet_max_bandwidth_out = 1

        supports_user_data = is_user_data_supported(args)
        if spec.init and supports_user_data:
            args.user_data = spec.init

        instance_id = await self.client.create_instance(args)
        logger.info(f"Created ECS instance {instance_id}")

        await self._step(
            instance_id, "wait for stopped state of",
            self.client.wait_for_instance(instance_id, InstanceStatus.STOPPED, self.config.wait_timeout),
        )

        if not self.private_ip_only and not args.v_switch_id:
            await self._allocate_public_ip(instance_id)

        _, tags = merge_tags(request.tags, spec.tags, self.namespace)
        await self._step(instance_id, "tag", self.client.add_tags(self.region, instance_id, tags))

        for disk_id in disk_ids:
            await self._step(
                instance_id, f"attach disk {disk_id} to",
                self.client.attach_disk(instance_id, disk_id),
            )

        logger.info(f"Start ECS instance {instance_id} ...")
        await self._step(instance_id, "start", self.client.start_instance(instance_id))

        await self._step(
            instance_id, "wait for running state of",
            self.client.wait_for_instance(instance_id, InstanceStatus.RUNNING, self.config.wait_timeout),
        )

        if spec.init and not supports_user_data:
            await self._configure_over_ssh(instance_id, spec.init, args.password)

        return instance_id

    async def destroy(self, instance_id: str) -> None:
        """Stop and delete an instance.

        Stopping is best effort. A delete failure is raised; otherwise a
        failure to stop is raised after the instance has been deleted.
        """
        stop_error: Optional[Exception] = None

        logger.info(f"Stopping instance {instance_id} ...")
        try:
            await self.client.stop_instance(instance_id, force=False)
        except Exception as e:
            logger.warning(f"Failed to stop instance {instance_id}: {e}")
            stop_error = e
        else:
            try:
                await self.client.wait_for_instance(
                    instance_id, InstanceStatus.STOPPED, self.config.wait_timeout
                )
            except Exception as e:
                logger.warning(f"Failed to wait instance {instance_id} stopped: {e}")

        logger.info(f"Deleting instance {instance_id} ...")
        try:
            await self.client.delete_instance(instance_id)
        except Exception as e:
            raise InstanceError(f"Failed to delete instance {instance_id}: {e}", instance_id=instance_id) from e

        if stop_error is not None:
            raise stop_error

    async def describe_instances(self, tags: Optional[Dict[str, str]] = None) -> List[InstanceDescription]:
        """Describe all instances carrying every one of the given tags."""
        _, filter_tags = merge_tags(tags, self.namespace)
        return await self._describe_instances(filter_tags, None)

    async def label(self, instance_id: str, labels: Dict[str, str]) -> None:
        """Merge labels into the instance tags and write the full set back."""
        instance = await self.client.describe_instance(instance_id)
        _, merged = merge_tags(instance.tag_map, labels)
        await self.client.add_tags(instance.region_id or self.region, instance_id, merged)

    def _parse_request(self, spec: InstanceSpec) -> CreateInstanceRequest:
        if spec.properties is None:
            raise ValueError("Properties must be set")

        try:
            properties = spec.properties
            if isinstance(properties, (str, bytes, bytearray)):
                properties = json.loads(properties)
            return CreateInstanceRequest.model_validate(properties)
        except (ValueError, TypeError, ValidationError) as e:
            raise ValueError(f"Invalid input formatting: {e}") from e

    async def _lookup_volumes(self, spec: InstanceSpec, args: CreateInstanceArgs) -> List[str]:
        """Resolve attachment IDs to disk IDs by their volume tag."""
        if not spec.attachments:
            return []

        disks = []
        for attachment in spec.attachments:
            try:
                found = await self.client.describe_disks(
                    self.region,
                    zone_id=args.zone_id,
                    tags={VOLUME_TAG: attachment.id},
                    portable=True,
                )
            except Exception as e:
                raise RuntimeError("Failed while looking up volume") from e
            disks.extend(found)

        if len(disks) != len(spec.attachments):
            wanted = [attachment.id for attachment in spec.attachments]
            raise ValueError(
                f"Not all required volumes found to attach. "
                f"Wanted {wanted}, found {[disk.disk_id for disk in disks]}"
            )
        return [disk.disk_id for disk in disks]

    async def _step(self, instance_id: str, action: str, operation: Awaitable[T]) -> T:
        """Await a post-creation step, reporting the instance id on failure."""
        try:
            return await operation
        except Exception as e:
            logger.warning(f"Failed to {action} ECS instance {instance_id}: {e}")
            raise ProvisionError(
                f"Failed to {action} instance {instance_id}: {e}", instance_id=instance_id
            ) from e

    async def _allocate_public_ip(self, instance_id: str) -> None:
        try:
            ip_address = await self.client.allocate_public_ip_address(instance_id)
        except Exception as e:
            logger.warning(f"Failed to allocate public IP address for instance {instance_id}: {e}")
        else:
            logger.info(f"Allocated public IP address {ip_address} for instance {instance_id}")

    async def _configure_over_ssh(self, instance_id: str, command: str, password: Optional[str]) -> None:
        """Run the init script over SSH for networks without user data."""
        try:
            instance = await self.client.describe_instance(instance_id)
        except Exception as e:
            logger.warning(f"Failed to describe instance {instance_id} for SSH configuration: {e}")
            return

        ip_address = instance_ip(instance, self.private_ip_only)
        if not ip_address:
            logger.warning(f"No reachable address for instance {instance_id}, skipping SSH configuration")
            return

        logger.info(f"Config ECS {ip_address} with SSH ...")
        try:
            executor = self.executor_factory(
                ip_address, self.config.ssh_port, self.config.ssh_user, password
            )
            async with executor:
                output = await executor.run(command)
        except Exception as e:
            logger.warning(f"Failed to execute command '{command}' with SSH: {e}")
            return

        logger.info(f"Execute command successfully with SSH: {output}")

    async def _describe_instances(
        self, tags: Dict[str, str], pagination: Optional[Pagination]
    ) -> List[InstanceDescription]:
        instances, result = await self.client.describe_instances(self.region, tags, pagination)
        descriptions = [to_description(instance, self.private_ip_only) for instance in instances]

        if result is not None:
            next_page = result.next_page()
            if next_page is not None:
                # There are more pages of results.
                descriptions.extend(await self._describe_instances(tags, next_page))

        return descriptions
