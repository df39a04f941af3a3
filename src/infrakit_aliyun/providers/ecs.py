"""Aliyun ECS client backed by the Aliyun Python SDK."""

import asyncio
import base64
import json
import logging
import secrets
import string
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from aliyunsdkcore.acs_exception.exceptions import ClientException, ServerException
from aliyunsdkcore.client import AcsClient
from aliyunsdkcore.request import CommonRequest

from infrakit_aliyun.models.ecs import (
    CreateInstanceArgs,
    DiskItem,
    InstanceAttributes,
    Pagination,
    PaginationResult,
)
from infrakit_aliyun.providers.base import (
    ComputeClient,
    ComputeError,
    DEFAULT_POLL_INTERVAL,
    INSTANCE_NOT_FOUND,
)
from infrakit_aliyun.utils.tags import tag_params


logger = logging.getLogger(__name__)

API_VERSION = "2014-05-26"
DEFAULT_ENDPOINT = "https://ecs.aliyuncs.com"
DEFAULT_SDK_REGION = "cn-hangzhou"
CLIENT_TOKEN_LENGTH = 32
DISK_PAGE_SIZE = 100


def flatten_params(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten nested parameters into ECS query form.

    Nested mappings become ``Parent.Child`` and lists become ``Parent.1.Child``.
    ``None`` and empty strings are skipped.
    """
    params: Dict[str, str] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if value is None or value == "":
            continue
        if isinstance(value, Mapping):
            params.update(flatten_params(value, prefix=f"{name}."))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value, start=1):
                if isinstance(item, Mapping):
                    params.update(flatten_params(item, prefix=f"{name}.{index}."))
                elif item is not None:
                    params[f"{name}.{index}"] = str(item)
        elif isinstance(value, bool):
            params[name] = "true" if value else "false"
        else:
            params[name] = str(value)
    return params


class ECSClient(ComputeClient):
    """Compute client for Aliyun ECS.

    One SDK client is created per ``ECSClient`` and shared by every call.
    SDK calls are blocking, so each one runs in a worker thread.
    """

    def __init__(
        self,
        access_key_id: str,
        access_key_secret: str,
        region: Optional[str] = None,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sdk_client: Optional[AcsClient] = None,
    ):
        """Initialize ECS client."""
        self.region = region
        self.endpoint = endpoint
        self.poll_interval = poll_interval

        parts = urlsplit(endpoint if "//" in endpoint else f"https://{endpoint}")
        self._protocol = parts.scheme or "https"
        self._domain = parts.netloc

        self._client = sdk_client or AcsClient(
            ak=access_key_id,
            secret=access_key_secret,
            region_id=region or DEFAULT_SDK_REGION,
            connect_timeout=int(timeout),
            timeout=int(timeout),
        )

    def _build_request(self, action: str, params: Mapping[str, str]) -> CommonRequest:
        request = CommonRequest(domain=self._domain, version=API_VERSION, action_name=action)
        request.set_accept_format("json")
        request.set_method("POST")
        request.set_protocol_type(self._protocol)
        for key, value in params.items():
            request.add_query_param(key, value)
        return request

    async def request(self, action: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Send an API request and return the decoded response."""
        request = self._build_request(action, params or {})

        logger.debug(f"ECS {action} {sorted((params or {}).keys())}")
        try:
            body = await asyncio.to_thread(self._client.do_action_with_exception, request)
        except ServerException as e:
            raise ComputeError(
                e.get_error_msg(),
                code=e.get_error_code(),
                request_id=e.get_request_id(),
            ) from e
        except ClientException as e:
            raise ComputeError(
                f"{action} request failed: {e.get_error_msg()}",
                code=e.get_error_code(),
            ) from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise ComputeError(f"{action} returned invalid response") from e

    async def create_instance(self, args: CreateInstanceArgs) -> str:
        params = flatten_params(args.model_dump(by_alias=True, exclude_none=True))
        if params.get("UserData"):
            params["UserData"] = base64.b64encode(params["UserData"].encode()).decode()
        data = await self.request("CreateInstance", params)
        return data["InstanceId"]

    async def start_instance(self, instance_id: str) -> None:
        await self.request("StartInstance", {"InstanceId": instance_id})

    async def stop_instance(self, instance_id: str, force: bool = False) -> None:
        await self.request("StopInstance", {
            "InstanceId": instance_id,
            "ForceStop": "true" if force else "false",
        })

    async def delete_instance(self, instance_id: str) -> None:
        await self.request("DeleteInstance", {"InstanceId": instance_id})

    async def describe_instance(self, instance_id: str) -> InstanceAttributes:
        if not self.region:
            raise ComputeError("Region must be set to describe an instance")
        data = await self.request("DescribeInstances", {
            "RegionId": self.region,
            "InstanceIds": json.dumps([instance_id]),
        })
        instances = data.get("Instances", {}).get("Instance", [])
        if not instances:
            raise ComputeError(
                f"Instance {instance_id} not found",
                code=INSTANCE_NOT_FOUND,
                request_id=data.get("RequestId"),
            )
        return InstanceAttributes.model_validate(instances[0])

    async def describe_instances(
        self,
        region: str,
        tags: Optional[Dict[str, str]] = None,
        pagination: Optional[Pagination] = None,
    ) -> Tuple[List[InstanceAttributes], Optional[PaginationResult]]:
        pagination = pagination or Pagination()
        params = {
            "RegionId": region,
            "PageNumber": str(pagination.page_number),
            "PageSize": str(pagination.page_size),
        }
        params.update(tag_params(tags))

        data = await self.request("DescribeInstances", params)
        instances = [
            InstanceAttributes.model_validate(item)
            for item in data.get("Instances", {}).get("Instance", [])
        ]
        result = None
        if "TotalCount" in data:
            result = PaginationResult(
                total_count=int(data["TotalCount"]),
                page_number=int(data.get("PageNumber", pagination.page_number)),
                page_size=int(data.get("PageSize", pagination.page_size)),
            )
        return instances, result

    async def describe_disks(
        self,
        region: str,
        zone_id: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
        portable: Optional[bool] = None,
    ) -> List[DiskItem]:
        params = flatten_params({
            "RegionId": region,
            "ZoneId": zone_id,
            "Portable": portable,
            "PageSize": DISK_PAGE_SIZE,
        })
        params.update(tag_params(tags))

        data = await self.request("DescribeDisks", params)
        return [DiskItem.model_validate(item) for item in data.get("Disks", {}).get("Disk", [])]

    async def attach_disk(self, instance_id: str, disk_id: str, device: Optional[str] = None) -> None:
        params = {"InstanceId": instance_id, "DiskId": disk_id}
        if device:
            params["Device"] = device
        await self.request("AttachDisk", params)

    async def allocate_public_ip_address(self, instance_id: str) -> str:
        data = await self.request("AllocatePublicIpAddress", {"InstanceId": instance_id})
        return data.get("IpAddress", "")

    async def add_tags(self, region: str, resource_id: str, tags: Dict[str, str], resource_type: str = "instance") -> None:
        params = {
            "RegionId": region,
            "ResourceId": resource_id,
            "ResourceType": resource_type,
        }
        params.update(tag_params(tags))
        await self.request("AddTags", params)

    def generate_client_token(self) -> str:
        return "".join(secrets.choice(string.ascii_letters) for _ in range(CLIENT_TOKEN_LENGTH))
