"""Pydantic models for configuration, instance specs and ECS records."""

from infrakit_aliyun.models.config import (
    PluginConfig,
    ServerConfig,
    AliyunConfig,
    ProvisionerConfig,
    DEFAULT_IMAGE_ID,
)
from infrakit_aliyun.models.instance import Attachment, InstanceSpec, InstanceDescription, VendorInfo
from infrakit_aliyun.models.ecs import (
    CreateInstanceArgs,
    CreateInstanceRequest,
    DiskItem,
    InstanceAttributes,
    Pagination,
    PaginationResult,
)

__all__ = [
    "PluginConfig",
    "ServerConfig",
    "AliyunConfig",
    "ProvisionerConfig",
    "DEFAULT_IMAGE_ID",
    "Attachment",
    "InstanceSpec",
    "InstanceDescription",
    "VendorInfo",
    "CreateInstanceArgs",
    "CreateInstanceRequest",
    "DiskItem",
    "InstanceAttributes",
    "Pagination",
    "PaginationResult",
]
