"""Compute and remote execution providers."""

from infrakit_aliyun.providers.base import (
    ComputeClient,
    ComputeError,
    InstanceStatus,
    RemoteExecutor,
)
from infrakit_aliyun.providers.ecs import ECSClient
from infrakit_aliyun.providers.ssh import SSHExecutor, ssh_executor

__all__ = [
    "ComputeClient",
    "ComputeError",
    "InstanceStatus",
    "RemoteExecutor",
    "ECSClient",
    "SSHExecutor",
    "ssh_executor",
]
