"""
InfraKit instance plugin for Aliyun ECS.

Provisions, describes, labels and destroys ECS instances on behalf of an
InfraKit group controller.
"""

__version__ = "0.3.0"

# Re-export key components for easier access
from infrakit_aliyun.models.config import PluginConfig
from infrakit_aliyun.models.instance import InstanceDescription, InstanceSpec, VendorInfo

__all__ = [
    "PluginConfig",
    "InstanceDescription",
    "InstanceSpec",
    "VendorInfo",
]
