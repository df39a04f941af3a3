"""Mapping of ECS instance records to plugin descriptions."""

from infrakit_aliyun.models.ecs import InstanceAttributes
from infrakit_aliyun.models.instance import InstanceDescription


def instance_ip(instance: InstanceAttributes, private_ip_only: bool) -> str:
    """Select the single address that identifies an instance.

    Private mode prefers the inner address, then the VPC private address.
    Public mode prefers the public address, then the elastic IP. An empty
    string means no address of the requested class is assigned.
    """
    if private_ip_only:
        return instance.inner_ip_address.first() or instance.vpc_attributes.private_ip_address.first()
    return instance.public_ip_address.first() or instance.eip_address.ip_address


def to_description(instance: InstanceAttributes, private_ip_only: bool) -> InstanceDescription:
    """Convert an instance record into a normalized description."""
    return InstanceDescription(
        id=instance.instance_id,
        logical_id=instance_ip(instance, private_ip_only),
        tags=instance.tag_map,
    )
