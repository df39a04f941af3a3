"""ECS request and response models.

Field aliases follow the PascalCase parameter names of the ECS API so the
same models parse user-supplied properties and API responses alike.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal


class ECSModel(BaseModel):
    """Base for models mirroring ECS parameter names."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, extra="ignore")


class SystemDisk(ECSModel):
    category: Optional[str] = None
    size: Optional[int] = None
    disk_name: Optional[str] = None
    description: Optional[str] = None


class DataDisk(ECSModel):
    category: Optional[str] = None
    size: Optional[int] = None
    snapshot_id: Optional[str] = None
    disk_name: Optional[str] = None
    description: Optional[str] = None
    device: Optional[str] = None
    delete_with_instance: Optional[bool] = None


class CreateInstanceArgs(ECSModel):
    """Parameters of the CreateInstance call.

    Parameters not modelled here are kept and forwarded verbatim.
    """
    region_id: Optional[str] = None
    zone_id: Optional[str] = None
    image_id: Optional[str] = None
    instance_type: Optional[str] = None
    security_group_id: Optional[str] = None
    instance_name: Optional[str] = None
    description: Optional[str] = None
    internet_charge_type: Optional[str] = None
    internet_max_bandwidth_in: Optional[int] = None
    internet_max_bandwidth_out: Optional[int] = None
    host_name: Optional[str] = None
    password: Optional[str] = Field(None, repr=False)
    io_optimized: Optional[str] = None
    system_disk: Optional[SystemDisk] = None
    data_disk: Optional[List[DataDisk]] = None
    v_switch_id: Optional[str] = None
    private_ip_address: Optional[str] = None
    client_token: Optional[str] = None
    instance_charge_type: Optional[str] = None
    period: Optional[int] = None
    user_data: Optional[str] = None
    key_pair_name: Optional[str] = None
    ram_role_name: Optional[str] = None
    spot_strategy: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, extra="allow")


class CreateInstanceRequest(ECSModel):
    """Shape of the opaque Properties blob handed to Provision."""
    create_instance_args: CreateInstanceArgs = Field(default_factory=CreateInstanceArgs)
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("create_instance_args", mode="before")
    @classmethod
    def default_args(cls, v):
        return {} if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        return {} if v is None else v


class IpAddressSet(ECSModel):
    ip_address: List[str] = Field(default_factory=list)

    def first(self) -> str:
        return self.ip_address[0] if self.ip_address else ""


class VpcAttributes(ECSModel):
    vpc_id: str = ""
    v_switch_id: str = ""
    private_ip_address: IpAddressSet = Field(default_factory=IpAddressSet)
    nat_ip_address: str = ""


class EipAddress(ECSModel):
    ip_address: str = ""
    allocation_id: str = ""
    bandwidth: Optional[int] = None


class Tag(ECSModel):
    tag_key: str
    tag_value: str = ""


class TagSet(ECSModel):
    tag: List[Tag] = Field(default_factory=list)


class InstanceAttributes(ECSModel):
    """An instance record as returned by DescribeInstances."""
    instance_id: str
    instance_name: str = ""
    region_id: str = ""
    zone_id: str = ""
    status: str = ""
    instance_type: str = ""
    image_id: str = ""
    inner_ip_address: IpAddressSet = Field(default_factory=IpAddressSet)
    public_ip_address: IpAddressSet = Field(default_factory=IpAddressSet)
    vpc_attributes: VpcAttributes = Field(default_factory=VpcAttributes)
    eip_address: EipAddress = Field(default_factory=EipAddress)
    tags: TagSet = Field(default_factory=TagSet)

    @property
    def tag_map(self) -> Dict[str, str]:
        """Flatten the ECS tag list into a plain mapping."""
        return {item.tag_key: item.tag_value for item in self.tags.tag}


class DiskItem(ECSModel):
    """A disk record as returned by DescribeDisks."""
    disk_id: str
    region_id: str = ""
    zone_id: str = ""
    disk_name: str = ""
    category: str = ""
    size: Optional[int] = None
    status: str = ""
    portable: Optional[bool] = None
    instance_id: str = ""
    tags: TagSet = Field(default_factory=TagSet)


@dataclass
class Pagination:
    """Requested page of a paginated call."""
    page_number: int = 1
    page_size: int = 50


@dataclass
class PaginationResult:
    """Paging information returned with a page of results."""
    total_count: int
    page_number: int
    page_size: int

    def next_page(self) -> Optional[Pagination]:
        """Return the next page to request, or None when this was the last."""
        if self.page_size <= 0 or self.page_number * self.page_size >= self.total_count:
            return None
        return Pagination(page_number=self.page_number + 1, page_size=self.page_size)
