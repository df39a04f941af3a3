"""Tests for instance and ECS record models."""

import pytest
from pydantic import ValidationError

from infrakit_aliyun.models.ecs import (
    CreateInstanceRequest,
    InstanceAttributes,
    Pagination,
    PaginationResult,
)
from infrakit_aliyun.models.instance import InstanceDescription, InstanceSpec, VendorInfo


class TestInstanceSpec:
    """Test InstanceSpec model."""

    def test_wire_names(self):
        """Specs parse from the plugin's wire field names."""
        spec = InstanceSpec.model_validate({
            "Properties": {"CreateInstanceArgs": {}},
            "Tags": {"group": "workers"},
            "Init": "echo hi",
            "Attachments": [{"ID": "vol-1", "Type": "disk"}],
            "LogicalID": "10.0.0.5",
        })

        assert spec.tags == {"group": "workers"}
        assert spec.init == "echo hi"
        assert spec.attachments[0].id == "vol-1"
        assert spec.logical_id == "10.0.0.5"

    def test_defaults(self):
        """Everything but properties is optional."""
        spec = InstanceSpec()

        assert spec.properties is None
        assert spec.tags == {}
        assert spec.init == ""
        assert spec.attachments == []

    def test_null_fields(self):
        """Null tags and attachments sent by the orchestrator read as empty."""
        spec = InstanceSpec.model_validate({
            "Properties": {"CreateInstanceArgs": {}},
            "Tags": None,
            "Init": "",
            "Attachments": None,
            "LogicalID": None,
        })

        assert spec.tags == {}
        assert spec.attachments == []
        assert spec.logical_id is None


class TestCreateInstanceRequest:
    """Test CreateInstanceRequest model."""

    def test_parse(self):
        """ECS parameter names map to fields, unknown ones are kept."""
        request = CreateInstanceRequest.model_validate({
            "CreateInstanceArgs": {
                "ZoneId": "cn-hangzhou-b",
                "VSwitchId": "vsw-1",
                "InternetMaxBandwidthOut": 5,
                "DeploymentSetId": "ds-1",
            },
            "Tags": {"a": "1"},
        })

        args = request.create_instance_args
        assert args.zone_id == "cn-hangzhou-b"
        assert args.v_switch_id == "vsw-1"
        assert args.internet_max_bandwidth_out == 5
        assert args.model_dump(by_alias=True, exclude_none=True)["DeploymentSetId"] == "ds-1"
        assert request.tags == {"a": "1"}

    def test_null_sections(self):
        """Null args and tags are treated as empty."""
        request = CreateInstanceRequest.model_validate({"CreateInstanceArgs": None, "Tags": None})

        assert request.create_instance_args.image_id is None
        assert request.tags == {}

    def test_invalid_tags(self):
        """Tags must map strings to strings."""
        with pytest.raises(ValidationError):
            CreateInstanceRequest.model_validate({"Tags": ["a", "b"]})


class TestInstanceAttributes:
    """Test InstanceAttributes model."""

    def test_parse_api_record(self):
        """API records parse into addresses and tags."""
        instance = InstanceAttributes.model_validate({
            "InstanceId": "i-1",
            "RegionId": "cn-hangzhou",
            "Status": "Running",
            "VpcAttributes": {"PrivateIpAddress": {"IpAddress": ["172.16.0.3"]}},
            "EipAddress": {"IpAddress": "47.9.9.9"},
            "Tags": {"Tag": [{"TagKey": "a", "TagValue": "1"}]},
        })

        assert instance.vpc_attributes.private_ip_address.first() == "172.16.0.3"
        assert instance.eip_address.ip_address == "47.9.9.9"
        assert instance.inner_ip_address.first() == ""
        assert instance.tag_map == {"a": "1"}


class TestPagination:
    """Test PaginationResult.next_page."""

    def test_more_pages(self):
        """A short count so far asks for the next page."""
        assert PaginationResult(total_count=120, page_number=2, page_size=50).next_page() == Pagination(3, 50)

    def test_last_page(self):
        """Once every record is covered there is no next page."""
        assert PaginationResult(total_count=100, page_number=2, page_size=50).next_page() is None

    def test_zero_page_size(self):
        """A zero page size never loops."""
        assert PaginationResult(total_count=10, page_number=1, page_size=0).next_page() is None


def test_description_dump():
    """Descriptions dump to the plugin's wire names."""
    description = InstanceDescription(id="i-1", logical_id="10.0.0.1", tags={"a": "1"})
    assert description.model_dump(by_alias=True) == {"ID": "i-1", "LogicalID": "10.0.0.1", "Tags": {"a": "1"}}


def test_vendor_info_frozen():
    """Vendor info cannot be modified."""
    info = VendorInfo(name="n", version="1", url="u")
    with pytest.raises(ValidationError):
        info.name = "other"
