"""Plugin-facing instance models."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Attachment(BaseModel):
    """Reference to a pre-existing volume to attach."""
    id: str = Field(..., alias="ID", description="Volume identifier")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InstanceSpec(BaseModel):
    """Declarative specification for a single instance."""
    properties: Optional[Any] = Field(None, alias="Properties")
    tags: Optional[Dict[str, str]] = Field(default_factory=dict, alias="Tags")
    init: str = Field(default="", alias="Init")
    attachments: Optional[List[Attachment]] = Field(default_factory=list, alias="Attachments")
    logical_id: Optional[str] = Field(None, alias="LogicalID")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        return {} if v is None else v

    @field_validator("attachments", mode="before")
    @classmethod
    def default_attachments(cls, v):
        return [] if v is None else v

    @field_validator("init", mode="before")
    @classmethod
    def default_init(cls, v):
        return "" if v is None else v


class InstanceDescription(BaseModel):
    """Normalized description of an existing instance."""
    id: str = Field(..., alias="ID")
    logical_id: Optional[str] = Field(None, alias="LogicalID")
    tags: Dict[str, str] = Field(default_factory=dict, alias="Tags")

    model_config = ConfigDict(populate_by_name=True)


class VendorInfo(BaseModel):
    """Static plugin identification."""
    name: str = Field(..., alias="Name")
    version: str = Field(..., alias="Version")
    url: str = Field(..., alias="URL")

    model_config = ConfigDict(populate_by_name=True, frozen=True)
