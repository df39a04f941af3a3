"""Configuration models."""

from pathlib import Path
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_IMAGE_ID = "ubuntu_160401_64_40G_cloudinit_20161115.vhd"


class ServerConfig(BaseModel):
    """Plugin server configuration."""
    name: str = Field(default="instance-aliyun", description="Plugin name to advertise for discovery")
    socket_dir: str = Field(default="~/.infrakit/plugins")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @property
    def socket_path(self) -> Path:
        """Unix socket the plugin listens on."""
        return Path(self.socket_dir).expanduser() / self.name


class AliyunConfig(BaseModel):
    """Aliyun account and endpoint configuration."""
    region: Optional[str] = None
    access_key_id: str = Field(default="")
    access_key_secret: str = Field(default="", repr=False)
    private_ip_only: bool = Field(default=True, description="Using private ip only")
    endpoint: str = Field(default="https://ecs.aliyuncs.com")
    metadata_endpoint: str = Field(default="http://100.100.100.200/latest/meta-data")
    request_timeout: float = Field(default=30.0, gt=0)


class ProvisionerConfig(BaseModel):
    """Provisioning workflow tunables."""
    wait_timeout: int = Field(default=300, ge=1)
    poll_interval: float = Field(default=5.0, gt=0)
    default_image_id: str = Field(default=DEFAULT_IMAGE_ID)
    ssh_user: str = Field(default="root")
    ssh_port: int = Field(default=22, ge=1, le=65535)


class PluginConfig(BaseModel):
    """Main configuration model."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    aliyun: AliyunConfig = Field(default_factory=AliyunConfig)
    provisioner: ProvisionerConfig = Field(default_factory=ProvisionerConfig)
    namespace: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")
