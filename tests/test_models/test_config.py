"""Tests for configuration models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from infrakit_aliyun.models.config import (
    DEFAULT_IMAGE_ID,
    AliyunConfig,
    PluginConfig,
    ProvisionerConfig,
    ServerConfig,
)


class TestServerConfig:
    """Test ServerConfig model."""

    def test_default_values(self):
        """Test default server configuration values."""
        config = ServerConfig()

        assert config.name == "instance-aliyun"
        assert config.log_level == "INFO"
        assert config.socket_path == Path("~/.infrakit/plugins").expanduser() / "instance-aliyun"

    def test_socket_path_follows_name(self):
        """The socket is named after the plugin."""
        config = ServerConfig(name="aliyun-workers", socket_dir="/run/infrakit")
        assert config.socket_path == Path("/run/infrakit/aliyun-workers")

    def test_log_level_validation(self):
        """Test log level validation."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            config = ServerConfig(log_level=level)
            assert config.log_level == level.upper()

        # Case insensitive
        config = ServerConfig(log_level="debug")
        assert config.log_level == "DEBUG"

        with pytest.raises(ValidationError) as exc_info:
            ServerConfig(log_level="INVALID")

        assert "log_level" in str(exc_info.value)


class TestAliyunConfig:
    """Test AliyunConfig model."""

    def test_defaults(self):
        """Private addresses are used unless told otherwise."""
        config = AliyunConfig()

        assert config.region is None
        assert config.private_ip_only is True
        assert config.endpoint == "https://ecs.aliyuncs.com"

    def test_secret_hidden_from_repr(self):
        """The access key secret never shows up in repr."""
        config = AliyunConfig(access_key_id="id", access_key_secret="very-secret")
        assert "very-secret" not in repr(config)


class TestProvisionerConfig:
    """Test ProvisionerConfig model."""

    def test_defaults(self):
        """Test default provisioning tunables."""
        config = ProvisionerConfig()

        assert config.wait_timeout == 300
        assert config.default_image_id == DEFAULT_IMAGE_ID
        assert config.ssh_user == "root"
        assert config.ssh_port == 22

    def test_invalid_values(self):
        """Non-positive timeouts and bad ports are rejected."""
        with pytest.raises(ValidationError):
            ProvisionerConfig(wait_timeout=0)
        with pytest.raises(ValidationError):
            ProvisionerConfig(ssh_port=70000)


class TestPluginConfig:
    """Test PluginConfig model."""

    def test_nested_sections(self):
        """Sections are parsed from plain mappings."""
        config = PluginConfig.model_validate({
            "server": {"name": "aliyun"},
            "aliyun": {"region": "cn-beijing", "private_ip_only": False},
            "namespace": {"cluster": "prod"},
            "unknown": {"ignored": True},
        })

        assert config.server.name == "aliyun"
        assert config.aliyun.region == "cn-beijing"
        assert config.aliyun.private_ip_only is False
        assert config.namespace == {"cluster": "prod"}
