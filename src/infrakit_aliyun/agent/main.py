"""Main plugin agent implementation."""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from infrakit_aliyun.agent.config import ConfigManager
from infrakit_aliyun.agent.provisioner import Provisioner
from infrakit_aliyun.agent.server import PluginServer
from infrakit_aliyun.models.config import PluginConfig
from infrakit_aliyun.providers.ecs import ECSClient
from infrakit_aliyun.providers.metadata import get_region
from infrakit_aliyun.utils.logging import setup_logging


logger = logging.getLogger(__name__)


async def resolve_region(config: PluginConfig) -> str:
    """Return the configured region, asking the metadata service otherwise."""
    if config.aliyun.region:
        return config.aliyun.region

    try:
        region = await get_region(config.aliyun.metadata_endpoint)
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to get region from metadata: {e}")
        raise RuntimeError("Unable to determine region") from e

    logger.info(f"Using region {region} from instance metadata")
    return region


async def build_provisioner(config: PluginConfig) -> Provisioner:
    """Wire the ECS client and provisioner from configuration."""
    region = await resolve_region(config)

    client = ECSClient(
        access_key_id=config.aliyun.access_key_id,
        access_key_secret=config.aliyun.access_key_secret,
        region=region,
        endpoint=config.aliyun.endpoint,
        timeout=config.aliyun.request_timeout,
        poll_interval=config.provisioner.poll_interval,
    )
    return Provisioner(
        client,
        region,
        private_ip_only=config.aliyun.private_ip_only,
        config=config.provisioner,
        namespace=config.namespace,
    )


class PluginAgent:
    """Runs the plugin server until a shutdown signal arrives."""

    def __init__(self, config_file: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
        """Initialize the agent."""
        self.config_manager = ConfigManager(config_file)
        self.overrides = overrides or {}
        self.server: Optional[PluginServer] = None
        self.shutdown_event = asyncio.Event()

    async def initialize(self):
        """Initialize agent components."""
        config = await self.config_manager.load(self.overrides)
        setup_logging(config.server.log_level)

        provisioner = await build_provisioner(config)
        self.server = PluginServer(config.server.socket_path, provisioner)

        logger.info(f"Plugin {config.server.name} initialized (region={provisioner.region})")

    async def run(self):
        """Run the agent main loop."""
        await self.initialize()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.shutdown)

        try:
            await self.server.start()
            logger.info("Plugin started, waiting for shutdown signal")
            await self.shutdown_event.wait()
        finally:
            await self._cleanup()

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self.shutdown_event.set()

    async def _cleanup(self):
        if self.server:
            await self.server.stop()
        logger.info("Plugin cleanup completed")


async def run_agent(config_file: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
    """Run the plugin agent."""
    agent = PluginAgent(config_file=config_file, overrides=overrides)
    await agent.run()
