"""JSON-RPC client for talking to a running plugin."""

import itertools
from pathlib import Path
from typing import Any, Dict, Optional

import httpx


DEFAULT_SOCKET = Path("~/.infrakit/plugins/instance-aliyun")


class PluginClientError(Exception):
    """Communication or remote error."""

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.data = data or {}


class PluginClient:
    """Client for the plugin unix socket."""

    def __init__(self, socket_path: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None):
        """Initialize plugin client."""
        self.socket_path = Path(socket_path or DEFAULT_SOCKET).expanduser()
        self.base_url = "http://localhost"
        self.transport = transport
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Invoke a JSON-RPC method and return its result."""
        if self.transport is None and not self.socket_path.exists():
            raise PluginClientError(f"Plugin socket not found at {self.socket_path}")

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
            "id": next(self._ids),
        }

        try:
            with httpx.Client(transport=self._transport(), base_url=self.base_url, timeout=None) as client:
                response = client.post("/", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.RequestError as e:
            raise PluginClientError(f"Connection error: {e}")
        except httpx.HTTPStatusError as e:
            raise PluginClientError(f"HTTP error {e.response.status_code}: {e.response.text}")
        except ValueError as e:
            raise PluginClientError(f"Invalid response: {e}")

        error = data.get("error")
        if error:
            raise PluginClientError(f"Plugin error: {error.get('message')}", error.get("data"))
        return data.get("result")

    def info(self) -> Dict[str, Any]:
        """Fetch the plugin's vendor and API description."""
        try:
            with httpx.Client(transport=self._transport(), base_url=self.base_url, timeout=10.0) as client:
                response = client.get("/info/api.json")
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise PluginClientError(f"Connection error: {e}")

    def _transport(self) -> httpx.BaseTransport:
        if self.transport is not None:
            return self.transport
        return httpx.HTTPTransport(uds=str(self.socket_path))
