"""JSON-RPC server exposing the instance plugin over a unix socket."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from aiohttp import web
from pydantic import ValidationError

from infrakit_aliyun.agent.provisioner import InstanceError, Provisioner
from infrakit_aliyun.models.instance import InstanceSpec


logger = logging.getLogger(__name__)

INSTANCE_API = {"Name": "Instance", "Version": "0.3.0"}

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000


class RPCError(Exception):
    """Error reported back to the caller as a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class PluginServer:
    """Plugin HTTP server speaking JSON-RPC 2.0."""

    def __init__(self, socket_path: Path, provisioner: Provisioner):
        """Initialize server."""
        self.socket_path = Path(socket_path)
        self.provisioner = provisioner
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""
        self.app.router.add_post('/', self._handle_rpc)
        self.app.router.add_get('/info/api.json', self._handle_info)

    async def start(self):
        """Start the server."""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        if self.socket_path.exists():
            self.socket_path.unlink()
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

        site = web.UnixSite(self.runner, str(self.socket_path))
        await site.start()
        os.chmod(self.socket_path, 0o660)
        logger.info(f"Plugin listening on unix:{self.socket_path}")

    async def stop(self):
        """Stop the server."""
        if self.runner:
            await self.runner.cleanup()
        if self.socket_path.exists():
            self.socket_path.unlink()
        logger.info("Plugin server stopped")

    async def _handle_info(self, request: web.Request) -> web.Response:
        """Describe the plugin."""
        info = self.provisioner.vendor_info().model_dump(by_alias=True)
        return web.json_response({"Vendor": info, "Implements": [INSTANCE_API]})

    async def _handle_rpc(self, request: web.Request) -> web.Response:
        """Handle a JSON-RPC request."""
        request_id = None
        try:
            try:
                payload = await request.json()
            except ValueError as e:
                raise RPCError(PARSE_ERROR, f"Parse error: {e}")

            if not isinstance(payload, dict) or not isinstance(payload.get("method"), str):
                raise RPCError(INVALID_REQUEST, "Invalid request")
            request_id = payload.get("id")

            result = await self._dispatch(payload["method"], _params(payload.get("params")))
            return web.json_response({"jsonrpc": "2.0", "result": result, "id": request_id})

        except RPCError as e:
            error = {"code": e.code, "message": e.message}
            if e.data is not None:
                error["data"] = e.data
            return web.json_response({"jsonrpc": "2.0", "error": error, "id": request_id})

    async def _dispatch(self, method: str, params: Dict[str, Any]) -> Any:
        handlers = {
            "Plugin.Implements": self._handle_implements,
            "Instance.Validate": self._handle_validate,
            "Instance.Provision": self._handle_provision,
            "Instance.Label": self._handle_label,
            "Instance.Destroy": self._handle_destroy,
            "Instance.DescribeInstances": self._handle_describe,
        }

        handler = handlers.get(method)
        if not handler:
            raise RPCError(METHOD_NOT_FOUND, f"Unknown method: {method}")

        try:
            return await handler(params)
        except RPCError:
            raise
        except ValidationError as e:
            raise RPCError(INVALID_PARAMS, f"Invalid params: {e}")
        except InstanceError as e:
            logger.error(f"{method} failed: {e}")
            data = {"ID": e.instance_id} if e.instance_id else None
            raise RPCError(SERVER_ERROR, str(e), data)
        except Exception as e:
            logger.error(f"{method} failed: {e}", exc_info=True)
            raise RPCError(SERVER_ERROR, str(e))

    # -- Method handlers (delegated to the Provisioner) --

    async def _handle_implements(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"APIs": [INSTANCE_API]}

    async def _handle_validate(self, params: Dict[str, Any]) -> Dict[str, Any]:
        await self.provisioner.validate(params.get("Properties"))
        return {"OK": True}

    async def _handle_provision(self, params: Dict[str, Any]) -> Dict[str, Any]:
        spec = InstanceSpec.model_validate(params.get("Spec") or {})
        instance_id = await self.provisioner.provision(spec)
        return {"ID": instance_id}

    async def _handle_label(self, params: Dict[str, Any]) -> Dict[str, Any]:
        instance_id = _require(params, "Instance")
        await self.provisioner.label(instance_id, params.get("Labels") or {})
        return {"OK": True}

    async def _handle_destroy(self, params: Dict[str, Any]) -> Dict[str, Any]:
        instance_id = _require(params, "Instance")
        await self.provisioner.destroy(instance_id)
        return {"OK": True}

    async def _handle_describe(self, params: Dict[str, Any]) -> Dict[str, Any]:
        descriptions = await self.provisioner.describe_instances(params.get("Tags") or {})
        return {"Descriptions": [d.model_dump(by_alias=True) for d in descriptions]}


def _params(raw: Any) -> Dict[str, Any]:
    """Normalize positional ([{...}]) and named params."""
    if raw is None:
        return {}
    if isinstance(raw, list):
        raw = raw[0] if raw else {}
    if not isinstance(raw, dict):
        raise RPCError(INVALID_PARAMS, "Params must be an object")
    return raw


def _require(params: Dict[str, Any], key: str) -> Any:
    value = params.get(key)
    if not value:
        raise RPCError(INVALID_PARAMS, f"{key} is required")
    return value
