"""Method dispatch: one request body in, one well-formed response body out."""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict

from pydantic import ValidationError

from .codec import RpcRequest, decode_request, encode_result, encode_rpc_error
from .errors import (
    BatchTimeoutError,
    ConfigurationRpcError,
    InternalError,
    InvalidParams,
    MethodNotFound,
    RpcError,
)
from ..core.connector import DestinationConnector
from ..core.coordinator import BatchDeadlineExceeded, InvalidBatchError
from ..destinations.base import DestinationError, UnknownObjectError
from ..schema.validation import ConfigurationError
from ..utils.logging import get_logger


Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class Method(str, Enum):
    """The complete set of methods a connector answers."""
    TEST_CONNECTION = "test_connection"
    LIST_OBJECTS = "list_objects"
    LIST_FIELDS = "list_fields"
    SUPPORTED_OPERATIONS = "supported_operations"
    GET_SYNC_SPEED = "get_sync_speed"
    SYNC_BATCH = "sync_batch"


class MethodDispatcher:
    """Routes decoded requests to connector handlers.

    ``dispatch`` never raises: decode failures, unknown methods and handler
    exceptions all become JSON-RPC error responses.
    """

    def __init__(self, connector: DestinationConnector):
        """Initialize dispatcher.

        Args:
            connector: Connector exposing one coroutine per Method
        """
        self.logger = get_logger(self.__class__.__name__)
        self._handlers: Dict[Method, Handler] = {
            Method.TEST_CONNECTION: connector.test_connection,
            Method.LIST_OBJECTS: connector.list_objects,
            Method.LIST_FIELDS: connector.list_fields,
            Method.SUPPORTED_OPERATIONS: connector.supported_operations,
            Method.GET_SYNC_SPEED: connector.get_sync_speed,
            Method.SYNC_BATCH: connector.sync_batch,
        }

        missing = set(Method) - set(self._handlers)
        if missing:
            raise TypeError(f"No handler for methods: {sorted(m.value for m in missing)}")

    async def dispatch(self, body: bytes) -> str:
        """Handle one request body and return the response body."""
        try:
            request = decode_request(body)
        except RpcError as e:
            self.logger.warning("Rejected request", code=e.code, error=e.message)
            return encode_rpc_error(e)

        try:
            return await self._dispatch_request(request)
        except Exception as e:
            # Last resort: the response itself could not be built
            self.logger.exception("Failed to build response", method=request.method, id=request.id)
            return encode_rpc_error(InternalError(f"Internal error: {e.__class__.__name__}", request.id))

    async def _dispatch_request(self, request: RpcRequest) -> str:
        try:
            method = Method(request.method)
        except ValueError:
            self.logger.warning("Unknown method", method=request.method, id=request.id)
            return encode_rpc_error(MethodNotFound(f"Method not found: {request.method}", request.id))

        self.logger.info("Dispatching request", method=method.value, id=request.id)

        try:
            result = await self._handlers[method](request.params)
            response = encode_result(request.id, result)
        except Exception as e:
            error = self.to_rpc_error(e, request.id)
            self.logger.warning(
                "Request failed",
                method=method.value,
                id=request.id,
                code=error.code,
                error=error.message
            )
            return encode_rpc_error(error)

        self.logger.info("Request succeeded", method=method.value, id=request.id)
        return response

    def to_rpc_error(self, error: Exception, request_id: Any) -> RpcError:
        """Map a handler exception to the JSON-RPC error reported for it."""
        if isinstance(error, RpcError):
            error.request_id = request_id
            return error

        if isinstance(error, ValidationError):
            return InvalidParams(f"Invalid params: {self._summarize(error)}", request_id)

        if isinstance(error, (InvalidBatchError, UnknownObjectError)):
            return InvalidParams(str(error), request_id)

        if isinstance(error, ConfigurationError):
            return ConfigurationRpcError(str(error), request_id)

        if isinstance(error, BatchDeadlineExceeded):
            return BatchTimeoutError(str(error), request_id)

        if isinstance(error, DestinationError):
            return InternalError(f"Destination error: {error}", request_id)

        self.logger.exception("Unhandled handler error", error=str(error))
        return InternalError(f"Internal error: {error.__class__.__name__}", request_id)

    @staticmethod
    def _summarize(error: ValidationError) -> str:
        parts = []
        for detail in error.errors():
            location = ".".join(str(part) for part in detail.get("loc", ()))
            parts.append(f"{location}: {detail.get('msg')}" if location else detail.get("msg", ""))
        return "; ".join(parts)
