"""JSON-RPC error types raised while decoding and dispatching requests."""

from typing import Any, Dict, Optional


PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Implementation-defined server errors (-32000 to -32099)
CONFIGURATION_ERROR = -32001
BATCH_TIMEOUT = -32002


class RpcError(Exception):
    """Base class for failures reported through the JSON-RPC error channel."""

    code = INTERNAL_ERROR

    def __init__(self, message: str, request_id: Any = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id

    def to_error_object(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ParseError(RpcError):
    """Raised when the request body is not valid JSON."""
    code = PARSE_ERROR


class InvalidRequest(RpcError):
    """Raised when the body is JSON but not an acceptable request envelope."""
    code = INVALID_REQUEST


class MethodNotFound(RpcError):
    """Raised when the method name is not one of the supported methods."""
    code = METHOD_NOT_FOUND


class InvalidParams(RpcError):
    """Raised when params do not match what the method expects."""
    code = INVALID_PARAMS


class InternalError(RpcError):
    """Raised when a handler fails for reasons the caller cannot fix."""
    code = INTERNAL_ERROR


class ConfigurationRpcError(RpcError):
    """Raised when destination metadata or a sync plan is invalid."""
    code = CONFIGURATION_ERROR


class BatchTimeoutError(RpcError):
    """Raised when a sync_batch call cannot finish within its time budget."""
    code = BATCH_TIMEOUT


class RemoteError(RpcError):
    """An error object received from the other side of a JSON-RPC exchange."""

    def __init__(self, code: int, message: str, request_id: Any = None):
        super().__init__(message, request_id)
        self.code = code


def error_for_code(code: int, message: str, request_id: Optional[Any] = None) -> RpcError:
    """Build the most specific error class for a numeric code."""
    for error_class in (
        ParseError, InvalidRequest, MethodNotFound, InvalidParams,
        InternalError, ConfigurationRpcError, BatchTimeoutError
    ):
        if error_class.code == code:
            return error_class(message, request_id)
    return RemoteError(code, message, request_id)
