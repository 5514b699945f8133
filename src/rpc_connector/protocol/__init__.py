"""JSON-RPC codec and method dispatch."""

from .errors import (
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    CONFIGURATION_ERROR,
    BATCH_TIMEOUT,
    RpcError,
    ParseError,
    InvalidRequest,
    MethodNotFound,
    InvalidParams,
    InternalError,
    ConfigurationRpcError,
    BatchTimeoutError,
    RemoteError
)

from .codec import (
    JSONRPC_VERSION,
    RpcRequest,
    RpcResponse,
    decode_request,
    encode_request,
    encode_result,
    encode_error,
    encode_rpc_error,
    decode_response
)

from .dispatcher import Method, MethodDispatcher

__all__ = [
    # Error codes and types
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "CONFIGURATION_ERROR",
    "BATCH_TIMEOUT",
    "RpcError",
    "ParseError",
    "InvalidRequest",
    "MethodNotFound",
    "InvalidParams",
    "InternalError",
    "ConfigurationRpcError",
    "BatchTimeoutError",
    "RemoteError",

    # Codec
    "JSONRPC_VERSION",
    "RpcRequest",
    "RpcResponse",
    "decode_request",
    "encode_request",
    "encode_result",
    "encode_error",
    "encode_rpc_error",
    "decode_response",

    # Dispatch
    "Method",
    "MethodDispatcher"
]
