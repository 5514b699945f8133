"""JSON-RPC 2.0 envelope encoding and decoding.

Only the subset used between the orchestrator and a connector is accepted:
one request per body, object params and results, and a mandatory id. Batches
and notifications are rejected.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .errors import InvalidRequest, ParseError, RpcError, error_for_code


JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class RpcRequest:
    """A decoded JSON-RPC request."""

    id: Union[str, int]
    method: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RpcResponse:
    """A decoded JSON-RPC response: exactly one of result or error is set."""

    id: Union[str, int, None]
    result: Optional[Dict[str, Any]] = None
    error: Optional[RpcError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def _is_valid_id(value: Any) -> bool:
    # Booleans are ints in Python but not acceptable ids
    return isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool))


def _load_json(body: Union[bytes, str]) -> Any:
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Request body is not valid UTF-8: {e}")

    try:
        return json.loads(body)
    except ValueError as e:
        raise ParseError(f"Request body is not valid JSON: {e}")


def decode_request(body: Union[bytes, str]) -> RpcRequest:
    """Decode an HTTP POST body into a request.

    Raises:
        ParseError: If the body is not JSON
        InvalidRequest: If the JSON is not an acceptable request envelope
    """
    payload = _load_json(body)

    if isinstance(payload, list):
        raise InvalidRequest("Batch requests are not supported")
    if not isinstance(payload, dict):
        raise InvalidRequest("Request must be a JSON object")

    if "id" not in payload:
        raise InvalidRequest("Notifications are not supported; request id is required")

    request_id = payload["id"]
    if not _is_valid_id(request_id):
        raise InvalidRequest("Request id must be a string or integer")

    if payload.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequest("jsonrpc member must be exactly \"2.0\"", request_id)

    method = payload.get("method")
    if not isinstance(method, str) or not method:
        raise InvalidRequest("method member must be a non-empty string", request_id)

    if "params" not in payload:
        raise InvalidRequest("params member is required", request_id)

    params = payload["params"]
    if not isinstance(params, dict):
        raise InvalidRequest("params must be a JSON object", request_id)

    return RpcRequest(id=request_id, method=method, params=params)


def encode_request(request: RpcRequest) -> str:
    """Encode a request; used by clients and tests exercising the wire format."""
    if not isinstance(request.params, dict):
        raise TypeError("params must be a dict")
    return json.dumps({
        "jsonrpc": JSONRPC_VERSION,
        "method": request.method,
        "id": request.id,
        "params": request.params,
    })


def encode_result(request_id: Union[str, int], result: Dict[str, Any]) -> str:
    """Encode a successful response."""
    if not isinstance(result, dict):
        raise TypeError("result must be a dict")
    return json.dumps({"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result})


def encode_error(request_id: Union[str, int, None], code: int, message: str) -> str:
    """Encode an error response.

    ``request_id`` is None only when the id could not be read from the request.
    """
    return json.dumps({
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    })


def encode_rpc_error(error: RpcError) -> str:
    return encode_error(error.request_id, error.code, error.message)


def decode_response(body: Union[bytes, str]) -> RpcResponse:
    """Decode a response body, rejecting anything that is not a single response object."""
    payload = _load_json(body)

    if not isinstance(payload, dict):
        raise InvalidRequest("Response must be a JSON object")
    if payload.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequest("jsonrpc member must be exactly \"2.0\"")
    if "id" not in payload:
        raise InvalidRequest("Response id is required")

    response_id = payload["id"]
    if response_id is not None and not _is_valid_id(response_id):
        raise InvalidRequest("Response id must be a string, integer or null")

    has_result = "result" in payload
    has_error = "error" in payload
    if has_result == has_error:
        raise InvalidRequest("Response must contain exactly one of result or error")

    if has_result:
        if not isinstance(payload["result"], dict):
            raise InvalidRequest("result must be a JSON object")
        return RpcResponse(id=response_id, result=payload["result"])

    error = payload["error"]
    if (
        not isinstance(error, dict)
        or not isinstance(error.get("code"), int)
        or isinstance(error.get("code"), bool)
        or not isinstance(error.get("message"), str)
    ):
        raise InvalidRequest("error must be an object with integer code and string message")

    return RpcResponse(
        id=response_id,
        error=error_for_code(error["code"], error["message"], response_id)
    )
