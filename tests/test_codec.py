"""Tests for the JSON-RPC codec."""

import json

import pytest

from rpc_connector.protocol import (
    BATCH_TIMEOUT,
    INVALID_REQUEST,
    PARSE_ERROR,
    ConfigurationRpcError,
    InvalidRequest,
    ParseError,
    RemoteError,
    RpcRequest,
    decode_request,
    decode_response,
    encode_error,
    encode_request,
    encode_result,
)


def body(**payload):
    return json.dumps(payload).encode("utf-8")


class TestDecodeRequest:
    """Test request envelope decoding."""

    def test_valid_request(self):
        request = decode_request(body(jsonrpc="2.0", id="req-1", method="list_objects", params={}))

        assert request == RpcRequest(id="req-1", method="list_objects", params={})

    def test_integer_id_kept(self):
        request = decode_request(body(jsonrpc="2.0", id=7, method="list_objects", params={}))
        assert request.id == 7

    def test_invalid_json(self):
        with pytest.raises(ParseError) as exc_info:
            decode_request(b"{not json")

        assert exc_info.value.code == PARSE_ERROR
        assert exc_info.value.request_id is None

    def test_invalid_utf8(self):
        with pytest.raises(ParseError):
            decode_request(b"\xff\xfe")

    def test_batch_rejected(self):
        with pytest.raises(InvalidRequest, match="Batch"):
            decode_request(b'[{"jsonrpc": "2.0", "id": 1, "method": "list_objects", "params": {}}]')

    def test_notification_rejected(self):
        with pytest.raises(InvalidRequest, match="Notifications"):
            decode_request(body(jsonrpc="2.0", method="list_objects", params={}))

    @pytest.mark.parametrize("request_id", [None, True, 1.5, ["a"]])
    def test_bad_id_rejected(self, request_id):
        with pytest.raises(InvalidRequest) as exc_info:
            decode_request(body(jsonrpc="2.0", id=request_id, method="list_objects", params={}))

        assert exc_info.value.code == INVALID_REQUEST
        assert exc_info.value.request_id is None

    def test_wrong_version_rejected(self):
        with pytest.raises(InvalidRequest) as exc_info:
            decode_request(body(jsonrpc="1.0", id=3, method="list_objects", params={}))

        assert exc_info.value.request_id == 3

    def test_missing_method_rejected(self):
        with pytest.raises(InvalidRequest, match="method"):
            decode_request(body(jsonrpc="2.0", id=3, method="", params={}))

    @pytest.mark.parametrize("params", [[1, 2], "x", None])
    def test_params_must_be_object(self, params):
        with pytest.raises(InvalidRequest, match="params") as exc_info:
            decode_request(body(jsonrpc="2.0", id="p", method="list_objects", params=params))

        assert exc_info.value.request_id == "p"

    def test_missing_params_rejected(self):
        with pytest.raises(InvalidRequest, match="params"):
            decode_request(body(jsonrpc="2.0", id="p", method="list_objects"))


class TestEncoding:
    """Test response and request encoding."""

    def test_result_envelope(self):
        payload = json.loads(encode_result("abc", {"objects": []}))

        assert payload == {"jsonrpc": "2.0", "id": "abc", "result": {"objects": []}}

    def test_result_must_be_object(self):
        with pytest.raises(TypeError):
            encode_result(1, [])

    def test_error_envelope(self):
        payload = json.loads(encode_error(None, PARSE_ERROR, "bad"))

        assert payload == {"jsonrpc": "2.0", "id": None, "error": {"code": PARSE_ERROR, "message": "bad"}}
        assert "result" not in payload

    def test_request_round_trip(self):
        request = RpcRequest(id=12, method="get_sync_speed", params={"sync_plan": {}})
        assert decode_request(encode_request(request)) == request


class TestDecodeResponse:
    """Test response decoding used by clients."""

    def test_result_response(self):
        response = decode_response(encode_result(5, {"success": True}))

        assert response.succeeded
        assert response.id == 5
        assert response.result == {"success": True}

    def test_known_error_code(self):
        response = decode_response(encode_error("x", -32001, "bad plan"))

        assert not response.succeeded
        assert isinstance(response.error, ConfigurationRpcError)
        assert response.error.message == "bad plan"

    def test_unknown_error_code(self):
        response = decode_response(encode_error("x", -32050, "custom"))

        assert isinstance(response.error, RemoteError)
        assert response.error.code == -32050
        assert response.error.code != BATCH_TIMEOUT

    def test_result_and_error_rejected(self):
        payload = body(jsonrpc="2.0", id=1, result={}, error={"code": -32603, "message": "x"})

        with pytest.raises(InvalidRequest, match="exactly one"):
            decode_response(payload)

    def test_non_object_result_rejected(self):
        with pytest.raises(InvalidRequest):
            decode_response(body(jsonrpc="2.0", id=1, result=[1]))
