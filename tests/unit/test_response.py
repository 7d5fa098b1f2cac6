"""Tests for the ApiResponse envelope helpers."""

from src.pf_common.response import error_response, new_request_id, success_response


class TestEnvelope:
    def test_success_defaults(self) -> None:
        resp = success_response({"items": []})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.request_id.startswith("req_")
        assert len(resp.request_id) == len("req_") + 12

    def test_request_id_passthrough(self) -> None:
        rid = new_request_id()
        assert success_response(None, "ok", rid).request_id == rid
        assert error_response(4001, "bad", {"step": 2}, request_id=rid).request_id == rid

    def test_missing_request_id_gets_fresh_one(self) -> None:
        resp = error_response(3001, "Listing not found", request_id=None)
        assert resp.request_id.startswith("req_")
        assert resp.data is None
