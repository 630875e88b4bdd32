from __future__ import annotations

from typing import Any, List, Optional

import pytest

from purchase_validator.dispatcher import (
    MISSING_ENDPOINT_MESSAGE,
    BatchDispatcher,
    ensure_application_username,
    group_by_product,
    outcome_from_response,
)
from purchase_validator.domain.models import Failed, Ok, Product, ValidationRequest

ENDPOINT = "https://validator.example.com/v1/validate"
BURST_SIZE = 40


def _dispatcher(transport, resolver=None, endpoint: Optional[str] = ENDPOINT) -> BatchDispatcher:
    return BatchDispatcher(transport=transport, endpoint=lambda: endpoint, resolver=resolver)


class TestGrouping:
    def test_last_product_wins_and_all_callbacks_kept(self) -> None:
        c1, c2, c3 = (lambda ok, data: None for _ in range(3))
        first = Product(id="a")
        other = Product(id="b")
        latest = Product.model_validate({"id": "a", "price": "$1"})

        batches = group_by_product(
            [
                ValidationRequest(first, c1),
                ValidationRequest(other, c2),
                ValidationRequest(latest, c3),
            ]
        )

        assert list(batches) == ["a", "b"]
        assert batches["a"].product is latest
        assert batches["a"].callbacks == [c1, c3]
        assert batches["b"].callbacks == [c2]

    def test_dozens_of_requests_for_one_id_keep_every_callback(self) -> None:
        callbacks = [lambda ok, data: None for _ in range(BURST_SIZE)]
        requests = [ValidationRequest(Product(id="a"), cb) for cb in callbacks]

        batches = group_by_product(requests)

        assert len(batches) == 1
        assert batches["a"].callbacks == callbacks


class TestApplicationUsername:
    def test_creates_additional_data_and_fills_username(self) -> None:
        product = Product(id="a")

        ensure_application_username(product, lambda p: "player-1")

        assert product.additional_data == {"applicationUsername": "player-1"}

    def test_existing_username_is_kept(self) -> None:
        product = Product(id="a", additional_data={"applicationUsername": "mine"})

        ensure_application_username(product, lambda p: "other")

        assert product.additional_data["applicationUsername"] == "mine"

    @pytest.mark.parametrize("resolved", [None, ""])
    def test_unresolved_username_leaves_no_key(self, resolved: Optional[str]) -> None:
        product = Product(id="a", additional_data={"applicationUsername": "", "keep": 1})

        ensure_application_username(product, lambda p: resolved)

        assert product.additional_data == {"keep": 1}
        assert "applicationUsername" not in product.to_payload()["additionalData"]

    def test_without_resolver_empty_mapping_is_created(self) -> None:
        product = Product(id="a")

        ensure_application_username(product, None)

        assert product.to_payload() == {"id": "a", "additionalData": {}}


class TestResponseParsing:
    def test_ok_response(self) -> None:
        assert outcome_from_response({"ok": True, "data": {"x": 1}}) == Ok({"x": 1})

    def test_rejection_passes_data_through(self) -> None:
        body = {"ok": False, "data": {"code": 6778003}, "error": {"message": "expired"}}
        assert outcome_from_response(body) == Failed({"code": 6778003})

    def test_missing_ok_is_falsy(self) -> None:
        assert outcome_from_response({"data": {"x": 1}}) == Failed({"x": 1})

    @pytest.mark.parametrize("body", [None, "ok", [1, 2]])
    def test_non_mapping_body(self, body: Any) -> None:
        assert outcome_from_response(body) == Failed(None)


class TestDispatch:
    def test_burst_for_one_product_makes_one_call_and_shares_outcome(
        self, transport, recorder_factory
    ) -> None:
        recorders = [recorder_factory() for _ in range(BURST_SIZE)]
        requests = [ValidationRequest(Product(id="a"), r) for r in recorders]

        _dispatcher(transport).dispatch_all(requests)
        assert len(transport.calls) == 1

        transport.calls[0].succeed({"ok": True, "data": {"transaction": {"id": "t1"}}})

        for recorder in recorders:
            assert recorder.calls == [(True, {"transaction": {"id": "t1"}})]

    def test_one_call_per_distinct_product(self, transport, recorder_factory) -> None:
        ids = ["a", "b", "a", "c", "b", "a"]
        recorders = [recorder_factory() for _ in ids]
        requests = [ValidationRequest(Product(id=i), r) for i, r in zip(ids, recorders)]

        _dispatcher(transport).dispatch_all(requests)

        assert [c.body["id"] for c in transport.calls] == ["a", "b", "c"]
        assert all(c.endpoint == ENDPOINT for c in transport.calls)

        transport.call_for("b").succeed({"ok": False, "data": {"code": 6778003}})

        for product_id, recorder in zip(ids, recorders):
            expected = [(False, {"code": 6778003})] if product_id == "b" else []
            assert recorder.calls == expected

    def test_coalesced_call_posts_latest_snapshot(self, transport, recorder_factory) -> None:
        c1, c2 = recorder_factory(), recorder_factory()
        requests = [
            ValidationRequest(Product(id="a"), c1),
            ValidationRequest(Product.model_validate({"id": "a", "price": "$1"}), c2),
        ]

        _dispatcher(transport).dispatch_all(requests)

        assert len(transport.calls) == 1
        assert transport.calls[0].body == {"id": "a", "price": "$1", "additionalData": {}}

        transport.calls[0].succeed({"ok": True, "data": {"transaction": {"type": "ios-appstore"}}})
        assert c1.calls == [(True, {"transaction": {"type": "ios-appstore"}})]
        assert c2.calls == c1.calls

    def test_payload_carries_resolved_username(self, transport, recorder_factory) -> None:
        _dispatcher(transport, resolver=lambda p: "player-1").dispatch_all(
            [ValidationRequest(Product(id="a"), recorder_factory())]
        )

        assert transport.calls[0].body["additionalData"] == {"applicationUsername": "player-1"}

    def test_transport_failure_is_formatted(self, transport, recorder_factory) -> None:
        c1, c2 = recorder_factory(), recorder_factory()
        _dispatcher(transport).dispatch_all(
            [ValidationRequest(Product(id="a"), c1), ValidationRequest(Product(id="a"), c2)]
        )

        transport.calls[0].fail(500, "Internal Error", "<html>oops</html>")

        assert c1.calls == [(False, "Error 500: Internal Error")]
        assert c2.calls == [(False, "Error 500: Internal Error")]

    def test_only_first_response_is_delivered(self, transport, recorder_factory) -> None:
        recorder = recorder_factory()
        _dispatcher(transport).dispatch_all([ValidationRequest(Product(id="a"), recorder)])

        transport.calls[0].succeed({"ok": True, "data": {}})
        transport.calls[0].fail(500, "late")

        assert recorder.calls == [(True, {})]

    def test_failing_batch_does_not_affect_others(self, recorder_factory) -> None:
        posted: List[str] = []

        class _FlakyTransport:
            def post(self, endpoint, body, on_success, on_failure) -> None:
                if body["id"] == "bad":
                    raise ConnectionError("socket closed")
                posted.append(body["id"])
                on_success({"ok": True, "data": {"id": body["id"]}})

        bad, good = recorder_factory(), recorder_factory()
        _dispatcher(_FlakyTransport()).dispatch_all(
            [ValidationRequest(Product(id="bad"), bad), ValidationRequest(Product(id="good"), good)]
        )

        assert bad.calls == [(False, "Error 0: socket closed")]
        assert good.calls == [(True, {"id": "good"})]
        assert posted == ["good"]

    def test_broken_log_sink_does_not_block_failing_or_later_batches(
        self, transport, recorder_factory
    ) -> None:
        class _BrokenLogger:
            def _fail(self, *args, **kwargs) -> None:
                raise OSError("log sink unavailable")

            debug = info = warning = error = exception = _fail

        class _FlakyTransport:
            def post(self, endpoint, body, on_success, on_failure) -> None:
                if body["id"] == "bad":
                    raise ConnectionError("socket closed")
                transport.post(endpoint, body, on_success, on_failure)

        transport.respond_with = lambda call: call.succeed({"ok": True, "data": None})
        dispatcher = BatchDispatcher(
            transport=_FlakyTransport(), endpoint=lambda: ENDPOINT, logger=_BrokenLogger()  # type: ignore[arg-type]
        )
        bad, good = recorder_factory(), recorder_factory()

        dispatcher.dispatch_all(
            [ValidationRequest(Product(id="bad"), bad), ValidationRequest(Product(id="good"), good)]
        )

        assert bad.calls == [(False, "Error 0: socket closed")]
        assert good.calls == [(True, None)]

    def test_raising_callback_with_broken_log_sink_does_not_starve_waiters(
        self, recorder_factory
    ) -> None:
        class _BrokenLogger:
            def _fail(self, *args, **kwargs) -> None:
                raise OSError("log sink unavailable")

            debug = exception = _fail

        class _ImmediateTransport:
            def post(self, endpoint, body, on_success, on_failure) -> None:
                on_success({"ok": True, "data": None})

        def explode(ok: bool, data: Any) -> None:
            raise RuntimeError("caller bug")

        after = recorder_factory()
        BatchDispatcher(
            transport=_ImmediateTransport(), endpoint=lambda: ENDPOINT, logger=_BrokenLogger()  # type: ignore[arg-type]
        ).dispatch_all(
            [ValidationRequest(Product(id="a"), explode), ValidationRequest(Product(id="a"), after)]
        )

        assert after.calls == [(True, None)]

    def test_raising_callback_does_not_starve_other_waiters(self, transport, recorder_factory) -> None:
        def explode(ok: bool, data: Any) -> None:
            raise RuntimeError("caller bug")

        after = recorder_factory()
        _dispatcher(transport).dispatch_all(
            [ValidationRequest(Product(id="a"), explode), ValidationRequest(Product(id="a"), after)]
        )

        transport.calls[0].succeed({"ok": True, "data": None})

        assert after.calls == [(True, None)]

    def test_missing_endpoint_fails_every_waiter(self, transport, recorder_factory) -> None:
        recorder = recorder_factory()

        _dispatcher(transport, endpoint=None).dispatch_all(
            [ValidationRequest(Product(id="a"), recorder)]
        )

        assert transport.calls == []
        assert recorder.calls == [(False, MISSING_ENDPOINT_MESSAGE)]

    def test_empty_firing_makes_no_calls(self, transport) -> None:
        _dispatcher(transport).dispatch_all([])

        assert transport.calls == []
