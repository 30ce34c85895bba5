"""
Batch engine tests

Covers single and batch mode, notifications, parameter binding conventions and
the error responses produced for malformed input.
"""

import json
import threading

import pytest

from seam_rpc.rpc import (
    MISSING,
    ErrorCode,
    ErrorValue,
    InlineScheduler,
    JsonRpcServer,
    ProcedureDescriptor,
    ServiceRegistry,
    ThreadedScheduler
)


def subtract(minuend, subtrahend, error):
    return minuend - subtrahend


def total(*args):
    return sum(args[:-1])


def update(p1, p2, p3, p4, p5, error):
    return True


def hello(p1, error):
    return None


def get_data(error):
    return ["hello", 5]


@pytest.fixture
def registry():
    registry = ServiceRegistry()
    registry.register("subtract", subtract, ["minuend", "subtrahend"])
    registry.register("sum", total)
    registry.register("update", update, ["p1", "p2", "p3", "p4", "p5"])
    registry.register("hello", hello, ["p1"])
    registry.register("get_data", get_data)
    return registry


@pytest.fixture
def server(registry):
    server = JsonRpcServer(registry, scheduler=InlineScheduler())
    yield server
    server.close()


def process(server, request):
    """Send a request (text or JSON-able object) and decode the response"""
    if not isinstance(request, str):
        request = json.dumps(request)
    response = server.process_request(request)
    return None if response is None else json.loads(response)


class TestSingleCalls:
    """Single-mode requests"""

    def test_positional_params(self, server):
        response = process(server, '{"jsonrpc": "2.0", "method": "subtract", "params": [42, 23], "id": 1}')
        assert response == {"jsonrpc": "2.0", "result": 19, "id": 1}

    def test_positional_params_reversed(self, server):
        response = process(server, '{"jsonrpc": "2.0", "method": "subtract", "params": [23, 42], "id": 2}')
        assert response == {"jsonrpc": "2.0", "result": -19, "id": 2}

    def test_named_params_in_any_order(self, server):
        first = process(server, '{"jsonrpc": "2.0", "method": "subtract", '
                                '"params": {"subtrahend": 23, "minuend": 42}, "id": 3}')
        second = process(server, '{"jsonrpc": "2.0", "method": "subtract", '
                                 '"params": {"minuend": 42, "subtrahend": 23}, "id": 4}')
        assert first["result"] == 19
        assert second["result"] == 19
        assert (first["id"], second["id"]) == (3, 4)

    def test_response_is_object_not_array(self, server):
        raw = server.process_request('{"jsonrpc": "2.0", "method": "get_data", "id": "9"}')
        assert raw.startswith("{")
        assert json.loads(raw) == {"jsonrpc": "2.0", "id": "9", "result": ["hello", 5]}

    def test_id_echoed_verbatim(self, server):
        for identity in ["abc", 7, 3.5, None]:
            response = process(server, {"jsonrpc": "2.0", "method": "get_data", "id": identity})
            assert response["id"] == identity
            assert "result" in response and "error" not in response

    def test_null_result_is_present(self, server):
        response = process(server, {"jsonrpc": "2.0", "method": "hello", "params": [1], "id": 1})
        assert "result" in response
        assert response["result"] is None

    def test_bytes_input(self, server):
        raw = server.process_request(b'{"jsonrpc": "2.0", "method": "sum", "params": [1, 2], "id": 1}')
        assert json.loads(raw)["result"] == 3

    def test_unknown_method(self, server):
        response = process(server, '{"jsonrpc": "2.0", "method": "foobar", "id": "1"}')
        assert response["id"] == "1"
        assert response["error"]["code"] == -32601
        assert "result" not in response


class TestParameterBinding:
    """Binding behaviour observed through the engine"""

    def test_positional_only_refuses_parameter_map(self, server):
        response = process(server, {"jsonrpc": "2.0", "method": "sum", "params": {"a": 1}, "id": 1})
        assert response["error"]["code"] == -32602
        assert response["error"]["message"] == "Service does not allow a parameter map"
        assert response["id"] == 1

    def test_missing_arguments_are_padded(self, registry, server):
        seen = []

        def record(a, b, c, error):
            seen.append((a, b, c))
            return "ok"

        registry.register("record", record, ["a", "b", "c"])
        process(server, {"jsonrpc": "2.0", "method": "record", "params": [1], "id": 1})
        process(server, {"jsonrpc": "2.0", "method": "record", "params": {"b": 2, "zzz": 9}, "id": 2})
        process(server, {"jsonrpc": "2.0", "method": "record", "id": 3})

        assert seen == [
            (1, MISSING, MISSING),
            (MISSING, 2, MISSING),
            (MISSING, MISSING, MISSING),
        ]

    def test_extra_positional_arguments_pass_through(self, server):
        response = process(server, {"jsonrpc": "2.0", "method": "sum", "params": [1, 2, 4], "id": 1})
        assert response["result"] == 7


class TestProcedureErrors:
    """Errors raised or returned by procedures"""

    def test_exception_becomes_internal_error(self, registry, server):
        def explode(error):
            raise ValueError("boom")

        registry.register("explode", explode)
        response = process(server, {"jsonrpc": "2.0", "method": "explode", "id": 5})
        assert response["id"] == 5
        assert response["error"]["code"] == -32603
        assert "boom" in response["error"]["message"]
        assert response["error"]["message"].startswith("Method threw an error")

    def test_returned_error_value(self, registry, server):
        def deny(user, error):
            error.code = ErrorCode.PermissionDenied
            error.message = f"{user} may not do that"
            error.data = {"user": user}
            return error

        registry.register("deny", deny, ["user"])
        response = process(server, {"jsonrpc": "2.0", "method": "deny", "params": ["bob"], "id": 1})
        assert response["error"] == {
            "code": -32000,
            "message": "bob may not do that",
            "data": {"user": "bob"}
        }

    def test_unserializable_result(self, registry, server):
        registry.register("bad", lambda error: {1, 2})
        response = process(server, [
            {"jsonrpc": "2.0", "method": "bad", "id": 1},
            {"jsonrpc": "2.0", "method": "get_data", "id": 2},
        ])
        assert response[0]["id"] == 1
        assert response[0]["error"]["code"] == -32603
        assert response[1]["result"] == ["hello", 5]

    def test_deeply_nested_result(self, registry, server):
        def deep(error):
            value = []
            for _ in range(100000):
                value = [value]
            return value

        registry.register("deep", deep)
        response = process(server, [
            {"jsonrpc": "2.0", "method": "deep", "id": 1},
            {"jsonrpc": "2.0", "method": "get_data", "id": 2},
        ])
        assert response[0]["id"] == 1
        assert response[0]["error"]["code"] == -32603
        assert response[1]["result"] == ["hello", 5]

    def test_missing_in_result_serializes_as_null(self, registry, server):
        registry.register("passthrough", lambda value, error: [value], ["value"])
        response = process(server, {"jsonrpc": "2.0", "method": "passthrough", "id": 1})
        assert response["result"] == [None]


class TestResolution:
    """Resolver integration"""

    def test_function_resolver(self):
        def resolve(name, error):
            if name == "answer":
                return ProcedureDescriptor(lambda error: 42)
            error.code = ErrorCode.MethodNotFound
            error.message = "nope"
            return None

        server = JsonRpcServer(resolve, scheduler=InlineScheduler())
        assert process(server, {"jsonrpc": "2.0", "method": "answer", "id": 1})["result"] == 42
        error = process(server, {"jsonrpc": "2.0", "method": "other", "id": 2})["error"]
        assert error == {"code": -32601, "message": "nope"}

    def test_silent_resolver_failure_reports_method_not_found(self):
        server = JsonRpcServer(lambda name, error: None, scheduler=InlineScheduler())
        error = process(server, {"jsonrpc": "2.0", "method": "x", "id": 1})["error"]
        assert error["code"] == -32601

    def test_resolver_exception(self):
        def resolve(name, error):
            raise RuntimeError("registry offline")

        server = JsonRpcServer(resolve, scheduler=InlineScheduler())
        response = process(server, {"jsonrpc": "2.0", "method": "x", "id": 1})
        assert response["error"]["code"] == -32603
        assert "registry offline" in response["error"]["message"]

    def test_bare_callable_from_resolver(self):
        server = JsonRpcServer(lambda name, error: (lambda *args: len(args) - 1),
                               scheduler=InlineScheduler())
        response = process(server, {"jsonrpc": "2.0", "method": "count", "params": [1, 2, 3], "id": 1})
        assert response["result"] == 3

    @pytest.mark.parametrize("resolver", [None, 42, "registry"])
    def test_resolver_is_mandatory(self, resolver):
        with pytest.raises(TypeError, match="Missing service resolver"):
            JsonRpcServer(resolver)


class TestMalformedInput:
    """Input that never reaches a procedure"""

    @pytest.mark.parametrize("raw", [
        '{"jsonrpc": "2.0", "method": "foobar, "params": "bar", "baz]',
        '[ {"jsonrpc": "2.0", "method": "sum", "params": [1,2,4], "id": "1"},{"jsonrpc": "2.0", "method" ]',
        '',
        '{"jsonrpc": "2.0", "method": "sum", "params": [NaN], "id": 1}',
    ])
    def test_parse_error(self, server, raw):
        response = process(server, raw)
        assert isinstance(response, dict)
        assert response["jsonrpc"] == "2.0"
        assert response["id"] is None
        assert response["error"]["code"] == -32700

    def test_deeply_nested_input(self, server):
        response = process(server, "[" * 100000 + "]" * 100000)
        assert response == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32700, "message": "Could not parse request"}
        }

    def test_invalid_utf8(self, server):
        response = json.loads(server.process_request(b"\xff\xfe{"))
        assert response["error"]["code"] == -32700

    def test_empty_batch(self, server):
        response = process(server, "[]")
        assert response == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32600, "message": "Empty batch array"}
        }

    @pytest.mark.parametrize("raw", ['"hello"', "42", "true", "null"])
    def test_scalar_request(self, server, raw):
        response = process(server, raw)
        assert isinstance(response, dict)
        assert response["id"] is None
        assert response["error"]["code"] == -32600
        assert response["error"]["data"] == "Expected an array or an object"

    def test_invalid_request_object(self, server):
        response = process(server, '{"jsonrpc": "2.0", "method": 1, "params": "bar"}')
        assert response["id"] is None
        assert response["error"]["code"] == -32600

    def test_invalid_batch_of_one(self, server):
        response = process(server, "[1]")
        assert isinstance(response, list)
        assert len(response) == 1
        assert response[0]["error"]["code"] == -32600
        assert response[0]["id"] is None

    def test_invalid_batch_of_three(self, server):
        response = process(server, "[1,2,3]")
        assert [entry["error"]["code"] for entry in response] == [-32600] * 3
        assert all(entry["id"] is None for entry in response)

    def test_illegal_method_name_uses_method_not_found(self, server):
        response = process(server, {"jsonrpc": "2.0", "method": "a..b", "id": 1})
        assert response["error"]["code"] == -32601
        response = process(server, {"jsonrpc": "2.0", "method": "9lives", "id": 2})
        assert response["error"]["code"] == -32601

    def test_invalid_version_keeps_id(self, server):
        response = process(server, {"jsonrpc": "1.0", "method": "sum", "id": 11})
        assert response["id"] == 11
        assert response["error"]["code"] == -32600


class TestBatches:
    """Batch mode and notifications"""

    def test_mixed_batch(self, server):
        response = process(server, (
            '['
            '  {"jsonrpc": "2.0", "method": "sum", "params": [1,2,4], "id": "1"},'
            '  {"jsonrpc": "2.0", "method": "hello", "params": [7]},'
            '  {"jsonrpc": "2.0", "method": "subtract", "params": [42,23], "id": "2"},'
            '  {"foo": "boo"},'
            '  {"jsonrpc": "2.0", "method": "foo.get", "params": {"name": "myself"}, "id": "5"},'
            '  {"jsonrpc": "2.0", "method": "get_data", "id": "9"}'
            ']'
        ))
        assert [entry["id"] for entry in response] == ["1", "2", None, "5", "9"]
        assert response[0]["result"] == 7
        assert response[1]["result"] == 19
        assert response[2]["error"]["code"] == -32600
        assert response[3]["error"]["code"] == -32601
        assert response[4]["result"] == ["hello", 5]

    def test_call_notification_unresolved(self, server):
        response = process(server, [
            {"jsonrpc": "2.0", "method": "subtract", "params": [42, 23], "id": "1"},
            {"jsonrpc": "2.0", "method": "update", "params": [1, 2, 3, 4, 5]},
            {"jsonrpc": "2.0", "method": "foo.get", "id": "5"},
        ])
        assert len(response) == 2
        assert response[0] == {"jsonrpc": "2.0", "id": "1", "result": 19}
        assert response[1]["id"] == "5"
        assert response[1]["error"]["code"] == -32601

    def test_batch_of_one_stays_an_array(self, server):
        raw = server.process_request('[{"jsonrpc": "2.0", "method": "get_data", "id": 1}]')
        assert raw.startswith("[")
        assert len(json.loads(raw)) == 1

    def test_all_notifications_return_none(self, server):
        assert server.process_request(
            '[{"jsonrpc": "2.0", "method": "sum", "params": [1,2,4]},'
            ' {"jsonrpc": "2.0", "method": "hello", "params": [7]}]'
        ) is None

    def test_single_notification_returns_none(self, server):
        assert server.process_request('{"jsonrpc": "2.0", "method": "update", "params": [1,2,3,4,5]}') is None

    def test_notification_failures_are_silent(self, registry, server):
        registry.register("explode", lambda error: 1 / 0)
        assert process(server, [
            {"jsonrpc": "2.0", "method": "foobar"},
            {"jsonrpc": "2.0", "method": "sum", "params": {"a": 1}},
            {"jsonrpc": "2.0", "method": "explode"},
        ]) is None

    def test_notifications_run_after_calls_in_order(self, registry, server):
        log = []
        registry.register("log", lambda entry, error: log.append(entry), ["entry"])

        response = process(server, [
            {"jsonrpc": "2.0", "method": "log", "params": ["n1"]},
            {"jsonrpc": "2.0", "method": "log", "params": ["c1"], "id": 1},
            {"jsonrpc": "2.0", "method": "log", "params": ["n2"]},
            {"jsonrpc": "2.0", "method": "log", "params": ["c2"], "id": 2},
        ])

        assert [entry["id"] for entry in response] == [1, 2]
        assert log == ["c1", "c2", "n1", "n2"]

    def test_each_notification_sees_its_own_arguments(self, registry):
        seen = []
        registry.register("record", lambda value, error: seen.append((value, error)), ["value"])
        scheduler = ThreadedScheduler()
        server = JsonRpcServer(registry, scheduler=scheduler)

        try:
            assert server.process_request(json.dumps([
                {"jsonrpc": "2.0", "method": "record", "params": [1]},
                {"jsonrpc": "2.0", "method": "record", "params": {"value": 2}},
                {"jsonrpc": "2.0", "method": "record", "params": [3]},
            ])) is None
            scheduler.join()
        finally:
            server.close()

        assert [value for value, _ in seen] == [1, 2, 3]
        errors = [error for _, error in seen]
        assert len({id(error) for error in errors}) == 3
        assert all(isinstance(error, ErrorValue) for error in errors)

    def test_returns_before_notifications_finish(self, registry):
        release = threading.Event()
        finished = threading.Event()

        def slow(error):
            release.wait(timeout=5)
            finished.set()

        registry.register("slow", slow)
        scheduler = ThreadedScheduler()
        server = JsonRpcServer(registry, scheduler=scheduler)

        try:
            response = process(server, [
                {"jsonrpc": "2.0", "method": "slow"},
                {"jsonrpc": "2.0", "method": "get_data", "id": 1},
            ])
            assert response == [{"jsonrpc": "2.0", "id": 1, "result": ["hello", 5]}]
            assert not finished.is_set()

            release.set()
            scheduler.join()
            assert finished.is_set()
        finally:
            server.close()

    def test_invalid_notification_envelope_still_answered(self, server):
        response = process(server, {"jsonrpc": "2.0", "method": 1})
        assert response["id"] is None
        assert response["error"]["code"] == -32600
