"""Unit tests for the kernel error hierarchy."""

from __future__ import annotations

import pytest

from tagcache.kernel.errors import (
    BackendUnavailableError,
    BaseError,
    ConnectionError,
    InfrastructureError,
    InfrastructureTimeoutError,
    SerializationError,
)


class TestBaseError:
    def test_default_code(self) -> None:
        err = BaseError("boom")
        assert err.code == "tagcache_error"
        assert err.message == "boom"
        assert err.operation is None
        assert err.key is None
        assert err.detail == {}

    def test_custom_code_and_detail(self) -> None:
        err = BaseError("boom", code="custom", detail={"setting": "REDIS_PORT"})
        assert err.to_dict() == {"code": "custom", "message": "boom", "detail": {"setting": "REDIS_PORT"}}

    def test_operation_and_key_are_reported(self) -> None:
        err = BaseError("boom", operation="mget", key="shop:customers")
        assert err.to_dict()["operation"] == "mget"
        assert err.to_dict()["key"] == "shop:customers"
        assert str(err) == "[tagcache_error] boom (operation=mget key=shop:customers)"

    def test_with_context_fills_only_missing_fields(self) -> None:
        err = BaseError("boom", operation="get")
        assert err.with_context(operation="wrap", key="shop:customers:1") is err
        assert err.operation == "get"
        assert err.key == "shop:customers:1"

    def test_log_fields_omit_unset_values(self) -> None:
        assert BaseError("boom").log_fields() == {"code": "tagcache_error"}
        cause = ValueError("inner")
        assert BaseError("boom", operation="set", cause=cause).log_fields() == {
            "code": "tagcache_error",
            "operation": "set",
            "cause": "ValueError('inner')",
        }

    def test_cause_is_chained(self) -> None:
        cause = ValueError("inner")
        err = BaseError("outer", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "ValueError('inner')"

    def test_str_without_context(self) -> None:
        assert str(BaseError("boom")) == "[tagcache_error] boom"

    def test_repr(self) -> None:
        assert repr(BaseError("boom", operation="get")) == "BaseError(code='tagcache_error', operation='get', message='boom')"


class TestInfrastructureErrors:
    @pytest.mark.parametrize(
        "err,code",
        [
            (InfrastructureError("x"), "infrastructure_error"),
            (ConnectionError("redis"), "connection_error"),
            (BackendUnavailableError("redis"), "backend_unavailable"),
            (InfrastructureTimeoutError("x"), "infrastructure_timeout"),
            (SerializationError("x"), "serialization_error"),
        ],
    )
    def test_codes(self, err: BaseError, code: str) -> None:
        assert err.code == code
        assert isinstance(err, InfrastructureError)

    def test_connection_error_default_message(self) -> None:
        err = ConnectionError("redis")
        assert err.resource == "redis"
        assert err.message == "Could not connect to 'redis'"

    def test_backend_unavailable_is_connection_error(self) -> None:
        err = BackendUnavailableError("redis")
        assert isinstance(err, ConnectionError)
        assert "marked down" in err.message

    def test_subclasses_accept_operation(self) -> None:
        err = BackendUnavailableError("redis", operation="flushdb")
        assert err.operation == "flushdb"
        assert err.resource == "redis"
        assert "operation=flushdb" in str(err)

    def test_serialization_error_payload_type(self) -> None:
        assert SerializationError("bad", payload_type="CacheEntry").payload_type == "CacheEntry"

    def test_does_not_shadow_builtin_hierarchy(self) -> None:
        assert not issubclass(ConnectionError, OSError)
