"""Tests for configuration module."""
import pytest

from docstate import (
    ConnectionNotConfigured,
    DocStateConfig,
    InMemoryConnection,
    NullValidator,
    configure,
    get_config,
    get_connection,
    get_validator,
    register_connection,
    reset_config,
    set_validator,
)


def test_defaults():
    config = get_config()
    assert config == DocStateConfig()
    assert config.id_field == "_id"
    assert config.id_alias == "id"
    assert config.resolve_key("id") == "_id"
    assert config.resolve_key("name") == "name"


def test_configure_keeps_other_settings():
    configure(updated_at_field="modified")

    config = get_config()
    assert config.updated_at_field == "modified"
    assert config.created_at_field == "created_at"


def test_register_and_get_connection():
    conn = InMemoryConnection()
    register_connection("main", conn, default=True)

    assert get_connection() is conn
    assert get_connection("main") is conn
    assert get_config().default_connection == "main"


def test_unknown_connection():
    with pytest.raises(ConnectionNotConfigured):
        get_connection("nope")

    # LookupError compatibility
    with pytest.raises(LookupError):
        get_connection("nope")


def test_validator_defaults_to_null():
    assert isinstance(get_validator(), NullValidator)

    marker = NullValidator()
    set_validator(marker)
    assert get_validator() is marker


def test_reset_config():
    register_connection("main", InMemoryConnection(), default=True)
    configure(id_field="key")

    reset_config()

    assert get_config() == DocStateConfig()
    with pytest.raises(ConnectionNotConfigured):
        get_connection("main")
