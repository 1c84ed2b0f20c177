from sqlalchemy.exc import DBAPIError

from pgbridge.core.errors import (
    ConfigurationError,
    DatabaseError,
    ServerError,
    translate_error,
)


def test_coded_message_becomes_server_error():
    error = translate_error(Exception("syntax error @BAD-CODE something went wrong"))

    assert isinstance(error, ServerError)
    assert error.error_code == "BAD-CODE"
    assert error.description == "something went wrong"
    assert error.http_status == 400


def test_code_without_description():
    error = translate_error(Exception("raise @OUT-OF-STOCK"))

    assert isinstance(error, ServerError)
    assert error.error_code == "OUT-OF-STOCK"
    assert error.description == ""


def test_plain_message_becomes_generic_error():
    error = translate_error(ConnectionRefusedError("connection refused"))

    assert isinstance(error, DatabaseError)
    assert not isinstance(error, ServerError)
    assert str(error) == "connection refused"


def test_lowercase_after_at_is_not_a_code():
    error = translate_error(Exception('duplicate key value "bob@example.com"'))
    assert isinstance(error, DatabaseError)


def test_driver_message_is_unwrapped():
    orig = Exception("<class 'asyncpg.exceptions.RaiseError'>: @OUT-OF-STOCK insufficient inventory")
    wrapped = DBAPIError("SELECT place_order($1)", (1,), orig)

    error = translate_error(wrapped)

    assert isinstance(error, ServerError)
    assert error.error_code == "OUT-OF-STOCK"
    assert error.description == "insufficient inventory"


def test_taxonomy_errors_pass_through():
    original = ConfigurationError("Key missing in schema definition")
    assert translate_error(original) is original


def test_custom_http_status():
    error = ServerError("NOT-FOUND", "no such order", http_status=404)
    assert error.http_status == 404
    assert str(error) == "no such order"
