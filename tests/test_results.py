import copy

from pgbridge.core.results import QueryResult, normalize


def rows():
    return [
        {"id": 1, "name": "  Alice ", "email": None},
        {"id": 2, "name": "Bob", "email": "bob@example.com\n"},
    ]


def test_drops_nulls_and_trims_strings():
    result = normalize(QueryResult(rows(), 2))

    assert result.rows == [
        {"id": 1, "name": "Alice"},
        {"id": 2, "name": "Bob", "email": "bob@example.com"},
    ]


def test_mutates_rows_in_place():
    data = rows()
    first = data[0]
    normalize(data)
    assert first == {"id": 1, "name": "Alice"}


def test_include_nulls_keeps_null_columns():
    data = normalize(rows(), include_nulls=True)
    assert data[0] == {"id": 1, "name": "Alice", "email": None}


def test_no_trim_strings_keeps_whitespace():
    data = normalize(rows(), no_trim_strings=True)
    assert data[0] == {"id": 1, "name": "  Alice "}


def test_idempotent_under_defaults():
    once = normalize(rows())
    twice = normalize(copy.deepcopy(once))
    assert twice == once


def test_never_adds_columns():
    data = [{"a": " x "}, {}]
    normalize(data, include_nulls=True)
    assert data == [{"a": "x"}, {}]
