"""
Statement synthesis from a schema descriptor and a record.

Values are inlined through quote_literal and names through quote_identifier
or quote_table, so the resulting statements run without bound parameters.

Example:
    >>> schema = SchemaDescriptor(
    ...     fields=[FieldSpec(name="id", type=int), FieldSpec(name="name", type=str)],
    ...     keys=["id"],
    ... )
    >>> print(build_upsert("t", schema, {"id": 5, "name": "Alice"}).text)
    INSERT INTO "t" ("id", "name") VALUES ('5', 'Alice') ON CONFLICT ("id") DO UPDATE SET "name"='Alice' RETURNING "name"
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from pgbridge.core.quoting import quote_identifier, quote_literal, quote_table
from pgbridge.core.schemas import FieldSpec, Record, SchemaDescriptor, record_values


@dataclass(frozen=True)
class Statement:
    """Synthesized SQL text; params stays empty since every value is inlined."""

    text: str
    params: Tuple[Any, ...] = ()


def _col(field: FieldSpec) -> str:
    return quote_identifier(field.column)


def _col_list(fields: List[FieldSpec]) -> str:
    return ", ".join(_col(f) for f in fields)


def _present_non_keys(schema: SchemaDescriptor, values: Dict[str, Any]) -> List[FieldSpec]:
    return [f for f in schema.non_key_fields if f.name in values]


def _assignments(fields: List[FieldSpec], values: Dict[str, Any]) -> str:
    return ", ".join(f"{_col(f)}={quote_literal(values[f.name])}" for f in fields)


# =========================
# INSERT
# =========================
def build_insert(table: str, schema: SchemaDescriptor, record: Record) -> Statement:
    """
    Build INSERT ... RETURNING for the fields present in record.

    Key fields that are None or absent are left out so the database can
    generate them.
    """
    values = record_values(record)
    keys = [f for f in schema.key_fields if values.get(f.name) is not None]
    fields = keys + _present_non_keys(schema, values)

    if not fields:
        return Statement(f"INSERT INTO {quote_table(table)} DEFAULT VALUES RETURNING *")

    cols = _col_list(fields)
    vals = ", ".join(quote_literal(values[f.name]) for f in fields)
    return Statement(
        f"INSERT INTO {quote_table(table)} ({cols}) VALUES ({vals}) RETURNING {cols}"
    )


# =========================
# UPSERT
# =========================
def build_upsert(table: str, schema: SchemaDescriptor, record: Record) -> Statement:
    """
    Build INSERT ... ON CONFLICT (keys) DO UPDATE.

    Every key field is written (absent keys as NULL); the conflict target is
    always the whole key tuple.
    """
    schema.require_keys()
    values = record_values(record)
    keys = list(schema.key_fields)
    non_keys = _present_non_keys(schema, values)
    fields = keys + non_keys

    cols = _col_list(fields)
    vals = ", ".join(quote_literal(values.get(f.name)) for f in fields)
    conflict = _col_list(keys)

    if non_keys:
        update_set = _assignments(non_keys, values)
        returning = _col_list(non_keys)
    else:
        # Nothing to overwrite; touch the first key so the row is still returned
        update_set = f"{_col(keys[0])}=EXCLUDED.{_col(keys[0])}"
        returning = conflict

    return Statement(
        f"INSERT INTO {quote_table(table)} ({cols}) VALUES ({vals}) "
        f"ON CONFLICT ({conflict}) DO UPDATE SET {update_set} "
        f"RETURNING {returning}"
    )


# =========================
# UPDATE
# =========================
def _key_condition(field: FieldSpec, value: Any) -> str:
    # "= NULL" never matches
    if value is None:
        return f"{_col(field)} IS NULL"
    return f"{_col(field)} = {quote_literal(value)}"


def build_update(table: str, schema: SchemaDescriptor, record: Record) -> Statement:
    """Build UPDATE ... SET <present non-key fields> WHERE <all key fields>."""
    schema.require_keys()
    values = record_values(record)
    keys = list(schema.key_fields)
    non_keys = _present_non_keys(schema, values)

    if non_keys:
        update_set = _assignments(non_keys, values)
        returning = _col_list(non_keys)
    else:
        update_set = f"{_col(keys[0])}={_col(keys[0])}"
        returning = _col_list(keys)

    where = " AND ".join(_key_condition(f, values.get(f.name)) for f in keys)
    return Statement(
        f"UPDATE {quote_table(table)} SET {update_set} WHERE {where} RETURNING {returning}"
    )
