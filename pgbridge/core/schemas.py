from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, model_validator

from pgbridge.core.errors import ConfigurationError


# =========================
# FIELD
# =========================
class FieldSpec(BaseModel):
    """
    One declared field of an entity type.

    column defaults to the field name; an explicit None marks a virtual
    field. A field without a type is metadata only. Neither kind is ever
    written to the database.
    """

    name: str
    column: Optional[str] = None
    type: Optional[Any] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def default_column(cls, data: Any) -> Any:
        if isinstance(data, dict) and "column" not in data:
            data = {**data, "column": data.get("name")}
        return data

    @property
    def persisted(self) -> bool:
        return self.column is not None and self.type is not None


# =========================
# SCHEMA
# =========================
class SchemaDescriptor(BaseModel):
    """
    Static metadata for an entity type: its ordered fields and key fields.

    Example:
        users = SchemaDescriptor(
            fields=[
                FieldSpec(name="id", type=int),
                FieldSpec(name="display_name", column="name", type=str),
                FieldSpec(name="avatar_url", column=None, type=str),
            ],
            keys=["id"],
        )
    """

    fields: Tuple[FieldSpec, ...]
    keys: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_keys(self) -> "SchemaDescriptor":
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate field in schema definition: {names}")
        if len(set(self.keys)) != len(self.keys):
            raise ConfigurationError(f"Duplicate key in schema definition: {list(self.keys)}")

        by_name = {f.name: f for f in self.fields}
        for key in self.keys:
            if key not in by_name:
                raise ConfigurationError(f"Key '{key}' is not a field of the schema")
            if not by_name[key].persisted:
                raise ConfigurationError(f"Key '{key}' must have a column and a type")
        return self

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    @property
    def key_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(self.field(key) for key in self.keys)

    @property
    def non_key_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.persisted and f.name not in self.keys)

    def require_keys(self) -> None:
        if not self.keys:
            raise ConfigurationError("Key missing in schema definition")


Record = Union[Mapping[str, Any], BaseModel]


def record_values(record: Record) -> Dict[str, Any]:
    """
    Turn a record into a plain dict.

    Pydantic models are dumped with exclude_unset so that attributes the
    caller never set stay absent instead of becoming NULL.
    """
    if isinstance(record, BaseModel):
        return record.model_dump(exclude_unset=True)
    return dict(record)
