"""Explicit registration of the record types kept in sync with the index.

A type is indexable only when registered by name. Descendants of a
registered type are not picked up implicitly; register each type whose
writes must reach the index.
"""

from collections.abc import Iterable, MutableMapping
from typing import Any, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, Field

from searchsync.errors import InvalidArgumentError
from searchsync.schema.model import SchemaRegistry

logger = structlog.get_logger()

PRIMARY_INDEXED_FIELD = "SphinxPrimaryIndexed"
PRIMARY_INDEXED_STORAGE_TYPE = "Boolean"


@runtime_checkable
class Indexable(Protocol):
    """A record that can be synchronized with the search index."""

    @property
    def type_name(self) -> str: ...

    @property
    def id(self) -> int: ...

    def field_value(self, field: str) -> Any: ...


class IndexableTypes:
    """Set of record types registered for index synchronization."""

    def __init__(self, schema: SchemaRegistry, type_names: Iterable[str] = ()) -> None:
        self._schema = schema
        self._types: set[str] = set()
        for type_name in type_names:
            self.register(type_name)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._types

    def register(self, type_name: str) -> None:
        """Register a type. Unknown types raise ``UnknownTypeError``."""
        self._schema.get(type_name)
        if type_name not in self._types:
            self._types.add(type_name)
            logger.debug("indexable_type_registered", type_name=type_name)

    def type_names(self) -> list[str]:
        return sorted(self._types)


def declare_persisted_fields(schema: SchemaRegistry, type_names: Iterable[str]) -> SchemaRegistry:
    """Declare the primary-indexed flag on every indexable type.

    The flag is declared on a type unless one of its ancestors already
    declares it. The external configuration generator uses it to keep freshly
    written rows out of primary-only views.

    Returns:
        A schema snapshot carrying the extra field.
    """
    for type_name in sorted(type_names, key=lambda name: len(schema.ancestry(name))):
        declared = any(
            PRIMARY_INDEXED_FIELD in schema.get(ancestor).fields
            for ancestor in schema.ancestry(type_name)
        )
        if not declared:
            schema = schema.with_fields(
                type_name, {PRIMARY_INDEXED_FIELD: PRIMARY_INDEXED_STORAGE_TYPE}
            )
    return schema


def augment_write(
    schema: SchemaRegistry,
    type_name: str,
    manipulation: MutableMapping[str, dict[str, Any]],
) -> MutableMapping[str, dict[str, Any]]:
    """Reset the primary-indexed flag in a pending write.

    ``manipulation`` maps table name to a write entry whose ``fields`` dict
    holds the column values about to be stored. The flag is set to 0 on the
    table of the first type in the ancestry that declares it.

    Raises:
        InvalidArgumentError: If no type in the ancestry declares the flag.
    """
    for ancestor in schema.ancestry(type_name):
        if PRIMARY_INDEXED_FIELD in schema.get(ancestor).fields:
            entry = manipulation.setdefault(ancestor, {})
            entry.setdefault("fields", {})[PRIMARY_INDEXED_FIELD] = 0
            return manipulation
    raise InvalidArgumentError(f"Type {type_name} does not declare {PRIMARY_INDEXED_FIELD}")


class Record(BaseModel):
    """A written or deleted row, as reported by the relational store.

    Attributes:
        type_name: Concrete record type.
        id: Numeric record ID, unique within the base type.
        values: Column values, used for excerpts.
    """

    type_name: str = Field(min_length=1)
    id: int
    values: dict[str, Any] = Field(default_factory=dict)

    def field_value(self, field: str) -> Any:
        return self.values.get(field)
