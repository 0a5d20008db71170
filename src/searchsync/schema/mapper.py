"""Map record type schemas to search index field and attribute declarations.

The mapper walks a type's inheritance chain from the base type down, so a
field redeclared by a descendant replaces the ancestor's declaration. Fields
whose storage type has no index representation are left out rather than
failing the whole type.
"""

import re
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict

from searchsync.errors import ConfigurationError
from searchsync.identity import base_id, class_id
from searchsync.schema.model import ALL_RELATIONS, SchemaRegistry

logger = structlog.get_logger()

_PARAMETRIC_TYPE = re.compile(r"^\s*(\w+)\s*\(")

DIRTY_ATTRIBUTE = "_dirty"


class FieldKind(str, Enum):
    """Semantic kind of an indexed field."""

    TEXT = "text"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    FOREIGN_KEY = "foreign_key"
    NUMERIC_HASH = "numeric_hash"


STORAGE_KINDS: dict[str, FieldKind] = {
    "Varchar": FieldKind.TEXT,
    "Text": FieldKind.TEXT,
    "HTMLVarchar": FieldKind.TEXT,
    "HTMLText": FieldKind.TEXT,
    "Boolean": FieldKind.BOOLEAN,
    "Date": FieldKind.TIMESTAMP,
    "Datetime": FieldKind.TIMESTAMP,
    "SSDatetime": FieldKind.TIMESTAMP,
    "ForeignKey": FieldKind.FOREIGN_KEY,
    "CRCOrdinal": FieldKind.NUMERIC_HASH,
}


class ColumnTransform(str, Enum):
    """How the config generator must render a selected column."""

    NONE = "none"
    DOCUMENT_ID = "document_id"
    UNIX_TIMESTAMP = "unix_timestamp"
    CRC32 = "crc32"


class AttributeKind(str, Enum):
    """Index attribute types."""

    UINT = "uint"
    BOOL = "bool"
    TIMESTAMP = "timestamp"
    MULTI_UINT = "multi_uint"


_KIND_RENDERING: dict[FieldKind, tuple[ColumnTransform, AttributeKind | None]] = {
    FieldKind.TEXT: (ColumnTransform.NONE, None),
    FieldKind.BOOLEAN: (ColumnTransform.NONE, AttributeKind.BOOL),
    FieldKind.TIMESTAMP: (ColumnTransform.UNIX_TIMESTAMP, AttributeKind.TIMESTAMP),
    FieldKind.FOREIGN_KEY: (ColumnTransform.NONE, AttributeKind.UINT),
    FieldKind.NUMERIC_HASH: (ColumnTransform.CRC32, AttributeKind.UINT),
}


class FieldDescriptor(BaseModel):
    """An indexed field and the type that declares it.

    Attributes:
        name: Field (column) name.
        owner: Type whose table holds the column.
        kind: Semantic kind deciding how the field is indexed.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    owner: str
    kind: FieldKind


class ColumnRef(BaseModel):
    """A ``table.column`` reference."""

    model_config = ConfigDict(frozen=True)

    table: str
    column: str


class SelectColumn(BaseModel):
    """One column of the index source query.

    Attributes:
        alias: Name of the column in the index.
        source: Column to select, or None for a constant.
        constant: Literal value selected when ``source`` is None.
        transform: Rendering applied to ``source``.
    """

    model_config = ConfigDict(frozen=True)

    alias: str
    source: ColumnRef | None = None
    constant: int | None = None
    transform: ColumnTransform = ColumnTransform.NONE


class AttributeDeclaration(BaseModel):
    """A non-full-text attribute stored alongside each document."""

    model_config = ConfigDict(frozen=True)

    kind: AttributeKind
    name: str


class FieldConfig(BaseModel):
    """Structured source declaration for one record type.

    Attributes:
        type_name: The mapped record type.
        base_type: Root type, whose table carries the record ID.
        base_id: Hash of the base type; ``DOCUMENT_ID`` columns render as
            ``(base_id << 32) | column``.
        class_id: Hash of the mapped type.
        columns: Selected columns, document ID first.
        attributes: Attribute declarations for the selected columns.
    """

    model_config = ConfigDict(frozen=True)

    type_name: str
    base_type: str
    base_id: int
    class_id: int
    columns: list[SelectColumn]
    attributes: list[AttributeDeclaration]


class RelationKind(str, Enum):
    HAS_MANY = "has_many"
    MANY_MANY = "many_many"


class JoinClause(BaseModel):
    """``INNER JOIN table ON left = right``."""

    model_config = ConfigDict(frozen=True)

    table: str
    left: ColumnRef
    right: ColumnRef


class RelationQuery(BaseModel):
    """Sub-query yielding (global document ID, related ID) pairs.

    Attributes:
        source_table: Table the query selects from.
        join: Optional join onto ``source_table``.
        document_id_column: Column holding the owner's record ID; rendered as
            ``(base_id << 32) | column``.
        value_column: Column holding the related record ID.
        base_id: Base type hash of the owning type.
    """

    model_config = ConfigDict(frozen=True)

    source_table: str
    join: JoinClause | None = None
    document_id_column: ColumnRef
    value_column: ColumnRef
    base_id: int


class RelationDescriptor(BaseModel):
    """A relation exposed as a multi-valued attribute."""

    model_config = ConfigDict(frozen=True)

    name: str
    owner: str
    kind: RelationKind
    attribute: AttributeDeclaration
    query: RelationQuery


def strip_parameters(storage_type: str) -> str:
    """Reduce a parameterized storage type to its leading type name.

    >>> strip_parameters("Varchar(255)")
    'Varchar'
    """
    match = _PARAMETRIC_TYPE.match(storage_type)
    return match.group(1) if match else storage_type.strip()


def resolve_kind(type_name: str) -> FieldKind | None:
    """Kind for a storage type or override; None when it cannot be indexed."""
    try:
        return FieldKind(type_name)
    except ValueError:
        return STORAGE_KINDS.get(strip_parameters(type_name))


def _merged_overrides(schema: SchemaRegistry, type_name: str) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for ancestor in schema.ancestry(type_name):
        overrides.update(schema.get(ancestor).search.fields)
    return overrides


def map_fields(schema: SchemaRegistry, type_name: str) -> list[FieldDescriptor]:
    """Indexed fields of a type, including inherited ones.

    Args:
        schema: Schema snapshot.
        type_name: Type to map.

    Returns:
        Field descriptors in order of first declaration. When a name recurs,
        the most derived declaration supplies owner and kind.
    """
    overrides = _merged_overrides(schema, type_name)
    declared: dict[str, tuple[str, str]] = {}

    for owner in schema.ancestry(type_name):
        for name, storage_type in schema.get(owner).fields.items():
            declared[name] = (owner, overrides.get(name, storage_type))

    fields: list[FieldDescriptor] = []
    for name, (owner, declared_type) in declared.items():
        kind = resolve_kind(declared_type)
        if kind is None:
            logger.debug(
                "field_mapping_skipped",
                type_name=type_name,
                field=name,
                storage_type=declared_type,
            )
            continue
        fields.append(FieldDescriptor(name=name, owner=owner, kind=kind))
    return fields


def field_config(schema: SchemaRegistry, type_name: str) -> FieldConfig:
    """Source columns and attribute declarations for a type's index."""
    base = schema.base_type(type_name)
    record_id = ColumnRef(table=base, column="ID")

    columns = [
        SelectColumn(alias="id", source=record_id, transform=ColumnTransform.DOCUMENT_ID),
        SelectColumn(alias="_id", source=record_id),
        SelectColumn(alias="_baseid", constant=base_id(schema, type_name)),
        SelectColumn(alias="_classid", constant=class_id(type_name)),
        SelectColumn(alias=DIRTY_ATTRIBUTE, constant=0),
    ]
    attributes = [
        AttributeDeclaration(kind=AttributeKind.UINT, name="_id"),
        AttributeDeclaration(kind=AttributeKind.UINT, name="_baseid"),
        AttributeDeclaration(kind=AttributeKind.UINT, name="_classid"),
        AttributeDeclaration(kind=AttributeKind.BOOL, name=DIRTY_ATTRIBUTE),
    ]

    for descriptor in map_fields(schema, type_name):
        transform, attribute_kind = _KIND_RENDERING[descriptor.kind]
        columns.append(
            SelectColumn(
                alias=descriptor.name,
                source=ColumnRef(table=descriptor.owner, column=descriptor.name),
                transform=transform,
            )
        )
        if attribute_kind is not None:
            attributes.append(AttributeDeclaration(kind=attribute_kind, name=descriptor.name))

    return FieldConfig(
        type_name=type_name,
        base_type=base,
        base_id=base_id(schema, type_name),
        class_id=class_id(type_name),
        columns=columns,
        attributes=attributes,
    )


def _many_many_whitelist(schema: SchemaRegistry, type_name: str) -> frozenset[str] | str:
    whitelist: frozenset[str] | str = frozenset()
    for ancestor in schema.ancestry(type_name):
        options = schema.get(ancestor).search
        if options.filterable_many_many is not None:
            whitelist = options.many_many_whitelist()
    return whitelist


def map_relations(schema: SchemaRegistry, type_name: str) -> list[RelationDescriptor]:
    """Relations of a type, including inherited ones, as multi-valued attributes.

    Every one-to-many relation is included. Many-to-many relations are only
    included when whitelisted through ``filterable_many_many``.

    Raises:
        ConfigurationError: If a relation targets a type missing from the schema.
    """
    owner_base_id = base_id(schema, type_name)
    whitelist = _many_many_whitelist(schema, type_name)
    relations: list[RelationDescriptor] = []

    for owner in schema.ancestry(type_name):
        owner_schema = schema.get(owner)

        for name, has_many in owner_schema.has_many.items():
            _require_target(schema, owner, name, has_many.target)
            join_field = has_many.join_field or f"{owner}ID"
            relations.append(
                RelationDescriptor(
                    name=name,
                    owner=owner,
                    kind=RelationKind.HAS_MANY,
                    attribute=AttributeDeclaration(kind=AttributeKind.MULTI_UINT, name=name),
                    query=RelationQuery(
                        source_table=has_many.target,
                        document_id_column=ColumnRef(table=has_many.target, column=join_field),
                        value_column=ColumnRef(table=has_many.target, column="ID"),
                        base_id=owner_base_id,
                    ),
                )
            )

        for name, many_many in owner_schema.many_many.items():
            if whitelist != ALL_RELATIONS and name not in whitelist:
                continue
            _require_target(schema, owner, name, many_many.target)
            table = many_many.table or f"{owner}_{name}"
            parent_field = many_many.parent_field or f"{owner}ID"
            if many_many.component_field:
                component_field = many_many.component_field
            elif many_many.target == owner:
                component_field = "ChildID"
            else:
                component_field = f"{many_many.target}ID"
            component_base = schema.base_type(many_many.target)

            relations.append(
                RelationDescriptor(
                    name=name,
                    owner=owner,
                    kind=RelationKind.MANY_MANY,
                    attribute=AttributeDeclaration(kind=AttributeKind.MULTI_UINT, name=name),
                    query=RelationQuery(
                        source_table=component_base,
                        join=JoinClause(
                            table=table,
                            left=ColumnRef(table=table, column=component_field),
                            right=ColumnRef(table=component_base, column="ID"),
                        ),
                        document_id_column=ColumnRef(table=table, column=parent_field),
                        value_column=ColumnRef(table=table, column=component_field),
                        base_id=owner_base_id,
                    ),
                )
            )

    return relations


def _require_target(schema: SchemaRegistry, owner: str, relation: str, target: str) -> None:
    if target not in schema:
        raise ConfigurationError(
            f"Relation {owner}.{relation} targets unknown type {target}"
        )
