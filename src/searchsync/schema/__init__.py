"""Schema description and mapping to index field declarations."""

from searchsync.schema.mapper import (
    AttributeDeclaration,
    AttributeKind,
    ColumnRef,
    ColumnTransform,
    FieldConfig,
    FieldDescriptor,
    FieldKind,
    JoinClause,
    RelationDescriptor,
    RelationKind,
    RelationQuery,
    SelectColumn,
    field_config,
    map_fields,
    map_relations,
)
from searchsync.schema.model import (
    HasManyRelation,
    IndexOptions,
    ManyManyRelation,
    SchemaRegistry,
    TypeSchema,
)

__all__ = [
    "AttributeDeclaration",
    "AttributeKind",
    "ColumnRef",
    "ColumnTransform",
    "FieldConfig",
    "FieldDescriptor",
    "FieldKind",
    "HasManyRelation",
    "IndexOptions",
    "JoinClause",
    "ManyManyRelation",
    "RelationDescriptor",
    "RelationKind",
    "RelationQuery",
    "SchemaRegistry",
    "SelectColumn",
    "TypeSchema",
    "field_config",
    "map_fields",
    "map_relations",
]
