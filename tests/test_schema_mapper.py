"""Schema mapping tests."""

import pytest

from searchsync.errors import ConfigurationError, UnknownTypeError
from searchsync.identity import unsigned_crc
from searchsync.loader import SearchSyncConfig
from searchsync.schema.mapper import (
    AttributeDeclaration,
    AttributeKind,
    ColumnRef,
    ColumnTransform,
    FieldKind,
    RelationKind,
    field_config,
    map_fields,
    map_relations,
    resolve_kind,
    strip_parameters,
)
from searchsync.schema.model import IndexOptions, SchemaRegistry, TypeSchema


def _chain(**c_options: object) -> SchemaRegistry:
    return SchemaRegistry(
        [
            TypeSchema(name="A", fields={"X": "Text", "Title": "Varchar(100)"}),
            TypeSchema(name="B", parent="A", fields={"Y": "Blob"}),
            TypeSchema(name="C", parent="B", fields={"X": "Boolean"}, **c_options),
        ]
    )


def test_descendant_declaration_wins() -> None:
    """A field redeclared lower in the chain appears once, with the new kind."""
    fields = map_fields(_chain(), "C")
    xs = [f for f in fields if f.name == "X"]
    assert len(xs) == 1
    assert xs[0].kind is FieldKind.BOOLEAN
    assert xs[0].owner == "C"


def test_unrecognized_storage_type_skipped() -> None:
    """Fields without an index representation are omitted silently."""
    names = [f.name for f in map_fields(_chain(), "C")]
    assert "Y" not in names
    assert names == ["X", "Title"]


def test_ancestor_fields_keep_ancestor_owner() -> None:
    """Inherited fields are read from the table that declares them."""
    title = next(f for f in map_fields(_chain(), "C") if f.name == "Title")
    assert title.owner == "A"
    assert title.kind is FieldKind.TEXT


def test_override_takes_precedence_over_storage_type() -> None:
    """Explicit overrides replace the inferred kind, on inherited fields too."""
    schema = _chain(search=IndexOptions(fields={"Title": "CRCOrdinal", "Y": "foreign_key"}))
    fields = {f.name: f.kind for f in map_fields(schema, "C")}
    assert fields["Title"] is FieldKind.NUMERIC_HASH
    assert fields["Y"] is FieldKind.FOREIGN_KEY


def test_descendant_override_beats_ancestor_override() -> None:
    """Overrides merge down the chain, most derived last."""
    schema = SchemaRegistry(
        [
            TypeSchema(
                name="A",
                fields={"Code": "Varchar"},
                search=IndexOptions(fields={"Code": "CRCOrdinal"}),
            ),
            TypeSchema(name="B", parent="A", search=IndexOptions(fields={"Code": "Text"})),
        ]
    )
    assert map_fields(schema, "A")[0].kind is FieldKind.NUMERIC_HASH
    assert map_fields(schema, "B")[0].kind is FieldKind.TEXT


@pytest.mark.parametrize(
    ("storage_type", "expected"),
    [
        ("Varchar(255)", "Varchar"),
        ("Enum('a','b')", "Enum"),
        ("HTMLText", "HTMLText"),
        ("  Decimal (9,2)", "Decimal"),
    ],
)
def test_strip_parameters(storage_type: str, expected: str) -> None:
    assert strip_parameters(storage_type) == expected


def test_resolve_kind_accepts_storage_types_and_kind_names() -> None:
    assert resolve_kind("SSDatetime") is FieldKind.TIMESTAMP
    assert resolve_kind("Date") is FieldKind.TIMESTAMP
    assert resolve_kind("ForeignKey") is FieldKind.FOREIGN_KEY
    assert resolve_kind("timestamp") is FieldKind.TIMESTAMP
    assert resolve_kind("Blob") is None


def test_unknown_type_raises(config: SearchSyncConfig) -> None:
    with pytest.raises(UnknownTypeError):
        map_fields(config.schema, "Missing")


def test_field_config_declares_base_columns(config: SearchSyncConfig) -> None:
    """Document ID, record ID, type hashes and dirty flag come first."""
    source = field_config(config.schema, "Article")

    assert source.base_type == "SiteTree"
    assert source.base_id == unsigned_crc("SiteTree")
    assert source.class_id == unsigned_crc("Article")
    assert [c.alias for c in source.columns[:5]] == ["id", "_id", "_baseid", "_classid", "_dirty"]
    assert source.columns[0].transform is ColumnTransform.DOCUMENT_ID
    assert source.columns[0].source == ColumnRef(table="SiteTree", column="ID")
    assert source.columns[4].constant == 0
    assert AttributeDeclaration(kind=AttributeKind.BOOL, name="_dirty") in source.attributes


def test_field_config_renders_each_kind(config: SearchSyncConfig) -> None:
    """Timestamps and hashed ordinals are transformed; text gets no attribute."""
    source = field_config(config.schema, "Article")
    columns = {c.alias: c for c in source.columns}
    attributes = {a.name: a.kind for a in source.attributes}

    assert columns["LastEdited"].transform is ColumnTransform.UNIX_TIMESTAMP
    assert columns["LastEdited"].source == ColumnRef(table="SiteTree", column="LastEdited")
    assert attributes["LastEdited"] is AttributeKind.TIMESTAMP

    assert columns["Category"].transform is ColumnTransform.CRC32
    assert attributes["Category"] is AttributeKind.UINT

    assert attributes["ShowInSearch"] is AttributeKind.BOOL
    assert "Title" in columns
    assert "Title" not in attributes
    assert "Attachment" not in columns


def test_has_many_relation_query(config: SearchSyncConfig) -> None:
    """One-to-many relations select (document ID, related ID) from the target."""
    relations = {r.name: r for r in map_relations(config.schema, "Article")}
    comments = relations["Comments"]

    assert comments.kind is RelationKind.HAS_MANY
    assert comments.owner == "Article"
    assert comments.attribute.kind is AttributeKind.MULTI_UINT
    assert comments.query.source_table == "Comment"
    assert comments.query.join is None
    assert comments.query.document_id_column == ColumnRef(table="Comment", column="ArticleID")
    assert comments.query.value_column == ColumnRef(table="Comment", column="ID")
    assert comments.query.base_id == unsigned_crc("SiteTree")


def test_whitelisted_many_many_relation_query(config: SearchSyncConfig) -> None:
    """A wildcard whitelist exposes inherited many-to-many relations."""
    tags = next(r for r in map_relations(config.schema, "Article") if r.name == "Tags")

    assert tags.kind is RelationKind.MANY_MANY
    assert tags.owner == "SiteTree"
    assert tags.query.source_table == "Tag"
    assert tags.query.join is not None
    assert tags.query.join.table == "SiteTree_Tags"
    assert tags.query.join.left == ColumnRef(table="SiteTree_Tags", column="TagID")
    assert tags.query.join.right == ColumnRef(table="Tag", column="ID")
    assert tags.query.document_id_column == ColumnRef(table="SiteTree_Tags", column="SiteTreeID")


def _tagged(**options: object) -> SchemaRegistry:
    return SchemaRegistry(
        [
            TypeSchema(
                name="Product",
                many_many={"Tags": "Tag", "Related": "Product", "Suppliers": "Supplier"},
                search=IndexOptions(**options),
            ),
            TypeSchema(name="Tag"),
            TypeSchema(name="Supplier"),
        ]
    )


def test_many_many_excluded_by_default() -> None:
    assert map_relations(_tagged(), "Product") == []


@pytest.mark.parametrize(
    ("whitelist", "expected"),
    [
        ("*", ["Tags", "Related", "Suppliers"]),
        ("Tags", ["Tags"]),
        (["Related", "Suppliers", "Unknown"], ["Related", "Suppliers"]),
    ],
)
def test_many_many_whitelist_intersects_declared(whitelist: object, expected: list[str]) -> None:
    """Only declared relations named by the whitelist are exposed."""
    names = [r.name for r in map_relations(_tagged(filterable_many_many=whitelist), "Product")]
    assert names == expected


def test_self_referencing_many_many_uses_child_column() -> None:
    related = map_relations(_tagged(filterable_many_many="Related"), "Product")[0]
    assert related.query.value_column == ColumnRef(table="Product_Related", column="ChildID")


def test_relation_to_unknown_type_is_a_configuration_error() -> None:
    schema = SchemaRegistry([TypeSchema(name="Page", has_many={"Widgets": "Widget"})])
    with pytest.raises(ConfigurationError, match="Widget"):
        map_relations(schema, "Page")


def test_registry_navigation(config: SearchSyncConfig) -> None:
    schema = config.schema
    assert schema.ancestry("Article") == ["SiteTree", "Page", "Article"]
    assert schema.ancestry("Article", include_self=False) == ["SiteTree", "Page"]
    assert schema.base_type("Article") == "SiteTree"
    assert schema.base_type("Tag") == "Tag"
    assert sorted(schema.descendants("SiteTree")) == ["Article", "Page"]
    assert schema.descendants("Article") == []
    with pytest.raises(UnknownTypeError):
        schema.descendants("Ghost")
