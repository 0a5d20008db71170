"""Schema description value objects consumed by the schema mapper.

The relational store is described once at startup (or on schema change)
instead of being introspected at runtime. A ``TypeSchema`` lists only the
fields and relations a type declares itself; inherited members are resolved
by walking ``SchemaRegistry.ancestry``.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from searchsync.errors import ConfigurationError, UnknownTypeError

ALL_RELATIONS = "*"


def _expand_shorthand(value: Any) -> Any:
    """Allow ``Relation: Target`` as shorthand for ``{target: Target}``."""
    if isinstance(value, Mapping):
        return {
            name: {"target": spec} if isinstance(spec, str) else spec
            for name, spec in value.items()
        }
    return value


class HasManyRelation(BaseModel):
    """One-to-many relation from the owning type to ``target``.

    Attributes:
        target: Related record type.
        join_field: Column on the target's table pointing back at the owner.
            Defaults to ``<OwnerType>ID``.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    join_field: str | None = None


class ManyManyRelation(BaseModel):
    """Many-to-many relation through a join table.

    Attributes:
        target: Related record type.
        table: Join table name. Defaults to ``<OwnerType>_<Relation>``.
        parent_field: Join table column holding the owner ID.
        component_field: Join table column holding the target ID.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    table: str | None = None
    parent_field: str | None = None
    component_field: str | None = None


class IndexOptions(BaseModel):
    """Per-type indexing options.

    Attributes:
        fields: Field name to kind overrides, taking precedence over the
            kind inferred from the storage type.
        filterable_many_many: ``"*"`` for every many-to-many relation, a
            relation name, or a list of relation names to expose as
            filterable attributes. Unset means none.
    """

    model_config = ConfigDict(frozen=True)

    fields: dict[str, str] = Field(default_factory=dict)
    filterable_many_many: Literal["*"] | str | list[str] | None = None

    def many_many_whitelist(self) -> frozenset[str] | Literal["*"]:
        """Normalize the many-to-many whitelist to ``"*"`` or a name set."""
        value = self.filterable_many_many
        if value is None:
            return frozenset()
        if value == ALL_RELATIONS:
            return ALL_RELATIONS
        if isinstance(value, str):
            return frozenset({value})
        return frozenset(value)


class TypeSchema(BaseModel):
    """A record type and the members it declares itself.

    Attributes:
        name: Type name, also its table name.
        parent: Parent type name, or None for a base type.
        fields: Own field name to storage type (e.g. ``Varchar(255)``).
        has_many: Own one-to-many relations.
        many_many: Own many-to-many relations.
        search: Indexing options for this type.
        indexable: Whether the type is registered for index synchronization.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    parent: str | None = None
    fields: dict[str, str] = Field(default_factory=dict)
    has_many: dict[str, HasManyRelation] = Field(default_factory=dict)
    many_many: dict[str, ManyManyRelation] = Field(default_factory=dict)
    search: IndexOptions = Field(default_factory=IndexOptions)
    indexable: bool = False

    @field_validator("has_many", "many_many", mode="before")
    @classmethod
    def expand_relations(cls, v: Any) -> Any:
        """Expand ``name: Target`` shorthand into relation mappings."""
        return _expand_shorthand(v)


class SchemaRegistry:
    """Immutable snapshot of every record type in the relational store.

    Rejects dangling parents and inheritance cycles on construction, so every
    type resolves to exactly one base type.
    """

    def __init__(self, types: Iterable[TypeSchema]) -> None:
        """Build the registry.

        Args:
            types: Type descriptions, in any order.

        Raises:
            ConfigurationError: On duplicate names, unknown parents or cycles.
        """
        self._types: dict[str, TypeSchema] = {}
        for type_schema in types:
            if type_schema.name in self._types:
                raise ConfigurationError(f"Duplicate record type: {type_schema.name}")
            self._types[type_schema.name] = type_schema

        for type_schema in self._types.values():
            if type_schema.parent is not None and type_schema.parent not in self._types:
                raise ConfigurationError(
                    f"Type {type_schema.name} extends unknown type {type_schema.parent}"
                )
        for name in self._types:
            self._chain(name)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._types

    def __iter__(self) -> Iterator[TypeSchema]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def get(self, type_name: str) -> TypeSchema:
        """Look up a type description.

        Raises:
            UnknownTypeError: If the type is not in the schema.
        """
        try:
            return self._types[type_name]
        except KeyError:
            raise UnknownTypeError(type_name) from None

    def _chain(self, type_name: str) -> list[str]:
        chain: list[str] = []
        current: str | None = type_name
        while current is not None:
            if current in chain:
                raise ConfigurationError(f"Inheritance cycle through {current}")
            chain.append(current)
            current = self.get(current).parent
        chain.reverse()
        return chain

    def ancestry(self, type_name: str, include_self: bool = True) -> list[str]:
        """Inheritance chain ordered from the base type down to ``type_name``."""
        chain = self._chain(type_name)
        return chain if include_self else chain[:-1]

    def base_type(self, type_name: str) -> str:
        """Root type of the inheritance chain (the document ID namespace)."""
        return self._chain(type_name)[0]

    def descendants(self, type_name: str) -> list[str]:
        """Every type that has ``type_name`` as a strict ancestor."""
        self.get(type_name)
        return [
            name
            for name in self._types
            if name != type_name and type_name in self._chain(name)
        ]

    def type_names(self) -> list[str]:
        return list(self._types)

    def with_fields(self, type_name: str, fields: Mapping[str, str]) -> "SchemaRegistry":
        """Copy of the registry with extra own fields declared on one type."""
        original = self.get(type_name)
        updated = original.model_copy(update={"fields": {**original.fields, **fields}})
        return SchemaRegistry(
            updated if t.name == type_name else t for t in self._types.values()
        )
