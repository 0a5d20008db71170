"""Resolve which search indexes cover a record type."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from searchsync.errors import ConfigurationError
from searchsync.schema.model import SchemaRegistry


class IndexDescriptor(BaseModel):
    """A configured search index.

    Attributes:
        name: Index name known to the search daemon.
        applies_to: Record type the index is built from. The index also
            covers every descendant of that type.
        is_delta: True for the cheap index covering recent changes, False
            for the primary index.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    applies_to: str = Field(min_length=1)
    is_delta: bool = Field(default=False, alias="delta")


class IndexRegistry:
    """Read-only view of the configured indexes.

    Rebuilt wholesale whenever the search daemon configuration changes.
    """

    def __init__(self, schema: SchemaRegistry, indexes: Iterable[IndexDescriptor]) -> None:
        """Build the registry.

        Args:
            schema: Schema used to resolve type ancestry.
            indexes: Configured indexes.

        Raises:
            ConfigurationError: On duplicate index names or unknown types.
        """
        self._schema = schema
        self._indexes: dict[str, IndexDescriptor] = {}
        for index in indexes:
            if index.name in self._indexes:
                raise ConfigurationError(f"Duplicate index name: {index.name}")
            if index.applies_to not in schema:
                raise ConfigurationError(
                    f"Index {index.name} applies to unknown type {index.applies_to}"
                )
            self._indexes[index.name] = index

    def __len__(self) -> int:
        return len(self._indexes)

    def get(self, name: str) -> IndexDescriptor:
        """Look up an index by name.

        Raises:
            ConfigurationError: If no index has that name.
        """
        try:
            return self._indexes[name]
        except KeyError:
            raise ConfigurationError(f"Unknown index: {name}") from None

    def all_indexes(self) -> list[IndexDescriptor]:
        """Every configured index, sorted by name."""
        return sorted(self._indexes.values(), key=lambda index: index.name)

    def indexes_for(self, type_name: str) -> frozenset[IndexDescriptor]:
        """Indexes built from ``type_name`` or any of its ancestors."""
        lineage = set(self._schema.ancestry(type_name))
        return frozenset(
            index for index in self._indexes.values() if index.applies_to in lineage
        )

    def require(self, type_name: str) -> list[IndexDescriptor]:
        """Like ``indexes_for`` but sorted, and never empty.

        Raises:
            ConfigurationError: If no index covers the type.
        """
        indexes = self.indexes_for(type_name)
        if not indexes:
            raise ConfigurationError(f"No search index covers type {type_name}")
        return sorted(indexes, key=lambda index: index.name)

    def primary_indexes(self, type_name: str) -> list[IndexDescriptor]:
        return sorted(
            (index for index in self.indexes_for(type_name) if not index.is_delta),
            key=lambda index: index.name,
        )

    def delta_indexes(self, type_name: str) -> list[IndexDescriptor]:
        return sorted(
            (index for index in self.indexes_for(type_name) if index.is_delta),
            key=lambda index: index.name,
        )
