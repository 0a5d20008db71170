"""Load the schema description and index topology from a YAML file.

Example::

    types:
      Page:
        fields: {Title: Varchar(255), Content: HTMLText}
        many_many: {Tags: Tag}
        search:
          filterable_many_many: "*"
        indexable: true
      Tag:
        fields: {Name: Varchar}
    indexes:
      - {name: Page, applies_to: Page}
      - {name: PageDelta, applies_to: Page, delta: true}
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from searchsync.errors import ConfigFileError
from searchsync.indexable import IndexableTypes, declare_persisted_fields
from searchsync.schema.model import SchemaRegistry, TypeSchema
from searchsync.topology import IndexDescriptor, IndexRegistry

logger = structlog.get_logger()


class ConfigDocument(BaseModel):
    """Raw shape of the configuration file."""

    types: dict[str, dict[str, Any] | None] = Field(default_factory=dict)
    indexes: list[IndexDescriptor] = Field(default_factory=list)


class SearchSyncConfig:
    """Schema, index registry and indexable types built from one file.

    Attributes:
        schema: Schema snapshot, including the persisted primary-indexed flag.
        registry: Configured indexes.
        indexables: Types registered for synchronization.
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        registry: IndexRegistry,
        indexables: IndexableTypes,
    ) -> None:
        self.schema = schema
        self.registry = registry
        self.indexables = indexables


def build_config(document: ConfigDocument) -> SearchSyncConfig:
    """Assemble registries from a validated configuration document.

    Raises:
        ConfigurationError: If the schema or index topology is inconsistent.
    """
    schema = SchemaRegistry(
        TypeSchema.model_validate({**(spec or {}), "name": name})
        for name, spec in document.types.items()
    )
    indexable_names = [t.name for t in schema if t.indexable]
    schema = declare_persisted_fields(schema, indexable_names)
    registry = IndexRegistry(schema, document.indexes)
    return SearchSyncConfig(
        schema=schema,
        registry=registry,
        indexables=IndexableTypes(schema, indexable_names),
    )


def parse_config(content: str, path: str = "<string>") -> SearchSyncConfig:
    """Parse YAML configuration text.

    Args:
        content: YAML document.
        path: Source path, used in error messages.

    Raises:
        ConfigFileError: If the YAML or its structure is invalid.
        ConfigurationError: If the schema or index topology is inconsistent.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}: {e}", path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigFileError(f"Expected a mapping at the top of {path}", path)

    try:
        document = ConfigDocument.model_validate(data)
        return build_config(document)
    except ValidationError as e:
        raise ConfigFileError(f"Invalid configuration in {path}: {e}", path) from e


def load_config(filepath: Path) -> SearchSyncConfig:
    """Read and parse a configuration file.

    Raises:
        ConfigFileError: If the file cannot be read or is invalid.
        ConfigurationError: If the schema or index topology is inconsistent.
    """
    try:
        raw = filepath.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigFileError(f"Config file not found: {filepath}", str(filepath)) from e
    except OSError as e:
        raise ConfigFileError(f"Failed to read config file: {e}", str(filepath)) from e

    config = parse_config(raw, str(filepath))
    logger.info(
        "config_loaded",
        path=str(filepath),
        types=len(config.schema),
        indexes=len(config.registry),
        indexable_types=config.indexables.type_names(),
    )
    return config
