"""Field and relation declarations for the search daemon config generator."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from searchsync.lifecycle import SyncRuntime
from searchsync.schema.mapper import (
    FieldConfig,
    FieldDescriptor,
    RelationDescriptor,
    field_config,
    map_fields,
    map_relations,
)
from searchsync.topology import IndexDescriptor

router = APIRouter(prefix="/schema", tags=["schema"])


class TypeMappingResponse(BaseModel):
    """Everything the config generator needs for one record type.

    Attributes:
        type_name: The mapped record type.
        indexable: Whether writes to the type are synchronized.
        fields: Indexed fields, inherited ones included.
        source: Structured select and attribute declarations.
        relations: Multi-valued relation attributes.
        indexes: Indexes covering the type.
    """

    type_name: str
    indexable: bool
    fields: list[FieldDescriptor]
    source: FieldConfig
    relations: list[RelationDescriptor]
    indexes: list[IndexDescriptor]


@router.get(
    "/{type_name}",
    response_model=TypeMappingResponse,
    responses={404: {"description": "Unknown record type"}},
)
async def type_mapping(request: Request, type_name: str) -> TypeMappingResponse:
    """Map a record type to its index declarations.

    Args:
        request: FastAPI request (provides access to app state).
        type_name: Record type to map.

    Returns:
        Field, attribute and relation declarations for the type.
    """
    runtime: SyncRuntime = request.app.state.runtime
    config = runtime.config
    return TypeMappingResponse(
        type_name=type_name,
        indexable=type_name in config.indexables,
        fields=map_fields(config.schema, type_name),
        source=field_config(config.schema, type_name),
        relations=map_relations(config.schema, type_name),
        indexes=sorted(config.registry.indexes_for(type_name), key=lambda index: index.name),
    )
