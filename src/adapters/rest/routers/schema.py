"""Read-only schema endpoints (no LLM involved)."""

from fastapi import APIRouter, Depends, HTTPException

from adapters.rest.dependencies import get_factory
from adapters.rest.schemas import SchemaOut
from domain.exceptions import UnknownCollectionError
from factory import ServiceFactory

router = APIRouter(prefix="/schema", tags=["schema"])


@router.get("", response_model=dict[str, dict[str, str]])
async def list_schemas(factory: ServiceFactory = Depends(get_factory)):
    return factory.create_formatter().format_all(factory.create_reflector())


@router.get("/{collection}", response_model=SchemaOut)
async def get_schema(collection: str, factory: ServiceFactory = Depends(get_factory)):
    reflector = factory.create_reflector()
    try:
        descriptor = reflector.reflect(collection)
    except UnknownCollectionError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    fields = factory.create_formatter().format(descriptor)
    relationships = reflector.extract_relationships(collection)[collection]
    return SchemaOut(
        collection=collection,
        fieldCount=len(fields),
        fields=fields,
        relationships=[r.to_dict() for r in relationships],
    )
