"""Read-only operation catalog endpoints."""
from fastapi import APIRouter, HTTPException, Query

from server.api.deps import get_catalog
from server.models.catalog import ApiConfig, OperationInfo, TypeDetails

router = APIRouter(tags=["schema"])


@router.get("/schema/config", response_model=ApiConfig)
async def get_api_config() -> ApiConfig:
    return get_catalog().get_config()


@router.get("/schema/operations", response_model=list[OperationInfo])
async def list_operations(
    category: str | None = Query(default=None, description="Only operations in this category"),
) -> list[OperationInfo]:
    catalog = get_catalog()
    if category:
        return catalog.operations_by_category(category)
    return catalog.list_operations()


@router.get("/schema/operations/{name}", response_model=OperationInfo)
async def get_operation(name: str) -> OperationInfo:
    op = get_catalog().get_operation(name)
    if op is None:
        raise HTTPException(status_code=404, detail=f"Operation not found: {name}")
    return op


@router.get("/schema/types/{name}", response_model=TypeDetails)
async def get_type(name: str) -> TypeDetails:
    type_details = get_catalog().get_type(name)
    if type_details is None:
        raise HTTPException(status_code=404, detail=f"Type not found: {name}")
    return type_details
