"""
Store product catalog endpoints.
"""
from fastapi import APIRouter, Depends, Header, Query
from starlette import status

from partner_portal.api.errors import conflict, not_found
from partner_portal.core.deps import get_product_service
from partner_portal.core.idempotency import idempotency_store
from partner_portal.core.security import Principal, Role, get_current_user, require_role
from partner_portal.schemas.product import (
    ProductApproval,
    ProductCreate,
    ProductImportRequest,
    ProductImportResponse,
    ProductResponse,
    ProductUpdate,
)
from partner_portal.services.product_service import DuplicateSkuError, ProductNotFoundError, ProductService


router = APIRouter(dependencies=[Depends(get_current_user)])

staff = require_role(Role.EMPLOYEE)


@router.get("", response_model=list[ProductResponse])
async def list_products(
    approved: bool | None = Query(default=None),
    category: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    svc: ProductService = Depends(get_product_service),
    user: Principal = Depends(get_current_user),
):
    """Catalog listing. Partners only see approved, active products."""
    if user.role == Role.PARTNER:
        approved, include_inactive = True, False
    return await svc.list_products(approved=approved, category=category, include_inactive=include_inactive)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(staff)])
async def create_product(
    data: ProductCreate,
    svc: ProductService = Depends(get_product_service),
):
    try:
        return await svc.create_product(data)
    except DuplicateSkuError as e:
        conflict("duplicate_sku", str(e), context={"sku": e.sku})


@router.post(
    "/import",
    response_model=ProductImportResponse,
    dependencies=[Depends(staff)],
)
async def import_products(
    data: ProductImportRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    svc: ProductService = Depends(get_product_service),
):
    """
    Bulk import already-parsed spreadsheet rows.

    Each row is created, skipped (SKU already known) or failed on its own;
    the response lists a message for every row that was not created.
    """
    if idempotency_key:
        cache_key = idempotency_store.key("import_products", idempotency_key)
        cached = await idempotency_store.get(cache_key)
        if cached:
            return cached

    result = await svc.import_products(data.rows, default_markup=data.default_markup, auto_approve=data.auto_approve)
    response = ProductImportResponse.model_validate(result, from_attributes=True)
    if idempotency_key:
        await idempotency_store.set(cache_key, response.model_dump(mode="json"))
    return response


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    svc: ProductService = Depends(get_product_service),
):
    try:
        return await svc.get_product(product_id)
    except ProductNotFoundError:
        not_found("product", product_id)


@router.put("/{product_id}", response_model=ProductResponse, dependencies=[Depends(staff)])
async def update_product(
    product_id: int,
    data: ProductUpdate,
    svc: ProductService = Depends(get_product_service),
):
    """Edit a product. Changing msrp or markup recomputes the store price."""
    try:
        product = await svc.get_product(product_id)
        return await svc.update_product(product, data)
    except ProductNotFoundError:
        not_found("product", product_id)
    except DuplicateSkuError as e:
        conflict("duplicate_sku", str(e), context={"sku": e.sku})


@router.delete("/{product_id}", response_model=ProductResponse, dependencies=[Depends(staff)])
async def delete_product(
    product_id: int,
    svc: ProductService = Depends(get_product_service),
):
    """Deactivate a product; it stays in the catalog history."""
    try:
        product = await svc.get_product(product_id)
        return await svc.deactivate(product)
    except ProductNotFoundError:
        not_found("product", product_id)


@router.post("/{product_id}/approve", response_model=ProductResponse, dependencies=[Depends(staff)])
async def approve_product(
    product_id: int,
    data: ProductApproval,
    svc: ProductService = Depends(get_product_service),
):
    try:
        product = await svc.get_product(product_id)
        return await svc.set_approval(product, data.approved)
    except ProductNotFoundError:
        not_found("product", product_id)
