"""
ProductService — store catalog, pricing and bulk import.

Store price is always msrp x (1 + markup) rounded to cents unless an explicit
store price is supplied; partner price is derived from store price.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from partner_portal.core.logging import get_logger
from partner_portal.models.product import DEFAULT_MARKUP, Product, compute_store_price, to_money
from partner_portal.repositories.product_repo import ProductRepository
from partner_portal.schemas.product import ProductCreate, ProductImportRow, ProductUpdate, normalize_sku

logger = get_logger(__name__)


class ProductNotFoundError(Exception):
    """Raised when product is not found."""
    pass


class DuplicateSkuError(Exception):
    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"A product with SKU {sku} already exists")


@dataclass
class ImportResult:
    created: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    product_ids: list[int] = field(default_factory=list)


def _row_label(row: dict[str, Any], index: int) -> str:
    return str(row.get("name") or row.get("sku") or f"row {index + 1}")


class ProductService:
    def __init__(self, product_repo: ProductRepository):
        self.repo = product_repo

    async def get_product(self, product_id: int) -> Product:
        product = await self.repo.get_by_id(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return product

    async def list_products(
        self,
        approved: Optional[bool] = None,
        category: Optional[str] = None,
        include_inactive: bool = False,
    ) -> list[Product]:
        return await self.repo.get_all(approved=approved, category=category, include_inactive=include_inactive)

    async def create_product(self, data: ProductCreate) -> Product:
        if data.sku and await self.repo.get_existing_skus([data.sku]):
            raise DuplicateSkuError(data.sku)
        return await self.repo.create(self._build(data))

    async def update_product(self, product: Product, data: ProductUpdate) -> Product:
        fields = data.model_dump(exclude_unset=True)
        new_sku = fields.get("sku")
        if new_sku and new_sku != product.sku and await self.repo.get_existing_skus([new_sku]):
            raise DuplicateSkuError(new_sku)

        explicit_price = fields.pop("store_price", None)
        for key, value in fields.items():
            setattr(product, key, value)

        if explicit_price is not None:
            product.store_price = to_money(explicit_price)
        elif "msrp" in fields or "markup" in fields:
            product.store_price = compute_store_price(product.msrp, product.markup)
        return await self.repo.save(product)

    async def deactivate(self, product: Product) -> Product:
        product.is_active = False
        product.is_approved = False
        return await self.repo.save(product)

    async def set_approval(self, product: Product, approved: bool) -> Product:
        product.is_approved = approved
        return await self.repo.save(product)

    async def import_products(
        self,
        rows: list[dict[str, Any]],
        default_markup: Optional[Decimal] = None,
        auto_approve: bool = False,
    ) -> ImportResult:
        """
        Create one product per row. Rows whose SKU already exists (in the
        catalog or earlier in the batch) are skipped; rows that fail
        validation or insertion are counted as failed. Nothing aborts the batch.
        """
        result = ImportResult()
        markup = DEFAULT_MARKUP if default_markup is None else default_markup
        existing = await self.repo.get_existing_skus(
            sku for sku in (normalize_sku(r.get("sku")) for r in rows) if isinstance(sku, str)
        )
        seen: set[str] = set()

        for index, raw in enumerate(rows):
            label = _row_label(raw, index)
            try:
                row = ProductImportRow.model_validate({"markup": markup, "is_approved": auto_approve, **raw})
            except ValidationError as exc:
                result.failed += 1
                result.errors.append(f"Failed: {label} - {exc.errors()[0]['msg']}")
                continue

            if row.sku and (row.sku in existing or row.sku in seen):
                result.skipped += 1
                result.errors.append(f"Skipped: {row.name} (SKU {row.sku} already exists)")
                continue

            try:
                async with self.repo.db.begin_nested():
                    product = await self.repo.create(self._build(row))
            except (SQLAlchemyError, InvalidOperation) as exc:
                result.failed += 1
                result.errors.append(f"Failed: {row.name} - {exc}")
                continue

            if row.sku:
                seen.add(row.sku)
            result.created += 1
            result.product_ids.append(product.id)

        logger.info(
            "product_import_complete",
            created=result.created,
            skipped=result.skipped,
            failed=result.failed,
        )
        return result

    @staticmethod
    def _build(data: ProductCreate) -> Product:
        values = data.model_dump(exclude={"store_price"})
        store_price = (
            to_money(data.store_price)
            if data.store_price is not None
            else compute_store_price(data.msrp, data.markup)
        )
        return Product(**values, store_price=store_price)
