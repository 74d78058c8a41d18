"""
Products API endpoints for inventory management.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, Response, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, desc

from stockledger.api.deps import get_product_catalogue
from stockledger.core.database import get_db
from stockledger.core.security import get_current_user
from stockledger.models.user import User
from stockledger.models.product import Product
from stockledger.models.stock import StockMovement
from stockledger.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductImport,
    ProductImportResponse
)
from stockledger.schemas.stock import StockMovementResponse
from stockledger.services.products import ProductCatalogue

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue)
):
    """
    Create a new product.

    - **barcode**: Optional, alphanumeric, unique among your products
    - **selling_price**: Must be greater than purchase_price
    - **current_stock**: Opening stock, recorded as an IN/COUNT movement
    - **unit**: One of adet, kg, lt, mt, kutu, paket
    """
    return await catalogue.create(current_user.id, product_data)


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    low_stock_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List your products, ordered by name.

    - **search**: Match name or barcode
    - **category**: Exact category
    - **low_stock_only**: Only products at or below their minimum stock
    """
    query = select(Product).where(
        Product.user_id == current_user.id,
        Product.is_deleted.is_(False)
    )

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Product.name.ilike(pattern),
                Product.barcode.ilike(pattern)
            )
        )

    if category:
        query = query.where(Product.category == category)

    if low_stock_only:
        query = query.where(Product.current_stock <= Product.minimum_stock)

    result = await db.execute(query.order_by(Product.name))
    products = result.scalars().all()

    return ProductListResponse(items=products, total=len(products))


@router.post("/import", response_model=ProductImportResponse)
async def import_products(
    import_data: ProductImport,
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue)
):
    """
    Import many products at once.

    Each row is validated on its own; failing rows are reported by position
    and the rest are saved.
    """
    created, errors = await catalogue.import_rows(current_user.id, import_data.products)

    return ProductImportResponse(
        created=len(created),
        failed=len(errors),
        products=created,
        errors=errors
    )


@router.get("/barcode/{barcode}", response_model=ProductResponse)
async def get_product_by_barcode(
    barcode: str,
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue)
):
    """Look up one of your products by barcode."""
    return await catalogue.get_by_barcode(current_user.id, barcode)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue)
):
    """Get a specific product by ID."""
    return await catalogue.get(current_user.id, product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_data: ProductUpdate,
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue)
):
    """
    Update a product.

    Stock cannot be edited here; record a stock movement instead.
    """
    return await catalogue.update(current_user.id, product_id, product_data)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    permanent: bool = Query(False, description="Remove the product and its movements for good"),
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue)
):
    """Delete a product (soft delete unless permanent)."""
    await catalogue.delete(current_user.id, product_id, permanent=permanent)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{product_id}/movements", response_model=list[StockMovementResponse])
async def get_product_movements(
    product_id: uuid.UUID,
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    catalogue: ProductCatalogue = Depends(get_product_catalogue),
    db: AsyncSession = Depends(get_db)
):
    """A product's ledger, newest first."""
    product = await catalogue.get(current_user.id, product_id)

    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.product_id == product.id)
        .order_by(desc(StockMovement.created_at))
        .limit(limit)
    )
    return result.scalars().all()
