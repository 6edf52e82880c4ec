"""Ownership checks shared by the mutation services."""

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.catalog.models import Product
from catalog_service.catalog.repository import ProductRepository
from catalog_service.domain.exceptions import ForbiddenError, ProductNotFoundError
from catalog_service.infrastructure.security import TokenClaims


async def load_owned_product(
    session: AsyncSession,
    product_id: int,
    caller: TokenClaims,
) -> Product:
    """Load a live product for mutation and check the caller may change it.

    The row is locked for the rest of the transaction where the engine
    supports it.

    Raises:
        ProductNotFoundError: If the product is missing or soft-deleted.
        ForbiddenError: If a non-admin caller does not own the product.
    """
    product = await ProductRepository(session).get(product_id, for_update=True)
    if product is None:
        raise ProductNotFoundError(product_id)
    if not caller.is_admin and product.seller_id != caller.user_id:
        raise ForbiddenError("You do not own this product")
    return product
