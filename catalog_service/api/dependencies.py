"""FastAPI dependencies.

Authentication and role gates, tenant scope resolution, path and query
parsing, and service construction.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal, InvalidOperation
from typing import Annotated

import structlog
from fastapi import Depends, Header, Request

from catalog_service.application.attribute_service import AttributeMutationService
from catalog_service.application.auth_service import AuthService
from catalog_service.application.category_service import CategoryService
from catalog_service.application.option_service import OptionMutationService
from catalog_service.application.product_service import ProductMutationService
from catalog_service.catalog.filters import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SEARCH_PAGE_SIZE,
    PaginationParams,
    ProductFilter,
    SortField,
    SortOrder,
)
from catalog_service.catalog.service import ProductQueryService
from catalog_service.domain.exceptions import (
    CategoryNotFoundError,
    ForbiddenError,
    OptionNotFoundError,
    OptionValueNotFoundError,
    ProductAttributeNotFoundError,
    ProductNotFoundError,
    SellerNotFoundError,
    UnauthorizedError,
    ValidationError,
    VariantNotFoundError,
)
from catalog_service.domain.validators import parse_positive_int
from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.cache import CacheService, get_cache_service
from catalog_service.infrastructure.database import Database, get_database
from catalog_service.infrastructure.security import TokenClaims, decode_access_token
from catalog_service.infrastructure.users import UserRepository

logger = structlog.get_logger()

SELLER_HEADER = "X-Seller-ID"

# Largest id a BIGINT column can hold
MAX_STORED_ID = 2**63 - 1


def get_request_id(request: Request) -> str | None:
    """Correlation id set by the request id middleware, if any."""
    return getattr(request.state, "request_id", None)


# ============================================================================
# Authentication
# ============================================================================


def _bearer_token(authorization: str) -> str:
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid Authorization header format. Use 'Bearer <token>'")
    return token.strip()


async def get_optional_user(
    authorization: Annotated[str | None, Header()] = None,
) -> TokenClaims | None:
    """Claims of the caller, or None when no Authorization header is sent.

    Raises:
        UnauthorizedError: If a header is sent but the token is invalid.
    """
    if authorization is None:
        return None
    return decode_access_token(_bearer_token(authorization))


async def get_current_user(
    caller: Annotated[TokenClaims | None, Depends(get_optional_user)],
) -> TokenClaims:
    """Claims of an authenticated caller.

    Raises:
        UnauthorizedError: If no valid token is sent.
    """
    if caller is None:
        raise UnauthorizedError("Authentication required")
    return caller


def require_roles(*roles: Role) -> Callable[..., Awaitable[TokenClaims]]:
    """Build a dependency admitting only the given roles.

    Example usage:
        caller: Annotated[TokenClaims, Depends(require_roles(Role.SELLER))]
    """
    allowed = frozenset(roles)

    async def dependency(
        caller: Annotated[TokenClaims, Depends(get_current_user)],
    ) -> TokenClaims:
        if caller.role not in allowed:
            raise ForbiddenError()
        return caller

    return dependency


SellerOnly = Annotated[TokenClaims, Depends(require_roles(Role.SELLER))]
SellerOrAdmin = Annotated[TokenClaims, Depends(require_roles(Role.SELLER, Role.ADMIN))]
AdminOnly = Annotated[TokenClaims, Depends(require_roles(Role.ADMIN))]
OptionalUser = Annotated[TokenClaims | None, Depends(get_optional_user)]


# ============================================================================
# Tenant Scope
# ============================================================================


async def _seller_from_header(raw: str, database: Database) -> int:
    seller_id = parse_positive_int(SELLER_HEADER, raw)
    if seller_id > MAX_STORED_ID:
        raise SellerNotFoundError(seller_id)
    async with database.read_session() as session:
        if not await UserRepository(session).seller_exists(seller_id):
            raise SellerNotFoundError(seller_id)
    return seller_id


async def resolve_seller_scope(
    caller: OptionalUser,
    database: Annotated[Database, Depends(get_database)],
    x_seller_id: Annotated[str | None, Header()] = None,
) -> int | None:
    """Seller scope of a public listing, search or facet read.

    A seller token scopes to its own products. An admin token uses the
    tenant header when sent and is unscoped otherwise. Everyone else
    must send the tenant header.

    Returns:
        Seller id, or None for an unscoped admin read.

    Raises:
        ValidationError: If a required header is missing or malformed.
        SellerNotFoundError: If the header names no active seller.
    """
    if caller is not None and caller.role == Role.SELLER:
        return caller.user_id
    if caller is not None and caller.is_admin and x_seller_id is None:
        return None
    return await _seller_from_header(x_seller_id or "", database)


async def resolve_optional_scope(
    caller: OptionalUser,
    database: Annotated[Database, Depends(get_database)],
    x_seller_id: Annotated[str | None, Header()] = None,
) -> int | None:
    """Seller scope of a product detail read; absent means unscoped."""
    if caller is not None and caller.role == Role.SELLER:
        return caller.user_id
    if x_seller_id is None:
        return None
    return await _seller_from_header(x_seller_id, database)


SellerScope = Annotated[int | None, Depends(resolve_seller_scope)]
OptionalScope = Annotated[int | None, Depends(resolve_optional_scope)]


# ============================================================================
# Path Parameters
# ============================================================================


def _path_id(field: str, raw: str, not_found: Callable[[int], Exception]) -> int:
    """Parse a numeric path segment.

    Zero and ids beyond the storage range raise the entity's not found
    error; other malformed input is a validation error.
    """
    value = parse_positive_int(field, raw, zero_is_missing=True)
    if value == 0 or value > MAX_STORED_ID:
        raise not_found(value)
    return value


def product_id_path(product_id: str) -> int:
    """Product id from the path; 404 when it cannot exist."""
    return _path_id("id", product_id, ProductNotFoundError)


def option_id_path(option_id: str) -> int:
    """Option id from the path."""
    return _path_id("optionId", option_id, OptionNotFoundError)


def value_id_path(value_id: str) -> int:
    """Option value id from the path."""
    return _path_id("valueId", value_id, OptionValueNotFoundError)


def variant_id_path(variant_id: str) -> int:
    """Variant id from the path."""
    return _path_id("variantId", variant_id, VariantNotFoundError)


def attribute_id_path(attribute_id: str) -> int:
    """Product attribute id from the path."""
    return _path_id("attributeId", attribute_id, ProductAttributeNotFoundError)


def category_id_path(category_id: str) -> int:
    """Category id from the path."""
    return _path_id("id", category_id, CategoryNotFoundError)


ProductId = Annotated[int, Depends(product_id_path)]
OptionId = Annotated[int, Depends(option_id_path)]
ValueId = Annotated[int, Depends(value_id_path)]
VariantId = Annotated[int, Depends(variant_id_path)]
AttributeId = Annotated[int, Depends(attribute_id_path)]
CategoryId = Annotated[int, Depends(category_id_path)]


# ============================================================================
# Query Parameters
# ============================================================================


def _first(request: Request, *names: str) -> str | None:
    for name in names:
        value = request.query_params.get(name)
        if value is not None:
            return value
    return None


def _many(request: Request, *names: str) -> list[str]:
    """Values of a list parameter, repeated or comma separated."""
    items: list[str] = []
    for name in names:
        for raw in request.query_params.getlist(name):
            items.extend(part.strip() for part in raw.split(",") if part.strip())
    return items


def _int_param(field: str, raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValidationError(field=field, reason="invalid_integer", message=f"{field} must be an integer") from exc


def _price_param(field: str, raw: str | None) -> Decimal | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValidationError(field=field, reason="invalid_number", message=f"{field} must be a number") from exc
    if not value.is_finite() or value < 0:
        raise ValidationError(field=field, reason="invalid_number", message=f"{field} must be a non-negative number")
    return value


def _bool_param(field: str, raw: str | None) -> bool | None:
    if raw is None or not raw.strip():
        return None
    text = raw.strip().lower()
    if text not in ("true", "false"):
        raise ValidationError(field=field, reason="invalid_boolean", message=f"{field} must be true or false")
    return text == "true"


def _enum_param(field: str, raw: str | None, enum: type[SortField] | type[SortOrder], default):
    if raw is None or not raw.strip():
        return default
    try:
        return enum(raw.strip().lower())
    except ValueError as exc:
        allowed = [member.value for member in enum]
        raise ValidationError(
            field=field,
            reason="invalid_value",
            message=f"{field} must be one of: {', '.join(allowed)}",
            details={"allowed": allowed},
        ) from exc


def parse_filters(request: Request, seller_id: int | None) -> ProductFilter:
    """Read listing filters from the query string.

    Non-numeric category ids are dropped; bad prices and booleans are
    rejected.
    """
    category_ids = [int(c) for c in _many(request, "categoryIds", "categoryId") if c.isascii() and c.isdigit()]
    min_price = _price_param("minPrice", _first(request, "minPrice"))
    max_price = _price_param("maxPrice", _first(request, "maxPrice"))
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError(field="minPrice", reason="invalid_range", message="minPrice must not exceed maxPrice")
    return ProductFilter(
        seller_id=seller_id,
        category_ids=category_ids,
        brands=_many(request, "brands", "brand"),
        min_price=min_price,
        max_price=max_price,
        is_popular=_bool_param("isPopular", _first(request, "isPopular")),
    )


def parse_pagination(request: Request, default_page_size: int = DEFAULT_PAGE_SIZE) -> PaginationParams:
    """Read page, size and sort from the query string."""
    return PaginationParams.clamped(
        page=_int_param("page", _first(request, "page")),
        page_size=_int_param("pageSize", _first(request, "pageSize", "limit")),
        default_page_size=default_page_size,
        sort_by=_enum_param("sortBy", _first(request, "sortBy"), SortField, SortField.CREATED_AT),
        sort_order=_enum_param("sortOrder", _first(request, "sortOrder"), SortOrder, SortOrder.DESC),
    )


async def listing_query(request: Request, seller_id: SellerScope) -> tuple[ProductFilter, PaginationParams]:
    return parse_filters(request, seller_id), parse_pagination(request)


async def search_query(request: Request, seller_id: SellerScope) -> tuple[ProductFilter, PaginationParams]:
    """Read search filters and paging.

    Unlike listing, a filter value that cannot be read yields an empty
    result instead of a 400.
    """
    try:
        filters = parse_filters(request, seller_id)
    except ValidationError as exc:
        logger.debug("Unreadable search filter", field=exc.field, reason=exc.reason)
        filters = ProductFilter(seller_id=seller_id, unmatchable=True)
    return filters, parse_pagination(request, DEFAULT_SEARCH_PAGE_SIZE)


# ============================================================================
# Services
# ============================================================================


def get_query_service(
    database: Annotated[Database, Depends(get_database)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
) -> ProductQueryService:
    return ProductQueryService(database, cache)


def get_product_service(
    database: Annotated[Database, Depends(get_database)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    request_id: Annotated[str | None, Depends(get_request_id)],
) -> ProductMutationService:
    return ProductMutationService(database, cache, request_id=request_id)


def get_option_service(
    database: Annotated[Database, Depends(get_database)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    request_id: Annotated[str | None, Depends(get_request_id)],
) -> OptionMutationService:
    return OptionMutationService(database, cache, request_id=request_id)


def get_attribute_service(
    database: Annotated[Database, Depends(get_database)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    request_id: Annotated[str | None, Depends(get_request_id)],
) -> AttributeMutationService:
    return AttributeMutationService(database, cache, request_id=request_id)


def get_category_service(
    database: Annotated[Database, Depends(get_database)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
) -> CategoryService:
    return CategoryService(database, cache)


def get_auth_service(database: Annotated[Database, Depends(get_database)]) -> AuthService:
    return AuthService(database)
