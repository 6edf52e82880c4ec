"""Response shaping for product reads.

The detail projection carries full variants with resolved selections;
the listing projection replaces them with a ``variantPreview``.
"""

from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Any

from catalog_service.catalog.models import (
    Category,
    PackageOption,
    Product,
    ProductAttribute,
    ProductOption,
    ProductOptionValue,
    ProductVariant,
    VariantOptionValue,
)
from catalog_service.domain.value_objects import Price


def money(amount: Decimal) -> float:
    """Two-decimal JSON number."""
    return Price(amount).to_float()


def timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def category_summary(category: Category | None) -> dict[str, Any] | None:
    """Category with one level of parent resolved."""
    if category is None:
        return None
    parent = category.parent
    return {
        "id": category.id,
        "name": category.name,
        "parent": {"id": parent.id, "name": parent.name} if parent is not None else None,
    }


def price_range(variants: list[ProductVariant]) -> dict[str, float] | None:
    if not variants:
        return None
    prices = [v.price for v in variants]
    return {"min": money(min(prices)), "max": money(max(prices))}


def aggregate_images(variants: list[ProductVariant]) -> list[str]:
    """Distinct variant images, default variant first."""
    ordered = sorted(variants, key=lambda v: (not v.is_default, v.id))
    images: list[str] = []
    seen: set[str] = set()
    for variant in ordered:
        for url in variant.images or []:
            if url not in seen:
                seen.add(url)
                images.append(url)
    return images


def _scalars(product: Product) -> dict[str, Any]:
    variants = list(product.variants)
    return {
        "id": product.id,
        "sellerId": product.seller_id,
        "name": product.name,
        "categoryId": product.category_id,
        "category": category_summary(product.category),
        "brand": product.brand,
        "baseSku": product.base_sku,
        "shortDescription": product.short_description,
        "longDescription": product.long_description,
        "tags": list(product.tags or []),
        "isPopular": product.is_popular,
        "allowPurchase": product.allow_purchase and any(v.allow_purchase for v in variants),
        "hasVariants": bool(variants),
        "priceRange": price_range(variants),
        "images": aggregate_images(variants),
        "createdAt": timestamp(product.created_at),
        "updatedAt": timestamp(product.updated_at),
    }


# ============================================================================
# Detail
# ============================================================================


def option_value_detail(value: ProductOptionValue, variant_count: int = 0) -> dict[str, Any]:
    return {
        "valueId": value.id,
        "value": value.value,
        "valueDisplayName": value.display_name,
        "colorCode": value.color_code,
        "position": value.position,
        "variantCount": variant_count,
    }


def option_detail(option: ProductOption, usage: Counter[int] | None = None) -> dict[str, Any]:
    """Option with its values and per-value variant counts."""
    usage = usage or Counter()
    return {
        "optionId": option.id,
        "optionName": option.name,
        "optionDisplayName": option.display_name,
        "position": option.position,
        "values": [option_value_detail(v, usage[v.id]) for v in option.values],
    }


def selected_option(selection: VariantOptionValue) -> dict[str, Any]:
    return {
        "optionId": selection.option_id,
        "optionName": selection.option.name,
        "optionDisplayName": selection.option.display_name,
        "valueId": selection.option_value_id,
        "value": selection.option_value.value,
        "valueDisplayName": selection.option_value.display_name,
        "colorCode": selection.option_value.color_code,
    }


def variant_detail(variant: ProductVariant) -> dict[str, Any]:
    """Variant with selections ordered by option position."""
    selections = sorted(
        variant.selections,
        key=lambda s: (s.option.position, s.option_id),
    )
    return {
        "id": variant.id,
        "productId": variant.product_id,
        "sku": variant.sku,
        "price": money(variant.price),
        "stock": variant.stock,
        "inStock": variant.in_stock,
        "images": list(variant.images or []),
        "isDefault": variant.is_default,
        "isPopular": variant.is_popular,
        "allowPurchase": variant.allow_purchase,
        "selectedOptions": [selected_option(s) for s in selections],
        "createdAt": timestamp(variant.created_at),
        "updatedAt": timestamp(variant.updated_at),
    }


def attribute_detail(attribute: ProductAttribute) -> dict[str, Any]:
    return {
        "id": attribute.id,
        "key": attribute.definition.key,
        "name": attribute.definition.name,
        "value": attribute.value,
        "unit": attribute.definition.unit,
        "sortOrder": attribute.sort_order,
    }


def package_option_detail(package: PackageOption) -> dict[str, Any]:
    return {
        "id": package.id,
        "name": package.name,
        "description": package.description,
        "price": money(package.price),
        "quantity": package.quantity,
    }


def product_detail(product: Product) -> dict[str, Any]:
    """Full product projection used by get-by-id and create.

    Expects the graph loaded with ``product_graph_options()``.
    """
    usage: Counter[int] = Counter(
        s.option_value_id for v in product.variants for s in v.selections
    )
    data = _scalars(product)
    data["options"] = [option_detail(o, usage) for o in product.options]
    data["variants"] = [variant_detail(v) for v in product.variants]
    data["attributes"] = [attribute_detail(a) for a in product.attributes]
    data["packageOptions"] = [package_option_detail(p) for p in product.package_options]
    return data


# ============================================================================
# Listing
# ============================================================================


def variant_preview(product: Product) -> dict[str, Any]:
    return {
        "totalVariants": len(product.variants),
        "options": [
            {
                "name": option.name,
                "displayName": option.display_name,
                "availableValues": [value.value for value in option.values],
            }
            for option in product.options
        ],
    }


def product_preview(product: Product) -> dict[str, Any]:
    """Listing projection used by list and search.

    Expects the graph loaded with ``product_preview_options()``.
    """
    data = _scalars(product)
    data["variantPreview"] = variant_preview(product)
    return data
