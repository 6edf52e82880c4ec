"""SQLAlchemy models for the product catalog.

Defines categories, attribute definitions, products and the option /
value / variant matrix for persistent storage. A product's child rows are
removed explicitly by the product-delete transaction, so their foreign
keys carry no ``ON DELETE`` actions; category references restrict.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_service.infrastructure.database import Base, IdType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Creation and update timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class Category(TimestampMixin, Base):
    """Product category; categories form a tree through ``parent_id``."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        IdType,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    parent: Mapped["Category | None"] = relationship("Category", remote_side=[id])

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, name={self.name})>"


class AttributeDefinition(TimestampMixin, Base):
    """Catalog-wide attribute key (e.g. ``material``).

    Attributes:
        key: Normalized unique key.
        name: Display name.
        unit: Optional unit of measure.
        allowed_values: When non-empty, the only values products may use.
    """

    __tablename__ = "attribute_definitions"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    allowed_values: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class Product(TimestampMixin, Base):
    """Product owned by a seller.

    Attributes:
        id: Product identifier.
        seller_id: Owning seller (tenant).
        category_id: Category reference.
        name: Product name.
        base_sku: SKU unique among the seller's live products.
        tags: Short search tags.
        deleted_at: Soft-delete marker; set rows are invisible to reads.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id"), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    base_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    short_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    long_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allow_purchase: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    category: Mapped["Category"] = relationship("Category")
    options: Mapped[list["ProductOption"]] = relationship(
        "ProductOption",
        back_populates="product",
        order_by=lambda: [ProductOption.position, ProductOption.id],
    )
    variants: Mapped[list["ProductVariant"]] = relationship(
        "ProductVariant",
        back_populates="product",
        order_by="ProductVariant.id",
    )
    attributes: Mapped[list["ProductAttribute"]] = relationship(
        "ProductAttribute",
        order_by=lambda: [ProductAttribute.sort_order, ProductAttribute.id],
    )
    package_options: Mapped[list["PackageOption"]] = relationship(
        "PackageOption",
        order_by="PackageOption.id",
    )
    tag_rows: Mapped[list["ProductTag"]] = relationship(
        "ProductTag",
        order_by="ProductTag.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Assigning a list replaces every tag row
    tags: AssociationProxy[list[str]] = association_proxy(
        "tag_rows",
        "tag",
        creator=lambda tag: ProductTag(tag=tag),
    )

    __table_args__ = (
        Index(
            "uq_products_seller_base_sku_live",
            "seller_id",
            "base_sku",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, base_sku={self.base_sku}, name={self.name[:30]})>"


class ProductTag(Base):
    """One search tag of a product, kept in submitted order by id."""

    __tablename__ = "product_tags"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(IdType, ForeignKey("products.id"), nullable=False, index=True)
    tag: Mapped[str] = mapped_column(String(50), nullable=False, index=True)


class ProductOption(TimestampMixin, Base):
    """A named axis of a product's variant matrix (e.g. color)."""

    __tablename__ = "product_options"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(IdType, ForeignKey("products.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped["Product"] = relationship("Product", back_populates="options")
    values: Mapped[list["ProductOptionValue"]] = relationship(
        "ProductOptionValue",
        back_populates="option",
        order_by=lambda: [ProductOptionValue.position, ProductOptionValue.id],
    )

    __table_args__ = (UniqueConstraint("product_id", "name", name="uq_product_options_product_name"),)


class ProductOptionValue(TimestampMixin, Base):
    """A coordinate on an option axis (e.g. black)."""

    __tablename__ = "product_option_values"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    option_id: Mapped[int] = mapped_column(IdType, ForeignKey("product_options.id"), nullable=False, index=True)
    value: Mapped[str] = mapped_column(String(100), nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    color_code: Mapped[str | None] = mapped_column(String(7), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    option: Mapped["ProductOption"] = relationship("ProductOption", back_populates="values")

    __table_args__ = (UniqueConstraint("option_id", "value", name="uq_option_values_option_value"),)


class ProductVariant(TimestampMixin, Base):
    """Purchasable SKU at one point of the option space.

    Attributes:
        sku: Unique within the product.
        price: Two-decimal price.
        stock: Readable stock level; ``stock > 0`` means in stock.
        images: Ordered image URLs.
    """

    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(IdType, ForeignKey("products.id"), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allow_purchase: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    product: Mapped["Product"] = relationship("Product", back_populates="variants")
    selections: Mapped[list["VariantOptionValue"]] = relationship(
        "VariantOptionValue",
        back_populates="variant",
        order_by="VariantOptionValue.id",
    )

    __table_args__ = (UniqueConstraint("product_id", "sku", name="uq_product_variants_product_sku"),)

    @property
    def in_stock(self) -> bool:
        """Whether the variant has stock on hand."""
        return self.stock > 0

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductVariant(id={self.id}, sku={self.sku})>"


class VariantOptionValue(Base):
    """A variant's selected value on one option."""

    __tablename__ = "variant_option_values"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    variant_id: Mapped[int] = mapped_column(IdType, ForeignKey("product_variants.id"), nullable=False, index=True)
    option_id: Mapped[int] = mapped_column(IdType, ForeignKey("product_options.id"), nullable=False, index=True)
    option_value_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("product_option_values.id"), nullable=False, index=True
    )

    variant: Mapped["ProductVariant"] = relationship("ProductVariant", back_populates="selections")
    option: Mapped["ProductOption"] = relationship("ProductOption")
    option_value: Mapped["ProductOptionValue"] = relationship("ProductOptionValue")

    __table_args__ = (UniqueConstraint("variant_id", "option_id", name="uq_variant_option_values_variant_option"),)


class ProductAttribute(Base):
    """Value of an attribute definition for one product."""

    __tablename__ = "product_attributes"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(IdType, ForeignKey("products.id"), nullable=False, index=True)
    attribute_definition_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("attribute_definitions.id"), nullable=False, index=True
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    definition: Mapped["AttributeDefinition"] = relationship("AttributeDefinition")

    __table_args__ = (
        UniqueConstraint("product_id", "attribute_definition_id", name="uq_product_attributes_product_definition"),
    )


class PackageOption(TimestampMixin, Base):
    """Bundle offered with a product (e.g. a 3-pack)."""

    __tablename__ = "package_options"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(IdType, ForeignKey("products.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
