"""Catalog ORM models: shops and the products, collections and blog posts they own.

List-valued fields (product images and categories) are stored as JSON text.
Timestamp columns use Text ISO strings.
"""

from typing import Optional

from sqlalchemy import Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class Shop(db.Model):
    """A connected storefront (WooCommerce, Shopify or WordPress)."""

    __tablename__ = "shops"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="woocommerce")
    consumer_key: Mapped[Optional[str]] = mapped_column(Text, default="")
    consumer_secret: Mapped[Optional[str]] = mapped_column(Text, default="")
    openai_api_key: Mapped[Optional[str]] = mapped_column(Text, default="")
    language: Mapped[Optional[str]] = mapped_column(String(10), default="fr")
    collections_slug: Mapped[Optional[str]] = mapped_column(Text, default="collections")
    user_id: Mapped[Optional[str]] = mapped_column(String(36), default="")
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)


class Product(db.Model):
    """A product synced from the storefront."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    shop_id: Mapped[str] = mapped_column(String(36), nullable=False)
    woocommerce_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    slug: Mapped[Optional[str]] = mapped_column(Text, default="")
    status: Mapped[Optional[str]] = mapped_column(String(20), default="publish")
    description: Mapped[Optional[str]] = mapped_column(Text, default="")
    short_description: Mapped[Optional[str]] = mapped_column(Text, default="")
    meta_title: Mapped[Optional[str]] = mapped_column(Text, default="")
    meta_description: Mapped[Optional[str]] = mapped_column(Text, default="")
    focus_keyword: Mapped[Optional[str]] = mapped_column(Text, default="")
    sku: Mapped[Optional[str]] = mapped_column(Text, default="")
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    regular_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sale_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    stock_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    stock_status: Mapped[Optional[str]] = mapped_column(String(20), default="instock")
    images_json: Mapped[Optional[str]] = mapped_column(Text, default="[]")
    categories_json: Mapped[Optional[str]] = mapped_column(Text, default="[]")
    featured_image: Mapped[Optional[str]] = mapped_column(Text, default="")
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_products_shop", "shop_id"),
        Index("idx_products_slug", "shop_id", "slug"),
    )


class Collection(db.Model):
    """A product category / collection."""

    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    shop_id: Mapped[str] = mapped_column(String(36), nullable=False)
    woocommerce_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    slug: Mapped[Optional[str]] = mapped_column(Text, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, default="")
    product_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_collections_shop", "shop_id"),
    )


class BlogPost(db.Model):
    """A blog article belonging to a shop."""

    __tablename__ = "blog_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    shop_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[Optional[str]] = mapped_column(Text, default="")
    meta_title: Mapped[Optional[str]] = mapped_column(Text, default="")
    meta_description: Mapped[Optional[str]] = mapped_column(Text, default="")
    seo_title: Mapped[Optional[str]] = mapped_column(Text, default="")
    seo_description: Mapped[Optional[str]] = mapped_column(Text, default="")
    focus_keyword: Mapped[Optional[str]] = mapped_column(Text, default="")
    featured_image: Mapped[Optional[str]] = mapped_column(Text, default="")
    status: Mapped[Optional[str]] = mapped_column(String(20), default="draft")
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_blog_posts_shop", "shop_id"),
    )
