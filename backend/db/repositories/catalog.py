"""Catalog repository: shops, products, collections and blog posts."""

import uuid
import logging
from typing import Optional

from sqlalchemy import delete, select

from db.models.catalog import BlogPost, Collection, Product, Shop
from db.repositories.base import BaseRepository, dump_json

logger = logging.getLogger(__name__)

SHOP_FIELDS = ("name", "url", "type", "consumer_key", "consumer_secret",
               "openai_api_key", "language", "collections_slug", "user_id")

PRODUCT_FIELDS = ("woocommerce_id", "name", "slug", "status", "description",
                  "short_description", "meta_title", "meta_description",
                  "focus_keyword", "sku", "price", "regular_price", "sale_price",
                  "stock_quantity", "stock_status", "featured_image")

BLOG_POST_FIELDS = ("title", "content", "meta_title", "meta_description",
                    "seo_title", "seo_description", "focus_keyword",
                    "featured_image", "status")


class CatalogRepository(BaseRepository):
    """Repository for shops, products, collections and blog_posts tables."""

    # ---- Shops ----

    def create_shop(self, data: dict) -> dict:
        now = self._now()
        shop = Shop(
            id=data.get("id") or str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **{k: data[k] for k in SHOP_FIELDS if data.get(k) is not None},
        )
        self.session.add(shop)
        self._commit()
        return self._to_dict(shop)

    def get_shop(self, shop_id: str) -> Optional[dict]:
        return self._to_dict(self.session.get(Shop, shop_id))

    # ---- Products ----

    def create_product(self, shop_id: str, data: dict) -> dict:
        """Insert a product. images/categories are lists of dicts."""
        product = self._build_product(shop_id, data)
        self.session.add(product)
        self._commit()
        return self._product_to_dict(product)

    def get_product(self, product_id: str) -> Optional[dict]:
        product = self.session.get(Product, product_id, populate_existing=True)
        if not product:
            return None
        return self._product_to_dict(product)

    def list_products(self, shop_id: str) -> list:
        stmt = (
            select(Product)
            .where(Product.shop_id == shop_id)
            .order_by(Product.name)
            .execution_options(populate_existing=True)
        )
        rows = self.session.execute(stmt).scalars().all()
        return [self._product_to_dict(r) for r in rows]

    def update_product(self, product_id: str, fields: dict) -> Optional[dict]:
        """Update product columns. Accepts images/categories as lists."""
        product = self.session.get(Product, product_id)
        if not product:
            return None
        for key, value in fields.items():
            if key == "images":
                product.images_json = dump_json(value or [])
            elif key == "categories":
                product.categories_json = dump_json(value or [])
            elif key in PRODUCT_FIELDS:
                setattr(product, key, value)
        product.updated_at = self._now()
        self._commit()
        return self._product_to_dict(product)

    def replace_products(self, shop_id: str, products: list) -> int:
        """Replace all products of a shop with freshly synced ones."""
        with self.batch():
            self.session.execute(delete(Product).where(Product.shop_id == shop_id))
            for data in products:
                self.session.add(self._build_product(shop_id, data))
        return len(products)

    def _build_product(self, shop_id: str, data: dict) -> Product:
        now = self._now()
        return Product(
            id=data.get("id") or str(uuid.uuid4()),
            shop_id=shop_id,
            images_json=dump_json(data.get("images") or []),
            categories_json=dump_json(data.get("categories") or []),
            created_at=now,
            updated_at=now,
            **{k: data[k] for k in PRODUCT_FIELDS if data.get(k) is not None},
        )

    def _product_to_dict(self, product: Product) -> dict:
        d = self._to_dict(product)
        d["images"] = d["images"] or []
        d["categories"] = d["categories"] or []
        return d

    # ---- Collections ----

    def create_collection(self, shop_id: str, data: dict) -> dict:
        collection = Collection(
            id=data.get("id") or str(uuid.uuid4()),
            shop_id=shop_id,
            woocommerce_id=data.get("woocommerce_id"),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            description=data.get("description", ""),
            product_count=data.get("product_count", 0),
            created_at=self._now(),
        )
        self.session.add(collection)
        self._commit()
        return self._to_dict(collection)

    def list_collections(self, shop_id: str) -> list:
        stmt = select(Collection).where(Collection.shop_id == shop_id).order_by(Collection.name)
        return [self._to_dict(r) for r in self.session.execute(stmt).scalars().all()]

    def replace_collections(self, shop_id: str, collections: list) -> int:
        with self.batch():
            self.session.execute(delete(Collection).where(Collection.shop_id == shop_id))
            now = self._now()
            for data in collections:
                self.session.add(Collection(
                    id=str(uuid.uuid4()),
                    shop_id=shop_id,
                    woocommerce_id=data.get("woocommerce_id"),
                    name=data.get("name", ""),
                    slug=data.get("slug", ""),
                    description=data.get("description", ""),
                    product_count=data.get("product_count", 0),
                    created_at=now,
                ))
        return len(collections)

    # ---- Blog posts ----

    def create_blog_post(self, shop_id: str, data: dict) -> dict:
        now = self._now()
        post = BlogPost(
            id=data.get("id") or str(uuid.uuid4()),
            shop_id=shop_id,
            created_at=now,
            updated_at=now,
            **{k: data[k] for k in BLOG_POST_FIELDS if data.get(k) is not None},
        )
        self.session.add(post)
        self._commit()
        return self._to_dict(post)

    def get_blog_post(self, post_id: str) -> Optional[dict]:
        return self._to_dict(self.session.get(BlogPost, post_id))

    def list_blog_posts(self, shop_id: str) -> list:
        stmt = select(BlogPost).where(BlogPost.shop_id == shop_id).order_by(BlogPost.created_at.desc())
        return [self._to_dict(r) for r in self.session.execute(stmt).scalars().all()]
