# src/services/catalog_adapter.py

"""Maps backend rows to view models and wraps catalog calls."""

import logging
import math
import mimetypes
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, cast

from src.backend.client import BackendClient
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.product import Product
from src.models.rows import (
    PRODUCT_SELECT,
    SELLER_SELECT,
    ProductRow,
    SellerRow,
)
from src.models.seller import Seller

logger = logging.getLogger("gidersen.catalog")


def _to_float(value: Any) -> float:
    """Numeric columns may arrive as strings (Postgres numeric).

    Postgres numeric also admits ``NaN`` and ``Infinity``; those map to
    0.0 like any other unusable value.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def map_seller_row(row: SellerRow) -> Seller:
    """Map a ``sellers`` row to a :class:`Seller`."""
    return Seller(
        id=str(row.get("id") or ""),
        name=row.get("store_name") or "",
        location=row.get("location") or "",
        phone=row.get("phone") or None,
    )


def map_product_row(
    row: ProductRow,
    resolve_image: Callable[[str | None], str | None],
) -> Product:
    """Flatten a product row joined with its seller.

    A missing seller leaves the seller fields empty instead of
    rejecting the row.
    """
    seller: SellerRow = row.get("sellers") or {}
    return Product(
        id=str(row.get("id", "")),
        name=row.get("name") or "",
        marketplace_price=_to_float(row.get("marketplace_price")),
        gidersen_price=_to_float(row.get("gidersen_price")),
        firm=seller.get("store_name") or "",
        firm_id=str(row.get("seller_id") or seller.get("id") or ""),
        category=row.get("category") or "",
        image_url=resolve_image(row.get("image_path")),
        location=seller.get("location") or "",
        phone=seller.get("phone") or None,
        created_at=row.get("created_at"),
    )


class CatalogAdapter:
    """Catalog, seller and image calls returning view models."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.bucket = Settings.PRODUCT_IMAGE_BUCKET

    def resolve_image_url(self, ref: str | None) -> str | None:
        """Turn a stored image reference into a fetchable URL."""
        if not ref:
            return None
        if ref.startswith("http"):
            return ref
        return self.client.public_url(self.bucket, ref)

    # ── Products ─────────────────────────────────────────

    def fetch_active_products(self) -> list[Product]:
        """All active listings with seller fields, newest first."""
        rows = self.client.select(
            "products",
            columns=PRODUCT_SELECT,
            filters={"is_active": "eq.true"},
            order="created_at.desc",
        )
        products = [
            map_product_row(cast(ProductRow, row), self.resolve_image_url)
            for row in rows
        ]
        logger.info("Fetched %d active products", len(products))
        return products

    def insert_product(
        self,
        seller_id: str,
        name: str,
        category: str,
        marketplace_price: float,
        gidersen_price: float,
        image_path: str | None = None,
    ) -> str:
        """Create an active listing and return its id."""
        rows = self.client.insert(
            "products",
            {
                "seller_id": seller_id,
                "name": name,
                "category": category,
                "marketplace_price": marketplace_price,
                "gidersen_price": gidersen_price,
                "image_path": image_path,
                "is_active": True,
            },
        )
        product_id = str(rows[0].get("id", "")) if rows else ""
        logger.info(
            "Inserted product %s for seller %s", product_id, seller_id
        )
        return product_id

    def deactivate_product(self, product_id: str) -> None:
        """Soft-delete a listing by marking it inactive."""
        rows = self.client.update(
            "products",
            {"is_active": False},
            filters={"id": f"eq.{product_id}"},
        )
        if not rows:
            # Row-level security hides rows the user may not touch
            raise BackendError(
                f"Product {product_id} not found or not owned by you",
                status=404,
            )
        logger.info("Deactivated product %s", product_id)

    # ── Sellers ──────────────────────────────────────────

    def fetch_seller(self, user_id: str) -> Seller | None:
        """Seller profile owned by *user_id*, if one exists."""
        rows = self.client.select(
            "sellers",
            columns=SELLER_SELECT,
            filters={"id": f"eq.{user_id}"},
            limit=1,
        )
        if not rows:
            return None
        return map_seller_row(cast(SellerRow, rows[0]))

    def insert_seller(
        self, user_id: str, store_name: str, location: str,
    ) -> Seller:
        """Create the seller profile for a new account."""
        rows = self.client.insert(
            "sellers",
            {
                "id": user_id,
                "store_name": store_name,
                "location": location,
            },
        )
        if rows:
            return map_seller_row(cast(SellerRow, rows[0]))
        return Seller(id=user_id, name=store_name, location=location)

    # ── Images ───────────────────────────────────────────

    def upload_image(
        self, seller_id: str, image_file: Path,
    ) -> str | None:
        """Upload a listing image and return its storage path.

        Failures are logged and reported as ``None`` so the listing can
        still be created without an image.
        """
        extension = image_file.suffix.lstrip(".").lower() or "jpg"
        key = f"{seller_id}/{int(time.time() * 1000)}.{extension}"
        content_type = (
            mimetypes.guess_type(image_file.name)[0]
            or "application/octet-stream"
        )
        try:
            content = image_file.read_bytes()
            self.client.upload(self.bucket, key, content, content_type)
        except (BackendError, OSError) as exc:
            logger.warning(
                "Image upload failed for %s, listing without image: %s",
                image_file,
                exc,
            )
            return None
        logger.info("Uploaded image %s", key)
        return key
