# src/models/rows.py

"""Raw row shapes returned by the catalog database."""

from typing import TypedDict


class SellerRow(TypedDict, total=False):
    """A ``sellers`` row (``id`` is the owning auth user id)."""

    id: str
    store_name: str
    location: str
    phone: str | None


class ProductRow(TypedDict, total=False):
    """A ``products`` row joined with its owning seller.

    ``sellers`` is ``None`` when the join finds no seller row.
    """

    id: int | str
    seller_id: str
    name: str
    category: str
    marketplace_price: float | int | str
    gidersen_price: float | int | str
    image_path: str | None
    is_active: bool
    created_at: str
    sellers: SellerRow | None


PRODUCT_SELECT: str = (
    "id,seller_id,name,category,marketplace_price,gidersen_price,"
    "image_path,created_at,sellers(id,store_name,location,phone)"
)

SELLER_SELECT: str = "id,store_name,location,phone"
