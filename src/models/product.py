# src/models/product.py

"""Product listing view model."""

import math
from dataclasses import dataclass


def discount_percent(
    marketplace_price: float, gidersen_price: float,
) -> int | None:
    """Percentage saved by buying direct instead of on the marketplace.

    Returns ``None`` when there is no positive reference price, so the
    caller can hide the badge. Prices that are not finite numbers hide
    it too. Otherwise the value is clamped to 0-100.
    """
    finite = math.isfinite(marketplace_price) and math.isfinite(gidersen_price)
    if not finite or marketplace_price <= 0:
        return None
    # Half-up rounding, so 12.5 shows as 13
    percent = math.floor(
        100 * (1 - gidersen_price / marketplace_price) + 0.5
    )
    return max(0, min(100, percent))


@dataclass(frozen=True)
class Product:
    """A single active listing as shown in the storefront."""

    id: str
    name: str
    marketplace_price: float
    gidersen_price: float
    firm: str = ""
    firm_id: str = ""
    category: str = ""
    image_url: str | None = None
    location: str = ""
    phone: str | None = None
    created_at: str | None = None

    @property
    def discount(self) -> int | None:
        """Discount badge value, or ``None`` when it should be hidden."""
        return discount_percent(
            self.marketplace_price, self.gidersen_price
        )
