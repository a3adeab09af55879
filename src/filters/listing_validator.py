# src/filters/listing_validator.py

"""New-listing form validation, run before any upload or insert."""

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path

from src.config.settings import Settings

logger = logging.getLogger("gidersen.filters")

_GROUPED = re.compile(r"^\d{1,3}(\.\d{3})+$")


@dataclass
class ListingDraft:
    """Parsed add-product form values ready for the controller."""

    name: str
    category: str
    marketplace_price: float
    gidersen_price: float
    image_file: Path | None = None


def parse_price(text: str) -> float | None:
    """Parse ``1.250,50``, ``4.200``, ``1250.5`` or ``1250`` as a float."""
    cleaned = text.strip().replace("₺", "").replace(" ", "")
    if not cleaned:
        return None
    if "," in cleaned:
        # Turkish style: dots group thousands, comma is the decimal mark
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif _GROUPED.match(cleaned):
        cleaned = cleaned.replace(".", "")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class ListingValidator:
    """Validate add-product form fields."""

    @staticmethod
    def validate(
        name: str,
        category: str,
        marketplace_price: str,
        gidersen_price: str,
        image_path: str = "",
    ) -> tuple[ListingDraft | None, list[str]]:
        """Check the raw form strings.

        Returns the parsed draft (``None`` when invalid) and the list of
        user-facing problems found.
        """
        errors: list[str] = []

        clean_name = name.strip()
        if not clean_name:
            errors.append("Ürün adı boş olamaz.")

        if category not in Settings.PRODUCT_CATEGORIES:
            errors.append("Geçerli bir kategori seçin.")

        market = parse_price(marketplace_price)
        direct = parse_price(gidersen_price)
        if market is None or market <= 0:
            errors.append("Pazar yeri fiyatı pozitif bir sayı olmalı.")
        if direct is None or direct <= 0:
            errors.append("Gidersen fiyatı pozitif bir sayı olmalı.")
        if (
            market is not None
            and direct is not None
            and direct > market
        ):
            errors.append(
                "Gidersen fiyatı pazar yeri fiyatından yüksek olamaz."
            )

        image_file: Path | None = None
        if image_path.strip():
            image_file = Path(image_path.strip()).expanduser()
            if not image_file.is_file():
                errors.append(f"Görsel dosyası bulunamadı: {image_file}")

        if errors or market is None or direct is None:
            logger.debug(
                "Listing form rejected (%d problems): %s",
                len(errors),
                errors,
            )
            return None, errors

        return (
            ListingDraft(
                name=clean_name,
                category=category,
                marketplace_price=market,
                gidersen_price=direct,
                image_file=image_file,
            ),
            [],
        )
