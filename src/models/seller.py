# src/models/seller.py

"""Authenticated seller (firm) identity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Seller:
    """Store profile bound to the signed-in account."""

    id: str
    name: str
    location: str = ""
    phone: str | None = None
