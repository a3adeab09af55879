# src/services/routes.py

"""Path → view mapping for the storefront pages."""

from dataclasses import dataclass
from enum import Enum


class View(str, Enum):
    """Top-level pages the router can select."""

    HOME = "home"
    HOW_IT_WORKS = "how-it-works"
    PRODUCTS = "products"
    PRODUCT_DETAIL = "product-detail"
    FIRM_PORTAL = "firm-portal"


@dataclass(frozen=True)
class RouteMatch:
    """A routed path: the page to show and the canonical path."""

    view: View
    path: str
    product_id: str | None = None
    redirected: bool = False


_STATIC_ROUTES: dict[str, View] = {
    "/": View.HOME,
    "/how-it-works": View.HOW_IT_WORKS,
    "/products": View.PRODUCTS,
    "/firm": View.FIRM_PORTAL,
}

_PRODUCT_PREFIX = "/product/"


def classify_path(path: str) -> View:
    """Name the view for *path* by ordered prefix checks."""
    if path.startswith("/how-it-works"):
        return View.HOW_IT_WORKS
    if path.startswith("/products"):
        return View.PRODUCTS
    if path.startswith(_PRODUCT_PREFIX):
        return View.PRODUCT_DETAIL
    if path.startswith("/firm"):
        return View.FIRM_PORTAL
    return View.HOME


def resolve_route(path: str) -> RouteMatch:
    """Match *path* against the route table; unknown paths go home."""
    clean = path.split("?", 1)[0].split("#", 1)[0]
    if len(clean) > 1:
        clean = clean.rstrip("/")

    view = _STATIC_ROUTES.get(clean)
    if view is not None:
        return RouteMatch(view=view, path=clean)

    if clean.startswith(_PRODUCT_PREFIX):
        product_id = clean[len(_PRODUCT_PREFIX):]
        if product_id and "/" not in product_id:
            return RouteMatch(
                view=View.PRODUCT_DETAIL,
                path=clean,
                product_id=product_id,
            )

    return RouteMatch(view=View.HOME, path="/", redirected=True)


def path_for(view: View, product_id: str | None = None) -> str:
    """Path to push when navigating to *view*."""
    if view is View.PRODUCT_DETAIL:
        return f"{_PRODUCT_PREFIX}{product_id}" if product_id else "/products"
    for path, routed in _STATIC_ROUTES.items():
        if routed is view:
            return path
    return "/"
