# src/ui/widgets.py

"""Shared storefront widgets: navigation, footer, listings, slogan."""

import math
from collections.abc import Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Static

from src.config.settings import Settings
from src.models.product import Product
from src.services.app_state import AppState, StateController
from src.services.routes import View
from src.services.slogans import SloganRotator


def format_price(value: float) -> str:
    """Turkish-style price: ``4.200 ₺`` or ``1.250,50 ₺``."""
    if not math.isfinite(value):
        return f"- {Settings.CURRENCY_SYMBOL}"
    if value == int(value):
        text = f"{int(value):,}"
    else:
        text = f"{value:,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{text} {Settings.CURRENCY_SYMBOL}"


def discount_badge(product: Product) -> Text:
    """Savings badge; empty when no reference price is known."""
    percent = product.discount
    if percent is None:
        return Text("")
    return Text(f"%{percent} Kazanç", style="bold dark_orange")


class NavBar(Vertical):
    """Logo, page links and the collapsible menu."""

    _LINKS: list[tuple[str, str, View]] = [
        ("nav_how", "Nasıl Çalışır?", View.HOW_IT_WORKS),
        ("nav_products", "Ürünler", View.PRODUCTS),
        ("nav_firm", "Mağaza Girişi", View.FIRM_PORTAL),
    ]

    def __init__(self, controller: StateController) -> None:
        super().__init__(id="navbar")
        self.controller = controller

    def compose(self) -> ComposeResult:
        yield Horizontal(
            Button("📍 gidersen.com", id="nav_home", classes="logo"),
            *[
                Button(label, id=button_id, classes="nav-link")
                for button_id, label, _view in self._LINKS
            ],
            Button("☰", id="nav_menu_toggle"),
            id="nav_links",
        )
        yield Vertical(
            Button("Nasıl Çalışır?", id="menu_how"),
            Button("Ürünleri Keşfet", id="menu_products"),
            Button("Mağaza Girişi", id="menu_firm"),
            id="nav_menu",
        )

    def on_mount(self) -> None:
        self.render_state(self.controller.state)

    def render_state(self, state: AppState) -> None:
        """Highlight the active page and follow the sign-in state."""
        signed_in = state.seller is not None
        firm_label = "Panel" if signed_in else "Mağaza Girişi"
        self.query_one("#nav_firm", Button).label = firm_label
        self.query_one("#menu_firm", Button).label = (
            "Mağaza Paneli" if signed_in else "Mağaza Girişi"
        )
        for button_id, _label, view in self._LINKS:
            self.query_one(f"#{button_id}", Button).set_class(
                state.view is view, "active"
            )
        self.query_one("#nav_menu").display = state.menu_open
        self.query_one("#nav_menu_toggle", Button).label = (
            "✕" if state.menu_open else "☰"
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        targets = {
            "nav_home": View.HOME,
            "nav_how": View.HOW_IT_WORKS,
            "menu_how": View.HOW_IT_WORKS,
            "nav_products": View.PRODUCTS,
            "menu_products": View.PRODUCTS,
            "nav_firm": View.FIRM_PORTAL,
            "menu_firm": View.FIRM_PORTAL,
        }
        button_id = event.button.id or ""
        if button_id == "nav_menu_toggle":
            event.stop()
            self.controller.toggle_menu()
        elif button_id in targets:
            event.stop()
            self.controller.navigate_to(targets[button_id])


class SiteFooter(Static):
    """Persistent footer text under every page."""

    def __init__(self) -> None:
        super().__init__(
            "gidersen.com · \"Gidersen Daha Ucuz\" felsefesiyle aracıları "
            "ortadan kaldırarak hem satıcıya hem tüketiciye kazandırıyoruz.\n"
            "Kullanıcı: Nasıl Çalışır? · Fırsatları Keşfet   "
            "Firma: Mağaza Kaydı · Ürün Yönetimi   "
            "Destek: 7/24 Firma ve Kullanıcı Destek Hattı",
            id="site_footer",
        )


class ProductTable(DataTable[str | Text]):
    """Product rows keyed by product id."""

    def __init__(self, show_seller: bool = True, **kwargs: str) -> None:
        super().__init__(zebra_stripes=True, cursor_type="row", **kwargs)
        self.show_seller = show_seller
        self.products: list[Product] = []

    def on_mount(self) -> None:
        self._ensure_columns()

    def _ensure_columns(self) -> None:
        if self.columns:
            return
        columns = ["Ürün", "Kategori"]
        if self.show_seller:
            columns += ["Satıcı", "Konum"]
        columns += ["Pazar Yeri", "Gidersen", "Kazanç"]
        self.add_columns(*columns)

    def show_products(self, products: Sequence[Product]) -> None:
        """Replace all rows with *products*."""
        self._ensure_columns()
        products = list(products)
        if products == self.products and self.row_count == len(products):
            return
        self.products = products
        self.clear()
        for p in self.products:
            cells: list[str | Text] = [p.name[:50], p.category]
            if self.show_seller:
                cells += [p.firm, p.location]
            cells += [
                Text(format_price(p.marketplace_price), style="strike dim"),
                Text(format_price(p.gidersen_price), style="bold"),
                discount_badge(p),
            ]
            self.add_row(*cells, key=p.id)

    def product_for_key(self, key: str | None) -> Product | None:
        return next((p for p in self.products if p.id == key), None)

    def highlighted_product(self) -> Product | None:
        """Product under the cursor, if any."""
        if not self.products or self.cursor_row < 0:
            return None
        if self.cursor_row >= len(self.products):
            return None
        return self.products[self.cursor_row]


UNKNOWN_LOCATION = "Konum belirtilmemiş"


def group_by_location(
    products: Sequence[Product],
) -> list[tuple[str, list[Product]]]:
    """Products grouped under their seller location, in catalog order."""
    groups: dict[str, list[Product]] = {}
    for p in products:
        location = p.location.strip() or UNKNOWN_LOCATION
        groups.setdefault(location, []).append(p)
    return list(groups.items())


class ProductMap(Static):
    """Listings pinned by location, with their direct price."""

    def __init__(self, **kwargs: str) -> None:
        super().__init__(**kwargs)
        self.map_text = Text()

    def show_products(self, products: Sequence[Product]) -> None:
        text = Text()
        text.append("🗺 Harita Görünümü\n", style="bold dark_orange")
        text.append(
            "Satıcı konumlarına göre gruplanmış fırsatlar.\n",
            style="dim",
        )
        for location, items in group_by_location(products):
            text.append(f"\n📍 {location}", style="bold")
            text.append(f"  ({len(items)} ilan)\n", style="dim")
            for p in items:
                text.append(f"   • {p.name[:50]}  ")
                text.append(
                    format_price(p.gidersen_price),
                    style="bold dark_orange",
                )
                text.append("\n")
        self.map_text = text
        self.update(text)


class RotatingSlogan(Static):
    """Hero slogan that changes on a fixed interval."""

    def __init__(
        self,
        items: Sequence[str],
        interval: float | None = None,
        **kwargs: str,
    ) -> None:
        super().__init__(**kwargs)
        self.rotator = SloganRotator(items)
        self.interval = interval or Settings.SLOGAN_INTERVAL

    def on_mount(self) -> None:
        self.update(self.rotator.current)
        # Widget timers stop when the widget is removed
        self.set_interval(self.interval, self._next_slogan)

    def _next_slogan(self) -> None:
        self.update(self.rotator.advance())

    def set_items(self, items: Sequence[str]) -> None:
        """Show a new slogan list, restarting from the first entry."""
        self.rotator.set_items(items)
        self.update(self.rotator.current)
