# tests/test_app.py

"""Smoke tests for the TUI application using Textual's Pilot."""

import unittest

from fakes import FakeAuth, FakeCatalog
from textual.pilot import Pilot
from textual.widgets import Button, ContentSwitcher, Input

from src.models.seller import Seller
from src.models.session import AuthSession
from src.services.app_state import StateController
from src.ui.app import GidersenApp
from src.ui.screens import (
    FirmPortalScreen,
    HomeScreen,
    HowItWorksScreen,
    ProductDetailScreen,
    ProductsScreen,
)
from src.ui.widgets import ProductMap, ProductTable, RotatingSlogan

_SIZE = (140, 60)


class AppTestCase(unittest.IsolatedAsyncioTestCase):
    """Builds an app around in-memory fakes."""

    def setUp(self) -> None:
        self.catalog = FakeCatalog()
        self.auth = FakeAuth()
        self.seller = Seller(id="user-firma@example.com", name="Mağaza")
        for name in ("Kulaklık", "Çanta", "Lamba", "Saat"):
            self.catalog.add(name, self.seller)

    def make_app(self, path: str = "/") -> GidersenApp:
        controller = StateController(
            self.catalog, self.auth, path  # type: ignore[arg-type]
        )
        return GidersenApp(
            controller=controller,
            slogan_loader=lambda: ["Bir", "İki"],
        )

    async def settle(self, app: GidersenApp, pilot: Pilot[None]) -> None:
        """Let screen switches and background workers finish."""
        for _ in range(2):
            await pilot.pause()
            await app.workers.wait_for_complete()
        await pilot.pause()


class TestGidersenApp(AppTestCase):
    """Routing, page rendering and portal flows."""

    async def test_home_screen_shows_featured_products(self) -> None:
        app = self.make_app()
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, HomeScreen)
            table = app.screen.query_one("#featured_table", ProductTable)
            self.assertEqual(table.row_count, 3)

    async def test_slogans_loaded_into_hero(self) -> None:
        app = self.make_app()
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            slogan = app.screen.query_one(RotatingSlogan)
            self.assertEqual(slogan.rotator.items, ("Bir", "İki"))
            self.assertEqual(app.slogans, ["Bir", "İki"])

    async def test_unknown_path_redirects_home(self) -> None:
        app = self.make_app("/admin/secret")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, HomeScreen)
            self.assertEqual(app.controller.state.path, "/")

    async def test_key_bindings_switch_pages(self) -> None:
        app = self.make_app()
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            await pilot.press("p")
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, ProductsScreen)
            table = app.screen.query_one("#products_table", ProductTable)
            self.assertEqual(table.row_count, 4)

            await pilot.press("w")
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, HowItWorksScreen)

            await pilot.press("h")
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, HomeScreen)

    async def test_products_map_view_toggle(self) -> None:
        app = self.make_app("/products")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            switcher = app.screen.query_one(
                "#products_switcher", ContentSwitcher
            )
            self.assertEqual(switcher.current, "products_table")

            app.screen.query_one("#view_map", Button).press()
            await pilot.pause()
            self.assertTrue(app.controller.state.map_view)
            self.assertEqual(switcher.current, "products_map")
            products_map = app.screen.query_one(ProductMap)
            self.assertIn("Kulaklık", products_map.map_text.plain)
            self.assertIn("80 ₺", products_map.map_text.plain)

            app.screen.query_one("#view_list", Button).press()
            await pilot.pause()
            self.assertEqual(switcher.current, "products_table")

    async def test_menu_toggle(self) -> None:
        app = self.make_app()
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            menu = app.screen.query_one("#nav_menu")
            self.assertFalse(menu.display)
            await pilot.press("m")
            await pilot.pause()
            self.assertTrue(app.controller.state.menu_open)
            self.assertTrue(app.screen.query_one("#nav_menu").display)

    async def test_detail_page_for_known_product(self) -> None:
        product_id = self.catalog.active[0]
        app = self.make_app(f"/product/{product_id}")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, ProductDetailScreen)
            self.assertTrue(app.screen.query_one("#detail_actions").display)

    async def test_detail_page_for_missing_product(self) -> None:
        app = self.make_app("/product/does-not-exist")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, ProductDetailScreen)
            self.assertFalse(app.screen.query_one("#detail_actions").display)

    async def test_back_button_returns_to_products(self) -> None:
        app = self.make_app("/product/does-not-exist")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            app.screen.query_one("#back_products", Button).press()
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, ProductsScreen)

    async def test_firm_portal_shows_sign_in_when_signed_out(self) -> None:
        app = self.make_app("/firm")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            self.assertIsInstance(app.screen, FirmPortalScreen)
            switcher = app.screen.query_one(ContentSwitcher)
            self.assertEqual(switcher.current, "portal_auth")
            self.assertFalse(app.screen.query_one("#auth_store_name").display)

    async def test_auth_toggle_shows_registration_fields(self) -> None:
        app = self.make_app("/firm")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            app.screen.query_one("#auth_toggle", Button).press()
            await pilot.pause()
            self.assertTrue(app.screen.query_one("#auth_store_name").display)

    async def test_sign_in_opens_dashboard(self) -> None:
        self.catalog.sellers[self.seller.id] = self.seller
        self.auth.accounts["firma@example.com"] = "secret"
        app = self.make_app("/firm")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            screen = app.screen
            screen.query_one("#auth_email", Input).value = (
                "firma@example.com"
            )
            screen.query_one("#auth_password", Input).value = "secret"
            screen.query_one("#auth_submit", Button).press()
            await self.settle(app, pilot)

            self.assertEqual(app.controller.state.seller, self.seller)
            switcher = app.screen.query_one(ContentSwitcher)
            self.assertEqual(switcher.current, "portal_dashboard")
            table = app.screen.query_one("#seller_table", ProductTable)
            self.assertEqual(table.row_count, 4)

    async def test_restored_session_without_profile(self) -> None:
        self.auth.session = AuthSession("at", "rt", "user-orphan")
        app = self.make_app("/firm")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            switcher = app.screen.query_one(ContentSwitcher)
            self.assertEqual(switcher.current, "portal_profile")

    async def test_invalid_listing_is_not_published(self) -> None:
        self.catalog.sellers[self.seller.id] = self.seller
        self.auth.session = AuthSession("at", "rt", self.seller.id)
        app = self.make_app("/firm")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            screen = app.screen
            assert isinstance(screen, FirmPortalScreen)
            screen.query_one("#listing_name", Input).value = "Yeni"
            screen.query_one("#listing_market_price", Input).value = "100"
            screen.query_one("#listing_gidersen_price", Input).value = "150"
            screen.query_one("#publish", Button).press()
            await self.settle(app, pilot)
            self.assertEqual(len(screen.form_errors), 1)
            self.assertEqual(len(app.controller.state.catalog), 4)

    async def test_publish_listing(self) -> None:
        self.catalog.sellers[self.seller.id] = self.seller
        self.auth.session = AuthSession("at", "rt", self.seller.id)
        app = self.make_app("/firm")
        async with app.run_test(size=_SIZE) as pilot:
            await self.settle(app, pilot)
            screen = app.screen
            screen.query_one("#listing_name", Input).value = "Yeni Ürün"
            screen.query_one("#listing_market_price", Input).value = "1.000"
            screen.query_one("#listing_gidersen_price", Input).value = "900"
            screen.query_one("#publish", Button).press()
            await self.settle(app, pilot)

            names = [p.name for p in app.controller.state.catalog]
            self.assertEqual(names.count("Yeni Ürün"), 1)
            self.assertEqual(
                screen.query_one("#listing_name", Input).value, ""
            )


if __name__ == "__main__":
    unittest.main()
