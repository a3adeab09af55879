# src/ui/screens.py

"""One Textual screen per storefront page."""

import logging
import webbrowser
from collections.abc import Sequence
from urllib.parse import quote_plus

from rich.markup import escape
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    ContentSwitcher,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    Static,
)
from textual.worker import Worker, WorkerState

from src.config.settings import Settings
from src.filters.listing_validator import ListingDraft, ListingValidator
from src.models.product import Product
from src.models.seller import Seller
from src.services.app_state import AppState, StateController
from src.services.routes import View
from src.ui.widgets import (
    NavBar,
    ProductMap,
    ProductTable,
    RotatingSlogan,
    SiteFooter,
    format_price,
)

logger = logging.getLogger("gidersen.ui")


class PageScreen(Screen[None]):
    """Navigation, page body and footer; subclasses fill the body."""

    def __init__(self, controller: StateController) -> None:
        super().__init__()
        self.controller = controller
        self.ready = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield NavBar(self.controller)
        with VerticalScroll(id="page"):
            yield from self.compose_page()
            yield SiteFooter()
        yield Footer()

    def compose_page(self) -> ComposeResult:
        yield from ()

    def on_mount(self) -> None:
        self.ready = True
        self.render_state(self.controller.state)
        self.load()

    def load(self) -> None:
        """Start the reads this page needs when it opens."""

    def render_state(self, state: AppState) -> None:
        """Redraw from *state*; called after every state change."""
        if not self.ready:
            return
        self.query_one(NavBar).render_state(state)
        self.render_page(state)

    def render_page(self, state: AppState) -> None:
        """Redraw the page body."""

    def refresh_catalog(self) -> None:
        # Owned by this screen: cancelled if the user leaves the page
        self.run_worker(
            self.controller.refresh_catalog(),
            name="refresh_catalog",
            group="catalog",
            exclusive=True,
            exit_on_error=False,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.ERROR:
            logger.error(
                "Task %s failed on %s",
                event.worker.name,
                type(self).__name__,
                exc_info=event.worker.error,
            )
            self.notify("Beklenmeyen bir hata oluştu.", severity="error")

    def on_data_table_row_selected(
        self, event: DataTable.RowSelected,
    ) -> None:
        """Open the detail page for a product row."""
        table = event.data_table
        if not isinstance(table, ProductTable):
            return
        product = table.product_for_key(event.row_key.value)
        if product is not None:
            self.controller.select_product(product)


class HomeScreen(PageScreen):
    """Hero with rotating slogan and a preview of the newest deals."""

    def __init__(
        self, controller: StateController, slogans: Sequence[str],
    ) -> None:
        super().__init__(controller)
        self.slogans = slogans

    def compose_page(self) -> ComposeResult:
        yield Static("⚡ Gidersen Kazanırsın", classes="eyebrow")
        yield RotatingSlogan(self.slogans, id="slogan")
        yield Static(
            "Pazar yeri komisyonlarını ve kargo maliyetlerini sıfırlayın. "
            "Doğrudan satıcıya ulaşın, daha az ödeyin.",
            classes="lead",
        )
        yield Horizontal(
            Button("Fırsatları Gör ›", variant="primary", id="cta_products"),
            Button("Nasıl Çalışır?", id="cta_how"),
            classes="cta",
        )
        yield Static("Günün Fırsatları", classes="section-title")
        yield ProductTable(id="featured_table")
        yield Button("Tümünü İncele", id="see_all")

    def load(self) -> None:
        self.refresh_catalog()

    def render_page(self, state: AppState) -> None:
        self.query_one("#featured_table", ProductTable).show_products(
            state.catalog[: Settings.HOME_PREVIEW_COUNT]
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id in ("cta_products", "see_all"):
            self.controller.navigate_to(View.PRODUCTS)
        elif event.button.id == "cta_how":
            self.controller.navigate_to(View.HOW_IT_WORKS)


_CONSUMER_STEPS: list[tuple[str, str]] = [
    ("Ürünü Bul", "Aradığın ürünü gidersen.com üzerinden ara ve en iyi "
     "'Gidersen' fiyatını bul."),
    ("Mağazayı Seç", "Sana en yakın veya en uygun fiyatlı mağazanın "
     "konumuna bak."),
    ("Git veya Ara", "İster fiziksel lokasyona git, ister telefonla "
     "sipariş vererek komisyonsuz al."),
    ("Tasarruf Et", "Kargo ve platform komisyonu ödemeden %20'ye varan "
     "indirimle alışverişini tamamla."),
]

_SELLER_STEPS: list[tuple[str, str]] = [
    ("Ücretsiz Kaydol", "Mağazanızı hemen oluşturun, herhangi bir "
     "listeleme ücreti ödemeyin."),
    ("Ürünlerini Ekle", "Pazar yeri fiyatını ve müşterine sunacağın "
     "özel indirimli fiyatı gir."),
    ("Müşteri Gelsin", "Müşteriler doğrudan mağazana gelsin veya seni "
     "telefonla arasın."),
    ("Nakiti Koru", "Komisyon ödeme, kargo ile uğraşma. Satışın tamamı "
     "anında cebinde kalsın."),
]


def _steps_text(title: str, steps: list[tuple[str, str]]) -> str:
    lines = [f"[b]{title}[/b]", ""]
    for number, (step, description) in enumerate(steps, 1):
        lines.append(f"[b]{number}. {step}[/b]")
        lines.append(f"   {description}")
    return "\n".join(lines)


class HowItWorksScreen(PageScreen):
    """Static explainer for consumers and sellers."""

    def compose_page(self) -> ComposeResult:
        yield Static("Sistem Nasıl İşler?", classes="page-title")
        yield Static(
            "Hem kullanıcı hem firma için kazan-kazan modeli.",
            classes="lead",
        )
        yield Horizontal(
            Static(
                _steps_text("👤 Tüketiciler İçin", _CONSUMER_STEPS),
                classes="steps",
            ),
            Static(
                _steps_text("🏪 Satıcılar İçin", _SELLER_STEPS),
                classes="steps dark",
            ),
            id="how_columns",
        )


class ProductsScreen(PageScreen):
    """Every active listing."""

    def compose_page(self) -> ComposeResult:
        yield Static("Tüm Ürünler", classes="page-title")
        yield Static(
            "Bulunduğun bölgedeki en iyi fırsatlar", classes="lead"
        )
        yield Horizontal(
            Button("☰ Liste", id="view_list"),
            Button("🗺 Harita", id="view_map"),
            id="view_toggle",
        )
        yield Static("", id="catalog_status")
        with ContentSwitcher(
            initial="products_table", id="products_switcher"
        ):
            yield ProductTable(id="products_table")
            yield ProductMap(id="products_map")

    def load(self) -> None:
        self.refresh_catalog()

    def render_page(self, state: AppState) -> None:
        if state.catalog_loading and not state.catalog:
            status = "⏳ Ürünler yükleniyor..."
        elif not state.catalog:
            status = "Henüz yayında ilan yok."
        else:
            status = f"{len(state.catalog)} ilan"
        self.query_one("#catalog_status", Static).update(status)
        self.query_one("#products_table", ProductTable).show_products(
            state.catalog
        )
        self.query_one("#products_map", ProductMap).show_products(
            state.catalog
        )
        self.query_one("#products_switcher", ContentSwitcher).current = (
            "products_map" if state.map_view else "products_table"
        )
        self.query_one("#view_list", Button).set_class(
            not state.map_view, "active"
        )
        self.query_one("#view_map", Button).set_class(
            state.map_view, "active"
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "view_list":
            self.controller.set_map_view(False)
        elif event.button.id == "view_map":
            self.controller.set_map_view(True)


class ProductDetailScreen(PageScreen):
    """A single listing with its prices and seller contact."""

    def compose_page(self) -> ComposeResult:
        yield Button("‹ Ürünlere Dön", id="back_products")
        yield Static("", id="detail_body")
        yield Horizontal(
            Button("📍 Yol Tarifi", variant="primary", id="directions"),
            Button("📞 Satıcıyı Ara", id="call_seller"),
            Button("🖼 Görseli Aç", id="open_image"),
            id="detail_actions",
        )
        yield Static(
            "[b]Dikkat:[/b] Bu indirim sadece fiziksel mağazada elden "
            "alımlarda veya satıcıyla doğrudan kurulan telefon "
            "iletişiminde geçerlidir.",
            id="detail_notice",
        )

    def load(self) -> None:
        # A remembered pick needs no fetch; a cold start does
        if self.controller.product_for_path() is None:
            self.refresh_catalog()

    @property
    def product(self) -> Product | None:
        return self.controller.product_for_path()

    def render_page(self, state: AppState) -> None:
        product = self.product
        body = self.query_one("#detail_body", Static)
        found = product is not None
        self.query_one("#detail_actions").display = found
        self.query_one("#detail_notice").display = found

        if product is None:
            if state.catalog_loading:
                body.update("⏳ Ürün yükleniyor...")
            else:
                body.update(
                    "[b]Ürün bulunamadı[/b]\n"
                    "Ürün kaldırılmış olabilir veya bağlantı hatalı "
                    "olabilir."
                )
            return

        lines = [
            f"🛡 Onaylı Satıcı: {escape(product.firm or '-')}",
            f"[b]{escape(product.name)}[/b]",
            f"Kategori: {escape(product.category)}",
            "",
            f"Pazar Yeri Fiyatı: [strike]"
            f"{format_price(product.marketplace_price)}[/strike]",
            f"Gidersen Fiyatı:   [b]"
            f"{format_price(product.gidersen_price)}[/b]",
        ]
        if product.discount is not None:
            lines.append(f"[b dark_orange]-%{product.discount}[/]")
        lines += [
            "",
            f"📍 {escape(product.location or 'Konum belirtilmemiş')}",
            f"📞 {escape(product.phone or 'Telefon paylaşılmamış')}",
            f"🖼 {escape(product.image_url or 'Görsel yok')}",
        ]
        body.update("\n".join(lines))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "back_products":
            self.controller.navigate_to(View.PRODUCTS)
            return
        product = self.product
        if product is None:
            return
        if button_id == "directions":
            if not product.location:
                self.notify("Satıcı konumu yok.", severity="warning")
                return
            webbrowser.open(
                "https://www.google.com/maps/search/?api=1&query="
                + quote_plus(product.location)
            )
        elif button_id == "call_seller":
            self._copy_phone(product)
        elif button_id == "open_image":
            if product.image_url:
                webbrowser.open(product.image_url)
            else:
                self.notify("Bu ürünün görseli yok.", severity="warning")

    def _copy_phone(self, product: Product) -> None:
        if not product.phone:
            self.notify(
                "Satıcı telefon numarası paylaşmamış.", severity="warning"
            )
            return
        try:
            import pyperclip  # type: ignore[import-untyped]

            pyperclip.copy(product.phone)
            self.notify(f"Telefon kopyalandı: {product.phone}")
        except Exception:
            logger.error("Failed to copy phone to clipboard", exc_info=True)
            self.notify(f"Telefon: {product.phone}", severity="warning")


class FirmPortalScreen(PageScreen):
    """Seller sign-in / registration and listing management."""

    def __init__(self, controller: StateController) -> None:
        super().__init__(controller)
        self.auth_mode = "login"
        self.form_errors: list[str] = []

    def compose_page(self) -> ComposeResult:
        with ContentSwitcher(initial="portal_auth", id="portal_switcher"):
            with Vertical(id="portal_auth", classes="card"):
                yield Static("", id="auth_title", classes="page-title")
                yield Static("", id="auth_subtitle", classes="lead")
                yield Input(placeholder="Mağaza Adı", id="auth_store_name")
                yield Input(
                    placeholder="Konum (ör. Kadıköy, İstanbul)",
                    id="auth_location",
                )
                yield Input(placeholder="E-posta Adresi", id="auth_email")
                yield Input(
                    placeholder="Şifre", password=True, id="auth_password"
                )
                yield Static("", id="auth_error", classes="error")
                yield Static("", id="auth_notice", classes="notice")
                yield Button("", variant="primary", id="auth_submit")
                yield Button("", id="auth_toggle")
            with Vertical(id="portal_profile", classes="card"):
                yield Static(
                    "Mağaza Profilini Tamamla", classes="page-title"
                )
                yield Static(
                    "Hesabınız açık ancak mağaza profiliniz eksik.",
                    classes="lead",
                )
                yield Input(placeholder="Mağaza Adı", id="profile_store_name")
                yield Input(
                    placeholder="Konum (ör. Kadıköy, İstanbul)",
                    id="profile_location",
                )
                yield Static("", id="profile_error", classes="error")
                yield Button(
                    "Profili Kaydet", variant="primary", id="profile_submit"
                )
                yield Button("Çıkış Yap", id="profile_sign_out")
            with Vertical(id="portal_dashboard"):
                yield Horizontal(
                    Static("", id="firm_header"),
                    Button("Çıkış", id="sign_out"),
                    id="firm_bar",
                )
                with Horizontal(id="dashboard_columns"):
                    with Vertical(id="listing_form", classes="card"):
                        yield Static("➕ Yeni İlan", classes="section-title")
                        yield Input(placeholder="Ürün Adı", id="listing_name")
                        yield Select(
                            [(c, c) for c in Settings.PRODUCT_CATEGORIES],
                            value=Settings.PRODUCT_CATEGORIES[0],
                            allow_blank=False,
                            id="listing_category",
                        )
                        yield Input(
                            placeholder="Pazar Yeri Fiyatı (₺)",
                            id="listing_market_price",
                        )
                        yield Input(
                            placeholder="Gidersen Fiyatı (₺)",
                            id="listing_gidersen_price",
                        )
                        yield Input(
                            placeholder="Görsel dosyası (isteğe bağlı)",
                            id="listing_image",
                        )
                        yield Static("", id="portal_error", classes="error")
                        yield Button(
                            "İlanı Yayınla", variant="primary", id="publish"
                        )
                    with Vertical(id="seller_listings"):
                        yield Static(
                            "Yayındaki İlanlarınız", classes="section-title"
                        )
                        yield ProductTable(
                            show_seller=False, id="seller_table"
                        )
                        yield Static(
                            "Henüz bir ürününüz yok.", id="seller_empty"
                        )
                        yield Button(
                            "Seçili İlanı Sil",
                            variant="error",
                            id="delete_listing",
                        )

    def load(self) -> None:
        self.refresh_catalog()

    # ── Rendering ────────────────────────────────────────

    def render_page(self, state: AppState) -> None:
        switcher = self.query_one("#portal_switcher", ContentSwitcher)
        if state.seller is not None:
            switcher.current = "portal_dashboard"
            self._render_dashboard(state, state.seller)
        elif state.needs_profile:
            switcher.current = "portal_profile"
            self.query_one("#profile_error", Static).update(
                Text(state.auth_error)
            )
        else:
            switcher.current = "portal_auth"
            self._render_auth(state)

    def _render_auth(self, state: AppState) -> None:
        registering = self.auth_mode == "register"
        self.query_one("#auth_title", Static).update(
            "Hemen Kayıt Ol" if registering else "Mağaza Girişi"
        )
        self.query_one("#auth_subtitle", Static).update(
            "Satışlarını artırmaya bugün başla."
            if registering
            else "Paneline erişmek için giriş yap."
        )
        self.query_one("#auth_store_name").display = registering
        self.query_one("#auth_location").display = registering
        self.query_one("#auth_submit", Button).label = (
            "Kaydı Tamamla" if registering else "Giriş Yap"
        )
        self.query_one("#auth_toggle", Button).label = (
            "Zaten hesabım var" if registering else "Yeni mağaza oluştur"
        )
        error = state.auth_error or "\n".join(self.form_errors)
        self.query_one("#auth_error", Static).update(Text(error))
        notice = self.query_one("#auth_notice", Static)
        notice.update(Text(state.auth_notice))

    def _render_dashboard(self, state: AppState, seller: Seller) -> None:
        self.query_one("#firm_header", Static).update(
            f"[b dark_orange]MAĞAZA PANELİ[/]\n[b]{escape(seller.name)}[/b]\n"
            f"📍 {escape(seller.location or '-')}"
        )
        own = self.controller.seller_products()
        self.query_one("#seller_table", ProductTable).show_products(own)
        self.query_one("#seller_empty").display = not own
        self.query_one("#delete_listing").display = bool(own)
        error = state.portal_error or "\n".join(self.form_errors)
        self.query_one("#portal_error", Static).update(Text(error))

    # ── Events ───────────────────────────────────────────

    def _value(self, widget_id: str) -> str:
        return self.query_one(f"#{widget_id}", Input).value

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "auth_password":
            self._submit_auth()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "auth_submit":
            self._submit_auth()
        elif button_id == "auth_toggle":
            self.auth_mode = (
                "register" if self.auth_mode == "login" else "login"
            )
            self.form_errors = []
            self.render_state(self.controller.state)
        elif button_id == "profile_submit":
            self._run(
                self.controller.complete_profile(
                    self._value("profile_store_name"),
                    self._value("profile_location"),
                ),
                "profile",
            )
        elif button_id in ("sign_out", "profile_sign_out"):
            self._run(self.controller.sign_out(), "auth")
        elif button_id == "publish":
            self._submit_listing()
        elif button_id == "delete_listing":
            self._delete_selected()

    def _run(self, work: object, group: str) -> None:
        self.run_worker(
            work,  # type: ignore[arg-type]
            group=group,
            exclusive=True,
            exit_on_error=False,
        )

    def _submit_auth(self) -> None:
        email = self._value("auth_email").strip()
        password = self._value("auth_password")
        self.form_errors = []
        if not email or not password:
            self.form_errors = ["E-posta ve şifre gerekli."]
            self.render_state(self.controller.state)
            return
        if self.auth_mode == "register":
            work = self.controller.sign_up(
                email,
                password,
                self._value("auth_store_name"),
                self._value("auth_location"),
            )
        else:
            work = self.controller.sign_in(email, password)
        self._run(work, "auth")

    def _submit_listing(self) -> None:
        category = self.query_one("#listing_category", Select).value
        draft, errors = ListingValidator.validate(
            name=self._value("listing_name"),
            category=category if isinstance(category, str) else "",
            marketplace_price=self._value("listing_market_price"),
            gidersen_price=self._value("listing_gidersen_price"),
            image_path=self._value("listing_image"),
        )
        self.form_errors = errors
        if draft is None:
            self.render_state(self.controller.state)
            return
        self._run(self._publish(draft), "listing")

    async def _publish(self, draft: ListingDraft) -> None:
        ok = await self.controller.add_product(
            draft.name,
            draft.category,
            draft.marketplace_price,
            draft.gidersen_price,
            draft.image_file,
        )
        if ok:
            for widget_id in (
                "listing_name",
                "listing_market_price",
                "listing_gidersen_price",
                "listing_image",
            ):
                self.query_one(f"#{widget_id}", Input).value = ""
            self.notify("İlan yayınlandı.")

    def _delete_selected(self) -> None:
        product = self.query_one(
            "#seller_table", ProductTable
        ).highlighted_product()
        if product is None:
            self.notify("Silinecek ilanı seçin.", severity="warning")
            return
        self._run(self._delete(product), "listing")

    async def _delete(self, product: Product) -> None:
        if await self.controller.delete_product(product.id):
            self.notify(f"'{product.name}' yayından kaldırıldı.")


def build_screen(
    view: View,
    controller: StateController,
    slogans: Sequence[str],
) -> PageScreen:
    """Fresh screen for *view*."""
    if view is View.HOME:
        return HomeScreen(controller, slogans)
    if view is View.HOW_IT_WORKS:
        return HowItWorksScreen(controller)
    if view is View.PRODUCTS:
        return ProductsScreen(controller)
    if view is View.PRODUCT_DETAIL:
        return ProductDetailScreen(controller)
    return FirmPortalScreen(controller)
