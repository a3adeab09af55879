# src/services/app_state.py

"""Application state container and the operations that mutate it.

:class:`AppState` holds everything the screens render: the catalog
snapshot, loading flags, the signed-in seller, the selected product and
the current route. :class:`StateController` is the only writer. Each
operation calls the catalog adapter or the auth service (blocking calls
run in a thread), applies the outcome to the state and notifies
subscribers. Nothing here touches Textual, so the whole flow can be
driven from plain asyncio tests.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from src.backend.auth import AuthService, Subscription
from src.backend.client import BackendClient
from src.backend.errors import AuthError, BackendError
from src.models.product import Product
from src.models.seller import Seller
from src.models.session import AuthSession
from src.services.catalog_adapter import CatalogAdapter
from src.services.routes import (
    RouteMatch,
    View,
    classify_path,
    path_for,
    resolve_route,
)

logger = logging.getLogger("gidersen.state")

StateListener = Callable[["AppState"], None]

INVALID_CREDENTIALS_MESSAGE = "E-posta veya şifre hatalı."
PROFILE_FAILED_MESSAGE = (
    "Hesabınız oluşturuldu ancak mağaza profiliniz kaydedilemedi. "
    "Giriş yaparak profilinizi tamamlayabilirsiniz."
)
CONFIRM_EMAIL_MESSAGE = (
    "Kaydınız alındı. E-posta adresinizi doğruladıktan sonra giriş yapın."
)
LOGIN_REQUIRED_MESSAGE = "Bu işlem için mağaza girişi yapmalısınız."
STORE_NAME_REQUIRED_MESSAGE = "Mağaza adı boş olamaz."
SESSION_EXPIRED_MESSAGE = (
    "Oturumunuzun süresi doldu. Lütfen tekrar giriş yapın."
)


def describe_auth_error(exc: BackendError, action: str = "Giriş") -> str:
    """One-line user message for a failed auth call."""
    if isinstance(exc, AuthError) and exc.is_invalid_credentials:
        return INVALID_CREDENTIALS_MESSAGE
    return f"{action} başarısız: {exc.message}"


@dataclass
class AppState:
    """What the user currently sees."""

    path: str = "/"
    catalog: tuple[Product, ...] = ()
    catalog_loading: bool = False
    session: AuthSession | None = None
    seller: Seller | None = None
    seller_loading: bool = False
    selected_product: Product | None = None
    auth_error: str = ""
    auth_notice: str = ""
    portal_error: str = ""
    menu_open: bool = False
    map_view: bool = False

    @property
    def view(self) -> View:
        return classify_path(self.path)

    @property
    def needs_profile(self) -> bool:
        """Signed in, lookup finished, but no seller row exists."""
        return (
            self.session is not None
            and self.seller is None
            and not self.seller_loading
        )


class StateController:
    """Single writer of :class:`AppState`."""

    def __init__(
        self,
        adapter: CatalogAdapter,
        auth: AuthService,
        path: str = "/",
    ) -> None:
        self.adapter = adapter
        self.auth = auth
        self.state = AppState(path=resolve_route(path).path)
        self._listeners: list[StateListener] = []
        self._session_initialized = False
        self._subscription: Subscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._auth_tasks: set[asyncio.Task[None]] = set()
        self._seller_generation = 0
        self._catalog_requests = 0

    # ── Subscribers ──────────────────────────────────────

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* after every state change; returns an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def close(self) -> None:
        """Drop the auth subscription and all listeners."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    # ── Navigation ───────────────────────────────────────

    def navigate(self, path: str) -> RouteMatch:
        """Route to *path*; unknown paths land on the home page."""
        match = resolve_route(path)
        if match.redirected:
            logger.info("No route for %r, redirecting to /", path)
        self.state.path = match.path
        self.state.menu_open = False
        self._emit()
        return match

    def navigate_to(
        self, view: View, product: Product | None = None,
    ) -> RouteMatch:
        """Navigate by view name, remembering *product* for the detail page."""
        if product is not None:
            self.state.selected_product = product
        return self.navigate(
            path_for(view, product.id if product else None)
        )

    def select_product(self, product: Product) -> RouteMatch:
        return self.navigate_to(View.PRODUCT_DETAIL, product)

    def toggle_menu(self) -> None:
        self.state.menu_open = not self.state.menu_open
        self._emit()

    def set_map_view(self, enabled: bool) -> None:
        """Show the listing page as a map or as a list."""
        if self.state.map_view == enabled:
            return
        self.state.map_view = enabled
        self._emit()

    def product_for_path(self, path: str | None = None) -> Product | None:
        """Product shown by a detail route.

        The product remembered from the list is used when it matches the
        route id; otherwise (fresh start, stale pick) the catalog is
        searched by id.
        """
        match = resolve_route(path or self.state.path)
        if match.product_id is None:
            return None
        selected = self.state.selected_product
        if selected is not None and selected.id == match.product_id:
            return selected
        found = next(
            (p for p in self.state.catalog if p.id == match.product_id),
            None,
        )
        if found is not None:
            self.state.selected_product = found
        return found

    def seller_products(self) -> list[Product]:
        """Catalog entries owned by the signed-in seller."""
        seller = self.state.seller
        if seller is None:
            return []
        return [p for p in self.state.catalog if p.firm_id == seller.id]

    # ── Session ──────────────────────────────────────────

    async def initialize_session(self) -> None:
        """Restore the session, resolve the seller and follow auth changes.

        Only the first call does anything.
        """
        if self._session_initialized:
            return
        self._session_initialized = True
        self._loop = asyncio.get_running_loop()

        try:
            session = await asyncio.to_thread(self.auth.get_session)
        except BackendError as exc:
            logger.warning("Could not restore session: %s", exc)
            session = None
        await self._resolve_seller(session)
        self._subscription = self.auth.on_auth_state_change(
            self._on_auth_event
        )
        logger.info(
            "Session initialised (signed_in=%s)", session is not None
        )

    def _on_auth_event(
        self, event: str, session: AuthSession | None,
    ) -> None:
        # May run on a worker thread
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        logger.debug("Auth event %s queued for seller resolution", event)
        loop.call_soon_threadsafe(self._start_seller_resolution, session)

    def _start_seller_resolution(self, session: AuthSession | None) -> None:
        task = asyncio.ensure_future(self._resolve_seller(session))
        self._auth_tasks.add(task)
        task.add_done_callback(self._auth_tasks.discard)

    async def _settle_auth_events(self) -> None:
        """Wait for seller resolutions queued by auth notifications."""
        await asyncio.sleep(0)
        pending = [t for t in self._auth_tasks if not t.done()]
        while pending:
            await asyncio.gather(*pending, return_exceptions=True)
            pending = [t for t in self._auth_tasks if not t.done()]

    async def _resolve_seller(self, session: AuthSession | None) -> None:
        """Set the seller for *session*; later calls win over slower ones."""
        self._seller_generation += 1
        generation = self._seller_generation
        self.state.session = session

        if session is None:
            self.state.seller = None
            self.state.seller_loading = False
            self._emit()
            return

        self.state.seller_loading = True
        self._emit()
        try:
            seller = await asyncio.to_thread(
                self.adapter.fetch_seller, session.user_id
            )
        except BackendError as exc:
            logger.error(
                "Seller lookup failed for user %s: %s",
                session.user_id,
                exc,
            )
            seller = None

        if generation != self._seller_generation:
            return
        self.state.seller = seller
        self.state.seller_loading = False
        self._emit()

    async def _ensure_fresh_session(self) -> bool:
        """Refresh a nearly expired token before an authenticated write.

        Returns ``False`` once the session is gone, after the seller
        has been cleared and the portal told to sign in again.
        """
        session = await asyncio.to_thread(self.auth.ensure_fresh_session)
        if session is not None:
            return True
        if self._subscription is None:
            await self._resolve_seller(None)
        else:
            await self._settle_auth_events()
        self.state.portal_error = SESSION_EXPIRED_MESSAGE
        self._emit()
        return False

    async def sign_in(self, email: str, password: str) -> bool:
        """Sign in and open the seller portal."""
        self.state.auth_error = ""
        self.state.auth_notice = ""
        self._emit()
        try:
            session = await asyncio.to_thread(
                self.auth.sign_in_with_password, email.strip(), password
            )
        except BackendError as exc:
            logger.info("Sign-in failed for %s: %s", email, exc)
            self.state.auth_error = describe_auth_error(exc)
            self._emit()
            return False

        if self._subscription is None:
            await self._resolve_seller(session)
        else:
            await self._settle_auth_events()
        self.navigate(path_for(View.FIRM_PORTAL))
        return True

    async def sign_up(
        self,
        email: str,
        password: str,
        store_name: str,
        location: str,
    ) -> bool:
        """Create the account, then its seller profile.

        The profile is only inserted once the account exists. If that
        insert fails the account stays without a profile; signing in
        later offers :meth:`complete_profile` to finish it.
        """
        self.state.auth_error = ""
        self.state.auth_notice = ""
        if not store_name.strip():
            self.state.auth_error = STORE_NAME_REQUIRED_MESSAGE
            self._emit()
            return False
        self._emit()

        try:
            result = await asyncio.to_thread(
                self.auth.sign_up, email.strip(), password
            )
        except BackendError as exc:
            logger.info("Sign-up failed for %s: %s", email, exc)
            self.state.auth_error = describe_auth_error(exc, "Kayıt")
            self._emit()
            return False
        await self._settle_auth_events()

        try:
            seller = await asyncio.to_thread(
                self.adapter.insert_seller,
                result.user_id,
                store_name.strip(),
                location.strip(),
            )
        except BackendError as exc:
            logger.error(
                "Account %s created but seller profile insert failed: %s",
                result.user_id,
                exc,
            )
            self._seller_generation += 1
            self.state.seller = None
            self.state.seller_loading = False
            self.state.auth_error = PROFILE_FAILED_MESSAGE
            self._emit()
            return False

        if result.session is None:
            self.state.auth_notice = CONFIRM_EMAIL_MESSAGE
            self._emit()
            return True

        self._seller_generation += 1
        self.state.session = result.session
        self.state.seller = seller
        self.state.seller_loading = False
        self.navigate(path_for(View.FIRM_PORTAL))
        return True

    async def complete_profile(self, store_name: str, location: str) -> bool:
        """Create the missing seller profile for the signed-in account."""
        session = self.state.session
        if session is None:
            self.state.auth_error = LOGIN_REQUIRED_MESSAGE
            self._emit()
            return False
        if not store_name.strip():
            self.state.auth_error = STORE_NAME_REQUIRED_MESSAGE
            self._emit()
            return False
        if not await self._ensure_fresh_session():
            self.state.auth_error = SESSION_EXPIRED_MESSAGE
            self._emit()
            return False

        try:
            seller = await asyncio.to_thread(
                self.adapter.insert_seller,
                session.user_id,
                store_name.strip(),
                location.strip(),
            )
        except BackendError as exc:
            logger.error(
                "Profile completion failed for %s: %s", session.user_id, exc
            )
            self.state.auth_error = (
                f"Mağaza profili kaydedilemedi: {exc.message}"
            )
            self._emit()
            return False

        self._seller_generation += 1
        self.state.seller = seller
        self.state.seller_loading = False
        self.state.auth_error = ""
        self.navigate(path_for(View.FIRM_PORTAL))
        return True

    async def sign_out(self) -> None:
        """End the session and go home."""
        try:
            await asyncio.to_thread(self.auth.sign_out)
        except BackendError as exc:
            logger.warning("Remote sign-out failed: %s", exc)
        self._seller_generation += 1
        self.state.session = None
        self.state.seller = None
        self.state.seller_loading = False
        self.state.auth_error = ""
        self.state.portal_error = ""
        self.navigate(path_for(View.HOME))

    # ── Catalog ──────────────────────────────────────────

    async def refresh_catalog(self) -> None:
        """Replace the snapshot with a fresh read of all active products.

        On failure the previous snapshot stays in place.
        """
        self._catalog_requests += 1
        self.state.catalog_loading = True
        self._emit()
        try:
            products = await asyncio.to_thread(
                self.adapter.fetch_active_products
            )
        except BackendError as exc:
            logger.error(
                "Catalog refresh failed, keeping %d products: %s",
                len(self.state.catalog),
                exc,
            )
        else:
            self.state.catalog = tuple(products)
        finally:
            self._catalog_requests -= 1
            self.state.catalog_loading = self._catalog_requests > 0
            self._emit()

    async def add_product(
        self,
        name: str,
        category: str,
        marketplace_price: float,
        gidersen_price: float,
        image_file: Path | None = None,
    ) -> bool:
        """Publish a listing for the signed-in seller.

        An image that fails to upload is dropped; the listing is still
        created.
        """
        seller = self.state.seller
        if seller is None:
            self.state.portal_error = LOGIN_REQUIRED_MESSAGE
            self._emit()
            return False
        self.state.portal_error = ""
        if not await self._ensure_fresh_session():
            return False

        image_path: str | None = None
        if image_file is not None:
            image_path = await asyncio.to_thread(
                self.adapter.upload_image, seller.id, Path(image_file)
            )

        try:
            product_id = await asyncio.to_thread(
                self.adapter.insert_product,
                seller.id,
                name,
                category,
                float(marketplace_price),
                float(gidersen_price),
                image_path,
            )
        except BackendError as exc:
            logger.error("Listing insert failed for %s: %s", seller.id, exc)
            self.state.portal_error = f"İlan yayınlanamadı: {exc.message}"
            self._emit()
            return False

        logger.info("Seller %s published product %s", seller.id, product_id)
        await self.refresh_catalog()
        self.navigate(path_for(View.FIRM_PORTAL))
        return True

    async def delete_product(self, product_id: str) -> bool:
        """Soft-delete a listing and drop it from the snapshot in place."""
        if self.state.seller is None:
            self.state.portal_error = LOGIN_REQUIRED_MESSAGE
            self._emit()
            return False
        self.state.portal_error = ""
        if not await self._ensure_fresh_session():
            return False

        try:
            await asyncio.to_thread(
                self.adapter.deactivate_product, product_id
            )
        except BackendError as exc:
            logger.error("Soft delete of %s failed: %s", product_id, exc)
            self.state.portal_error = f"İlan silinemedi: {exc.message}"
            self._emit()
            return False

        self.state.catalog = tuple(
            p for p in self.state.catalog if p.id != product_id
        )
        selected = self.state.selected_product
        if selected is not None and selected.id == product_id:
            self.state.selected_product = None
        self._emit()
        return True


def build_controller(path: str = "/") -> StateController:
    """Controller wired to the configured backend."""
    client = BackendClient()
    return StateController(CatalogAdapter(client), AuthService(client), path)
