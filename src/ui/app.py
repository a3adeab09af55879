# src/ui/app.py

"""Terminal storefront for gidersen.com."""

import asyncio
import logging
from collections.abc import Callable

from textual.app import App
from textual.binding import Binding
from textual.worker import Worker, WorkerState

from src.config.settings import Settings
from src.services.app_state import AppState, StateController, build_controller
from src.services.routes import classify_path
from src.services.slogans import fetch_slogans
from src.ui.screens import PageScreen, build_screen
from src.ui.widgets import RotatingSlogan

logger = logging.getLogger("gidersen.ui")


class GidersenApp(App[None]):
    """Terminal storefront for gidersen.com."""

    CSS_PATH = "styles.css"
    TITLE = "gidersen.com"
    SUB_TITLE = "Gidersen Daha Ucuz"

    BINDINGS = [
        Binding("q", "quit", "Çıkış"),
        Binding("h", "go('/')", "Ana Sayfa"),
        Binding("p", "go('/products')", "Ürünler"),
        Binding("w", "go('/how-it-works')", "Nasıl Çalışır?"),
        Binding("f", "go('/firm')", "Mağaza"),
        Binding("m", "toggle_menu", "Menü"),
        Binding("r", "refresh_catalog", "Yenile"),
    ]

    def __init__(
        self,
        controller: StateController | None = None,
        initial_path: str | None = None,
        slogan_loader: Callable[[], list[str]] | None = None,
    ) -> None:
        super().__init__()
        self.controller = controller or build_controller(initial_path or "/")
        if controller is not None and initial_path is not None:
            self.controller.state.path = initial_path
        self.slogan_loader = slogan_loader or fetch_slogans
        self.slogans: list[str] = list(Settings.DEFAULT_SLOGANS)
        self._shown_path: str | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def on_mount(self) -> None:
        self._unsubscribe = self.controller.subscribe(self._on_state_change)
        # Normalises the start path and shows the first page
        self.controller.navigate(self.controller.state.path)
        self.run_worker(
            self.controller.initialize_session(),
            name="initialize_session",
            group="session",
            exit_on_error=False,
        )
        self.run_worker(
            self._load_slogans(),
            name="load_slogans",
            group="slogans",
            exit_on_error=False,
        )

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.controller.close()

    # ── State → screens ──────────────────────────────────

    def _on_state_change(self, state: AppState) -> None:
        if state.path != self._shown_path:
            self._show_path(state.path)
            return
        screen = self.screen
        if isinstance(screen, PageScreen):
            screen.render_state(state)

    def _show_path(self, path: str) -> None:
        screen = build_screen(
            classify_path(path), self.controller, self.slogans
        )
        self._shown_path = path
        logger.info("Showing %s (%s)", path, type(screen).__name__)
        # The default screen stays at the bottom of the stack
        if len(self.screen_stack) > 1:
            self.switch_screen(screen)
        else:
            self.push_screen(screen)

    async def _load_slogans(self) -> None:
        slogans = await asyncio.to_thread(self.slogan_loader)
        # Home screens built later read the same list
        self.slogans[:] = slogans
        for widget in self.screen.query(RotatingSlogan):
            widget.set_items(self.slogans)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.ERROR:
            logger.error(
                "Task %s failed",
                event.worker.name,
                exc_info=event.worker.error,
            )
            self.notify("Beklenmeyen bir hata oluştu.", severity="error")

    # ── Actions ──────────────────────────────────────────

    def action_go(self, path: str) -> None:
        self.controller.navigate(path)

    def action_toggle_menu(self) -> None:
        self.controller.toggle_menu()

    def action_refresh_catalog(self) -> None:
        screen = self.screen
        if isinstance(screen, PageScreen):
            screen.refresh_catalog()
        self.notify("Ürünler yenileniyor...")
