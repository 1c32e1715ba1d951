"""
Client-side router.

==============================================================================
NAVIGATION FLOW:
==============================================================================

navigate(path)
  -> route table lookup (query string ignored; unmatched -> /login, nothing pushed)
  -> push history (when asked and the location changes)
  -> load_page(page_id, require_auth)
       -> auth gate: unauthenticated -> /login, page never built
       -> take a generation token from the shell
       -> build page from PAGE_REGISTRY, await render(path)
       -> stale token? discard the markup
       -> inject markup, await init(), cleanup() the previous page

Render failures never propagate: they become an inline error panel with a
reload button.
==============================================================================
"""

import logging
from typing import Awaitable, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from ..api.models import Session
from .errors import NavigationError
from .pages.base import h
from .pages.registry import PAGE_REGISTRY, PageFactory, PageId
from .shell import Shell

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"

# path -> (page, requires authentication)
ROUTES: Dict[str, Tuple[PageId, bool]] = {
    "/login": (PageId.login, False),
    "/register": (PageId.register, False),
    "/register-admin": (PageId.register_admin, False),
    "/dashboard": (PageId.dashboard, True),
    "/users": (PageId.users, True),
    "/goal-setting": (PageId.goal_setting, True),
    "/goal-approvals": (PageId.goal_approvals, True),
    "/evaluation-form": (PageId.evaluation_form, True),
    "/evaluations": (PageId.evaluations, True),
    "/settings": (PageId.settings, True),
    "/developer": (PageId.developer, True),
}


def route_of(path: str) -> str:
    return urlsplit(path).path or "/"


class Router:
    def __init__(
        self,
        shell: Shell,
        is_authenticated: Optional[Callable[[], bool]] = None,
        registry: Optional[Mapping[PageId, PageFactory]] = None,
    ):
        self.shell = shell
        self._is_authenticated = is_authenticated or shell.auth.is_authenticated
        self._registry = registry if registry is not None else PAGE_REGISTRY
        self._routes: Dict[str, Callable[[], Awaitable[None]]] = {}
        self._current_path = shell.location
        self._initialized = False

    def initialize(self) -> None:
        self._routes = {"/": lambda: self._redirect(LOGIN_PATH)}
        for path, (page_id, require_auth) in ROUTES.items():
            self._routes[path] = self._loader(page_id, require_auth)
        self.shell.history.add_listener(self._on_popstate)
        self._initialized = True
        logger.debug(f"Router initialized with {len(self._routes)} routes")

    def _loader(self, page_id: PageId, require_auth: bool) -> Callable[[], Awaitable[None]]:
        return lambda: self.load_page(page_id, require_auth)

    @property
    def current_path(self) -> str:
        return self._current_path

    @property
    def current_route(self) -> str:
        return route_of(self._current_path)

    @staticmethod
    def requires_auth(path: str) -> bool:
        entry = ROUTES.get(route_of(path))
        return bool(entry and entry[1])

    async def _on_popstate(self, path: str) -> None:
        await self.navigate(path, push_history=False)

    async def _redirect(self, path: str) -> None:
        self.shell.history.replace_state(path)
        await self.navigate(path, push_history=False)

    async def navigate(self, path: str, push_history: bool = True) -> None:
        if not self._initialized:
            logger.warning(f"navigate({path!r}) called before initialize(); ignored")
            return

        path = path or "/"
        handler = self._routes.get(route_of(path))
        if handler is None:
            logger.warning(f"No route for {path}, redirecting to {LOGIN_PATH}")
            await self._redirect(LOGIN_PATH)
            return

        if push_history and path != self.shell.history.location:
            self.shell.history.push_state(path)

        self._current_path = path
        await handler()

    async def load_page(self, page_id: PageId, require_auth: bool = False) -> None:
        if require_auth and not self._is_authenticated():
            logger.info(f"{page_id.value} requires authentication, redirecting to {LOGIN_PATH}")
            await self._redirect(LOGIN_PATH)
            return

        shell = self.shell
        token = shell.next_generation()
        path = self._current_path
        previous = shell.current_page
        try:
            shell.container.show_loading(shell.t("common.loading"))
            factory = self._registry.get(page_id)
            if factory is None:
                raise NavigationError(f"no page registered for '{page_id.value}'")
            page = factory(shell)
            markup = await page.render(path)
            if not shell.is_current(token):
                logger.info(f"Discarding stale render of {page_id.value} ({path})")
                return

            shell.container.set_html(markup)
            await page.init()
            if not shell.is_current(token):
                return
            if previous is not None:
                previous.cleanup()
            shell.current_page = page
            shell.chrome_user = self._chrome_user(require_auth)
        except Exception as e:
            logger.error(f"Failed to load page {page_id.value} ({path}): {e}", exc_info=True)
            if shell.is_current(token):
                shell.container.set_html(self._error_panel(page_id))
                shell.current_page = None
                shell.chrome_user = None

    def _chrome_user(self, require_auth: bool) -> Optional[Session]:
        # header and sidebar only accompany authenticated pages
        if not require_auth:
            return None
        return self.shell.auth.current_user()

    def _error_panel(self, page_id: PageId) -> str:
        t = self.shell.t
        return (
            '<div class="container mt-5"><div class="alert alert-danger">'
            f'<h4 class="alert-heading">{h(t("errors.page_load_title"))}</h4>'
            f'<p>{h(t("errors.page_load_failed", page=page_id.value))}</p>'
            f'<button type="button" class="btn btn-outline-danger" onclick="location.reload()">{h(t("common.reload"))}</button>'
            "</div></div>"
        )
