"""
Per-client application shell.

A Shell holds what the browser held for the single-page app: the location
history, the #content container the router renders into, client storage,
and the auth state. One is built per request from the client's storage, or
directly in tests.
"""

import html
import json
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional

from ..api.models import Session
from .auth import AuthService
from .storage import LocalStorage

logger = logging.getLogger(__name__)

FLASH_KEY = "flash_messages"
DISABLED_CONTROLS_KEY = "disabled_controls"

# a control left disabled by a request that never finished is released after this
DISABLED_CONTROL_TTL_SECONDS = 60.0

PopStateListener = Callable[[str], Awaitable[None]]


class History:
    """Location history with push/replace and popstate notification."""

    def __init__(self, initial: str = "/"):
        self.entries: List[str] = [initial]
        self.index = 0
        self._listeners: List[PopStateListener] = []

    @property
    def location(self) -> str:
        return self.entries[self.index]

    def push_state(self, path: str) -> None:
        # pushing drops any forward entries
        del self.entries[self.index + 1:]
        self.entries.append(path)
        self.index += 1

    def replace_state(self, path: str) -> None:
        self.entries[self.index] = path

    def add_listener(self, listener: PopStateListener) -> None:
        self._listeners.append(listener)

    async def go(self, delta: int) -> None:
        target = self.index + delta
        if delta == 0 or not 0 <= target < len(self.entries):
            return
        self.index = target
        for listener in list(self._listeners):
            await listener(self.location)

    async def back(self) -> None:
        await self.go(-1)

    async def forward(self) -> None:
        await self.go(1)


class ContentContainer:
    """The single region pages render into."""

    def __init__(self):
        self.html = ""
        self.scripts: List[str] = []

    def set_html(self, markup: str) -> None:
        self.html = markup
        self.scripts = []

    def append_script(self, source: str) -> None:
        self.scripts.append(source)

    def show_loading(self, text: str) -> None:
        self.set_html(
            '<div class="d-flex justify-content-center p-5">'
            f'<div class="spinner-border" role="status"><span class="visually-hidden">{html.escape(text)}</span></div>'
            "</div>"
        )

    def render(self) -> str:
        return self.html + "".join(f"<script>{source}</script>" for source in self.scripts)


class Shell:
    def __init__(self, context, storage: LocalStorage, initial_path: str = "/"):
        self.context = context
        self.storage = storage
        self.auth = AuthService(context, storage)
        self.history = History(initial_path)
        self.container = ContentContainer()
        self.generation = 0
        self.current_page = None
        self.chrome_user: Optional[Session] = None

    # ===== Shortcuts =====

    @property
    def db(self):
        return self.context.db

    @property
    def env(self):
        return self.context.env

    @property
    def i18n(self):
        return self.context.i18n

    def t(self, key: str, **params) -> str:
        return self.context.i18n.t(key, **params)

    @property
    def location(self) -> str:
        return self.history.location

    # ===== Navigation generations =====

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation

    # ===== Form controls =====
    # Kept in client storage so every request of the same client sees them,
    # e.g. a second submit while the first one is still running.

    def disable_control(self, control_id: str) -> None:
        controls = self._read_disabled()
        controls[control_id] = time.time()
        self.storage.set_item(DISABLED_CONTROLS_KEY, json.dumps(controls))

    def enable_control(self, control_id: str) -> None:
        controls = self._read_disabled()
        controls.pop(control_id, None)
        if controls:
            self.storage.set_item(DISABLED_CONTROLS_KEY, json.dumps(controls))
        else:
            self.storage.remove_item(DISABLED_CONTROLS_KEY)

    def is_disabled(self, control_id: str) -> bool:
        return control_id in self._read_disabled()

    def _read_disabled(self) -> Dict[str, float]:
        raw = self.storage.get_item(DISABLED_CONTROLS_KEY)
        if not raw:
            return {}
        try:
            controls = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable disabled controls")
            return {}
        if not isinstance(controls, dict):
            return {}
        cutoff = time.time() - DISABLED_CONTROL_TTL_SECONDS
        return {
            control: since for control, since in controls.items()
            if isinstance(since, (int, float)) and since >= cutoff
        }

    # ===== Flash messages =====

    def flash(self, message: str, level: str = "danger") -> None:
        messages = self._read_flashes()
        messages.append({"level": level, "message": message})
        self.storage.set_item(FLASH_KEY, json.dumps(messages, ensure_ascii=False))

    def pop_flashes(self) -> List[Dict[str, str]]:
        messages = self._read_flashes()
        if messages:
            self.storage.remove_item(FLASH_KEY)
        return messages

    def _read_flashes(self) -> List[Dict[str, str]]:
        raw = self.storage.get_item(FLASH_KEY)
        if not raw:
            return []
        try:
            messages = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable flash messages")
            return []
        return messages if isinstance(messages, list) else []
