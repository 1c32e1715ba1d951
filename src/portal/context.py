"""Process-wide application context, built once by the entry point."""

import logging
from dataclasses import dataclass

from ..api import config
from ..api.sqlite_service import SQLiteService, get_db_service
from .environment import Environment
from .i18n import I18n
from .identity import IdentityService
from .layout import load_template
from .storage import JsonFileStorage, LocalStorage

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a shell, router or page needs that outlives one request.

    Passed explicitly to every component instead of living in globals, so
    tests can build one around a temporary database and fake transports.
    """
    env: Environment
    db: SQLiteService
    identity: IdentityService
    i18n: I18n
    force_temp_auth: bool = False
    invitation_ttl_days: int = 7
    public_url: str = ""
    client_storage_dir: str = "."
    shell_template: str = ""

    def storage_for(self, client_id: str) -> LocalStorage:
        return JsonFileStorage.for_client(self.client_storage_dir, client_id)


def build_context() -> AppContext:
    env = Environment.from_settings(
        config.PUBLIC_URL,
        config.CONFIG_ORIGIN,
        config.SHELL_HTML_PATH,
        timeout=config.CONFIG_FETCH_TIMEOUT,
    )
    identity = IdentityService(env, config.IDENTITY_BASE_URL, timeout=config.IDENTITY_TIMEOUT_SECONDS)
    context = AppContext(
        env=env,
        db=get_db_service(),
        identity=identity,
        i18n=I18n(config.UI_LANGUAGE),
        force_temp_auth=config.FORCE_TEMP_AUTH,
        invitation_ttl_days=config.INVITATION_TTL_DAYS,
        public_url=config.PUBLIC_URL.rstrip("/"),
        client_storage_dir=config.CLIENT_STORAGE_DIR,
        shell_template=load_template(config.SHELL_HTML_PATH),
    )
    if context.force_temp_auth:
        logger.warning("FORCE_TEMP_AUTH is set: all logins use the demo account table")
    return context
