"""Shell document rendering: header, role-based sidebar, flash messages, #content."""

import logging
import re
from typing import List, Optional, Tuple

from ..api.models import Role, Session
from .pages.base import h
from .shell import Shell

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")

# (path, label key, roles that see it; None = everyone signed in)
NAV_ITEMS: List[Tuple[str, str, Optional[Tuple[Role, ...]]]] = [
    ("/dashboard", "nav.dashboard", None),
    ("/users", "nav.users", (Role.admin,)),
    ("/goal-setting", "nav.goal_setting", (Role.evaluator, Role.worker)),
    ("/goal-approvals", "nav.goal_approvals", (Role.admin, Role.evaluator)),
    ("/evaluation-form", "nav.evaluation_form", None),
    ("/evaluations", "nav.evaluations", None),
    ("/settings", "nav.settings", (Role.admin,)),
    ("/developer", "nav.developer", (Role.developer,)),
]


def load_template(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def nav_items_for(user: Session) -> List[Tuple[str, str]]:
    return [(path, key) for path, key, roles in NAV_ITEMS if roles is None or user.has_role(*roles)]


def _chrome(shell: Shell, user: Session, current_route: str) -> str:
    links = "".join(
        f'<li class="nav-item"><a class="nav-link{" active" if path == current_route else ""}" href="{path}">'
        f"{h(shell.t(key))}</a></li>"
        for path, key in nav_items_for(user)
    )
    temp_badge = ' <span class="badge bg-warning text-dark">demo</span>' if user.is_temp else ""
    return f"""
<nav class="navbar navbar-dark bg-dark px-3">
  <a class="navbar-brand" href="/dashboard">{h(shell.t("app.name"))}</a>
  <span class="navbar-text">{h(user.display_name or user.email)} ({h(shell.t("roles." + user.role.value))}){temp_badge}</span>
  <form method="post" action="/logout" class="d-inline"><button class="btn btn-sm btn-outline-light">{h(shell.t("auth.logout"))}</button></form>
</nav>
<aside class="position-fixed bg-light border-end" style="width: 220px; top: 56px; bottom: 0;">
  <ul class="nav flex-column p-2">{links}</ul>
</aside>"""


def _flashes(shell: Shell) -> str:
    return "".join(
        f'<div class="alert alert-{h(item.get("level", "info"))} alert-dismissible" role="alert">{h(item.get("message", ""))}'
        '<button type="button" class="btn-close" data-bs-dismiss="alert"></button></div>'
        for item in shell.pop_flashes()
    )


def render_document(shell: Shell, template: str, current_route: str) -> str:
    user = shell.chrome_user
    values = {
        "lang": shell.i18n.language,
        "title": h(shell.t("app.name")),
        "chrome": _chrome(shell, user, current_route) if user else "",
        "main_class": "p-4" if user else "",
        "main_style": "margin-left: 220px;" if user else "",
        "flashes": _flashes(shell),
        "content": shell.container.render(),
    }
    # single pass, so substituted markup is never scanned for placeholders
    return PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
