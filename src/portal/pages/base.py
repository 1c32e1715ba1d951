"""
Page object base class and markup helpers.

A page is built per navigation with a back-reference to the shell. The
router awaits render(path), injects the markup, then awaits init(); the
previous page's cleanup() runs once the new page is in place. Form posts
go to the class-level handle_submit(), which returns where to redirect.
"""

import html
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from ...api.models import Role, Session
from ..errors import NavigationError


def h(value: object) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def query_param(path: str, name: str) -> Optional[str]:
    values = parse_qs(urlsplit(path).query).get(name)
    return values[0] if values else None


def form_value(form: Dict[str, str], name: str) -> str:
    return (form.get(name) or "").strip()


def panel(title: str, message: str, link: Optional[Tuple[str, str]] = None, level: str = "danger") -> str:
    action = ""
    if link:
        href, label = link
        action = f'<a href="{h(href)}" class="btn btn-primary mt-3">{h(label)}</a>'
    return (
        '<div class="container mt-5"><div class="row justify-content-center"><div class="col-md-6">'
        f'<div class="alert alert-{level}"><h4 class="alert-heading">{h(title)}</h4>'
        f"<p>{h(message)}</p>{action}</div>"
        "</div></div></div>"
    )


def table(headers: Iterable[str], rows: Iterable[Iterable[str]], empty: str) -> str:
    """Render a table; cells are already-escaped markup."""
    body = "".join("<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows)
    if not body:
        return f'<p class="text-muted">{h(empty)}</p>'
    head = "".join(f"<th>{h(title)}</th>" for title in headers)
    return f'<table class="table table-sm"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'


class BasePage:
    path = "/"
    title_key = "app.name"
    allowed_roles: Optional[Tuple[Role, ...]] = None

    def __init__(self, shell):
        self.shell = shell

    @property
    def user(self) -> Optional[Session]:
        return self.shell.auth.current_user()

    @property
    def is_temp(self) -> bool:
        user = self.user
        return user is not None and user.is_temp

    def t(self, key: str, **params) -> str:
        return self.shell.t(key, **params)

    def can_view(self) -> bool:
        if self.allowed_roles is None:
            return True
        return self.shell.auth.has_role(*self.allowed_roles)

    def access_denied(self) -> str:
        return panel(self.t("common.error"), self.t("common.access_denied"), ("/dashboard", self.t("nav.dashboard")), "warning")

    def heading(self) -> str:
        return f'<h2 class="mb-4">{h(self.t(self.title_key))}</h2>'

    async def render(self, path: str) -> str:
        raise NotImplementedError

    async def init(self) -> None:
        pass

    def cleanup(self) -> None:
        pass

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        raise NavigationError(f"{cls.__name__} does not accept form submissions")
