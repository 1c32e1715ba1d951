import logging
from typing import Dict

from ..auth import auth_error_message
from ..errors import AuthenticationError
from ..temp_auth import TempAuth
from .base import BasePage, form_value, h, table

logger = logging.getLogger(__name__)


class LoginPage(BasePage):
    path = "/login"
    title_key = "auth.login"

    def _show_demo_accounts(self) -> bool:
        return self.shell.context.force_temp_auth or self.shell.env.is_development()

    async def render(self, path: str) -> str:
        demo = ""
        if self._show_demo_accounts():
            rows = [
                (h(c["email"]), h(c["password"]), h(self.t("roles." + c["role"])))
                for c in TempAuth.get_demo_credentials()
            ]
            demo = (
                f'<div class="mt-4"><h6>{h(self.t("auth.demo_accounts"))}</h6>'
                + table([self.t("auth.email"), self.t("auth.password"), self.t("auth.invited_role")], rows, "")
                + "</div>"
            )
        return f"""
<div class="container py-5"><div class="card p-4 shadow-sm mx-auto" style="max-width: 420px;">
  <h3 class="text-center mb-4">{h(self.t("app.name"))}</h3>
  <form id="loginForm" method="post" action="/login">
    <div class="mb-3">
      <label for="email" class="form-label">{h(self.t("auth.email"))}</label>
      <input type="email" id="email" name="email" class="form-control" required autocomplete="username">
    </div>
    <div class="mb-3">
      <label for="password" class="form-label">{h(self.t("auth.password"))}</label>
      <input type="password" id="password" name="password" class="form-control" required autocomplete="current-password">
    </div>
    <button type="submit" class="btn btn-primary w-100">{h(self.t("auth.login"))}</button>
  </form>
  <div class="text-center mt-3"><a href="/register-admin">{h(self.t("auth.register_admin"))}</a></div>
  {demo}
</div></div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        email = form_value(form, "email")
        password = form.get("password") or ""
        try:
            session = await shell.auth.login(email, password)
        except AuthenticationError as e:
            logger.info(f"Login failed for {email}: {e.code}")
            default_key = "errors.temp_auth_failed" if shell.auth.force_temp_auth else "errors.login_failed"
            shell.flash(auth_error_message(shell.i18n, e.code, default_key))
            return "/login"
        logger.info(f"Logged in {session.email} (temporary={session.is_temp})")
        return "/dashboard"
