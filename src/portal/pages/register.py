"""Registration for invited users (/register?token=...)."""

import logging
from typing import Dict, Optional
from urllib.parse import quote

from ...api.models import Invitation, User, UserStatus
from ..errors import AuthenticationError, NotFoundError
from .base import BasePage, form_value, h, panel, query_param

logger = logging.getLogger(__name__)

SUBMIT_CONTROL = "register-submit"

# Only these identity errors get a specific message
REGISTRATION_ERRORS = {
    "auth/email-already-in-use": "errors.email_already_in_use",
    "auth/weak-password": "errors.weak_password",
    "auth/invalid-email": "errors.invalid_email",
}

PASSWORD_MATCH_SCRIPT = """
(function () {
  var password = document.getElementById('password');
  var confirm = document.getElementById('confirmPassword');
  var result = document.getElementById('passwordMatch');
  if (!password || !confirm || !result) return;
  function check() {
    if (!confirm.value) { result.textContent = ''; return; }
    var ok = password.value === confirm.value;
    result.className = 'mt-1 small ' + (ok ? 'text-success' : 'text-danger');
    result.textContent = ok ? %(match)s : %(mismatch)s;
  }
  password.addEventListener('input', check);
  confirm.addEventListener('input', check);
})();
"""


class RegisterPage(BasePage):
    path = "/register"
    title_key = "auth.register_user"

    def __init__(self, shell):
        super().__init__(shell)
        self.token: Optional[str] = None
        self.invitation: Optional[Invitation] = None

    async def render(self, path: str) -> str:
        self.token = query_param(path, "token")
        if not self.token:
            return self._error(self.t("errors.invitation_missing"), self.t("auth.invalid_access"))

        try:
            invitation = await self.shell.db.get_invitation(self.token)
        except NotFoundError as e:
            logger.info(f"Registration with unusable invitation: {e}")
            return self._error(self.t("errors.invitation_invalid"), self.t("auth.invitation_error"))
        if not invitation.is_usable:
            return self._error(self.t("errors.invitation_invalid"), self.t("auth.invitation_error"))

        self.invitation = invitation
        return self._form(invitation)

    async def init(self) -> None:
        if self.invitation is None:
            return
        # password confirmation runs in the browser only
        self.shell.container.append_script(PASSWORD_MATCH_SCRIPT % {
            "match": _js_string(self.t("errors.passwords_match")),
            "mismatch": _js_string(self.t("errors.passwords_not_match")),
        })

    def _error(self, message: str, title: str) -> str:
        return panel(title, message, ("/login", self.t("common.back_to_login")))

    def _form(self, invitation: Invitation) -> str:
        disabled = " disabled" if self.shell.is_disabled(SUBMIT_CONTROL) else ""
        company = ""
        if invitation.company_name:
            company = f'<p class="mb-1">{h(self.t("auth.invited_company"))}: <strong>{h(invitation.company_name)}</strong></p>'
        return f"""
<div class="container py-5"><div class="card p-4 shadow-sm mx-auto" style="max-width: 500px;">
  <h3 class="text-center mb-4">{h(self.t("auth.register_user"))}</h3>
  <div class="alert alert-info">
    {company}
    <p class="mb-0">{h(self.t("auth.invited_role"))}: <span class="fw-bold">{h(self.t("roles." + invitation.role.value))}</span></p>
  </div>
  <form id="registerForm" method="post" action="/register" novalidate>
    <input type="hidden" name="token" value="{h(invitation.token)}">
    <div class="mb-3">
      <label for="name" class="form-label">{h(self.t("auth.name"))}</label>
      <input type="text" id="name" name="name" class="form-control" required>
    </div>
    <div class="mb-3">
      <label for="email" class="form-label">{h(self.t("auth.email"))}</label>
      <input type="email" id="email" class="form-control" value="{h(invitation.email)}" readonly>
    </div>
    <div class="row">
      <div class="col-md-6 mb-3">
        <label for="password" class="form-label">{h(self.t("auth.password"))}</label>
        <input type="password" id="password" name="password" class="form-control" required minlength="6">
      </div>
      <div class="col-md-6 mb-3">
        <label for="confirmPassword" class="form-label">{h(self.t("auth.confirm_password"))}</label>
        <input type="password" id="confirmPassword" name="confirm_password" class="form-control" required>
        <div id="passwordMatch" class="mt-1 small"></div>
      </div>
    </div>
    <p class="text-muted small">{h(self.t("auth.approval_note"))}</p>
    <button type="submit" id="{SUBMIT_CONTROL}" class="btn btn-primary w-100 btn-lg"{disabled}>{h(self.t("auth.register"))}</button>
    <div class="text-center mt-3"><a href="/login">{h(self.t("common.back_to_login"))}</a></div>
  </form>
</div></div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        token = form_value(form, "token")
        name = form_value(form, "name")
        password = form.get("password") or ""
        back = f"/register?token={quote(token)}"

        if password != (form.get("confirm_password") or ""):
            shell.flash(shell.t("errors.passwords_not_match"))
            return back

        if shell.is_disabled(SUBMIT_CONTROL):
            shell.flash(shell.t("errors.request_in_progress"), "warning")
            return back

        try:
            invitation = await shell.db.get_invitation(token)
        except NotFoundError:
            shell.flash(shell.t("errors.invitation_invalid"))
            return back

        shell.disable_control(SUBMIT_CONTROL)
        try:
            account = await shell.auth.register_with_email(invitation.email, password, name)
            profile = dict(
                email=invitation.email,
                name=name,
                role=invitation.role,
                status=UserStatus.pending_approval,
                tenant_id=invitation.tenant_id,
                evaluator_id=invitation.evaluator_id,
                job_type_id=invitation.job_type_id,
            )
            # the profile is keyed by the identity-service uid
            if account.uid:
                profile["id"] = account.uid
            user = User(**profile)
            # the invitation is spent before the profile exists
            await shell.db.mark_invitation_used(invitation.token, user.id)
            await shell.db.create_user(user)
        except AuthenticationError as e:
            logger.warning(f"Registration failed for {invitation.email}: {e.code}")
            shell.flash(shell.t(REGISTRATION_ERRORS.get(e.code, "errors.registration_failed")))
            return back
        except NotFoundError:
            shell.flash(shell.t("errors.invitation_invalid"))
            return back
        finally:
            shell.enable_control(SUBMIT_CONTROL)

        logger.info(f"User {user.email} registered from invitation {invitation.id}")
        shell.flash(shell.t("messages.register_user_success"), "success")
        return "/login"


def _js_string(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
