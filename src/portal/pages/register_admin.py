"""Public application form for a new tenant administrator."""

import logging
from typing import Dict

from ...api.models import Role, Tenant, TenantStatus, User, UserStatus
from ..errors import AuthenticationError
from .base import BasePage, form_value, h
from .register import REGISTRATION_ERRORS

logger = logging.getLogger(__name__)


class RegisterAdminPage(BasePage):
    path = "/register-admin"
    title_key = "auth.register_admin"

    async def render(self, path: str) -> str:
        fields = [
            ("company", "text", "auth.company"),
            ("name", "text", "auth.name"),
            ("email", "email", "auth.email"),
            ("password", "password", "auth.password"),
            ("confirm_password", "password", "auth.confirm_password"),
        ]
        inputs = "".join(
            f'<div class="mb-3"><label for="{name}" class="form-label">{h(self.t(label))}</label>'
            f'<input type="{kind}" id="{name}" name="{name}" class="form-control" required></div>'
            for name, kind, label in fields
        )
        return f"""
<div class="container py-5"><div class="card p-4 shadow-sm mx-auto" style="max-width: 500px;">
  <h3 class="text-center mb-4">{h(self.t("auth.register_admin"))}</h3>
  <form id="registerAdminForm" method="post" action="/register-admin">
    {inputs}
    <p class="text-muted small">{h(self.t("auth.approval_note"))}</p>
    <button type="submit" class="btn btn-primary w-100">{h(self.t("auth.register"))}</button>
    <div class="text-center mt-3"><a href="/login">{h(self.t("common.back_to_login"))}</a></div>
  </form>
</div></div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        company = form_value(form, "company")
        name = form_value(form, "name")
        email = form_value(form, "email")
        password = form.get("password") or ""

        if not company or not email:
            shell.flash(shell.t("errors.invalid_input"))
            return "/register-admin"
        if password != (form.get("confirm_password") or ""):
            shell.flash(shell.t("errors.passwords_not_match"))
            return "/register-admin"

        try:
            account = await shell.auth.register_with_email(email, password, name)
        except AuthenticationError as e:
            logger.warning(f"Administrator application failed for {email}: {e.code}")
            shell.flash(shell.t(REGISTRATION_ERRORS.get(e.code, "errors.registration_failed")))
            return "/register-admin"

        tenant = Tenant(name=company, status=TenantStatus.pending)
        profile = dict(email=email, name=name, role=Role.admin,
                       status=UserStatus.pending_approval, tenant_id=tenant.id)
        if account.uid:
            profile["id"] = account.uid
        user = await shell.db.create_user(User(**profile))
        tenant.admin_user_id = user.id
        await shell.db.create_tenant(tenant)

        logger.info(f"Tenant application {tenant.id} ({company}) submitted by {email}")
        shell.flash(shell.t("messages.register_admin_success"), "success")
        return "/login"
