import logging
from typing import Dict

from ...api.models import Role, TenantStatus
from ..errors import NotFoundError
from .base import BasePage, form_value, h, table

logger = logging.getLogger(__name__)


class DeveloperPage(BasePage):
    """Cross-tenant administration: tenant list and pending administrator approval."""
    path = "/developer"
    title_key = "nav.developer"
    allowed_roles = (Role.developer,)

    async def render(self, path: str) -> str:
        if not self.can_view():
            return self.access_denied()
        tenants = await self.shell.db.list_tenants()
        pending_rows = []
        tenant_rows = []
        for tenant in tenants:
            if tenant.status == TenantStatus.pending:
                admin = await self.shell.db.get_user(tenant.admin_user_id) if tenant.admin_user_id else None
                pending_rows.append((
                    h(tenant.name),
                    h(admin.email if admin else ""),
                    f'<form method="post" action="/developer" class="d-inline">'
                    f'<input type="hidden" name="tenant_id" value="{h(tenant.id)}">'
                    f'<button class="btn btn-sm btn-success">{h(self.t("common.approve"))}</button></form>',
                ))
            else:
                tenant_rows.append((h(tenant.name), h(tenant.status.value), h(tenant.created_at[:10])))
        return f"""
<div class="container-fluid">{self.heading()}
  <h5>{h(self.t("developer.pending_admins"))}</h5>
  {table([self.t("auth.company"), self.t("auth.email"), ""], pending_rows, self.t("common.none"))}
  <h5 class="mt-4">{h(self.t("developer.tenants"))}</h5>
  {table([self.t("auth.company"), "", ""], tenant_rows, self.t("common.none"))}
</div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        if not shell.auth.has_role(Role.developer):
            shell.flash(shell.t("common.access_denied"))
            return "/developer"
        try:
            await shell.db.approve_tenant(form_value(form, "tenant_id"))
        except NotFoundError as e:
            logger.warning(f"Tenant approval failed: {e}")
            shell.flash(shell.t("errors.invalid_input"))
            return "/developer"
        shell.flash(shell.t("messages.approved"), "success")
        return "/developer"
