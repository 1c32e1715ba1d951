"""Tenant user administration: approvals and invitations."""

import logging
from typing import Dict

from ...api.models import Invitation, Role, UserStatus
from ..errors import NotFoundError
from ..temp_auth import TempAuth
from .base import BasePage, form_value, h, table

logger = logging.getLogger(__name__)

INVITABLE_ROLES = (Role.evaluator, Role.worker)


class UserManagementPage(BasePage):
    path = "/users"
    title_key = "nav.users"
    allowed_roles = (Role.admin,)

    async def render(self, path: str) -> str:
        if not self.can_view():
            return self.access_denied()

        user = self.user
        if user.is_temp:
            users = TempAuth.get_mock_users()
            invitations = TempAuth.get_mock_invitations()
        else:
            users = await self.shell.db.list_users(tenant_id=user.tenant_id)
            invitations = await self.shell.db.list_invitations(user.tenant_id)

        pending = [u for u in users if u.status == UserStatus.pending_approval]
        pending_rows = [
            (h(u.name), h(u.email), h(self.t("roles." + u.role.value)),
             f'<form method="post" action="/users" class="d-inline">'
             f'<input type="hidden" name="action" value="approve"><input type="hidden" name="user_id" value="{h(u.id)}">'
             f'<button class="btn btn-sm btn-success">{h(self.t("common.approve"))}</button></form>')
            for u in pending
        ]
        user_rows = [
            (h(u.name), h(u.email), h(self.t("roles." + u.role.value)), h(u.status.value))
            for u in users if u.status != UserStatus.pending_approval
        ]
        invitation_rows = [
            (h(i.email), h(self.t("roles." + i.role.value)), h((i.expires_at or "")[:10]), "✓" if i.used else "")
            for i in invitations
        ]
        evaluators = [u for u in users if u.role in (Role.admin, Role.evaluator) and u.status == UserStatus.active]
        evaluator_options = '<option value=""></option>' + "".join(
            f'<option value="{h(u.id)}">{h(u.name or u.email)}</option>' for u in evaluators
        )
        role_options = "".join(
            f'<option value="{r.value}">{h(self.t("roles." + r.value))}</option>' for r in INVITABLE_ROLES
        )
        columns = [self.t("auth.name"), self.t("auth.email"), self.t("auth.invited_role")]
        return f"""
<div class="container-fluid">{self.heading()}
  <h5>{h(self.t("users.pending"))}</h5>
  {table(columns + [""], pending_rows, self.t("common.none"))}
  <h5 class="mt-4">{h(self.t("nav.users"))}</h5>
  {table(columns + [""], user_rows, self.t("common.none"))}
  <h5 class="mt-4">{h(self.t("users.invite"))}</h5>
  <form method="post" action="/users" class="row g-2 mb-3">
    <input type="hidden" name="action" value="invite">
    <div class="col-md-4"><input type="email" name="email" class="form-control" placeholder="{h(self.t("auth.email"))}" required></div>
    <div class="col-md-2"><select name="role" class="form-select">{role_options}</select></div>
    <div class="col-md-3"><select name="evaluator_id" class="form-select">{evaluator_options}</select></div>
    <div class="col-md-3"><button class="btn btn-primary">{h(self.t("users.invite"))}</button></div>
  </form>
  {table([self.t("auth.email"), self.t("auth.invited_role"), "", ""], invitation_rows, self.t("common.none"))}
</div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        user = shell.auth.current_user()
        if user is None or not user.has_role(Role.admin):
            shell.flash(shell.t("common.access_denied"))
            return "/users"
        if user.is_temp:
            # demo sessions only see mock data
            shell.flash(shell.t("messages.saved"), "success")
            return "/users"

        action = form_value(form, "action")
        if action == "approve":
            try:
                approved = await shell.db.set_user_status(form_value(form, "user_id"), UserStatus.active)
            except NotFoundError as e:
                logger.warning(f"Approval failed: {e}")
                shell.flash(shell.t("errors.invalid_input"))
                return "/users"
            logger.info(f"User {approved.email} approved by {user.email}")
            shell.flash(shell.t("messages.approved"), "success")
        elif action == "invite":
            try:
                role = Role(form_value(form, "role") or Role.worker.value)
            except ValueError:
                role = None
            if role not in INVITABLE_ROLES:
                shell.flash(shell.t("errors.invalid_input"))
                return "/users"
            tenant = await shell.db.get_tenant(user.tenant_id) if user.tenant_id else None
            invitation = Invitation.expiring_in(
                shell.context.invitation_ttl_days,
                email=form_value(form, "email"),
                role=role,
                tenant_id=user.tenant_id,
                company_name=tenant.name if tenant else "",
                evaluator_id=form_value(form, "evaluator_id") or None,
                created_by=user.uid,
            )
            await shell.db.create_invitation(invitation)
            link = f"{shell.context.public_url}/register?token={invitation.token}"
            logger.info(f"Invitation {invitation.id} created for {invitation.email}")
            shell.flash(shell.t("messages.invitation_created", link=link), "success")
        else:
            shell.flash(shell.t("errors.invalid_input"))
        return "/users"
