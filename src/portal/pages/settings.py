import logging
from typing import Dict

from pydantic import ValidationError

from ...api.models import EvaluationPeriod, JobType, PeriodStatus, Role
from ..temp_auth import TempAuth
from .base import BasePage, form_value, h, table

logger = logging.getLogger(__name__)


class SettingsPage(BasePage):
    """Job types and evaluation periods of the tenant."""
    path = "/settings"
    title_key = "nav.settings"
    allowed_roles = (Role.admin,)

    async def render(self, path: str) -> str:
        if not self.can_view():
            return self.access_denied()
        user = self.user
        if user.is_temp:
            job_types = TempAuth.get_mock_job_types()
            periods = TempAuth.get_mock_evaluation_periods()
        else:
            job_types = await self.shell.db.list_job_types(user.tenant_id)
            periods = await self.shell.db.list_periods(user.tenant_id)

        job_rows = [(h(j.name),) for j in job_types]
        period_rows = [(h(p.name), h(p.start_date), h(p.end_date), h(p.status.value)) for p in periods]
        status_options = "".join(f'<option value="{s.value}">{s.value}</option>' for s in PeriodStatus)
        return f"""
<div class="container-fluid">{self.heading()}
  <h5>{h(self.t("settings.job_types"))}</h5>
  {table([self.t("settings.job_types")], job_rows, self.t("common.none"))}
  <form method="post" action="/settings" class="row g-2 mb-4">
    <input type="hidden" name="action" value="job_type">
    <div class="col-md-6"><input type="text" name="name" class="form-control" required></div>
    <div class="col-auto"><button class="btn btn-primary">{h(self.t("settings.add"))}</button></div>
  </form>
  <h5>{h(self.t("settings.periods"))}</h5>
  {table([self.t("settings.periods"), "", "", ""], period_rows, self.t("common.none"))}
  <form method="post" action="/settings" class="row g-2">
    <input type="hidden" name="action" value="period">
    <div class="col-md-3"><input type="text" name="name" class="form-control" required></div>
    <div class="col-md-3"><input type="date" name="start_date" class="form-control" required></div>
    <div class="col-md-3"><input type="date" name="end_date" class="form-control" required></div>
    <div class="col-md-2"><select name="status" class="form-select">{status_options}</select></div>
    <div class="col-auto"><button class="btn btn-primary">{h(self.t("settings.add"))}</button></div>
  </form>
</div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        user = shell.auth.current_user()
        if user is None or not user.has_role(*cls.allowed_roles) or user.is_temp:
            shell.flash(shell.t("common.access_denied"))
            return "/settings"

        action = form_value(form, "action")
        try:
            if action == "job_type":
                await shell.db.create_job_type(JobType(tenant_id=user.tenant_id, name=form_value(form, "name")))
            elif action == "period":
                await shell.db.create_period(EvaluationPeriod(
                    tenant_id=user.tenant_id,
                    name=form_value(form, "name"),
                    start_date=form_value(form, "start_date"),
                    end_date=form_value(form, "end_date"),
                    status=PeriodStatus(form_value(form, "status") or PeriodStatus.planned.value),
                ))
            else:
                raise ValueError(f"unknown settings action '{action}'")
        except (ValueError, ValidationError) as e:
            logger.info(f"Rejected settings change from {user.email}: {e}")
            shell.flash(shell.t("errors.invalid_input"))
            return "/settings"
        shell.flash(shell.t("messages.saved"), "success")
        return "/settings"
