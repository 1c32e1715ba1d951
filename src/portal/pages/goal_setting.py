import logging
from typing import Dict, List

from pydantic import ValidationError

from ...api.models import GoalItem, GoalStatus, QualitativeGoal
from .base import BasePage, form_value, h

logger = logging.getLogger(__name__)

MAX_GOALS = 5


class GoalSettingPage(BasePage):
    path = "/goal-setting"
    title_key = "goals.title"

    async def render(self, path: str) -> str:
        user = self.user
        current = None
        if not user.is_temp:
            period = await self.shell.db.get_active_period(user.tenant_id) if user.tenant_id else None
            goals = await self.shell.db.list_goals(user_id=user.uid, period_id=period.id if period else None)
            current = goals[0] if goals else None

        items: List[GoalItem] = list(current.goals) if current else []
        locked = current is not None and current.status in (GoalStatus.pending_approval, GoalStatus.approved)
        disabled = " disabled" if locked else ""
        rows = []
        for index in range(MAX_GOALS):
            item = items[index] if index < len(items) else None
            rows.append(
                '<div class="row g-2 mb-2">'
                f'<div class="col-md-9"><input type="text" name="goal_{index}" class="form-control" '
                f'placeholder="{h(self.t("goals.text"))} {index + 1}" value="{h(item.text if item else "")}"{disabled}></div>'
                f'<div class="col-md-3"><input type="number" min="0" max="100" name="weight_{index}" class="form-control" '
                f'placeholder="{h(self.t("goals.weight"))}" value="{h(item.weight if item else "")}"{disabled}></div>'
                "</div>"
            )
        status = ""
        if current is not None:
            status = f'<div class="alert alert-secondary">{h(current.status.value)}'
            if current.reviewer_comment:
                status += f": {h(current.reviewer_comment)}"
            status += "</div>"
        return f"""
<div class="container-fluid">{self.heading()}
  {status}
  <form method="post" action="/goal-setting">
    <input type="hidden" name="goal_id" value="{h(current.id if current else "")}">
    {"".join(rows)}
    <button type="submit" class="btn btn-primary"{disabled}>{h(self.t("goals.submit"))}</button>
  </form>
</div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        user = shell.auth.current_user()
        if user.is_temp:
            shell.flash(shell.t("messages.saved"), "success")
            return "/goal-setting"

        try:
            items = [
                GoalItem(text=form_value(form, f"goal_{i}"), weight=int(form_value(form, f"weight_{i}") or 0))
                for i in range(MAX_GOALS)
                if form_value(form, f"goal_{i}")
            ]
            period = await shell.db.get_active_period(user.tenant_id) if user.tenant_id else None
            goal = QualitativeGoal(
                user_id=user.uid,
                user_name=user.display_name,
                tenant_id=user.tenant_id,
                period_id=period.id if period else None,
                goals=items,
                status=GoalStatus.pending_approval,
            )
        except (ValueError, ValidationError) as e:
            logger.info(f"Rejected goal set from {user.email}: {e}")
            shell.flash(shell.t("errors.goal_weights"))
            return "/goal-setting"

        if not items:
            shell.flash(shell.t("errors.invalid_input"))
            return "/goal-setting"

        existing = await shell.db.get_goal(form_value(form, "goal_id")) if form_value(form, "goal_id") else None
        if existing is not None and existing.user_id == user.uid:
            goal.id = existing.id
            goal.created_at = existing.created_at
        await shell.db.save_goal(goal)
        logger.info(f"Goal set {goal.id} submitted by {user.email}")
        shell.flash(shell.t("messages.saved"), "success")
        return "/goal-setting"
