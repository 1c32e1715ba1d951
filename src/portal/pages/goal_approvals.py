import logging
from typing import Dict

from ...api.models import GoalStatus, Role
from ..errors import NotFoundError
from .base import BasePage, form_value, h

logger = logging.getLogger(__name__)


class GoalApprovalsPage(BasePage):
    path = "/goal-approvals"
    title_key = "nav.goal_approvals"
    allowed_roles = (Role.admin, Role.evaluator)

    async def render(self, path: str) -> str:
        if not self.can_view():
            return self.access_denied()
        user = self.user
        goals = [] if user.is_temp else await self.shell.db.list_goals(
            tenant_id=user.tenant_id, status=GoalStatus.pending_approval)

        if not goals:
            return f'<div class="container-fluid">{self.heading()}<p class="text-muted">{h(self.t("common.none"))}</p></div>'

        cards = []
        for goal in goals:
            items = "".join(f"<li>{h(item.text)} ({item.weight}%)</li>" for item in goal.goals)
            cards.append(f"""
<div class="card mb-3"><div class="card-body">
  <h5 class="card-title">{h(goal.user_name or goal.user_id)}</h5>
  <ul>{items}</ul>
  <form method="post" action="/goal-approvals" class="row g-2">
    <input type="hidden" name="goal_id" value="{h(goal.id)}">
    <div class="col-md-6"><input type="text" name="comment" class="form-control" placeholder="{h(self.t("evaluation.comment"))}"></div>
    <div class="col-auto"><button name="decision" value="approve" class="btn btn-success">{h(self.t("common.approve"))}</button></div>
    <div class="col-auto"><button name="decision" value="reject" class="btn btn-outline-danger">{h(self.t("common.reject"))}</button></div>
  </form>
</div></div>""")
        return f'<div class="container-fluid">{self.heading()}{"".join(cards)}</div>'

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        user = shell.auth.current_user()
        if user is None or not user.has_role(*cls.allowed_roles) or user.is_temp:
            shell.flash(shell.t("common.access_denied"))
            return "/goal-approvals"

        approved = form_value(form, "decision") == "approve"
        goal_id = form_value(form, "goal_id")
        goal = await shell.db.get_goal(goal_id)
        if goal is None or goal.tenant_id != user.tenant_id:
            shell.flash(shell.t("errors.invalid_input"))
            return "/goal-approvals"
        try:
            await shell.db.review_goal(goal_id, approved, user.uid, form_value(form, "comment"))
        except NotFoundError as e:
            logger.warning(f"Goal review failed: {e}")
            shell.flash(shell.t("errors.invalid_input"))
            return "/goal-approvals"
        logger.info(f"Goal set {goal_id} {'approved' if approved else 'rejected'} by {user.email}")
        shell.flash(shell.t("messages.approved" if approved else "messages.rejected"), "success")
        return "/goal-approvals"
