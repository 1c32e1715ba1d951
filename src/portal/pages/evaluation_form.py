"""Evaluation sheet built from the tenant's evaluation structure."""

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from ...api.models import Evaluation, EvaluationStatus, Role, Session, User, UserStatus
from ..temp_auth import TempAuth
from .base import BasePage, form_value, h, query_param

logger = logging.getLogger(__name__)

SCORES = (1, 2, 3, 4, 5)


async def evaluable_users(shell, user: Session) -> List[User]:
    """Who ``user`` may evaluate: everyone active for admins, assignees for evaluators, self for workers."""
    if user.is_temp:
        candidates = TempAuth.get_mock_users(UserStatus.active)
    else:
        candidates = await shell.db.list_users(tenant_id=user.tenant_id, status=UserStatus.active)
    if user.has_role(Role.admin):
        return [u for u in candidates if u.role in (Role.evaluator, Role.worker)]
    if user.has_role(Role.evaluator):
        return [u for u in candidates if u.evaluator_id == user.uid or u.id == user.uid]
    return [u for u in candidates if u.id == user.uid]


class EvaluationFormPage(BasePage):
    path = "/evaluation-form"
    title_key = "nav.evaluation_form"

    async def render(self, path: str) -> str:
        user = self.user
        targets = await evaluable_users(self.shell, user)
        target_id = query_param(path, "target") or (targets[0].id if len(targets) == 1 else None)
        target: Optional[User] = next((u for u in targets if u.id == target_id), None)

        options = "".join(
            f'<option value="{h(u.id)}"{" selected" if target and u.id == target.id else ""}>{h(u.name or u.email)}</option>'
            for u in targets
        )
        picker = f"""
<form method="get" action="/evaluation-form" class="row g-2 mb-4">
  <div class="col-md-6"><select name="target" class="form-select"><option value=""></option>{options}</select></div>
  <div class="col-auto"><button class="btn btn-outline-primary">{h(self.t("evaluation.target"))}</button></div>
</form>"""
        if target is None:
            return f'<div class="container-fluid">{self.heading()}{picker}</div>'

        structure = await self.shell.db.get_structure_for_job_type(target.tenant_id or "", target.job_type_id)
        if structure is None or not structure.all_items():
            return (f'<div class="container-fluid">{self.heading()}{picker}'
                    f'<div class="alert alert-warning">{h(self.t("evaluation.no_structure"))}</div></div>')

        sections = []
        for category in structure.categories:
            rows = []
            for item in category.items:
                radios = "".join(
                    f'<div class="form-check form-check-inline">'
                    f'<input class="form-check-input" type="radio" name="score_{h(item.id)}" id="{h(item.id)}_{s}" value="{s}" required>'
                    f'<label class="form-check-label" for="{h(item.id)}_{s}">{s}</label></div>'
                    for s in SCORES
                )
                description = f'<div class="small text-muted">{h(item.description)}</div>' if item.description else ""
                rows.append(f'<div class="mb-3"><div>{h(item.name)}</div>{description}{radios}</div>')
            sections.append(f'<fieldset class="mb-4"><legend class="h6">{h(category.name)}</legend>{"".join(rows)}</fieldset>')

        return f"""
<div class="container-fluid">{self.heading()}{picker}
  <form method="post" action="/evaluation-form">
    <input type="hidden" name="target" value="{h(target.id)}">
    <input type="hidden" name="structure_id" value="{h(structure.id)}">
    {"".join(sections)}
    <div class="mb-3">
      <label class="form-label" for="comment">{h(self.t("evaluation.comment"))}</label>
      <textarea class="form-control" id="comment" name="comment" rows="3"></textarea>
    </div>
    <button type="submit" class="btn btn-primary">{h(self.t("evaluation.submit"))}</button>
  </form>
</div>"""

    @classmethod
    async def handle_submit(cls, shell, form: Dict[str, str]) -> str:
        user = shell.auth.current_user()
        target_id = form_value(form, "target")
        back = f"/evaluation-form?target={target_id}"
        if user.is_temp:
            shell.flash(shell.t("messages.saved"), "success")
            return "/evaluations"

        target = next((u for u in await evaluable_users(shell, user) if u.id == target_id), None)
        structure = await shell.db.get_structure(form_value(form, "structure_id"))
        if target is None or structure is None or structure.tenant_id != user.tenant_id:
            shell.flash(shell.t("errors.invalid_input"))
            return back

        try:
            scores = {
                item.id: int(form_value(form, f"score_{item.id}"))
                for item in structure.all_items()
                if form_value(form, f"score_{item.id}")
            }
            evaluation = Evaluation(
                tenant_id=user.tenant_id,
                target_user_id=target.id,
                target_name=target.name,
                evaluator_id=user.uid,
                evaluator_name=user.display_name,
                job_type_id=target.job_type_id,
                structure_id=structure.id,
                scores=scores,
                comment=form_value(form, "comment"),
                status=EvaluationStatus.self_assessed if target.id == user.uid else EvaluationStatus.completed,
            )
        except (ValueError, ValidationError) as e:
            logger.info(f"Rejected evaluation from {user.email}: {e}")
            shell.flash(shell.t("errors.invalid_input"))
            return back

        period = await shell.db.get_active_period(user.tenant_id)
        evaluation.period_id = period.id if period else None
        evaluation.total_score = evaluation.compute_total(structure)
        await shell.db.save_evaluation(evaluation)
        logger.info(f"Evaluation {evaluation.id} of {target.email} saved (total {evaluation.total_score})")
        shell.flash(shell.t("messages.saved"), "success")
        return "/evaluations"
