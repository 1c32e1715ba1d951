from typing import List

from ...api.models import Evaluation, Role
from ..temp_auth import TempAuth
from .base import BasePage, h, table


class EvaluationsPage(BasePage):
    path = "/evaluations"
    title_key = "nav.evaluations"

    async def _visible(self) -> List[Evaluation]:
        user = self.user
        if user.is_temp:
            return TempAuth.get_mock_evaluations()
        db = self.shell.db
        if user.has_role(Role.admin, Role.developer):
            return await db.list_evaluations(tenant_id=user.tenant_id)
        own = await db.list_evaluations(tenant_id=user.tenant_id, target_user_id=user.uid)
        if not user.has_role(Role.evaluator):
            return own
        given = await db.list_evaluations(tenant_id=user.tenant_id, evaluator_id=user.uid)
        seen = {e.id for e in own}
        return own + [e for e in given if e.id not in seen]

    async def render(self, path: str) -> str:
        rows = [
            (h(e.target_name), h(e.evaluator_name), h(e.status.value),
             h(e.total_score if e.total_score is not None else "-"), h(e.created_at[:10]))
            for e in await self._visible()
        ]
        headers = [self.t("evaluation.target"), self.t("roles.evaluator"), "", self.t("evaluation.score"), ""]
        return f'<div class="container-fluid">{self.heading()}{table(headers, rows, self.t("common.none"))}</div>'
