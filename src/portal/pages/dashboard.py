from typing import List, Tuple

from ...api.models import Evaluation, TenantStats
from ..temp_auth import TempAuth
from .base import BasePage, h, table


class DashboardPage(BasePage):
    path = "/dashboard"
    title_key = "nav.dashboard"

    async def _load(self) -> Tuple[TenantStats, List[Evaluation]]:
        user = self.user
        if user is None or user.is_temp or not user.tenant_id:
            return TempAuth.get_mock_dashboard_stats(), TempAuth.get_mock_recent_evaluations()
        stats = await self.shell.db.get_tenant_stats(user.tenant_id)
        recent = await self.shell.db.list_evaluations(tenant_id=user.tenant_id, limit=5)
        return stats, recent

    async def render(self, path: str) -> str:
        stats, recent = await self._load()
        cards = [
            ("dashboard.total_users", stats.total_users),
            ("dashboard.total_evaluations", stats.total_evaluations),
            ("dashboard.completed_evaluations", stats.completed_evaluations),
            ("dashboard.pending_goals", stats.pending_goals),
        ]
        card_html = "".join(
            f'<div class="col-md-3 mb-3"><div class="card text-center"><div class="card-body">'
            f'<h6 class="card-subtitle text-muted">{h(self.t(key))}</h6>'
            f'<p class="display-6 mb-0">{value}</p></div></div></div>'
            for key, value in cards
        )
        rows = [
            (h(e.target_name), h(e.evaluator_name), h(e.total_score if e.total_score is not None else "-"),
             h(e.status.value), h(e.created_at[:10]))
            for e in recent
        ]
        recent_table = table(
            [self.t("evaluation.target"), self.t("roles.evaluator"), self.t("evaluation.score"), "", ""],
            rows,
            self.t("common.none"),
        )
        return (
            f'<div class="container-fluid">{self.heading()}'
            f'<div class="row">{card_html}</div>'
            f'<h5 class="mt-4">{h(self.t("dashboard.recent_evaluations"))}</h5>{recent_table}</div>'
        )
