"""
Unit Tests for the SQLite Document Store

Each test runs against a fresh database file from the ``db`` fixture.
"""

from datetime import datetime, timedelta, timezone

import pytest


class TestUsers:
    async def test_create_and_lookup(self, db):
        from src.api.models import Role, User

        user = await db.create_user(User(id="u1", email="u1@acme.test", role=Role.evaluator, tenant_id="t1"))

        assert (await db.get_user("u1")).email == "u1@acme.test"
        assert (await db.get_user_by_email("u1@acme.test")).id == user.id
        assert await db.get_user("missing") is None
        assert await db.get_user_by_email("missing@acme.test") is None

    async def test_list_filters(self, db):
        from src.api.models import Role, User, UserStatus

        await db.create_user(User(id="a", email="a@t", role=Role.admin, status=UserStatus.active, tenant_id="t1"))
        await db.create_user(User(id="b", email="b@t", role=Role.worker, status=UserStatus.pending_approval, tenant_id="t1"))
        await db.create_user(User(id="c", email="c@t", role=Role.worker, status=UserStatus.active, tenant_id="t2"))

        assert {u.id for u in await db.list_users(tenant_id="t1")} == {"a", "b"}
        assert [u.id for u in await db.list_users(tenant_id="t1", status=UserStatus.pending_approval)] == ["b"]
        assert {u.id for u in await db.list_users(role=Role.worker)} == {"b", "c"}

    async def test_set_user_status(self, db):
        from src.api.models import User, UserStatus
        from src.portal.errors import NotFoundError

        await db.create_user(User(id="p", email="p@t"))

        updated = await db.set_user_status("p", UserStatus.active)

        assert updated.status == UserStatus.active
        assert updated.updated_at is not None
        with pytest.raises(NotFoundError):
            await db.set_user_status("nobody", UserStatus.active)


class TestTenants:
    async def test_approve_tenant_activates_admin(self, db):
        from src.api.models import Role, Tenant, TenantStatus, User, UserStatus

        await db.create_user(User(id="adm", email="adm@t", role=Role.admin,
                                  status=UserStatus.pending_approval, tenant_id="t_new"))
        await db.create_tenant(Tenant(id="t_new", name="New Co", admin_user_id="adm"))

        tenant = await db.approve_tenant("t_new")

        assert tenant.status == TenantStatus.active
        assert (await db.get_user("adm")).status == UserStatus.active
        assert await db.list_tenants(status=TenantStatus.pending) == []

    async def test_approve_unknown_tenant(self, db):
        from src.portal.errors import NotFoundError

        with pytest.raises(NotFoundError):
            await db.approve_tenant("t_missing")


class TestInvitations:
    async def test_get_invitation_states(self, db):
        from src.api.models import Invitation
        from src.portal.errors import NotFoundError

        fresh = await db.create_invitation(Invitation.expiring_in(7, email="f@t", tenant_id="t1"))
        expired = await db.create_invitation(Invitation(
            email="e@t", tenant_id="t1",
            expires_at=(datetime.now(timezone.utc) - timedelta(days=1)).isoformat(),
        ))

        assert (await db.get_invitation(fresh.token)).id == fresh.id
        with pytest.raises(NotFoundError) as exc_info:
            await db.get_invitation(expired.token)
        assert exc_info.value.reason == "expired"
        with pytest.raises(NotFoundError) as exc_info:
            await db.get_invitation("unknown")
        assert exc_info.value.reason == "not found"

    async def test_mark_used_once(self, db):
        from src.api.models import Invitation
        from src.portal.errors import NotFoundError

        invitation = await db.create_invitation(Invitation(email="x@t", tenant_id="t1"))

        used = await db.mark_invitation_used(invitation.token, "u9")

        assert used.used is True
        assert used.used_by == "u9"
        assert used.used_at is not None
        with pytest.raises(NotFoundError) as exc_info:
            await db.get_invitation(invitation.token)
        assert exc_info.value.reason == "already used"
        with pytest.raises(NotFoundError):
            await db.mark_invitation_used(invitation.token, "u10")

    async def test_list_by_tenant(self, db):
        from src.api.models import Invitation

        await db.create_invitation(Invitation(email="1@t", tenant_id="t1"))
        await db.create_invitation(Invitation(email="2@t", tenant_id="t2"))

        assert [i.email for i in await db.list_invitations("t1")] == ["1@t"]


class TestGoalsAndEvaluations:
    async def test_review_goal(self, db):
        from src.api.models import GoalItem, GoalStatus, QualitativeGoal

        goal = await db.save_goal(QualitativeGoal(
            user_id="w1", tenant_id="t1", status=GoalStatus.pending_approval,
            goals=[GoalItem(text="安全第一", weight=60), GoalItem(text="資格取得", weight=40)],
        ))
        assert [g.id for g in await db.list_goals(tenant_id="t1", status=GoalStatus.pending_approval)] == [goal.id]

        reviewed = await db.review_goal(goal.id, approved=True, reviewer_id="e1", comment="OK")

        assert reviewed.status == GoalStatus.approved
        assert reviewed.approved_by == "e1"
        assert await db.list_goals(tenant_id="t1", status=GoalStatus.pending_approval) == []

    async def test_reject_goal_clears_approver(self, db):
        from src.api.models import GoalStatus, QualitativeGoal

        goal = await db.save_goal(QualitativeGoal(user_id="w1", tenant_id="t1"))

        reviewed = await db.review_goal(goal.id, approved=False, reviewer_id="e1", comment="具体的に")

        assert reviewed.status == GoalStatus.rejected
        assert reviewed.approved_by is None
        assert reviewed.reviewer_comment == "具体的に"

    async def test_list_evaluations_newest_first(self, db):
        from src.api.models import Evaluation

        await db.save_evaluation(Evaluation(id="old", tenant_id="t1", target_user_id="w1",
                                            created_at="2024-01-01T00:00:00+00:00"))
        await db.save_evaluation(Evaluation(id="new", tenant_id="t1", target_user_id="w1", evaluator_id="e1",
                                            created_at="2024-06-01T00:00:00+00:00"))

        assert [e.id for e in await db.list_evaluations(tenant_id="t1")] == ["new", "old"]
        assert [e.id for e in await db.list_evaluations(tenant_id="t1", limit=1)] == ["new"]
        assert [e.id for e in await db.list_evaluations(evaluator_id="e1")] == ["new"]

    async def test_tenant_stats(self, db):
        from src.api.models import Evaluation, EvaluationStatus, GoalStatus, QualitativeGoal, User, UserStatus

        await db.create_user(User(id="a", email="a@t", status=UserStatus.active, tenant_id="t1"))
        await db.create_user(User(id="b", email="b@t", status=UserStatus.pending_approval, tenant_id="t1"))
        await db.save_evaluation(Evaluation(tenant_id="t1", target_user_id="a", status=EvaluationStatus.completed))
        await db.save_evaluation(Evaluation(tenant_id="t1", target_user_id="a"))
        await db.save_goal(QualitativeGoal(user_id="a", tenant_id="t1", status=GoalStatus.pending_approval))

        stats = await db.get_tenant_stats("t1")

        assert stats.total_users == 2
        assert stats.active_users == 1
        assert stats.pending_users == 1
        assert stats.total_evaluations == 2
        assert stats.completed_evaluations == 1
        assert stats.pending_goals == 1


class TestSettings:
    async def test_active_period(self, db):
        from src.api.models import EvaluationPeriod, PeriodStatus

        await db.create_period(EvaluationPeriod(id="p1", tenant_id="t1", name="上期", start_date="2024-04-01",
                                                end_date="2024-09-30", status=PeriodStatus.closed))
        await db.create_period(EvaluationPeriod(id="p2", tenant_id="t1", name="下期", start_date="2024-10-01",
                                                end_date="2025-03-31", status=PeriodStatus.active))

        assert (await db.get_active_period("t1")).id == "p2"
        assert await db.get_active_period("t2") is None
        assert [p.id for p in await db.list_periods("t1")] == ["p2", "p1"]

    async def test_job_types(self, db):
        from src.api.models import JobType

        await db.create_job_type(JobType(id="j2", tenant_id="t1", name="鳶職"))
        await db.create_job_type(JobType(id="j1", tenant_id="t1", name="大工"))

        assert len(await db.list_job_types("t1")) == 2
        assert await db.delete_job_type("j1") is True
        assert await db.delete_job_type("j1") is False
        assert [j.id for j in await db.list_job_types("t1")] == ["j2"]

    async def test_structure_falls_back_to_generic(self, db):
        from src.api.models import EvaluationStructure

        await db.save_structure(EvaluationStructure(id="s_generic", tenant_id="t1"))
        await db.save_structure(EvaluationStructure(id="s_elec", tenant_id="t1", job_type_id="electrician"))

        assert (await db.get_structure_for_job_type("t1", "electrician")).id == "s_elec"
        assert (await db.get_structure_for_job_type("t1", "carpenter")).id == "s_generic"
        assert (await db.get_structure_for_job_type("t1", None)).id == "s_generic"
        assert await db.get_structure_for_job_type("t2", None) is None
