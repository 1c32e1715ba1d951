"""
SQLite-backed document store.

Uses a single SQLite database with one table of JSON documents per
collection. Fully local, no cloud dependencies.
"""

import aiosqlite
import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import (
    User, UserStatus, Role, Tenant, TenantStatus, Invitation,
    QualitativeGoal, GoalStatus, Evaluation, EvaluationStatus,
    JobType, EvaluationPeriod, PeriodStatus, EvaluationStructure, TenantStats,
)
from ..portal.errors import NotFoundError
from . import config

import logging
logger = logging.getLogger(__name__)

COLLECTIONS = (
    "users",
    "tenants",
    "invitations",
    "qualitative_goals",
    "evaluations",
    "job_types",
    "evaluation_periods",
    "evaluation_structures",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteService:
    """Local SQLite storage service."""

    def __init__(self, db_path: Optional[str] = None):
        self._db_path = db_path or config.SQLITE_DB_PATH
        self._initialized = False

    async def _ensure_initialized(self):
        if self._initialized:
            return
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        async with aiosqlite.connect(self._db_path) as db:
            for table in COLLECTIONS:
                await db.execute(f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        id TEXT PRIMARY KEY,
                        data TEXT NOT NULL
                    )
                """)
            await db.execute("CREATE INDEX IF NOT EXISTS idx_users_email ON users(json_extract(data, '$.email'))")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_users_tenant ON users(json_extract(data, '$.tenant_id'))")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_inv_token ON invitations(json_extract(data, '$.token'))")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_goals_tenant ON qualitative_goals(json_extract(data, '$.tenant_id'))")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_eval_tenant ON evaluations(json_extract(data, '$.tenant_id'))")
            await db.commit()
        self._initialized = True

    def _conn(self) -> aiosqlite.Connection:
        """Return an aiosqlite connection context manager (do NOT await here)."""
        return aiosqlite.connect(self._db_path)

    # ===== Generic document helpers =====

    async def _put(self, table: str, doc_id: str, data: str) -> None:
        await self._ensure_initialized()
        async with self._conn() as db:
            await db.execute(
                f"INSERT OR REPLACE INTO {table} (id, data) VALUES (?, ?)",
                (doc_id, data)
            )
            await db.commit()

    async def _get(self, table: str, doc_id: str) -> Optional[Dict[str, Any]]:
        await self._ensure_initialized()
        async with self._conn() as db:
            cursor = await db.execute(f"SELECT data FROM {table} WHERE id = ?", (doc_id,))
            row = await cursor.fetchone()
            return json.loads(row[0]) if row else None

    async def _find(self, table: str, order_by: str = "created_at", descending: bool = True,
                    limit: Optional[int] = None, **filters) -> List[Dict[str, Any]]:
        """Documents whose top-level fields equal the given filters (None filters are ignored)."""
        await self._ensure_initialized()
        clauses = []
        params: List[Any] = []
        for field, value in filters.items():
            if value is None:
                continue
            clauses.append(f"json_extract(data, '$.{field}') = ?")
            params.append(value.value if hasattr(value, "value") else value)
        sql = f"SELECT data FROM {table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += f" ORDER BY json_extract(data, '$.{order_by}') {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        async with self._conn() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
            return [json.loads(r[0]) for r in rows]

    async def _delete(self, table: str, doc_id: str) -> bool:
        await self._ensure_initialized()
        async with self._conn() as db:
            cursor = await db.execute(f"DELETE FROM {table} WHERE id = ?", (doc_id,))
            await db.commit()
            return cursor.rowcount > 0

    # ===== Users =====

    async def create_user(self, user: User) -> User:
        await self._put("users", user.id, user.model_dump_json())
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        data = await self._get("users", user_id)
        return User(**data) if data else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        rows = await self._find("users", limit=1, email=email)
        return User(**rows[0]) if rows else None

    async def list_users(self, tenant_id: Optional[str] = None, status: Optional[UserStatus] = None,
                         role: Optional[Role] = None) -> List[User]:
        rows = await self._find("users", tenant_id=tenant_id, status=status, role=role)
        return [User(**r) for r in rows]

    async def update_user(self, user: User) -> User:
        user.updated_at = _now()
        await self._put("users", user.id, user.model_dump_json())
        return user

    async def set_user_status(self, user_id: str, status: UserStatus) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        user.status = status
        return await self.update_user(user)

    # ===== Tenants =====

    async def create_tenant(self, tenant: Tenant) -> Tenant:
        await self._put("tenants", tenant.id, tenant.model_dump_json())
        return tenant

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        data = await self._get("tenants", tenant_id)
        return Tenant(**data) if data else None

    async def list_tenants(self, status: Optional[TenantStatus] = None) -> List[Tenant]:
        rows = await self._find("tenants", status=status)
        return [Tenant(**r) for r in rows]

    async def approve_tenant(self, tenant_id: str) -> Tenant:
        """Activate a pending tenant together with its administrator."""
        tenant = await self.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError("tenant", tenant_id)
        tenant.status = TenantStatus.active
        await self._put("tenants", tenant.id, tenant.model_dump_json())
        if tenant.admin_user_id:
            await self.set_user_status(tenant.admin_user_id, UserStatus.active)
        logger.info(f"Tenant {tenant.id} ({tenant.name}) approved")
        return tenant

    # ===== Invitations =====

    async def create_invitation(self, invitation: Invitation) -> Invitation:
        await self._put("invitations", invitation.id, invitation.model_dump_json())
        return invitation

    async def find_invitation(self, token: str) -> Optional[Invitation]:
        rows = await self._find("invitations", limit=1, token=token)
        return Invitation(**rows[0]) if rows else None

    async def get_invitation(self, token: str) -> Invitation:
        """Return a usable invitation.

        Raises:
            NotFoundError: unknown token, or the invitation is used or expired
        """
        invitation = await self.find_invitation(token)
        if invitation is None:
            raise NotFoundError("invitation", token)
        if invitation.used:
            raise NotFoundError("invitation", token, "already used")
        if invitation.is_expired:
            raise NotFoundError("invitation", token, "expired")
        return invitation

    async def list_invitations(self, tenant_id: str) -> List[Invitation]:
        rows = await self._find("invitations", tenant_id=tenant_id)
        return [Invitation(**r) for r in rows]

    async def mark_invitation_used(self, token: str, user_id: str) -> Invitation:
        invitation = await self.find_invitation(token)
        if invitation is None:
            raise NotFoundError("invitation", token)
        if invitation.used:
            raise NotFoundError("invitation", token, "already used")
        invitation.used = True
        invitation.used_by = user_id
        invitation.used_at = _now()
        await self._put("invitations", invitation.id, invitation.model_dump_json())
        return invitation

    # ===== Qualitative goals =====

    async def save_goal(self, goal: QualitativeGoal) -> QualitativeGoal:
        goal.updated_at = _now()
        await self._put("qualitative_goals", goal.id, goal.model_dump_json())
        return goal

    async def get_goal(self, goal_id: str) -> Optional[QualitativeGoal]:
        data = await self._get("qualitative_goals", goal_id)
        return QualitativeGoal(**data) if data else None

    async def list_goals(self, tenant_id: Optional[str] = None, user_id: Optional[str] = None,
                         status: Optional[GoalStatus] = None, period_id: Optional[str] = None) -> List[QualitativeGoal]:
        rows = await self._find("qualitative_goals", tenant_id=tenant_id, user_id=user_id,
                                status=status, period_id=period_id)
        return [QualitativeGoal(**r) for r in rows]

    async def review_goal(self, goal_id: str, approved: bool, reviewer_id: str, comment: str = "") -> QualitativeGoal:
        goal = await self.get_goal(goal_id)
        if goal is None:
            raise NotFoundError("goal", goal_id)
        goal.status = GoalStatus.approved if approved else GoalStatus.rejected
        goal.approved_by = reviewer_id if approved else None
        goal.reviewer_comment = comment
        return await self.save_goal(goal)

    # ===== Evaluations =====

    async def save_evaluation(self, evaluation: Evaluation) -> Evaluation:
        evaluation.updated_at = _now()
        await self._put("evaluations", evaluation.id, evaluation.model_dump_json())
        return evaluation

    async def get_evaluation(self, evaluation_id: str) -> Optional[Evaluation]:
        data = await self._get("evaluations", evaluation_id)
        return Evaluation(**data) if data else None

    async def list_evaluations(self, tenant_id: Optional[str] = None, target_user_id: Optional[str] = None,
                               evaluator_id: Optional[str] = None, limit: Optional[int] = None) -> List[Evaluation]:
        rows = await self._find("evaluations", limit=limit, tenant_id=tenant_id,
                                target_user_id=target_user_id, evaluator_id=evaluator_id)
        return [Evaluation(**r) for r in rows]

    # ===== Settings: job types, periods =====

    async def create_job_type(self, job_type: JobType) -> JobType:
        await self._put("job_types", job_type.id, job_type.model_dump_json())
        return job_type

    async def list_job_types(self, tenant_id: str) -> List[JobType]:
        rows = await self._find("job_types", order_by="name", descending=False, tenant_id=tenant_id)
        return [JobType(**r) for r in rows]

    async def delete_job_type(self, job_type_id: str) -> bool:
        return await self._delete("job_types", job_type_id)

    async def create_period(self, period: EvaluationPeriod) -> EvaluationPeriod:
        await self._put("evaluation_periods", period.id, period.model_dump_json())
        return period

    async def list_periods(self, tenant_id: str) -> List[EvaluationPeriod]:
        rows = await self._find("evaluation_periods", order_by="start_date", tenant_id=tenant_id)
        return [EvaluationPeriod(**r) for r in rows]

    async def get_active_period(self, tenant_id: str) -> Optional[EvaluationPeriod]:
        rows = await self._find("evaluation_periods", order_by="start_date", limit=1,
                                tenant_id=tenant_id, status=PeriodStatus.active)
        return EvaluationPeriod(**rows[0]) if rows else None

    # ===== Evaluation structures =====

    async def save_structure(self, structure: EvaluationStructure) -> EvaluationStructure:
        await self._put("evaluation_structures", structure.id, structure.model_dump_json())
        return structure

    async def get_structure(self, structure_id: str) -> Optional[EvaluationStructure]:
        data = await self._get("evaluation_structures", structure_id)
        return EvaluationStructure(**data) if data else None

    async def get_structure_for_job_type(self, tenant_id: str, job_type_id: Optional[str]) -> Optional[EvaluationStructure]:
        """Structure for the job type, falling back to the tenant's generic one."""
        if job_type_id:
            rows = await self._find("evaluation_structures", order_by="id", limit=1,
                                    tenant_id=tenant_id, job_type_id=job_type_id)
            if rows:
                return EvaluationStructure(**rows[0])
        for row in await self._find("evaluation_structures", order_by="id", tenant_id=tenant_id):
            if not row.get("job_type_id"):
                return EvaluationStructure(**row)
        return None

    async def list_structure_documents(self) -> List[Dict[str, Any]]:
        """Raw structure documents, including fields the current model doesn't know."""
        return await self._find("evaluation_structures", order_by="id", descending=False)

    async def replace_structure_document(self, document: Dict[str, Any]) -> None:
        await self._put("evaluation_structures", document["id"], json.dumps(document, ensure_ascii=False))

    # ===== Stats =====

    async def get_tenant_stats(self, tenant_id: str) -> TenantStats:
        users = await self.list_users(tenant_id=tenant_id)
        evaluations = await self.list_evaluations(tenant_id=tenant_id)
        pending_goals = await self.list_goals(tenant_id=tenant_id, status=GoalStatus.pending_approval)
        return TenantStats(
            total_users=len(users),
            active_users=sum(1 for u in users if u.status == UserStatus.active),
            pending_users=sum(1 for u in users if u.status == UserStatus.pending_approval),
            total_evaluations=len(evaluations),
            completed_evaluations=sum(1 for e in evaluations if e.status == EvaluationStatus.completed),
            pending_goals=len(pending_goals),
        )


# Singleton
_service: Optional[SQLiteService] = None


def get_db_service() -> SQLiteService:
    global _service
    if not _service:
        _service = SQLiteService()
    return _service
