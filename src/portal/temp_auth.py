"""
Fallback authentication provider.

Used when the hosted identity service is unreachable (or FORCE_TEMP_AUTH is
set). Offers the same login / logout / current-user contract against a fixed
table of demo accounts, and keeps the session record in client storage.

Known limitation: on_auth_state_changed() fires once, 100 ms after
subscribing, and never again. Callers rely on the single-shot behavior, so it
is not a real subscription.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from ..api.models import (
    Evaluation,
    EvaluationPeriod,
    EvaluationStatus,
    Invitation,
    JobType,
    PeriodStatus,
    Role,
    Session,
    TenantStats,
    User,
    UserStatus,
)
from .errors import AuthenticationError
from .storage import LocalStorage

logger = logging.getLogger(__name__)

SESSION_KEY = "temp_auth_session"
DEMO_TENANT_ID = "demo-tenant"
STATE_CALLBACK_DELAY = 0.1

DEMO_USERS: List[Dict[str, str]] = [
    {
        "id": "demo_admin",
        "email": "admin@demo.com",
        "password": "admin123",
        "name": "管理者（デモ）",
        "role": "admin",
    },
    {
        "id": "demo_evaluator",
        "email": "evaluator@demo.com",
        "password": "eval123",
        "name": "評価者（デモ）",
        "role": "evaluator",
    },
    {
        "id": "demo_worker",
        "email": "worker@demo.com",
        "password": "work123",
        "name": "作業員（デモ）",
        "role": "worker",
    },
]


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


class TempAuth:
    def __init__(self, storage: LocalStorage):
        self._storage = storage

    async def login(self, email: str, password: str) -> Session:
        logger.info("Attempting temporary authentication...")
        user = next(
            (u for u in DEMO_USERS if u["email"] == email and u["password"] == password),
            None,
        )
        if user is None:
            raise AuthenticationError("auth/invalid-credential", "temporary authentication failed")

        session = Session(
            uid=user["id"],
            email=user["email"],
            display_name=user["name"],
            role=Role(user["role"]),
            tenant_id=DEMO_TENANT_ID,
            status=UserStatus.active,
            is_temp=True,
        )
        self._storage.set_item(SESSION_KEY, session.model_dump_json())
        logger.info(f"Temporary authentication successful for {session.email}")
        return session

    async def logout(self) -> None:
        self._storage.remove_item(SESSION_KEY)
        logger.info("Temporary session cleared")

    def get_current_user(self) -> Optional[Session]:
        raw = self._storage.get_item(SESSION_KEY)
        if raw is None:
            return None
        try:
            return Session.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Temporary session record unreadable, clearing it: {e}")
            self._storage.remove_item(SESSION_KEY)
            return None

    def is_authenticated(self) -> bool:
        return self.get_current_user() is not None

    def on_auth_state_changed(self, callback: Callable[[Optional[Session]], None]) -> Callable[[], None]:
        """Call ``callback`` once with the current session after a short delay.

        Must be called from within a running event loop. The returned
        unsubscribe function does nothing; there is nothing left to cancel
        after the single callback.
        """
        user = self.get_current_user()
        asyncio.get_running_loop().call_later(STATE_CALLBACK_DELAY, callback, user)

        def unsubscribe() -> None:
            logger.debug("Temporary auth listener unsubscribed")

        return unsubscribe

    # ===== Demo data =====

    @staticmethod
    def get_demo_credentials() -> List[Dict[str, str]]:
        return [
            {"email": u["email"], "password": u["password"], "name": u["name"], "role": u["role"]}
            for u in DEMO_USERS
        ]

    @staticmethod
    def get_mock_dashboard_stats() -> TenantStats:
        return TenantStats(
            total_users=45,
            active_users=41,
            pending_users=4,
            total_evaluations=140,
            completed_evaluations=128,
            pending_goals=3,
        )

    @staticmethod
    def get_mock_recent_evaluations() -> List[Evaluation]:
        return [
            Evaluation(
                id="mock_eval_1",
                tenant_id=DEMO_TENANT_ID,
                target_user_id="mock_user_1",
                target_name="田中太郎",
                evaluator_name="佐藤管理者",
                status=EvaluationStatus.completed,
                total_score=4.5,
                created_at=_days_ago(1),
            ),
            Evaluation(
                id="mock_eval_2",
                tenant_id=DEMO_TENANT_ID,
                target_user_id="mock_user_2",
                target_name="鈴木花子",
                evaluator_name="田中評価者",
                status=EvaluationStatus.completed,
                total_score=4.1,
                created_at=_days_ago(2),
            ),
        ]

    @staticmethod
    def get_mock_users(status: Optional[UserStatus] = None) -> List[User]:
        users = [
            User(id=u["id"], email=u["email"], name=u["name"], role=Role(u["role"]),
                 status=UserStatus.active, tenant_id=DEMO_TENANT_ID, created_at=_days_ago(30 - 5 * i))
            for i, u in enumerate(DEMO_USERS)
        ]
        users.append(User(
            id="demo_worker2",
            email="worker2@demo.com",
            name="作業員2（デモ）",
            role=Role.worker,
            status=UserStatus.inactive,
            tenant_id=DEMO_TENANT_ID,
            created_at=_days_ago(15),
        ))
        if status is None:
            return users
        return [u for u in users if u.status == status]

    @staticmethod
    def get_mock_evaluations() -> List[Evaluation]:
        return [
            Evaluation(
                id="mock_evaluation_1",
                tenant_id=DEMO_TENANT_ID,
                target_user_id="demo_worker",
                target_name="作業員（デモ）",
                evaluator_id="demo_evaluator",
                evaluator_name="評価者（デモ）",
                status=EvaluationStatus.completed,
                total_score=4.2,
                created_at=_days_ago(5),
            ),
            Evaluation(
                id="mock_evaluation_2",
                tenant_id=DEMO_TENANT_ID,
                target_user_id="demo_worker2",
                target_name="作業員2（デモ）",
                evaluator_id="demo_evaluator",
                evaluator_name="評価者（デモ）",
                status=EvaluationStatus.draft,
                total_score=3.8,
                created_at=_days_ago(3),
            ),
        ]

    @staticmethod
    def get_mock_invitations() -> List[Invitation]:
        return [
            Invitation(
                id="mock_invite_1",
                email="newuser@demo.com",
                role=Role.worker,
                tenant_id=DEMO_TENANT_ID,
                created_at=_days_ago(2),
                expires_at=(datetime.now(timezone.utc) + timedelta(days=5)).isoformat(),
            )
        ]

    @staticmethod
    def get_mock_job_types() -> List[JobType]:
        return [
            JobType(id="construction", tenant_id=DEMO_TENANT_ID, name="建設作業員"),
            JobType(id="electrician", tenant_id=DEMO_TENANT_ID, name="電気工事士"),
        ]

    @staticmethod
    def get_mock_evaluation_periods() -> List[EvaluationPeriod]:
        return [
            EvaluationPeriod(
                id="2024q1",
                tenant_id=DEMO_TENANT_ID,
                name="2024年第1四半期",
                start_date="2024-01-01",
                end_date="2024-03-31",
                status=PeriodStatus.active,
            )
        ]
