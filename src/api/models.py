from datetime import datetime, timezone, timedelta
from typing import List, Dict, Optional
import uuid
from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Role(str, Enum):
    developer = "developer"
    admin = "admin"
    evaluator = "evaluator"
    worker = "worker"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    pending_approval = "pending_approval"


class TenantStatus(str, Enum):
    pending = "pending"
    active = "active"
    suspended = "suspended"


# ========== Session ==========

class Session(BaseModel):
    """Authenticated identity held by the shell.

    Produced either by the hosted identity service (is_temp=False) or by the
    local fallback provider (is_temp=True) and persisted in client storage.
    """
    uid: str
    email: str
    display_name: str = ""
    role: Role
    tenant_id: Optional[str] = None
    status: UserStatus = UserStatus.active
    is_temp: bool = False
    login_time: float = Field(default_factory=lambda: datetime.now(timezone.utc).timestamp())

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


# ========== Users & Tenants ==========

class User(BaseModel):
    id: str = Field(default_factory=lambda: f"user_{uuid.uuid4().hex[:16]}")
    email: str
    name: str = ""
    role: Role = Role.worker
    status: UserStatus = UserStatus.pending_approval
    tenant_id: Optional[str] = None
    evaluator_id: Optional[str] = Field(default=None, description="User id of the assigned evaluator")
    job_type_id: Optional[str] = None
    created_at: str = Field(default_factory=_now)
    updated_at: Optional[str] = None


class Tenant(BaseModel):
    id: str = Field(default_factory=lambda: f"tenant_{uuid.uuid4().hex[:12]}")
    name: str = Field(..., min_length=1, description="Company name")
    status: TenantStatus = TenantStatus.pending
    admin_user_id: Optional[str] = None
    created_at: str = Field(default_factory=_now)


# ========== Invitations ==========

class Invitation(BaseModel):
    """Registration invitation; the token travels in the ?token= query string."""
    id: str = Field(default_factory=lambda: f"inv_{uuid.uuid4().hex[:16]}")
    token: str = Field(default_factory=lambda: uuid.uuid4().hex)
    email: str = ""
    role: Role = Role.worker
    tenant_id: Optional[str] = None
    company_name: str = ""
    evaluator_id: Optional[str] = None
    job_type_id: Optional[str] = None
    created_by: Optional[str] = None
    used: bool = False
    used_by: Optional[str] = None
    used_at: Optional[str] = None
    expires_at: Optional[str] = None
    created_at: str = Field(default_factory=_now)

    @classmethod
    def expiring_in(cls, days: int, **fields) -> "Invitation":
        expires = datetime.now(timezone.utc) + timedelta(days=days)
        return cls(expires_at=expires.isoformat(), **fields)

    @property
    def is_expired(self) -> bool:
        if not self.expires_at:
            return False
        return datetime.fromisoformat(self.expires_at) < datetime.now(timezone.utc)

    @property
    def is_usable(self) -> bool:
        return not self.used and not self.is_expired


# ========== Settings: job types, periods, structures ==========

class JobType(BaseModel):
    id: str = Field(default_factory=lambda: f"job_{uuid.uuid4().hex[:12]}")
    tenant_id: str
    name: str = Field(..., min_length=1)
    created_at: str = Field(default_factory=_now)


class PeriodStatus(str, Enum):
    planned = "planned"
    active = "active"
    closed = "closed"


class EvaluationPeriod(BaseModel):
    id: str = Field(default_factory=lambda: f"period_{uuid.uuid4().hex[:12]}")
    tenant_id: str
    name: str = Field(..., min_length=1)
    start_date: str
    end_date: str
    status: PeriodStatus = PeriodStatus.planned

    @model_validator(mode='after')
    def _check_dates(self) -> 'EvaluationPeriod':
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EvaluationItem(BaseModel):
    id: str = Field(default_factory=lambda: f"item_{uuid.uuid4().hex[:8]}")
    name: str
    name_en: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[float] = None
    skill_dimension: Optional[str] = None


class EvaluationCategory(BaseModel):
    id: str = Field(default_factory=lambda: f"cat_{uuid.uuid4().hex[:8]}")
    name: str
    name_en: Optional[str] = None
    weight: Optional[float] = None
    items: List[EvaluationItem] = Field(default_factory=list)


class EvaluationStructure(BaseModel):
    """Evaluation sheet layout for one job type of a tenant."""
    id: str = Field(default_factory=lambda: f"struct_{uuid.uuid4().hex[:12]}")
    tenant_id: str
    job_type_id: Optional[str] = None
    categories: List[EvaluationCategory] = Field(default_factory=list)
    version: Optional[str] = None
    skill_dimension_mapping: Dict[str, List[str]] = Field(default_factory=dict)

    def all_items(self) -> List[EvaluationItem]:
        return [item for category in self.categories for item in category.items]


# ========== Qualitative goals ==========

class GoalStatus(str, Enum):
    draft = "draft"
    pending_approval = "pending_approval"
    approved = "approved"
    rejected = "rejected"


class GoalItem(BaseModel):
    text: str = Field(..., min_length=1)
    weight: int = Field(..., ge=0, le=100)


class QualitativeGoal(BaseModel):
    id: str = Field(default_factory=lambda: f"goal_{uuid.uuid4().hex[:16]}")
    user_id: str
    user_name: str = ""
    tenant_id: Optional[str] = None
    period_id: Optional[str] = None
    goals: List[GoalItem] = Field(default_factory=list)
    status: GoalStatus = GoalStatus.draft
    approved_by: Optional[str] = None
    reviewer_comment: str = ""
    created_at: str = Field(default_factory=_now)
    updated_at: Optional[str] = None

    @field_validator('goals')
    @classmethod
    def validate_total_weight(cls, v):
        if v and sum(goal.weight for goal in v) != 100:
            raise ValueError('goal weights must add up to 100')
        return v


# ========== Evaluations ==========

class EvaluationStatus(str, Enum):
    draft = "draft"
    self_assessed = "self_assessed"
    submitted = "submitted"
    completed = "completed"


class Evaluation(BaseModel):
    id: str = Field(default_factory=lambda: f"eval_{uuid.uuid4().hex[:16]}")
    tenant_id: Optional[str] = None
    target_user_id: str
    target_name: str = ""
    evaluator_id: Optional[str] = None
    evaluator_name: str = ""
    period_id: Optional[str] = None
    job_type_id: Optional[str] = None
    structure_id: Optional[str] = None
    scores: Dict[str, int] = Field(default_factory=dict, description="Score per evaluation item id (1-5)")
    comment: str = ""
    status: EvaluationStatus = EvaluationStatus.draft
    total_score: Optional[float] = None
    created_at: str = Field(default_factory=_now)
    updated_at: Optional[str] = None

    @field_validator('scores')
    @classmethod
    def validate_scores(cls, v):
        for item_id, score in v.items():
            if not 1 <= score <= 5:
                raise ValueError(f'score for {item_id} must be between 1 and 5')
        return v

    def compute_total(self, structure: Optional[EvaluationStructure] = None) -> Optional[float]:
        """Weighted mean of the item scores; unweighted when no structure is given."""
        if not self.scores:
            return None
        if structure is None:
            return round(sum(self.scores.values()) / len(self.scores), 2)
        weighted = 0.0
        weights = 0.0
        for category in structure.categories:
            category_weight = category.weight or 1.0
            for item in category.items:
                if item.id in self.scores:
                    w = category_weight * (item.weight or 1.0)
                    weighted += self.scores[item.id] * w
                    weights += w
        return round(weighted / weights, 2) if weights else None


# ========== Request Models ==========

class InvitationCreate(BaseModel):
    email: str = ""
    role: Role = Role.worker
    evaluator_id: Optional[str] = None
    job_type_id: Optional[str] = None


class TenantStats(BaseModel):
    total_users: int = 0
    active_users: int = 0
    pending_users: int = 0
    total_evaluations: int = 0
    completed_evaluations: int = 0
    pending_goals: int = 0
