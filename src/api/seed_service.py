"""
seed_service.py: demo tenant seeder.

Creates the "demo-tenant" the fallback demo accounts belong to, with
profiles matching those accounts, a job type, an active evaluation period
and an evaluation structure, so every page has something to show in
development. Called from the FastAPI lifespan when SEED_DEMO_DATA is on.
"""

import logging
from datetime import date

from .models import (
    EvaluationCategory, EvaluationItem, EvaluationPeriod, EvaluationStructure,
    JobType, PeriodStatus, Role, Tenant, TenantStatus, User, UserStatus,
)
from .sqlite_service import SQLiteService

logger = logging.getLogger(__name__)

DEMO_TENANT_ID = "demo-tenant"

DEMO_PROFILES = [
    {"id": "demo_admin", "email": "admin@demo.com", "name": "管理者（デモ）", "role": Role.admin},
    {"id": "demo_evaluator", "email": "evaluator@demo.com", "name": "評価者（デモ）", "role": Role.evaluator},
    {"id": "demo_worker", "email": "worker@demo.com", "name": "作業員（デモ）", "role": Role.worker,
     "evaluator_id": "demo_evaluator", "job_type_id": "construction"},
]

# category -> item names (Japanese, as shown on the sheet) with their English names
DEMO_SHEET = {
    ("技術スキル", "Technical skills"): [
        ("専門技術", "Technical expertise", "technical_skills"),
        ("品質管理", "Quality control", "technical_skills"),
    ],
    ("安全・コミュニケーション", "Safety & communication"): [
        ("安全管理", "Safety management", "safety_awareness"),
        ("コミュニケーション", "Communication", "communication"),
        ("チームワーク", "Teamwork", "teamwork"),
    ],
}


def _demo_structure() -> EvaluationStructure:
    categories = []
    mapping = {}
    for index, ((name, name_en), items) in enumerate(DEMO_SHEET.items(), start=1):
        category = EvaluationCategory(id=f"demo_cat_{index}", name=name, name_en=name_en, weight=1.0)
        for item_index, (item_name, item_en, dimension) in enumerate(items, start=1):
            item = EvaluationItem(
                id=f"demo_item_{index}_{item_index}",
                name=item_name,
                name_en=item_en,
                description=f"{item_name}の評価項目",
                weight=1.0,
                skill_dimension=dimension,
            )
            category.items.append(item)
            mapping.setdefault(dimension, []).append(item.id)
        categories.append(category)
    return EvaluationStructure(
        id="demo_structure",
        tenant_id=DEMO_TENANT_ID,
        job_type_id=None,
        categories=categories,
        version="2.0",
        skill_dimension_mapping=mapping,
    )


async def ensure_demo_data(db: SQLiteService) -> dict:
    """Seed the demo tenant if it doesn't exist yet. Returns summary counts."""
    if await db.get_tenant(DEMO_TENANT_ID):
        return {}

    await db.create_tenant(Tenant(
        id=DEMO_TENANT_ID,
        name="デモ建設株式会社",
        status=TenantStatus.active,
        admin_user_id="demo_admin",
    ))
    for profile in DEMO_PROFILES:
        await db.create_user(User(status=UserStatus.active, tenant_id=DEMO_TENANT_ID, **profile))

    await db.create_job_type(JobType(id="construction", tenant_id=DEMO_TENANT_ID, name="建設作業員"))
    await db.create_job_type(JobType(id="electrician", tenant_id=DEMO_TENANT_ID, name="電気工事士"))

    year = date.today().year
    await db.create_period(EvaluationPeriod(
        id=f"demo_period_{year}",
        tenant_id=DEMO_TENANT_ID,
        name=f"{year}年度",
        start_date=f"{year}-01-01",
        end_date=f"{year}-12-31",
        status=PeriodStatus.active,
    ))
    await db.save_structure(_demo_structure())

    summary = {"tenants": 1, "users": len(DEMO_PROFILES), "job_types": 2, "periods": 1, "structures": 1}
    logger.info(f"Seeded demo data: {summary}")
    return summary
