"""
Evaluation structure migration (v1 -> v2).

One-shot backfill over the evaluation_structures collection:
  - category / item ``weight`` (1.0) and ``name_en`` (copied from ``name``)
  - item ``skill_dimension`` from the item name, default technical_skills
  - item ``description`` ("<name>の評価項目")
  - ``version = "2.0"``
  - ``skill_dimension_mapping`` (dimension -> item ids), rebuilt for every
    structure that changed

Works on the raw documents so fields the current models don't know survive.
"""

import logging
from typing import Any, Dict, List

import aiosqlite

from .sqlite_service import SQLiteService

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_WEIGHT = 1.0
DEFAULT_ITEM_WEIGHT = 1.0
DEFAULT_SKILL_DIMENSION = "technical_skills"
TARGET_VERSION = "2.0"

# item name -> skill dimension
SKILL_DIMENSIONS = {
    # technical
    "専門知識": "technical_skills",
    "技術力": "technical_skills",
    "専門技術": "technical_skills",
    "作業効率": "efficiency",
    "効率性": "efficiency",
    "作業品質": "work_quality",
    "品質": "work_quality",
    "精密性": "precision",
    "正確性": "precision",
    # communication
    "報告・連絡": "communication",
    "コミュニケーション": "communication",
    "報連相": "communication",
    # team
    "チームワーク": "teamwork",
    "協調性": "teamwork",
    "リーダーシップ": "leadership",
    "指導力": "leadership",
    # problem solving
    "問題解決": "problem_solving",
    "問題解決力": "problem_solving",
    "課題解決": "problem_solving",
    # safety
    "安全意識": "safety_awareness",
    "安全管理": "safety_awareness",
    # other
    "創造性": "creativity",
    "計画性": "planning",
    "分析力": "analytical_skills",
    "責任感": "responsibility",
    "注意力": "attention_to_detail",
    "細部への注意": "attention_to_detail",
}


def skill_dimension_for(item_name: str) -> str:
    return SKILL_DIMENSIONS.get(item_name, DEFAULT_SKILL_DIMENSION)


def migrate_structure(structure: Dict[str, Any]) -> List[str]:
    """Patch one structure document in place. Returns the changes made (empty = untouched).

    Raises:
        ValueError: a category or item is not an object
    """
    changes: List[str] = []
    categories = structure.get("categories")
    if not isinstance(categories, list):
        categories = []

    for category in categories:
        if not isinstance(category, dict):
            raise ValueError(f"category is not an object: {category!r}")
        if not category.get("weight"):
            category["weight"] = DEFAULT_CATEGORY_WEIGHT
            changes.append(f"weight added to category {category.get('name')}")
        if not category.get("name_en") and category.get("name"):
            category["name_en"] = category["name"]
            changes.append(f"name_en added to category {category['name']}")

        items = category.get("items")
        if not isinstance(items, list):
            continue
        for item in items:
            if not isinstance(item, dict):
                raise ValueError(f"item in category {category.get('name')} is not an object: {item!r}")
            name = item.get("name")
            if not item.get("skill_dimension"):
                item["skill_dimension"] = skill_dimension_for(name or "")
                changes.append(f'"{name}" -> {item["skill_dimension"]}')
            if not item.get("weight"):
                item["weight"] = DEFAULT_ITEM_WEIGHT
                changes.append(f"weight added to item {name}")
            if not item.get("name_en") and name:
                item["name_en"] = name
                changes.append(f"name_en added to item {name}")
            if not item.get("description") and name:
                item["description"] = f"{name}の評価項目"
                changes.append(f"description added to item {name}")

    if not structure.get("version"):
        structure["version"] = TARGET_VERSION
        changes.append(f"version set to {TARGET_VERSION}")

    if changes and categories:
        mapping: Dict[str, List[str]] = {}
        for category in categories:
            for item in category.get("items") or []:
                if item.get("skill_dimension"):
                    mapping.setdefault(item["skill_dimension"], []).append(item.get("id"))
        structure["skill_dimension_mapping"] = mapping
        changes.append("skill_dimension_mapping rebuilt")

    return changes


async def migrate_evaluation_structures(db: SQLiteService, dry_run: bool = False) -> Dict[str, int]:
    """Run the backfill over every stored structure. Returns total/updated/skipped/errors counts."""
    documents = await db.list_structure_documents()
    logger.info(f"Found {len(documents)} evaluation structure(s){' (dry run)' if dry_run else ''}")

    summary = {"total": len(documents), "updated": 0, "skipped": 0, "errors": 0}
    for document in documents:
        structure_id = document.get("id")
        try:
            changes = migrate_structure(document)
        except ValueError as e:
            summary["errors"] += 1
            logger.error(f"{structure_id}: malformed document: {e}")
            continue
        if not changes:
            summary["skipped"] += 1
            logger.info(f"{structure_id}: no changes needed")
            continue
        for change in changes:
            logger.info(f"{structure_id}: {change}")
        if dry_run:
            summary["updated"] += 1
            continue
        try:
            await db.replace_structure_document(document)
        except aiosqlite.Error as e:
            summary["errors"] += 1
            logger.error(f"{structure_id}: update failed: {e}")
            continue
        summary["updated"] += 1

    logger.info(
        f"Migration summary: total={summary['total']} updated={summary['updated']} "
        f"skipped={summary['skipped']} errors={summary['errors']}"
    )
    return summary
