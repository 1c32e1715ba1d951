"""Closed page registry: every page the router can build, keyed by PageId."""

from enum import Enum
from typing import Callable, Dict, Type

from .base import BasePage
from .dashboard import DashboardPage
from .developer import DeveloperPage
from .evaluation_form import EvaluationFormPage
from .evaluations import EvaluationsPage
from .goal_approvals import GoalApprovalsPage
from .goal_setting import GoalSettingPage
from .login import LoginPage
from .register import RegisterPage
from .register_admin import RegisterAdminPage
from .settings import SettingsPage
from .user_management import UserManagementPage


class PageId(str, Enum):
    login = "login"
    register = "register"
    register_admin = "register_admin"
    dashboard = "dashboard"
    users = "users"
    goal_setting = "goal_setting"
    goal_approvals = "goal_approvals"
    evaluation_form = "evaluation_form"
    evaluations = "evaluations"
    settings = "settings"
    developer = "developer"


PageFactory = Callable[..., BasePage]

PAGE_CLASSES: Dict[PageId, Type[BasePage]] = {
    PageId.login: LoginPage,
    PageId.register: RegisterPage,
    PageId.register_admin: RegisterAdminPage,
    PageId.dashboard: DashboardPage,
    PageId.users: UserManagementPage,
    PageId.goal_setting: GoalSettingPage,
    PageId.goal_approvals: GoalApprovalsPage,
    PageId.evaluation_form: EvaluationFormPage,
    PageId.evaluations: EvaluationsPage,
    PageId.settings: SettingsPage,
    PageId.developer: DeveloperPage,
}

# page id -> factory(shell)
PAGE_REGISTRY: Dict[PageId, PageFactory] = dict(PAGE_CLASSES)

_unregistered = set(PageId) - set(PAGE_REGISTRY)
if _unregistered:
    raise RuntimeError(f"pages without a factory: {sorted(p.value for p in _unregistered)}")
