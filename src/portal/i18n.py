"""Message catalog for the portal UI (Japanese default, English)."""

import logging
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "ja"

MESSAGES: Dict[str, Dict[str, str]] = {
    "ja": {
        "app.name": "建設業評価管理システム",
        "common.loading": "読み込み中...",
        "common.error": "エラー",
        "common.back_to_login": "ログインページに戻る",
        "common.reload": "再読み込み",
        "common.save": "保存",
        "common.approve": "承認",
        "common.reject": "差し戻し",
        "common.access_denied": "このページへのアクセス権がありません。",
        "common.none": "データがありません。",
        "errors.page_load_title": "ページの読み込みエラー",
        "errors.page_load_failed": "ページ「{page}」の読み込みに失敗しました。",
        "errors.passwords_not_match": "パスワードが一致しません。",
        "errors.passwords_match": "パスワードが一致しました。",
        "errors.registration_failed": "登録申請に失敗しました。",
        "errors.request_in_progress": "処理中です。しばらくお待ちください。",
        "errors.email_already_in_use": "このメールアドレスは既に使用されています。",
        "errors.weak_password": "パスワードが弱すぎます。",
        "errors.invalid_email": "メールアドレスの形式が正しくありません。",
        "errors.login_failed": "ログインに失敗しました。",
        "errors.user_not_found": "ユーザーが見つかりません。",
        "errors.wrong_password": "パスワードが正しくありません。",
        "errors.invalid_credential": "メールアドレスまたはパスワードが正しくありません。",
        "errors.user_disabled": "このアカウントは無効化されています。",
        "errors.too_many_requests": "試行回数が多すぎます。しばらくしてから再度お試しください。",
        "errors.account_pending": "アカウントは承認待ちです。管理者にお問い合わせください。",
        "errors.network": "認証サービスに接続できません。",
        "errors.temp_auth_failed": "認証に失敗しました。デモアカウントを使用してください。",
        "errors.invitation_missing": "招待リンクが無効です。管理者にお問い合わせください。",
        "errors.invitation_invalid": "この招待リンクは無効か、既に使用されています。",
        "errors.goal_weights": "目標のウェイトの合計は100にしてください。",
        "errors.invalid_input": "入力内容に誤りがあります。",
        "auth.login": "ログイン",
        "auth.logout": "ログアウト",
        "auth.email": "メールアドレス",
        "auth.password": "パスワード",
        "auth.confirm_password": "パスワード確認",
        "auth.name": "氏名",
        "auth.company": "企業名",
        "auth.register": "登録申請",
        "auth.register_user": "ユーザー登録",
        "auth.register_admin": "管理者アカウント申請",
        "auth.demo_accounts": "デモアカウント",
        "auth.invalid_access": "無効なアクセス",
        "auth.invitation_error": "招待リンクエラー",
        "auth.invited_role": "役割",
        "auth.invited_company": "企業",
        "auth.approval_note": "登録後、管理者による承認が必要です。",
        "messages.register_user_success": "ユーザー登録申請を送信しました。承認をお待ちください。",
        "messages.register_admin_success": "管理者アカウントの申請を受け付けました。承認をお待ちください。",
        "messages.saved": "保存しました。",
        "messages.invitation_created": "招待リンクを作成しました: {link}",
        "messages.approved": "承認しました。",
        "messages.rejected": "差し戻しました。",
        "roles.developer": "開発者",
        "roles.admin": "管理者",
        "roles.evaluator": "評価者",
        "roles.worker": "作業員",
        "nav.dashboard": "ダッシュボード",
        "nav.users": "ユーザー管理",
        "nav.goal_setting": "目標設定",
        "nav.goal_approvals": "目標承認",
        "nav.evaluation_form": "評価入力",
        "nav.evaluations": "評価一覧",
        "nav.settings": "設定",
        "nav.developer": "開発者",
        "dashboard.total_users": "ユーザー数",
        "dashboard.total_evaluations": "評価数",
        "dashboard.completed_evaluations": "完了した評価",
        "dashboard.pending_goals": "承認待ちの目標",
        "dashboard.recent_evaluations": "最近の評価",
        "users.pending": "承認待ちユーザー",
        "users.invite": "ユーザーを招待",
        "goals.title": "目標設定",
        "goals.text": "目標",
        "goals.weight": "ウェイト(%)",
        "goals.submit": "承認申請",
        "evaluation.target": "評価対象者",
        "evaluation.score": "点数",
        "evaluation.comment": "コメント",
        "evaluation.submit": "評価を提出",
        "evaluation.no_structure": "評価項目が設定されていません。",
        "settings.job_types": "職種",
        "settings.periods": "評価期間",
        "settings.add": "追加",
        "developer.tenants": "テナント一覧",
        "developer.pending_admins": "承認待ちの管理者",
    },
    "en": {
        "app.name": "Construction Evaluation Management",
        "common.loading": "Loading...",
        "common.error": "Error",
        "common.back_to_login": "Back to login",
        "common.reload": "Reload",
        "common.save": "Save",
        "common.approve": "Approve",
        "common.reject": "Reject",
        "common.access_denied": "You do not have access to this page.",
        "common.none": "Nothing to show.",
        "errors.page_load_title": "Page load error",
        "errors.page_load_failed": "Failed to load page \"{page}\".",
        "errors.passwords_not_match": "Passwords do not match.",
        "errors.passwords_match": "Passwords match.",
        "errors.registration_failed": "Registration failed.",
        "errors.request_in_progress": "Your request is still being processed. Please wait.",
        "errors.email_already_in_use": "This email address is already in use.",
        "errors.weak_password": "The password is too weak.",
        "errors.invalid_email": "The email address is not valid.",
        "errors.login_failed": "Login failed.",
        "errors.user_not_found": "User not found.",
        "errors.wrong_password": "Incorrect password.",
        "errors.invalid_credential": "Incorrect email address or password.",
        "errors.user_disabled": "This account has been disabled.",
        "errors.too_many_requests": "Too many attempts. Please try again later.",
        "errors.account_pending": "Your account is awaiting approval.",
        "errors.network": "The authentication service is unreachable.",
        "errors.temp_auth_failed": "Authentication failed. Please use a demo account.",
        "errors.invitation_missing": "The invitation link is invalid. Please contact your administrator.",
        "errors.invitation_invalid": "This invitation link is invalid or has already been used.",
        "errors.goal_weights": "Goal weights must add up to 100.",
        "errors.invalid_input": "Some of the input is invalid.",
        "auth.login": "Log in",
        "auth.logout": "Log out",
        "auth.email": "Email",
        "auth.password": "Password",
        "auth.confirm_password": "Confirm password",
        "auth.name": "Name",
        "auth.company": "Company",
        "auth.register": "Register",
        "auth.register_user": "User registration",
        "auth.register_admin": "Administrator application",
        "auth.demo_accounts": "Demo accounts",
        "auth.invalid_access": "Invalid access",
        "auth.invitation_error": "Invitation error",
        "auth.invited_role": "Role",
        "auth.invited_company": "Company",
        "auth.approval_note": "An administrator must approve your registration.",
        "messages.register_user_success": "Registration submitted. Please wait for approval.",
        "messages.register_admin_success": "Administrator application received. Please wait for approval.",
        "messages.saved": "Saved.",
        "messages.invitation_created": "Invitation link created: {link}",
        "messages.approved": "Approved.",
        "messages.rejected": "Sent back.",
        "roles.developer": "Developer",
        "roles.admin": "Administrator",
        "roles.evaluator": "Evaluator",
        "roles.worker": "Worker",
        "nav.dashboard": "Dashboard",
        "nav.users": "Users",
        "nav.goal_setting": "Goals",
        "nav.goal_approvals": "Goal approvals",
        "nav.evaluation_form": "Evaluate",
        "nav.evaluations": "Evaluations",
        "nav.settings": "Settings",
        "nav.developer": "Developer",
        "dashboard.total_users": "Users",
        "dashboard.total_evaluations": "Evaluations",
        "dashboard.completed_evaluations": "Completed evaluations",
        "dashboard.pending_goals": "Goals awaiting approval",
        "dashboard.recent_evaluations": "Recent evaluations",
        "users.pending": "Users awaiting approval",
        "users.invite": "Invite a user",
        "goals.title": "Goal setting",
        "goals.text": "Goal",
        "goals.weight": "Weight (%)",
        "goals.submit": "Submit for approval",
        "evaluation.target": "Evaluated person",
        "evaluation.score": "Score",
        "evaluation.comment": "Comment",
        "evaluation.submit": "Submit evaluation",
        "evaluation.no_structure": "No evaluation items are configured.",
        "settings.job_types": "Job types",
        "settings.periods": "Evaluation periods",
        "settings.add": "Add",
        "developer.tenants": "Tenants",
        "developer.pending_admins": "Administrators awaiting approval",
    },
}


class I18n:
    """Looks up messages in the configured language, falling back to Japanese."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        if language not in MESSAGES:
            logger.warning(f"Unsupported language '{language}', using '{DEFAULT_LANGUAGE}'")
            language = DEFAULT_LANGUAGE
        self.language = language

    def t(self, key: str, **params) -> str:
        message = MESSAGES[self.language].get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key)
        if message is None:
            return key
        return message.format(**params) if params else message
