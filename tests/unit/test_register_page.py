"""
Unit Tests for the Invitation Registration Page

Covers token validation on render, the password-match script, and the
submit flow: identity account, pending profile, invitation consumption and
the error messages shown for each failure.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import AsyncClient


def submit_form(invitation, password="pw123456", confirm=None, name="新人 太郎"):
    return {
        "token": invitation.token,
        "name": name,
        "password": password,
        "confirm_password": password if confirm is None else confirm,
    }


class TestRegisterRender:
    """Tests for RegisterPage.render() and init()."""

    async def test_missing_token_skips_lookup(self, context, make_shell):
        """Without ?token= the page shows an error and never queries the store."""
        from src.portal.pages.register import RegisterPage

        context.db = AsyncMock()
        shell = make_shell()
        page = RegisterPage(shell)

        markup = await page.render("/register")

        assert shell.t("errors.invitation_missing") in markup
        context.db.get_invitation.assert_not_awaited()
        await page.init()
        assert shell.container.scripts == []

    async def test_unknown_token(self, make_shell, db):
        from src.portal.pages.register import RegisterPage

        shell = make_shell()

        markup = await RegisterPage(shell).render("/register?token=does-not-exist")

        assert shell.t("errors.invitation_invalid") in markup
        assert "<form" not in markup

    async def test_used_invitation(self, make_shell, db, invitation):
        from src.portal.pages.register import RegisterPage

        await db.mark_invitation_used(invitation.token, "someone")
        shell = make_shell()

        markup = await RegisterPage(shell).render(f"/register?token={invitation.token}")

        assert shell.t("errors.invitation_invalid") in markup

    async def test_expired_invitation(self, make_shell, db, tenant_with_admin):
        from src.api.models import Invitation
        from src.portal.pages.register import RegisterPage

        tenant, _ = tenant_with_admin
        expired = await db.create_invitation(Invitation(
            email="late@acme.test",
            tenant_id=tenant.id,
            expires_at=(datetime.now(timezone.utc) - timedelta(hours=1)).isoformat(),
        ))
        shell = make_shell()

        markup = await RegisterPage(shell).render(f"/register?token={expired.token}")

        assert shell.t("errors.invitation_invalid") in markup

    async def test_valid_invitation_renders_form(self, make_shell, invitation):
        from src.portal.pages.register import SUBMIT_CONTROL, RegisterPage

        shell = make_shell()
        page = RegisterPage(shell)

        markup = await page.render(f"/register?token={invitation.token}")

        assert 'name="token" value="%s"' % invitation.token in markup
        assert 'value="new.worker@acme.test" readonly' in markup
        assert "ACME建設" in markup
        assert f'id="{SUBMIT_CONTROL}"' in markup
        assert page.invitation.id == invitation.id

    async def test_init_adds_password_match_script(self, make_shell, invitation):
        from src.portal.pages.register import RegisterPage

        shell = make_shell()
        page = RegisterPage(shell)
        shell.container.set_html(await page.render(f"/register?token={invitation.token}"))

        await page.init()

        assert len(shell.container.scripts) == 1
        script = shell.container.scripts[0]
        assert shell.t("errors.passwords_not_match") in script
        assert shell.t("errors.passwords_match") in script
        assert "<script>" in shell.container.render()

    async def test_disabled_control_renders_disabled(self, make_shell, invitation):
        from src.portal.pages.register import SUBMIT_CONTROL, RegisterPage

        shell = make_shell()
        shell.disable_control(SUBMIT_CONTROL)

        markup = await RegisterPage(shell).render(f"/register?token={invitation.token}")

        assert f'id="{SUBMIT_CONTROL}" class="btn btn-primary w-100 btn-lg" disabled' in markup


class TestRegisterSubmit:
    """Tests for RegisterPage.handle_submit()."""

    async def test_success_creates_pending_profile(self, make_shell, db, identity_app, invitation):
        from src.api.models import UserStatus
        from src.portal.pages.register import SUBMIT_CONTROL, RegisterPage

        shell = make_shell()

        target = await RegisterPage.handle_submit(shell, submit_form(invitation))

        assert target == "/login"
        account = identity_app.state.accounts["new.worker@acme.test"]
        user = await db.get_user(account["localId"])
        assert user is not None
        assert user.status == UserStatus.pending_approval
        assert user.role == invitation.role
        assert user.tenant_id == invitation.tenant_id
        assert user.name == "新人 太郎"
        stored = await db.find_invitation(invitation.token)
        assert stored.used is True
        assert stored.used_by == user.id
        assert shell.pop_flashes() == [{"level": "success", "message": shell.t("messages.register_user_success")}]
        assert not shell.is_disabled(SUBMIT_CONTROL)

    async def test_password_mismatch_makes_no_calls(self, make_shell, db, identity_app, invitation):
        from src.portal.pages.register import RegisterPage

        shell = make_shell()

        target = await RegisterPage.handle_submit(shell, submit_form(invitation, confirm="different"))

        assert target == f"/register?token={invitation.token}"
        assert identity_app.state.calls == []
        assert shell.pop_flashes()[0]["message"] == shell.t("errors.passwords_not_match")
        assert (await db.find_invitation(invitation.token)).used is False

    async def test_email_already_in_use(self, make_shell, db, identity_app, invitation):
        from src.portal.pages.register import RegisterPage

        identity_app.state.accounts["new.worker@acme.test"] = {"localId": "uid_taken", "password": "x"}
        shell = make_shell()

        target = await RegisterPage.handle_submit(shell, submit_form(invitation))

        assert target.startswith("/register?token=")
        assert shell.pop_flashes()[0]["message"] == shell.t("errors.email_already_in_use")
        assert await db.get_user("uid_taken") is None
        assert (await db.find_invitation(invitation.token)).used is False

    async def test_weak_password(self, make_shell, invitation):
        from src.portal.pages.register import RegisterPage

        shell = make_shell()

        await RegisterPage.handle_submit(shell, submit_form(invitation, password="123"))

        assert shell.pop_flashes()[0]["message"] == shell.t("errors.weak_password")

    async def test_other_errors_get_generic_message(self, context, make_shell, invitation):
        """Only three identity errors have their own message."""
        from src.portal.identity import IdentityService
        from src.portal.pages.register import SUBMIT_CONTROL, RegisterPage

        context.identity = IdentityService(
            context.env, "http://identity.test/v1",
            client=AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(502))),
        )
        shell = make_shell()

        await RegisterPage.handle_submit(shell, submit_form(invitation))

        assert shell.pop_flashes()[0]["message"] == shell.t("errors.registration_failed")
        assert not shell.is_disabled(SUBMIT_CONTROL)

    async def test_used_invitation_rejected(self, make_shell, db, identity_app, invitation):
        from src.portal.pages.register import RegisterPage

        await db.mark_invitation_used(invitation.token, "earlier_user")
        shell = make_shell()

        await RegisterPage.handle_submit(shell, submit_form(invitation))

        assert shell.pop_flashes()[0]["message"] == shell.t("errors.invitation_invalid")
        assert identity_app.state.calls == []

    async def test_control_disabled_while_registering(self, make_shell, invitation):
        from src.portal.identity import IdentityResult
        from src.portal.pages.register import SUBMIT_CONTROL, RegisterPage

        shell = make_shell()
        seen = []

        async def register(email, password, display_name=""):
            seen.append(shell.is_disabled(SUBMIT_CONTROL))
            return IdentityResult(uid="uid_seen", email=email)

        shell.auth.register_with_email = register

        await RegisterPage.handle_submit(shell, submit_form(invitation))

        assert seen == [True]
        assert not shell.is_disabled(SUBMIT_CONTROL)

    async def test_second_submit_while_registering_is_rejected(self, make_shell, identity_app, invitation):
        """Another request of the same client sees the control disabled and backs off."""
        from src.portal.identity import IdentityResult
        from src.portal.pages.register import SUBMIT_CONTROL, RegisterPage
        from src.portal.storage import MemoryStorage

        storage = MemoryStorage()
        first = make_shell(storage)
        second = make_shell(storage)
        outcome = []

        async def register(email, password, display_name=""):
            markup = await RegisterPage(second).render(f"/register?token={invitation.token}")
            outcome.append(f'id="{SUBMIT_CONTROL}" class="btn btn-primary w-100 btn-lg" disabled' in markup)
            outcome.append(await RegisterPage.handle_submit(second, submit_form(invitation)))
            return IdentityResult(uid="uid_first", email=email)

        first.auth.register_with_email = register

        assert await RegisterPage.handle_submit(first, submit_form(invitation)) == "/login"

        assert outcome == [True, f"/register?token={invitation.token}"]
        assert identity_app.state.calls == []
        flashes = [f["message"] for f in second.pop_flashes()]
        assert first.t("errors.request_in_progress") in flashes
        assert not second.is_disabled(SUBMIT_CONTROL)

    async def test_lost_invitation_race_creates_no_profile(self, make_shell, db, invitation, monkeypatch):
        """When the invitation is spent elsewhere mid-registration, no profile is stored."""
        from src.portal.errors import NotFoundError
        from src.portal.identity import IdentityResult
        from src.portal.pages.register import RegisterPage

        shell = make_shell()

        async def register(email, password, display_name=""):
            return IdentityResult(uid="uid_late", email=email)

        async def already_used(token, user_id):
            raise NotFoundError("invitation", token, "already used")

        shell.auth.register_with_email = register
        monkeypatch.setattr(db, "mark_invitation_used", already_used)

        target = await RegisterPage.handle_submit(shell, submit_form(invitation))

        assert target == f"/register?token={invitation.token}"
        assert await db.get_user("uid_late") is None
        assert shell.pop_flashes()[0]["message"] == shell.t("errors.invitation_invalid")


class TestDisabledControls:
    """Tests for the shell's disabled-control state in client storage."""

    def test_state_shared_through_storage(self, make_shell):
        from src.portal.storage import MemoryStorage

        storage = MemoryStorage()
        make_shell(storage).disable_control("save")

        assert make_shell(storage).is_disabled("save")
        make_shell(storage).enable_control("save")
        assert not make_shell(storage).is_disabled("save")
        assert storage.get_item("disabled_controls") is None

    def test_abandoned_control_is_released(self, make_shell, monkeypatch):
        from src.portal import shell as shell_module

        shell = make_shell()
        shell.disable_control("save")

        later = shell_module.time.time() + shell_module.DISABLED_CONTROL_TTL_SECONDS + 1
        monkeypatch.setattr(shell_module.time, "time", lambda: later)

        assert not shell.is_disabled("save")

    def test_unreadable_state_is_ignored(self, make_shell):
        from src.portal.storage import MemoryStorage

        storage = MemoryStorage()
        storage.set_item("disabled_controls", "{not json")

        assert not make_shell(storage).is_disabled("save")
