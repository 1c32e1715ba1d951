"""
Integration Tests for the Portal

End-to-end flows through the FastAPI app with separate browser clients:
invitation -> registration -> approval -> login, tenant administrator
application -> developer approval, and development-host startup.
"""

import pytest
from fastapi import status
from httpx import AsyncClient, ASGITransport


def browser(app) -> AsyncClient:
    """A separate client (own cookie jar) against the app."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def login(client, email, password):
    return await client.post("/login", data={"email": email, "password": password})


class TestInvitationLifecycle:
    """Admin invites a worker who registers, gets approved and logs in."""

    async def test_invite_register_approve_login(self, app, db, context, tenant_with_admin):
        async with app.router.lifespan_context(app), browser(app) as admin, browser(app) as worker:
            # 1. admin logs in and creates an invitation
            assert (await login(admin, "admin@acme.test", "secret123")).headers["location"] == "/dashboard"
            response = await admin.post("/users", data={"action": "invite", "email": "kenji@acme.test", "role": "worker"})
            assert response.headers["location"] == "/users"
            assert f"{context.public_url}/register?token=" in (await admin.get("/users")).text

            invitation = (await db.list_invitations("tenant_acme"))[0]

            # 2. the invitee opens the link and registers
            page = await worker.get(f"/register?token={invitation.token}")
            assert page.status_code == status.HTTP_200_OK
            assert "kenji@acme.test" in page.text
            response = await worker.post("/register", data={
                "token": invitation.token, "name": "健二", "password": "pw123456", "confirm_password": "pw123456",
            })
            assert response.headers["location"] == "/login"

            # 3. pending accounts cannot log in yet
            assert (await login(worker, "kenji@acme.test", "pw123456")).headers["location"] == "/login"
            assert context.i18n.t("errors.account_pending") in (await worker.get("/login")).text

            # 4. the link is now spent
            used = await worker.get(f"/register?token={invitation.token}")
            assert context.i18n.t("errors.invitation_invalid") in used.text

            # 5. admin approves the new user
            new_user = await db.get_user_by_email("kenji@acme.test")
            assert f'value="{new_user.id}"' in (await admin.get("/users")).text
            await admin.post("/users", data={"action": "approve", "user_id": new_user.id})

            # 6. the worker logs in and reaches the dashboard
            assert (await login(worker, "kenji@acme.test", "pw123456")).headers["location"] == "/dashboard"
            dashboard = await worker.get("/dashboard")
            assert dashboard.status_code == status.HTTP_200_OK
            assert "健二" in dashboard.text
            assert 'href="/users"' not in dashboard.text

    async def test_worker_cannot_open_admin_pages(self, app, db, context, tenant_with_admin, identity_app):
        from src.api.models import Role, User, UserStatus

        await db.create_user(User(id="uid_w", email="w@acme.test", role=Role.worker,
                                  status=UserStatus.active, tenant_id="tenant_acme"))
        identity_app.state.accounts["w@acme.test"] = {"localId": "uid_w", "password": "pw123456"}

        async with app.router.lifespan_context(app), browser(app) as client:
            await login(client, "w@acme.test", "pw123456")
            page = await client.get("/settings")

        assert page.status_code == status.HTTP_200_OK
        assert context.i18n.t("common.access_denied") in page.text


class TestTenantApplication:
    """A company applies for an administrator account and a developer approves it."""

    async def test_apply_and_approve(self, app, db, identity_app):
        from src.api.models import Role, User, UserStatus

        await db.create_user(User(id="uid_dev", email="dev@portal.test", role=Role.developer, status=UserStatus.active))
        identity_app.state.accounts["dev@portal.test"] = {"localId": "uid_dev", "password": "devpass1"}

        async with app.router.lifespan_context(app), browser(app) as applicant, browser(app) as developer:
            response = await applicant.post("/register-admin", data={
                "company": "佐藤建設", "name": "佐藤", "email": "sato@sato.test",
                "password": "pw123456", "confirm_password": "pw123456",
            })
            assert response.headers["location"] == "/login"
            assert (await login(applicant, "sato@sato.test", "pw123456")).headers["location"] == "/login"

            await login(developer, "dev@portal.test", "devpass1")
            assert "佐藤建設" in (await developer.get("/developer")).text
            tenant = (await db.list_tenants())[0]
            await developer.post("/developer", data={"tenant_id": tenant.id})

            assert (await login(applicant, "sato@sato.test", "pw123456")).headers["location"] == "/dashboard"
            assert 'href="/users"' in (await applicant.get("/dashboard")).text


class TestDevelopmentHost:
    """Startup on a development host: inline config, demo data, fallback login."""

    @pytest.fixture
    def dev_app(self, context, identity_app):
        from src.api.main import create_app
        from src.portal.environment import Environment
        from src.portal.identity import IdentityService

        context.env = Environment("http://localhost:8000")
        context.identity = IdentityService(
            context.env, "http://identity.test/v1",
            client=AsyncClient(transport=ASGITransport(app=identity_app)),
        )
        return create_app(context)

    async def test_startup_seeds_and_demo_login_works(self, dev_app, db):
        async with dev_app.router.lifespan_context(dev_app), browser(dev_app) as client:
            config = (await client.get("/api/config")).json()
            assert config["source"] == "inline"
            assert config["environment"] == "development"
            assert await db.get_tenant("demo-tenant") is not None

            assert "admin@demo.com" in (await client.get("/login")).text

            # the inline demo key is refused by the identity service, so login falls back
            assert (await login(client, "admin@demo.com", "admin123")).headers["location"] == "/dashboard"
            session = (await client.get("/api/session")).json()
            assert session["user"]["is_temp"] is True
            assert (await client.get("/users")).status_code == status.HTTP_200_OK
