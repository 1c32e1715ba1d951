"""
Mock Identity Server for Testing

A lightweight stand-in for the hosted identity REST API
(accounts:signInWithPassword, accounts:signUp). Accounts live in memory;
errors come back in the vendor's {"error": {"message": ...}} shape.
"""

import uuid

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

VALID_API_KEY = "AIzaSyTEST-key-0000000000000000000000"


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": status_code, "message": message, "errors": [{"message": message}]}},
    )


def create_identity_app() -> FastAPI:
    """Build a fresh mock identity server.

    ``app.state.accounts`` maps email -> {"localId", "password", "displayName"};
    ``app.state.calls`` records (method, email) for every request.
    """
    app = FastAPI(title="Mock Identity Server")
    app.state.accounts = {}
    app.state.calls = []

    @app.post("/v1/accounts:signInWithPassword")
    async def sign_in(request: Request, key: str = Query("")):
        body = await request.json()
        app.state.calls.append(("signInWithPassword", body.get("email")))
        if key != VALID_API_KEY:
            return _error("API key not valid. Please pass a valid API key.")
        account = app.state.accounts.get(body.get("email"))
        if account is None:
            return _error("EMAIL_NOT_FOUND")
        if account.get("disabled"):
            return _error("USER_DISABLED")
        if account["password"] != body.get("password"):
            return _error("INVALID_PASSWORD")
        return {
            "localId": account["localId"],
            "email": body["email"],
            "displayName": account.get("displayName", ""),
            "idToken": f"token-{account['localId']}",
            "refreshToken": "refresh",
            "registered": True,
        }

    @app.post("/v1/accounts:signUp")
    async def sign_up(request: Request, key: str = Query("")):
        body = await request.json()
        app.state.calls.append(("signUp", body.get("email")))
        if key != VALID_API_KEY:
            return _error("API key not valid. Please pass a valid API key.")
        email = body.get("email") or ""
        if "@" not in email:
            return _error("INVALID_EMAIL")
        if email in app.state.accounts:
            return _error("EMAIL_EXISTS")
        if len(body.get("password") or "") < 6:
            return _error("WEAK_PASSWORD : Password should be at least 6 characters")
        local_id = uuid.uuid4().hex[:28]
        app.state.accounts[email] = {
            "localId": local_id,
            "password": body["password"],
            "displayName": body.get("displayName", ""),
        }
        return {"localId": local_id, "email": email, "idToken": f"token-{local_id}", "refreshToken": "refresh"}

    return app
