"""
Page routes: serve the shell document through the router.

Every GET builds the client's shell, lets the router navigate to the
requested path and returns the rendered document; if the router ended up
somewhere else (auth gate, unknown path, "/"), the browser is redirected
there instead. Form posts go to the page's handle_submit and are answered
with a redirect (post/redirect/get).
"""

import logging
import uuid
from typing import Dict, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from ..api import config
from .context import AppContext
from .errors import NavigationError
from .layout import render_document
from .pages.registry import PAGE_CLASSES
from .router import ROUTES, Router, route_of
from .shell import Shell

logger = logging.getLogger(__name__)

page_router = APIRouter()

CLIENT_COOKIE_MAX_AGE = 365 * 24 * 3600


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _client_id(request: Request) -> Tuple[str, bool]:
    """Client id from the cookie, or a fresh one (second value True when new)."""
    client_id = request.cookies.get(config.CLIENT_COOKIE_NAME)
    if client_id:
        return client_id, False
    return uuid.uuid4().hex, True


def _requested_path(request: Request) -> str:
    query = request.url.query
    return request.url.path + (f"?{query}" if query else "")


def _with_client_cookie(response: Response, client_id: str, is_new: bool) -> Response:
    if is_new:
        response.set_cookie(
            config.CLIENT_COOKIE_NAME,
            client_id,
            max_age=CLIENT_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
    return response


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(path, status_code=status.HTTP_303_SEE_OTHER)


@page_router.post("/logout")
async def logout(request: Request, context: AppContext = Depends(get_context)):
    client_id, is_new = _client_id(request)
    shell = Shell(context, context.storage_for(client_id))
    await shell.auth.logout()
    return _with_client_cookie(_redirect("/login"), client_id, is_new)


@page_router.get("/{path:path}", response_class=HTMLResponse)
async def show_page(path: str, request: Request, context: AppContext = Depends(get_context)):
    client_id, is_new = _client_id(request)
    requested = _requested_path(request)
    shell = Shell(context, context.storage_for(client_id), initial_path=requested)
    router = Router(shell)
    router.initialize()
    await router.navigate(requested, push_history=False)

    if router.current_path != requested:
        logger.debug(f"{requested} -> {router.current_path}")
        return _with_client_cookie(_redirect(router.current_path), client_id, is_new)

    document = render_document(shell, context.shell_template, router.current_route)
    return _with_client_cookie(HTMLResponse(document), client_id, is_new)


@page_router.post("/{path:path}")
async def submit_page(path: str, request: Request, context: AppContext = Depends(get_context)):
    route = route_of("/" + path)
    entry = ROUTES.get(route)
    if entry is None:
        raise HTTPException(404, f"No page at {route}")
    page_id, require_auth = entry

    client_id, is_new = _client_id(request)
    shell = Shell(context, context.storage_for(client_id), initial_path=route)
    if require_auth and not shell.auth.is_authenticated():
        return _with_client_cookie(_redirect("/login"), client_id, is_new)

    form_data = await request.form()
    form: Dict[str, str] = {key: value for key, value in form_data.items() if isinstance(value, str)}
    page_cls = PAGE_CLASSES[page_id]
    try:
        target = await page_cls.handle_submit(shell, form)
    except NavigationError as e:
        raise HTTPException(status.HTTP_405_METHOD_NOT_ALLOWED, str(e))
    except Exception as e:
        logger.error(f"Form submission to {route} failed: {e}", exc_info=True)
        raise HTTPException(500, f"Failed to process form: {str(e)}")
    return _with_client_cookie(_redirect(target), client_id, is_new)
