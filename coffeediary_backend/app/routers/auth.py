from __future__ import annotations

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse

from coffeediary_backend.app.config import Settings
from coffeediary_backend.app.schemas import LoginIn, PasswordResetIn, SignUpIn
from coffeediary_backend.app.services.auth_flow import AuthFlowController, AuthState
from coffeediary_backend.app.services.backend import AuthEvent, Backend
from coffeediary_backend.app.services.router_helpers import auth_helpers as H
from coffeediary_backend.app.utils.logs import get_logger
from .deps import access_token_from, get_backend, get_settings, page_flow

router = APIRouter(prefix="/auth", tags=["auth"])
log = get_logger("routers.auth")


# What it does: sign-in / sign-up page; already signed-in callers go home.
@router.get("")
def auth_page(flow: AuthFlowController = Depends(page_flow)):
    if flow.authenticated:
        return RedirectResponse("/", status_code=303)
    return H.auth_page()


@router.post("/signup")
def signup(body: SignUpIn, backend: Backend = Depends(get_backend)) -> Dict[str, Any]:
    return H.signup(backend, body)


@router.post("/login")
def login(
    body: LoginIn,
    backend: Backend = Depends(get_backend),
    settings: Settings = Depends(get_settings),
):
    view = H.login(backend, body)
    resp = JSONResponse(view)
    resp.set_cookie(settings.session_cookie, view["access_token"], httponly=True, samesite="lax")
    return resp


@router.post("/logout")
def logout(
    request: Request,
    backend: Backend = Depends(get_backend),
    settings: Settings = Depends(get_settings),
):
    resp = JSONResponse(H.logout(backend, access_token_from(request)))
    resp.delete_cookie(settings.session_cookie)
    return resp


@router.post("/password-reset")
def password_reset(body: PasswordResetIn, backend: Backend = Depends(get_backend)):
    view = H.password_reset(backend, body.email)
    return JSONResponse(view, status_code=400 if view["error"] else 200)


# What it does: push channel for SIGNED_IN / SIGNED_OUT of the caller's session.
@router.websocket("/events")
async def auth_events(ws: WebSocket):
    await ws.accept()
    backend = get_backend(ws)
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _forward(flow: AuthFlowController, event: AuthEvent) -> None:
        # provider events fire on worker threads
        msg = {"event": event.value, "state": flow.state.value}
        loop.call_soon_threadsafe(queue.put_nowait, msg)

    flow = AuthFlowController(backend.identity, access_token_from(ws))
    flow.add_listener(_forward)
    await run_in_threadpool(flow.mount)
    try:
        state, user = flow.snapshot()
        await ws.send_json({"state": state.value, "user": user.model_dump() if user else None})
        if state is not AuthState.AUTHENTICATED:
            await ws.close()
            return

        async def _pump() -> None:
            while True:
                msg = await queue.get()
                await ws.send_json(msg)
                if msg["state"] == AuthState.UNAUTHENTICATED.value:
                    return

        async def _drain() -> None:
            while True:
                msg = await ws.receive()
                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(msg.get("code", 1000))

        done, pending = await asyncio.wait(
            {asyncio.ensure_future(_pump()), asyncio.ensure_future(_drain())},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
        for task in done:
            task.result()
        await ws.close()
    except WebSocketDisconnect:
        log.info("auth events socket closed by client")
    finally:
        flow.unmount()
