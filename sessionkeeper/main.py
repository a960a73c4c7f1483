import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .auth_client import AuthClient
from .config import settings
from .errors import StoreUnavailable
from .models import CredentialPair
from .service import SessionManager
from .store import build_store
from .triggers import tick_loop

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

store = build_store(settings)
auth = AuthClient(settings.AUTH_BASE_URL, settings.HTTP_TIMEOUT_SEC, api_prefix=settings.AUTH_API_PREFIX)
manager = SessionManager(
    store,
    auth,
    access_name=settings.ACCESS_TOKEN_NAME,
    refresh_name=settings.REFRESH_TOKEN_NAME,
    refresh_ttl_sec=settings.REFRESH_TTL_SEC,
    leeway_sec=settings.EXPIRY_LEEWAY_SEC,
    token_type=settings.TOKEN_TYPE,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    task = None
    if settings.KEEPALIVE_INTERVAL_SEC > 0:
        task = asyncio.create_task(tick_loop(manager, settings.KEEPALIVE_INTERVAL_SEC))
    yield
    if task is not None:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
    close = getattr(store, "close", None)
    if close is not None:
        await close()


app = FastAPI(title="Session Keeper", lifespan=lifespan)


def get_manager() -> SessionManager:
    return manager


def get_auth(m: SessionManager = Depends(get_manager)) -> AuthClient:
    return m.auth


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(_: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=503, content={"detail": "credential store unavailable"})


class LoginIn(BaseModel):
    email: str
    password: str


class LogoutIn(BaseModel):
    notify_server: bool = False


class CheckOut(BaseModel):
    usable: bool
    reason: str
    credentials: Optional[CredentialPair] = None


@app.post("/session/login")
async def login(inp: LoginIn, m: SessionManager = Depends(get_manager), a: AuthClient = Depends(get_auth)):
    pair = await a.safe_login(inp.email, inp.password)
    if pair is None:
        raise HTTPException(status_code=401, detail="login failed")
    await m.establish(pair)
    return {"state": (await m.current_state()).value}


@app.post("/session/register")
async def register(inp: LoginIn, m: SessionManager = Depends(get_manager), a: AuthClient = Depends(get_auth)):
    pair = await a.safe_register(inp.email, inp.password)
    if pair is None:
        raise HTTPException(status_code=400, detail="registration failed")
    await m.establish(pair)
    return {"state": (await m.current_state()).value}


@app.post("/session/establish")
async def establish(pair: CredentialPair, m: SessionManager = Depends(get_manager)):
    await m.establish(pair)
    return {"state": (await m.current_state()).value}


@app.post("/session/ensure", response_model=CheckOut)
async def ensure(m: SessionManager = Depends(get_manager)):
    result = await m.check()
    return CheckOut(usable=result.usable, reason=result.reason.value, credentials=result.credentials)


@app.post("/tick/focus", response_model=CheckOut)
async def tick_focus(m: SessionManager = Depends(get_manager)):
    result = await m.on_focus()
    return CheckOut(usable=result.usable, reason=result.reason.value, credentials=result.credentials)


@app.post("/session/logout")
async def logout(inp: Optional[LogoutIn] = None, m: SessionManager = Depends(get_manager)):
    await m.terminate(notify_server=bool(inp and inp.notify_server))
    return {"state": (await m.current_state()).value}


@app.get("/session/state")
async def state(m: SessionManager = Depends(get_manager)):
    return {"state": (await m.current_state()).value}
