import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session

from songlist import auth, site
from songlist.config import CORS_ORIGINS, PORT
from songlist.db import get_session, init_db
from songlist.errors import SonglistError
from songlist.models import Admin
from songlist.routes import router as playlist_router

logger = logging.getLogger(__name__)


# Create tables on startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Songlist", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SonglistError)
def songlist_error_handler(request: Request, exc: SonglistError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/api/health")
def health(session: Session = Depends(get_session)):
    return {
        "status": "ok",
        "installed": auth.is_installed(session),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Setup

@app.get("/api/setup/status")
def setup_status(session: Session = Depends(get_session)):
    return {"installed": auth.is_installed(session)}


@app.post("/api/setup/install")
def setup_install(body: dict = Body(...), session: Session = Depends(get_session)):
    auth.install(session, body)
    return {"success": True, "message": "Installed"}


# Auth

@app.post("/api/auth/login", dependencies=[Depends(auth.require_installed)])
def login(body: dict = Body(...), session: Session = Depends(get_session)):
    admin, token = auth.login(session, body.get("username"), body.get("password"))
    return {"success": True, "token": token, "admin": {"id": admin.id, "username": admin.username}}


@app.post("/api/auth/logout")
def logout(token: Optional[str] = Depends(auth.bearer_token), session: Session = Depends(get_session)):
    auth.logout(session, token)
    return {"success": True, "message": "Logged out"}


@app.get("/api/auth/status", dependencies=[Depends(auth.require_installed)])
def auth_status(admin: Optional[Admin] = Depends(auth.current_admin)):
    if not admin:
        return {"authenticated": False}
    return {"authenticated": True, "admin": {"id": admin.id, "username": admin.username}}


@app.post("/api/auth/change-password", dependencies=[Depends(auth.require_installed)])
def change_password(
    body: dict = Body(...),
    admin: Admin = Depends(auth.require_admin),
    session: Session = Depends(get_session),
):
    auth.change_password(session, admin, body.get("oldPassword"), body.get("newPassword"))
    return {"success": True, "message": "Password changed"}


@app.get("/api/auth/hcaptcha-config", dependencies=[Depends(auth.require_installed)])
def hcaptcha_config(session: Session = Depends(get_session)):
    cfg = site.get_site_config(session)
    enabled = bool(cfg and cfg.hcaptcha_enabled)
    return {"enabled": enabled, "siteKey": cfg.hcaptcha_site_key if enabled else ""}


# Site

@app.get("/api/site/meta")
def site_meta(session: Session = Depends(get_session)):
    return site.site_meta(session)


@app.put("/api/site/config", dependencies=[Depends(auth.require_installed), Depends(auth.require_admin)])
def update_site_config(body: dict = Body(...), session: Session = Depends(get_session)):
    cfg = site.update_site_config(session, body)
    return {"success": True, "config": site.config_to_api(cfg)}


@app.put("/api/site/streamer", dependencies=[Depends(auth.require_installed), Depends(auth.require_admin)])
def update_streamer(body: dict = Body(...), session: Session = Depends(get_session)):
    streamer = site.update_streamer(session, body)
    return {"success": True, "streamer": {"name": streamer.name, "bilibiliUrl": streamer.bilibili_url}}


app.include_router(playlist_router)


def main():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
