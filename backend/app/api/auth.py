# app/api/auth.py
from __future__ import annotations

import logging
import secrets
import time
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from app.config import Settings
from app.dependencies import get_app_settings
from app.schemas.auth import LoginRequest, LoginResponse, ValidateRequest
from app.services.periods import normalize_assembly

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])

SESSION_COOKIES = ("user-role", "assembly-name")


# ---------- helpers ----------
def _issue_token() -> str:
    return f"auth_{uuid.uuid4()}_{int(time.time() * 1000)}"


def _assembly_login(payload: LoginRequest, settings: Settings) -> LoginResponse | None:
    """Assembly sign-in: the password is the assembly's own name, case-insensitive."""
    name = normalize_assembly(payload.assembly)
    if not name or name not in settings.assemblies:
        return None
    if payload.password.strip().lower() != name.lower():
        return None
    return LoginResponse(
        role="assembly",
        token=_issue_token(),
        user_data={"assembly": name, "role": "assembly"},
        redirect="/dashboard",
    )


def _admin_login(payload: LoginRequest, settings: Settings) -> LoginResponse | None:
    if not settings.admin_email or not settings.admin_password:
        return None
    email = (payload.email or "").strip().lower()
    if email != settings.admin_email.strip().lower():
        return None
    if not secrets.compare_digest(payload.password, settings.admin_password):
        return None
    return LoginResponse(
        role="admin",
        token=_issue_token(),
        user_data={"email": settings.admin_email, "role": "admin"},
        redirect="/admin/dashboard",
    )


# ---------- routes ----------
@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, settings: Settings = Depends(get_app_settings)):
    if payload.login_type == "admin":
        result = _admin_login(payload, settings)
    else:
        result = _assembly_login(payload, settings)

    if result is None:
        logger.info("failed %s login for %r", payload.login_type, payload.email or payload.assembly)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info("%s login ok: %s", result.role, result.user_data)
    return result


@router.post("/logout")
def logout(response: Response):
    for name in SESSION_COOKIES:
        response.delete_cookie(name, path="/")
    return {"success": True, "message": "Logged out successfully"}


@router.post("/auth/validate")
def validate(payload: ValidateRequest):
    """Accepts tokens of the shape issued by /api/login; there is no server-side session store."""
    token = payload.token or ""
    if not token.startswith("auth_") or not payload.user_data:
        return JSONResponse(status_code=401, content={"valid": False})
    return {"valid": True, "userData": payload.user_data}
