# app/schemas/auth.py
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assembly: Optional[str] = None
    password: str = ""
    email: Optional[str] = None
    login_type: Literal["assembly", "admin"] = Field("assembly", alias="loginType")


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    role: Literal["assembly", "admin"]
    token: str
    user_data: Dict[str, Any] = Field(serialization_alias="userData")
    redirect: str


class ValidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    user_data: Optional[Dict[str, Any]] = Field(None, alias="userData")
