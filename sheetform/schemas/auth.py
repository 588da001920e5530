from pydantic import BaseModel
from typing import Optional


class LoginRequest(BaseModel):
    username: str
    password: str


class SessionStatus(BaseModel):
    authenticated: bool
    username: Optional[str] = None
