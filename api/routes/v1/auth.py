"""
api/routes/v1/auth.py -- Sign-up and sign-in REST endpoints.

Routes:
  POST /signup  -- create an account; public
  POST /signin  -- exchange username/password for a token; public, rate limited

Security:
  POST /signin is rate-limited per IP (Settings.signin_rate_limit).
  AuthService.sign_in() runs bcrypt even for unknown usernames, and unknown
  username and wrong password share one 401 body.
  Cache-Control: no-store on sign-in responses so tokens are never cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import MessageResponse, SignInRequest, SignInResponse, SignUpRequest
from auth.service import AuthService
from auth.tokens import format_authorization
from core.config import get_settings

router = APIRouter()


@router.post("/signup", response_model=MessageResponse, status_code=201)
def signup(request: Request, body: SignUpRequest) -> MessageResponse:
    """Register a new user. Duplicate usernames are a 400 already_exists."""
    auth_service: AuthService = request.app.state.auth_service
    auth_service.sign_up(body.name, body.username, body.password)
    return MessageResponse(message="Successfully created new user.")


@limiter.limit(get_settings().signin_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/signin", response_model=SignInResponse)
def signin(request: Request, body: SignInRequest) -> JSONResponse:
    """Verify credentials and return "<scheme> <jwt>" in the token field."""
    auth_service: AuthService = request.app.state.auth_service
    token = auth_service.sign_in(body.username, body.password)
    resp = JSONResponse(
        status_code=200,
        content=SignInResponse(token=format_authorization(token)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
