"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Protected routes take a Principal via Depends(get_current_principal). The
dependency runs before the route body, so an UnauthorizedError short-circuits
the request before any domain logic executes. api/main.py renders the error
as a uniform 401.

FastAPI reads and validates the request body before it solves dependencies,
so a protected router also sets route_class=TokenCheckedRoute. That route
verifies the header first, and a request without a valid token gets the same
401 whatever its body looks like.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Request, Response
from fastapi.routing import APIRoute

from auth.models import Principal
from auth.tokens import verify_authorization


def get_current_principal(request: Request) -> Principal:
    """Require a valid token. Raises UnauthorizedError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: Principal = Depends(get_current_principal)): ...
    """
    return verify_authorization(request.headers.get("Authorization"))


class TokenCheckedRoute(APIRoute):
    """APIRoute that rejects an invalid token before the body is parsed."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def checked_handler(request: Request) -> Response:
            verify_authorization(request.headers.get("Authorization"))
            return await handler(request)

        return checked_handler
