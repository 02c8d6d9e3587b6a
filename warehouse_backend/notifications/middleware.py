# notifications/middleware.py

"""
WebSocket JWT authentication.

The access token comes from ?token=<access> or an
"Authorization: Bearer <access>" header. Anything invalid leaves
scope["user"] as AnonymousUser; the consumer closes those sockets.
"""

import logging
from urllib.parse import parse_qs

from channels.auth import AuthMiddlewareStack
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


def _token_from_scope(scope) -> str:
    query = parse_qs((scope.get("query_string") or b"").decode())
    token = (query.get("token") or [""])[0].strip()
    if token:
        return token

    for name, value in scope.get("headers") or []:
        if name == b"authorization":
            parts = value.decode().split()
            if len(parts) == 2 and parts[0].lower() == "bearer":
                return parts[1]
    return ""


@database_sync_to_async
def get_user_for_token(raw_token: str):
    try:
        token = AccessToken(raw_token)
    except (InvalidToken, TokenError):
        return AnonymousUser()

    User = get_user_model()
    user_id = token.get(api_settings.USER_ID_CLAIM)
    user = User.objects.select_related("role").filter(**{api_settings.USER_ID_FIELD: user_id}).first()
    if user is None or not user.is_active:
        return AnonymousUser()
    return user


class JWTAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        raw = _token_from_scope(scope)
        if raw:
            scope["user"] = await get_user_for_token(raw)
        elif "user" not in scope:
            scope["user"] = AnonymousUser()
        return await super().__call__(scope, receive, send)


def JWTAuthMiddlewareStack(inner):
    """Session auth (browsable/admin) first, then the JWT override."""
    return AuthMiddlewareStack(JWTAuthMiddleware(inner))
