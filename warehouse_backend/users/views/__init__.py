from .auth import ChangePasswordView, LoginView, LogoutView
from .me import MeView
from .users import UserViewSet

__all__ = [
    "LoginView",
    "LogoutView",
    "ChangePasswordView",
    "MeView",
    "UserViewSet",
]
