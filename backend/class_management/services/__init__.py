from .auth import authenticate_user, issue_token, register_user, seed_superadmin

__all__ = ["authenticate_user", "issue_token", "register_user", "seed_superadmin"]
