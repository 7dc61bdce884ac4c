from django.contrib.auth import get_user_model

# Canonical role names
ROLE_BUYER = "buyer"
ROLE_SELLER = "seller"
ROLE_ADMIN = "admin"


def _fetch_user_from_db(user):
    """Reload the role fields of an authenticated user, or None."""
    if not getattr(user, "is_authenticated", False):
        return None
    User = get_user_model()
    return User.objects.only("id", "role", "is_superuser").filter(pk=getattr(user, "pk", None)).first()


def is_admin(user) -> bool:
    """Admin check verified against the database, not the token claims."""
    db_user = _fetch_user_from_db(user)
    if not db_user:
        return False
    return bool(db_user.is_superuser or db_user.role == ROLE_ADMIN)
