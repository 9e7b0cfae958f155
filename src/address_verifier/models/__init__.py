"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from address_verifier.models.user import User
from address_verifier.models.verification_log import VerificationLog

__all__ = [
    "User",
    "VerificationLog",
]
