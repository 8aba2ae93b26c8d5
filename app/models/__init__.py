"""
Juni — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.family import Family, Senior
from app.models.companion import Companion
from app.models.match import Match
from app.models.visit import Visit
from app.models.payout import Payout

__all__ = [
    "Family",
    "Senior",
    "Companion",
    "Match",
    "Visit",
    "Payout",
]
