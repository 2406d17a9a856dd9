"""Gestion de session partagée par les adapters SQLAlchemy."""

from datetime import datetime, timezone
from typing import AsyncContextManager, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from model_gateway.db.session import get_db_context

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class SessionScopedAdapter:
    """Base des adapters SQLAlchemy.

    Si une session est fournie au constructeur, elle est réutilisée (et ni
    commitée ni fermée). Sinon chaque opération ouvre sa propre session
    courte via session_factory (get_db_context par défaut), commitée en
    sortie: aucune connexion n'est gardée entre deux opérations.
    """

    def __init__(
        self,
        session: AsyncSession | None = None,
        session_factory: SessionFactory | None = None,
    ):
        """Initialise l'adapter.

        Args:
            session: Session SQLAlchemy optionnelle, partagée par toutes les opérations
            session_factory: Fabrique de sessions par opération (ignorée si session)
        """
        self._session = session
        self._session_factory = session_factory or get_db_context

    def _get_session(self):
        """Retourne une session SQLAlchemy (context manager async)."""
        if self._session:
            # Utiliser la session fournie (ne pas la fermer)
            return _SessionWrapper(self._session)
        return self._session_factory()


class _SessionWrapper:
    """Wrapper pour utiliser une session existante comme context manager."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def __aenter__(self):
        return self._session

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # Ne pas fermer la session fournie
        pass


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite renvoie des datetimes naïfs: on les considère en UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
