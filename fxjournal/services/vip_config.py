"""VIP showcase scope configuration.

Decides which profile and user imported VIP trades belong to. Lookup order:
the service's in-memory cache, the local override file, the shared
configuration document in the database, then built-in defaults.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fxjournal.lib.config import (
    DEFAULT_VIP_PROFILE_ID,
    DEFAULT_VIP_USER_ID,
    LOCAL_PROFILE_KEY,
    LOCAL_USER_KEY,
    VIP_CONFIG_DOCUMENT,
)
from fxjournal.lib.db import db_session
from fxjournal.lib.errors import DatabaseError, ValidationError
from fxjournal.lib.local_settings import LocalSettings
from fxjournal.lib.logging_config import get_logger
from fxjournal.models import ConfigDocument

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportScope:
    """Profile and user that imported trades are attributed to."""

    profile_id: str
    user_id: str


DEFAULT_SCOPE = ImportScope(profile_id=DEFAULT_VIP_PROFILE_ID, user_id=DEFAULT_VIP_USER_ID)


class VipConfigService:
    """Resolves and updates the VIP showcase scope."""

    def __init__(
        self,
        local_settings: Optional[LocalSettings] = None,
        session_factory: Callable[[], AbstractContextManager[Session]] = db_session,
    ):
        """
        Initialize VIP config service.

        Args:
            local_settings: Local override store (default: LocalSettings())
            session_factory: Context manager factory yielding database sessions
        """
        self.local_settings = local_settings or LocalSettings()
        self.session_factory = session_factory
        self._cached: Optional[ImportScope] = None

    def resolve(self) -> ImportScope:
        """
        Return the current VIP scope.

        Each field is taken from the local override when set, otherwise from
        the configuration document. A failed document read falls back to the
        defaults and is not cached, so the next call retries.

        Returns:
            ImportScope to import trades into
        """
        if self._cached is not None:
            return self._cached

        local_profile = self.local_settings.get(LOCAL_PROFILE_KEY)
        local_user = self.local_settings.get(LOCAL_USER_KEY)
        if local_profile and local_user:
            self._cached = ImportScope(profile_id=local_profile, user_id=local_user)
            return self._cached

        try:
            data = self._load_document()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read VIP configuration, using defaults: {e}")
            return DEFAULT_SCOPE

        self._cached = ImportScope(
            profile_id=local_profile or data.get("profileId") or DEFAULT_VIP_PROFILE_ID,
            user_id=local_user or data.get("userId") or DEFAULT_VIP_USER_ID,
        )
        logger.debug(f"Resolved VIP scope: {self._cached}")
        return self._cached

    def set_config(self, profile_id: str, user_id: Optional[str] = None) -> ImportScope:
        """
        Point the VIP showcase at a profile.

        Updates the cache, the local override and merges the configuration
        document. An omitted user falls back to the default user everywhere.

        Args:
            profile_id: Profile to import VIP trades into
            user_id: Owning user (default: DEFAULT_VIP_USER_ID)

        Returns:
            The new scope

        Raises:
            ValidationError: profile_id is empty
            ConfigurationError: The local override could not be written
            DatabaseError: The configuration document could not be written
        """
        profile_id = profile_id.strip()
        if not profile_id:
            raise ValidationError("Profile ID cannot be empty")
        scope = ImportScope(profile_id=profile_id, user_id=(user_id or "").strip() or DEFAULT_VIP_USER_ID)

        self._cached = scope
        self.local_settings.set(LOCAL_PROFILE_KEY, scope.profile_id)
        if user_id:
            self.local_settings.set(LOCAL_USER_KEY, scope.user_id)
        else:
            self.local_settings.remove(LOCAL_USER_KEY)

        try:
            self._merge_document(
                {
                    "profileId": scope.profile_id,
                    "userId": scope.user_id,
                    "updatedAt": datetime.now(timezone.utc).isoformat(),
                }
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to save VIP configuration: {e}") from e

        logger.info(
            f"VIP profile configuration updated: profileId={scope.profile_id}, userId={scope.user_id}"
        )
        return scope

    def clear_cache(self) -> None:
        """Forget the cached scope; the next resolve() reads the stores again."""
        self._cached = None

    def clear_local_override(self) -> None:
        """Remove the local override so the shared document applies."""
        self.local_settings.remove(LOCAL_PROFILE_KEY, LOCAL_USER_KEY)
        self.clear_cache()

    def get_document(self) -> dict[str, Any]:
        """
        Raw configuration document (empty when none was saved).

        Raises:
            DatabaseError: The document could not be read
        """
        try:
            return self._load_document()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to read VIP configuration: {e}") from e

    def _load_document(self) -> dict[str, Any]:
        with self.session_factory() as session:
            document = session.get(ConfigDocument, VIP_CONFIG_DOCUMENT)
            return dict(document.data) if document else {}

    def _merge_document(self, values: dict[str, Any]) -> None:
        with self.session_factory() as session:
            document = session.get(ConfigDocument, VIP_CONFIG_DOCUMENT)
            if document is None:
                session.add(ConfigDocument(key=VIP_CONFIG_DOCUMENT, data=values))
            else:
                # Reassign so the JSON column is flagged dirty
                document.data = {**document.data, **values}
