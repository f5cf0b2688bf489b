"""API key issuance and validation."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from vidgen_engine.config import settings
from vidgen_engine.db.models import ApiKeyModel
from vidgen_engine.domain.enums import ApiKeyStatus
from vidgen_engine.domain.errors import AuthError, NotFoundError
from vidgen_engine.domain.models import ApiPrincipal
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.api_keys import ApiKeyRepository
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)

KEY_PREFIX = "vg_live_"
DISPLAY_PREFIX_LENGTH = 12


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()


def generate_api_key() -> str:
    return f"{KEY_PREFIX}{secrets.token_urlsafe(32)}"


@dataclass
class IssuedApiKey:
    """A freshly created key. ``raw_key`` is never stored and never shown again."""

    key: ApiKeyModel
    raw_key: str


class ApiKeyService:
    """Creates, revokes and validates API keys."""

    def __init__(self, session: Session, *, clock: Clock = utc_now) -> None:
        self.session = session
        self.clock = clock
        self.repo = ApiKeyRepository(session)

    def create(
        self,
        owner_id: UUID,
        name: str,
        rate_limit_per_minute: int | None = None,
        expires_at: datetime | None = None,
    ) -> IssuedApiKey:
        raw_key = generate_api_key()
        key = self.repo.add(
            owner_id=owner_id,
            name=name,
            key_prefix=raw_key[:DISPLAY_PREFIX_LENGTH],
            key_hash=hash_api_key(raw_key),
            rate_limit_per_minute=rate_limit_per_minute or settings.api_key_default_rate_limit,
            expires_at=expires_at,
        )
        self.session.commit()
        logger.info("api_key_created", key_id=str(key.id), owner_id=str(owner_id))
        return IssuedApiKey(key=key, raw_key=raw_key)

    def revoke(self, key_id: UUID) -> None:
        if not self.repo.set_status(key_id, ApiKeyStatus.REVOKED):
            raise NotFoundError("API key", key_id)
        self.session.commit()
        logger.info("api_key_revoked", key_id=str(key_id))

    def expire_lapsed(self) -> int:
        """Mark active keys whose expiry has passed as ``expired``."""
        expired = self.repo.expire_lapsed(self.clock())
        self.session.commit()
        if expired:
            logger.info("api_keys_expired", count=expired)
        return expired

    def validate(self, raw_key: str | None) -> ApiPrincipal:
        """Resolve a presented key to its owner.

        Raises:
            AuthError: For every rejection reason alike (missing, malformed,
                unknown, revoked, expired).
        """
        if not raw_key or not raw_key.startswith(KEY_PREFIX):
            raise AuthError()

        key = self.repo.find_valid_by_hash(hash_api_key(raw_key), self.clock())
        if key is None:
            logger.info("api_key_rejected", key_prefix=raw_key[:DISPLAY_PREFIX_LENGTH])
            raise AuthError()

        return ApiPrincipal(
            key_id=key.id,
            owner_id=key.owner_id,
            rate_limit_per_minute=key.rate_limit_per_minute,
        )

    def touch(self, key_id: UUID) -> None:
        """Record use of a key. Runs after the response is sent."""
        self.repo.touch_last_used(key_id, self.clock())
        self.session.commit()
