"""API key persistence."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from vidgen_engine.db.models import ApiKeyModel
from vidgen_engine.domain.enums import ApiKeyStatus


class ApiKeyRepository:
    """Read/write access to the api_keys table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_valid_by_hash(self, key_hash: str, now: datetime) -> ApiKeyModel | None:
        """Return the key only if it is active and unexpired.

        Every rejection reason yields the same None.
        """
        stmt = select(ApiKeyModel).where(
            ApiKeyModel.key_hash == key_hash,
            ApiKeyModel.status == ApiKeyStatus.ACTIVE,
            or_(ApiKeyModel.expires_at.is_(None), ApiKeyModel.expires_at > now),
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def touch_last_used(self, key_id: UUID, now: datetime) -> None:
        self.session.execute(
            update(ApiKeyModel)
            .where(ApiKeyModel.id == key_id)
            .values(last_used_at=now)
            .execution_options(synchronize_session=False)
        )

    def add(
        self,
        owner_id: UUID,
        name: str,
        key_prefix: str,
        key_hash: str,
        rate_limit_per_minute: int,
        expires_at: datetime | None = None,
    ) -> ApiKeyModel:
        key = ApiKeyModel(
            owner_id=owner_id,
            name=name,
            key_prefix=key_prefix,
            key_hash=key_hash,
            status=ApiKeyStatus.ACTIVE,
            rate_limit_per_minute=rate_limit_per_minute,
            expires_at=expires_at,
        )
        self.session.add(key)
        self.session.flush()
        return key

    def get(self, key_id: UUID) -> ApiKeyModel | None:
        return self.session.get(ApiKeyModel, key_id)

    def list_for_owner(self, owner_id: UUID) -> list[ApiKeyModel]:
        stmt = (
            select(ApiKeyModel)
            .where(ApiKeyModel.owner_id == owner_id)
            .order_by(ApiKeyModel.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def set_status(self, key_id: UUID, status: ApiKeyStatus) -> bool:
        result = self.session.execute(
            update(ApiKeyModel)
            .where(ApiKeyModel.id == key_id)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def expire_lapsed(self, now: datetime) -> int:
        """Flip active keys past their expiry to ``expired``."""
        result = self.session.execute(
            update(ApiKeyModel)
            .where(
                ApiKeyModel.status == ApiKeyStatus.ACTIVE,
                ApiKeyModel.expires_at.is_not(None),
                ApiKeyModel.expires_at <= now,
            )
            .values(status=ApiKeyStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
