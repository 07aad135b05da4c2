"""Builder-coin ledger: append-only transactions mirrored on the profile counter."""

import uuid

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.models.profile import CoinTransactionDB, ProfileDB

logger = structlog.get_logger(__name__)

WELCOME_BONUS_AMOUNT = 100
WELCOME_BONUS_REASON = "Welcome bonus - Platform access purchased"

# Reward amounts for platform activity
IDEA_POSTED = (10, "Posted new idea")
PROJECT_CREATED = (15, "Project created")
IDEA_COMMENT_POSTED = (2, "Commented on idea")
IDEA_COMMENT_RECEIVED = (1, "Comment received")
CONNECTION_ACCEPTED = (5, "Connection accepted")


class CoinLedger:
    """Records builder-coin awards.

    Every award inserts a ``coin_transactions`` row and bumps
    ``profiles.builder_coins`` with a SQL-side increment in the same
    transaction. Callers own the commit.
    """

    def __init__(self, db_session: AsyncSession):
        """Initialize coin ledger.

        Args:
            db_session: Database session shared with the calling service
        """
        self.db_session = db_session

    async def award_coins(
        self,
        user_id: uuid.UUID,
        amount: int,
        reason: str,
        reference_type: str | None = None,
        reference_id: uuid.UUID | None = None,
    ) -> uuid.UUID:
        """Award (or, with a negative amount, deduct) coins.

        Returns:
            Coin transaction ID
        """
        transaction_id = uuid.uuid4()
        self.db_session.add(
            CoinTransactionDB(
                id=transaction_id,
                user_id=user_id,
                amount=amount,
                reason=reason,
                reference_type=reference_type,
                reference_id=reference_id,
            )
        )
        await self.db_session.execute(
            update(ProfileDB)
            .where(ProfileDB.id == user_id)
            .values(builder_coins=ProfileDB.builder_coins + amount)
        )

        logger.info(
            "coins_awarded",
            user_id=str(user_id),
            amount=amount,
            reason=reason,
            reference_type=reference_type,
        )
        return transaction_id

    async def award_welcome_bonus(
        self, user_id: uuid.UUID, payment_id: uuid.UUID | None
    ) -> bool:
        """Award the one-time platform access bonus.

        Both the client verification path and the gateway webhook call this,
        so it is a no-op when the bonus already exists for the user.

        Returns:
            True if the bonus was awarded by this call
        """
        existing = await self.db_session.execute(
            select(func.count(CoinTransactionDB.id)).where(
                CoinTransactionDB.user_id == user_id,
                CoinTransactionDB.reason == WELCOME_BONUS_REASON,
            )
        )
        if (existing.scalar() or 0) > 0:
            logger.info("welcome_bonus_already_awarded", user_id=str(user_id))
            return False

        await self.award_coins(
            user_id,
            WELCOME_BONUS_AMOUNT,
            WELCOME_BONUS_REASON,
            reference_type="payment",
            reference_id=payment_id,
        )
        return True

    async def get_balance(self, user_id: uuid.UUID) -> int:
        """Current builder-coin balance from the profile counter."""
        result = await self.db_session.execute(
            select(ProfileDB.builder_coins).where(ProfileDB.id == user_id)
        )
        return result.scalar() or 0

    async def list_transactions(
        self, user_id: uuid.UUID, limit: int = 50
    ) -> list[CoinTransactionDB]:
        """Most recent ledger entries for a user."""
        result = await self.db_session.execute(
            select(CoinTransactionDB)
            .where(CoinTransactionDB.user_id == user_id)
            .order_by(CoinTransactionDB.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
