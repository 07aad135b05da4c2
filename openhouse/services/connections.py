"""Connection requests between builders."""

import uuid

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError
from openhouse.models.profile import ProfileDB
from openhouse.models.social import ConnectionDB, ConnectionStatus
from openhouse.services import coin_ledger
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed
from openhouse.services.coin_ledger import CoinLedger

logger = structlog.get_logger(__name__)


class ConnectionService:
    """Sends, answers and lists connection requests."""

    def __init__(self, db_session: AsyncSession, feed: ChangeFeed | None = None):
        """Initialize connection service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.feed = feed or change_feed
        self.ledger = CoinLedger(db_session)

    async def send_request(
        self, sender_id: uuid.UUID, receiver_id: uuid.UUID, message: str | None = None
    ) -> ConnectionDB:
        """Send a connection request.

        Raises:
            InvalidRequestError: If the sender targets themselves
            NotFoundError: If the receiver has no profile
            ConflictError: If a pending or accepted connection exists in either direction

        A rejected request between the pair is reopened as a new pending
        request from the current sender.
        """
        if sender_id == receiver_id:
            raise InvalidRequestError("You cannot connect with yourself")

        if await self.db_session.get(ProfileDB, receiver_id) is None:
            raise NotFoundError(f"Profile {receiver_id} not found")

        existing = await self.find_between(sender_id, receiver_id)
        if existing is not None and existing.status == ConnectionStatus.REJECTED.value:
            return await self._reopen(existing, sender_id, receiver_id, message)
        if existing is not None:
            raise ConflictError(
                "A connection already exists between these users",
                details={"connection_id": str(existing.id), "status": existing.status},
            )

        connection = ConnectionDB(
            id=uuid.uuid4(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            status=ConnectionStatus.PENDING.value,
            message=message,
        )
        self.db_session.add(connection)
        await self.db_session.commit()

        logger.info(
            "connection_requested",
            connection_id=str(connection.id),
            sender_id=str(sender_id),
            receiver_id=str(receiver_id),
        )
        self.feed.publish_row(connection, ChangeType.INSERT)
        return connection

    async def _reopen(
        self,
        connection: ConnectionDB,
        sender_id: uuid.UUID,
        receiver_id: uuid.UUID,
        message: str | None,
    ) -> ConnectionDB:
        connection.sender_id = sender_id
        connection.receiver_id = receiver_id
        connection.status = ConnectionStatus.PENDING.value
        connection.message = message
        await self.db_session.commit()

        logger.info(
            "connection_rerequested",
            connection_id=str(connection.id),
            sender_id=str(sender_id),
            receiver_id=str(receiver_id),
        )
        self.feed.publish_row(connection, ChangeType.UPDATE)
        return connection

    async def respond(
        self, connection_id: uuid.UUID, user_id: uuid.UUID, status: ConnectionStatus
    ) -> ConnectionDB:
        """Accept or reject a pending request (receiver only).

        Accepting awards connection coins to each party with platform access.
        """
        connection = await self.db_session.get(ConnectionDB, connection_id)
        if connection is None:
            raise NotFoundError(f"Connection {connection_id} not found")
        if connection.receiver_id != user_id:
            raise PermissionDeniedError("Only the receiver can respond to this request")
        if connection.status != ConnectionStatus.PENDING.value:
            raise ConflictError(f"Connection request already {connection.status}")
        if status == ConnectionStatus.PENDING:
            raise InvalidRequestError("status must be 'accepted' or 'rejected'")

        connection.status = status.value

        if status == ConnectionStatus.ACCEPTED:
            amount, reason = coin_ledger.CONNECTION_ACCEPTED
            result = await self.db_session.execute(
                select(ProfileDB.id).where(
                    ProfileDB.id.in_([connection.sender_id, connection.receiver_id]),
                    ProfileDB.has_paid.is_(True),
                )
            )
            for paid_user_id in result.scalars().all():
                await self.ledger.award_coins(
                    paid_user_id,
                    amount,
                    reason,
                    reference_type="connection",
                    reference_id=connection.id,
                )

        await self.db_session.commit()

        logger.info(
            "connection_answered", connection_id=str(connection_id), status=connection.status
        )
        self.feed.publish_row(connection, ChangeType.UPDATE)
        return connection

    async def list_connections(
        self, user_id: uuid.UUID, status: ConnectionStatus | None = None
    ) -> list[ConnectionDB]:
        """Connections the user sent or received, newest first."""
        query = select(ConnectionDB).where(
            or_(ConnectionDB.sender_id == user_id, ConnectionDB.receiver_id == user_id)
        )
        if status is not None:
            query = query.where(ConnectionDB.status == status.value)

        result = await self.db_session.execute(query.order_by(ConnectionDB.created_at.desc()))
        return list(result.scalars().all())

    async def find_between(
        self, user_a: uuid.UUID, user_b: uuid.UUID
    ) -> ConnectionDB | None:
        """Connection between two users regardless of direction."""
        result = await self.db_session.execute(
            select(ConnectionDB).where(
                or_(
                    and_(ConnectionDB.sender_id == user_a, ConnectionDB.receiver_id == user_b),
                    and_(ConnectionDB.sender_id == user_b, ConnectionDB.receiver_id == user_a),
                )
            )
        )
        return result.scalars().first()

    async def are_connected(self, user_a: uuid.UUID, user_b: uuid.UUID) -> bool:
        """Whether an accepted connection links the two users."""
        connection = await self.find_between(user_a, user_b)
        return connection is not None and connection.status == ConnectionStatus.ACCEPTED.value

    async def connected_user_ids(self, user_id: uuid.UUID) -> set[uuid.UUID]:
        """IDs of everyone with an accepted connection to the user."""
        result = await self.db_session.execute(
            select(ConnectionDB.sender_id, ConnectionDB.receiver_id).where(
                ConnectionDB.status == ConnectionStatus.ACCEPTED.value,
                or_(ConnectionDB.sender_id == user_id, ConnectionDB.receiver_id == user_id),
            )
        )
        return {
            receiver if sender == user_id else sender for sender, receiver in result.all()
        }
