"""Data models for the Open House service."""

# Import SQLAlchemy ORM models to register them with Base.metadata
# so that metadata.create_all and migrations see every table
from openhouse.models.feed import (  # noqa: F401
    FeedPostCommentDB,
    FeedPostDB,
    FeedPostInteractionDB,
    InteractionType,
    PostType,
)
from openhouse.models.idea import IdeaCommentDB, IdeaDB, IdeaVoteDB  # noqa: F401
from openhouse.models.mentorship import MentorshipSessionDB, MentorshipStatus  # noqa: F401
from openhouse.models.payment import PaymentDB, PaymentMode, PaymentStatus  # noqa: F401
from openhouse.models.profile import CoinTransactionDB, ProfileDB  # noqa: F401
from openhouse.models.project import (  # noqa: F401
    MemberRole,
    ProjectDB,
    ProjectMemberDB,
    ProjectMilestoneDB,
    ProjectStatus,
    ProjectTaskDB,
    ProjectVisibility,
    TaskStatus,
)
from openhouse.models.social import (  # noqa: F401
    ConnectionDB,
    ConnectionStatus,
    ConversationDB,
    ConversationParticipantDB,
    ConversationType,
    DirectMessageDB,
)
from openhouse.models.validator import (  # noqa: F401
    MessageRole,
    ValidatorMessageDB,
    ValidatorSessionDB,
)

__all__ = [
    # Profiles and ledger
    "ProfileDB",
    "CoinTransactionDB",
    # Ideas and feed
    "IdeaDB",
    "IdeaVoteDB",
    "IdeaCommentDB",
    "FeedPostDB",
    "FeedPostCommentDB",
    "FeedPostInteractionDB",
    "PostType",
    "InteractionType",
    # Social
    "ConnectionDB",
    "ConnectionStatus",
    "ConversationDB",
    "ConversationParticipantDB",
    "ConversationType",
    "DirectMessageDB",
    # Projects
    "ProjectDB",
    "ProjectMemberDB",
    "ProjectTaskDB",
    "ProjectMilestoneDB",
    "ProjectStatus",
    "ProjectVisibility",
    "MemberRole",
    "TaskStatus",
    # Mentorship
    "MentorshipSessionDB",
    "MentorshipStatus",
    # Payments
    "PaymentDB",
    "PaymentStatus",
    "PaymentMode",
    # Idea validator
    "ValidatorSessionDB",
    "ValidatorMessageDB",
    "MessageRole",
]
