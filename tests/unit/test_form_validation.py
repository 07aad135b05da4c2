"""Unit tests for request form validation."""

import uuid

import pytest
from pydantic import ValidationError

from openhouse.models.feed import FeedPostCreate, FeedPostUpdate, PostType
from openhouse.models.idea import CommentCreate, IdeaCreate, IdeaUpdate
from openhouse.models.mentorship import MentorshipBooking
from openhouse.models.payment import CreateOrderRequest, VerifyPaymentRequest
from openhouse.models.profile import ProfileUpdate
from openhouse.models.project import (
    MilestoneUpdate,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    TaskCreate,
    TaskUpdate,
)
from openhouse.models.social import ConnectionRequest, ConnectionResponse, MessageCreate

VALID_IDEA = {
    "title": "Campus laundry",
    "description": "On-demand laundry pickup",
    "category": "Consumer",
    "stage": "idea",
}


@pytest.mark.unit
class TestRequiredFields:
    """Test that empty required fields are rejected."""

    @pytest.mark.parametrize("field", ["title", "description", "category", "stage"])
    @pytest.mark.parametrize("value", ["", "   ", "\n\t"])
    def test_idea_create_rejects_blank(self, field, value) -> None:
        """Test blank and whitespace-only idea fields."""
        with pytest.raises(ValidationError) as exc_info:
            IdeaCreate(**{**VALID_IDEA, field: value})

        assert exc_info.value.errors()[0]["loc"] == (field,)

    def test_idea_create_strips(self) -> None:
        """Test that surrounding whitespace is trimmed."""
        idea = IdeaCreate(**{**VALID_IDEA, "title": "  Campus laundry  "})

        assert idea.title == "Campus laundry"

    def test_idea_create_missing_field(self) -> None:
        """Test that omitted required fields are rejected."""
        with pytest.raises(ValidationError):
            IdeaCreate(title="Only a title")

    def test_idea_update_allows_omission_but_not_blank(self) -> None:
        """Test partial updates."""
        assert IdeaUpdate().model_dump(exclude_unset=True) == {}
        with pytest.raises(ValidationError):
            IdeaUpdate(title="  ")

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: CommentCreate(content="  "),
            lambda: MessageCreate(content=""),
            lambda: FeedPostCreate(post_type=PostType.DISCUSSION, content=" "),
            lambda: ProjectCreate(title="", description="d", category="c"),
            lambda: TaskCreate(title="   "),
            lambda: MentorshipBooking(mentor_id=uuid.uuid4(), topic=" "),
        ],
    )
    def test_other_forms_reject_blank(self, factory) -> None:
        """Test blank required text across forms."""
        with pytest.raises(ValidationError):
            factory()


@pytest.mark.unit
class TestFormDetails:
    """Test other form constraints."""

    def test_project_defaults(self) -> None:
        """Test project status and visibility defaults."""
        project = ProjectCreate(title="Open House", description="Network", category="Social")

        assert project.status == ProjectStatus.PLANNING
        assert project.visibility.value == "public"

    def test_feed_post_type_must_be_known(self) -> None:
        """Test that unknown post types are rejected."""
        with pytest.raises(ValidationError):
            FeedPostCreate(post_type="announcement", content="hello")

    def test_connection_note_blank_becomes_none(self) -> None:
        """Test that a whitespace-only note is dropped."""
        request = ConnectionRequest(receiver_id=uuid.uuid4(), message="   ")

        assert request.message is None

    def test_connection_response_cannot_be_pending(self) -> None:
        """Test that the receiver must accept or reject."""
        assert ConnectionResponse(status="accepted").status.value == "accepted"
        with pytest.raises(ValidationError):
            ConnectionResponse(status="pending")

    def test_mentorship_duration_bounds(self) -> None:
        """Test session duration limits."""
        with pytest.raises(ValidationError):
            MentorshipBooking(mentor_id=uuid.uuid4(), topic="Fundraising", duration_minutes=0)

    def test_order_amount_positive(self) -> None:
        """Test that orders need a positive amount."""
        assert CreateOrderRequest(amount=499, isTestMode=True).is_test_mode is True
        with pytest.raises(ValidationError):
            CreateOrderRequest(amount=0)

    def test_verify_request_aliases(self) -> None:
        """Test camelCase checkout fields."""
        request = VerifyPaymentRequest(orderId="order_1", paymentId="pay_1", signature="sig")

        assert request.order_id == "order_1"
        assert request.payment_record_id is None
        with pytest.raises(ValidationError):
            VerifyPaymentRequest(orderId="", paymentId="pay_1", signature="sig")


@pytest.mark.unit
class TestNullUpdates:
    """Test that partial updates cannot null out NOT NULL columns."""

    @pytest.mark.parametrize(
        "form,field",
        [
            (IdeaUpdate, "title"),
            (IdeaUpdate, "description"),
            (IdeaUpdate, "category"),
            (IdeaUpdate, "stage"),
            (FeedPostUpdate, "content"),
            (ProjectUpdate, "title"),
            (ProjectUpdate, "status"),
            (ProjectUpdate, "visibility"),
            (TaskUpdate, "title"),
            (TaskUpdate, "status"),
            (TaskUpdate, "priority"),
            (MilestoneUpdate, "title"),
            (MilestoneUpdate, "completed"),
            (ProfileUpdate, "full_name"),
            (ProfileUpdate, "onboarding_completed"),
        ],
    )
    def test_explicit_null_rejected(self, form, field) -> None:
        """Test that ``null`` is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            form(**{field: None})

        assert exc_info.value.errors()[0]["loc"] == (field,)

    @pytest.mark.parametrize(
        "form,field",
        [
            (FeedPostUpdate, "title"),
            (FeedPostUpdate, "tags"),
            (ProjectUpdate, "github_url"),
            (TaskUpdate, "assigned_to"),
            (TaskUpdate, "due_date"),
            (MilestoneUpdate, "target_date"),
            (ProfileUpdate, "bio"),
        ],
    )
    def test_nullable_fields_can_be_cleared(self, form, field) -> None:
        """Test that optional columns still accept ``null``."""
        assert form(**{field: None}).model_dump(exclude_unset=True) == {field: None}
