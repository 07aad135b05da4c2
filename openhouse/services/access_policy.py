"""Paywall: which features an unpaid user may use."""

FREE_FEATURES = frozenset(
    {
        "view_posts",
        "read_discussions",
        "browse_profiles",
        "view_projects",
        "view_leaderboard",
        "browse_jobs",
        "browse_ideas",
    }
)

RESTRICTED_FEATURES = {
    "upvote": "Upvoting",
    "comment": "Comments",
    "share": "Sharing",
    "create_post": "Creating Posts",
    "create_idea": "Posting Ideas",
    "create_job": "Posting Jobs",
    "create_discussion": "Starting Discussions",
    "create_project": "Creating Projects",
    "send_message": "Messaging",
    "send_request": "Connection Requests",
    "connect": "Connecting",
    "earn_coins": "Builder Coins",
    "mentor_booking": "Mentorship Bookings",
    "validate_idea": "AI Idea Validation",
}


def can_access_feature(has_paid: bool, feature: str) -> bool:
    """Paid users can use everything; others only the read-only features."""
    if has_paid:
        return True
    return feature in FREE_FEATURES


def feature_label(feature: str) -> str:
    """Human-readable feature name for paywall prompts."""
    return RESTRICTED_FEATURES.get(feature, feature.replace("_", " ").capitalize())
