"""Unit tests for the paywall."""

from types import SimpleNamespace

import pytest

from openhouse.api.dependencies import ensure_feature
from openhouse.errors import PaymentRequiredError
from openhouse.services.access_policy import (
    FREE_FEATURES,
    RESTRICTED_FEATURES,
    can_access_feature,
    feature_label,
)


@pytest.mark.unit
class TestCanAccessFeature:
    """Test feature gating."""

    @pytest.mark.parametrize("feature", sorted(FREE_FEATURES))
    def test_free_features_open_to_unpaid(self, feature) -> None:
        """Test read-only features for unpaid users."""
        assert can_access_feature(False, feature)

    @pytest.mark.parametrize("feature", sorted(RESTRICTED_FEATURES))
    def test_restricted_features_need_payment(self, feature) -> None:
        """Test restricted features for unpaid and paid users."""
        assert not can_access_feature(False, feature)
        assert can_access_feature(True, feature)

    def test_unknown_feature_is_restricted(self) -> None:
        """Test that unlisted features are not free."""
        assert not can_access_feature(False, "export_data")

    def test_labels(self) -> None:
        """Test human-readable labels."""
        assert feature_label("create_idea") == "Posting Ideas"
        assert feature_label("export_data") == "Export data"


@pytest.mark.unit
class TestEnsureFeature:
    """Test the paywall guard."""

    def test_paid_profile_passes(self) -> None:
        """Test that paid profiles are never blocked."""
        ensure_feature(SimpleNamespace(has_paid=True), "create_project")

    def test_unpaid_profile_blocked(self) -> None:
        """Test the 402 error raised for unpaid profiles."""
        with pytest.raises(PaymentRequiredError) as exc_info:
            ensure_feature(SimpleNamespace(has_paid=False), "create_project")

        error = exc_info.value
        assert error.status_code == 402
        assert error.details == {"feature": "create_project"}
        assert error.message.startswith("Creating Projects")
