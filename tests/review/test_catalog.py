"""Tests for stagegate.review.catalog."""

from __future__ import annotations

import pytest

from stagegate.model import Criterion
from stagegate.review.catalog import check_criteria, CriteriaCatalog, InvalidCatalog


class TestCheckCriteria(object):
    def test_accepts_weights_summing_to_100(self) -> None:
        check_criteria([("a", 60), ("b", 40)])

    def test_rejects_empty_catalog(self) -> None:
        with pytest.raises(InvalidCatalog, match="no criteria"):
            check_criteria([])

    def test_rejects_weights_not_summing_to_100(self) -> None:
        with pytest.raises(InvalidCatalog, match="sum to 90"):
            check_criteria([("a", 50), ("b", 40)])

    def test_rejects_duplicate_ids(self) -> None:
        with pytest.raises(InvalidCatalog, match="duplicate criteria: a"):
            check_criteria([("a", 50), ("a", 50)])


class TestCriteriaCatalog(object):
    def test_from_settings_keeps_order_and_guidelines(self) -> None:
        catalog = CriteriaCatalog.from_settings([
            {"id": "fit", "name": "Fit", "weight": 70, "excellent": "great", "poor": "bad"},
            {"id": "cost", "name": "Cost", "weight": 30},
        ])

        assert [c.criterion_id for c in catalog.list_criteria()] == ["fit", "cost"]
        assert catalog.weights == {"fit": 70, "cost": 30}
        fit = catalog.get("fit")
        assert fit is not None
        assert fit.guidelines.excellent == "great"
        assert fit.guidelines.average == ""
        assert fit.guidelines.for_score(1) == "bad"

    def test_from_settings_rejects_malformed_entry(self) -> None:
        with pytest.raises(InvalidCatalog, match="malformed"):
            CriteriaCatalog.from_settings([{"name": "No ID", "weight": 100}])

    def test_membership_and_length(self) -> None:
        catalog = CriteriaCatalog([Criterion(criterion_id="only", name="Only", weight=100)])

        assert "only" in catalog
        assert "other" not in catalog
        assert len(catalog) == 1
        assert catalog.get("other") is None

    def test_configured_catalog_is_valid(self, catalog: CriteriaCatalog) -> None:
        """The shipped configuration has seven criteria worth 100 in total."""
        assert len(catalog) == 7
        assert sum(catalog.weights.values()) == 100
