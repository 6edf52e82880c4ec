"""Tests for search scoring helpers."""

from dataclasses import dataclass, field

from catalog_service.catalog.search import (
    DEFAULT_WEIGHTS,
    SearchWeights,
    escape_like,
    format_search_time,
    matched_fields,
    normalize_query,
    relevance,
)


@dataclass
class Item:
    name: str
    brand: str | None = None
    tags: list[str] = field(default_factory=list)
    short_description: str | None = None
    long_description: str | None = None


class TestWeights:
    def test_name_outranks_other_fields(self) -> None:
        w = DEFAULT_WEIGHTS
        assert w.name > w.brand > w.tags > w.short_description > w.long_description

    def test_maximum_is_sum(self) -> None:
        assert DEFAULT_WEIGHTS.maximum == 250
        assert SearchWeights(1, 1, 1, 1, 1, 1).maximum == 6


class TestMatchedFields:
    """Tests for matched field reporting."""

    def test_reports_every_matching_field(self) -> None:
        item = Item(
            name="Trail Running Shoes",
            brand="RunCo",
            tags=["running", "outdoor"],
            short_description="Light shoes",
            long_description="Built for running on rough ground",
        )
        assert matched_fields(item, "run") == ["name", "brand", "tags", "longDescription"]

    def test_case_insensitive(self) -> None:
        assert matched_fields(Item(name="USB Cable"), "usb") == ["name"]

    def test_no_match(self) -> None:
        assert matched_fields(Item(name="Desk"), "chair") == []


class TestHelpers:
    def test_normalize_query(self) -> None:
        assert normalize_query("  Running SHOES ") == "running shoes"

    def test_escape_like(self) -> None:
        """LIKE wildcards match literally."""
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_relevance_is_normalized(self) -> None:
        assert relevance(0) == 0.0
        assert relevance(250) == 1.0
        assert relevance(100) == 0.4

    def test_format_search_time(self) -> None:
        assert format_search_time(0.01234) == "12.34ms"
        assert format_search_time(1.5) == "1.50s"
