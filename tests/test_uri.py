"""Tests for relative URI parsing."""

import pytest

from odata_example_gen.edm import EdmModel
from odata_example_gen.errors import ValidationError
from odata_example_gen.uri import SegmentKind, UriParser, parse_expand, split_top_level


class TestExpandParsing:
    """Test `$expand` clause handling."""

    def test_split_top_level_ignores_nested(self) -> None:
        """Test commas inside parentheses and quotes do not split."""
        assert split_top_level("a,b($select=c,d),'e,f'", ",") == ["a", "b($select=c,d)", "'e,f'"]

    def test_parse_expand_names(self) -> None:
        """Test nested options and type casts are discarded."""
        names = parse_expand("manager($select=id),Example.People.FullTimeEmployee/office, notes")
        assert names == frozenset({"manager", "office", "notes"})

    def test_parse_expand_star(self) -> None:
        """Test `*` is kept as is."""
        assert parse_expand("*") == frozenset({"*"})


class TestUriParser:
    """Test walking paths against the model."""

    def test_entity_set(self, model: EdmModel) -> None:
        """Test a bare entity set is a collection path."""
        parsed = UriParser(model).parse("/employees")
        assert parsed.path.is_collection
        assert parsed.path.root_source.name == "employees"
        assert parsed.expand == frozenset()

    @pytest.mark.parametrize("uri", ["/employees/1", "/employees('1')", "/employees(1)", "/employees/{id}"])
    def test_key_forms(self, model: EdmModel, uri: str) -> None:
        """Test keys in parentheses or as a following segment."""
        path = UriParser(model).parse(uri).path
        assert not path.is_collection
        assert path.last.kind is SegmentKind.KEY

    def test_navigation_and_cast(self, model: EdmModel) -> None:
        """Test navigation hops and qualified type casts."""
        path = UriParser(model).parse("/employees/1/Example.People.FullTimeEmployee/office").path
        kinds = [segment.kind for segment in path.segments]
        assert kinds == [
            SegmentKind.NAVIGATION_SOURCE,
            SegmentKind.KEY,
            SegmentKind.TYPE_CAST,
            SegmentKind.NAVIGATION_PROPERTY,
        ]
        assert path.path_expression() == "Example.People.FullTimeEmployee/office"
        assert path.context_names() == ["employees", "Example.People.FullTimeEmployee", "office"]

    def test_complex_property(self, model: EdmModel) -> None:
        """Test structural property segments."""
        path = UriParser(model).parse("/employees/1/homeAddress").path
        assert path.last.kind is SegmentKind.PROPERTY
        assert path.target_type_ref.is_complex

    def test_expand_from_query(self, model: EdmModel) -> None:
        """Test `$expand` values are collected from the query string."""
        parsed = UriParser(model).parse("/employees?$expand=manager,directReports&$top=3")
        assert parsed.expand == frozenset({"manager", "directReports"})

    def test_unknown_source(self, model: EdmModel) -> None:
        """Test an unknown first segment is rejected."""
        with pytest.raises(ValidationError):
            UriParser(model).parse("/nobody")

    def test_unknown_property(self, model: EdmModel) -> None:
        """Test an unknown property is rejected."""
        with pytest.raises(ValidationError):
            UriParser(model).parse("/employees/1/salaryHistory")

    def test_unrelated_cast(self, model: EdmModel) -> None:
        """Test a cast to a type outside the hierarchy is rejected."""
        with pytest.raises(ValidationError):
            UriParser(model).parse("/employees/Example.People.Office")

    def test_key_on_single(self, model: EdmModel) -> None:
        """Test a key applied to a singleton is rejected."""
        with pytest.raises(ValidationError):
            UriParser(model).parse("/company('1')")

    def test_system_segment(self, model: EdmModel) -> None:
        """Test `$` segments such as `$count` are rejected."""
        with pytest.raises(ValidationError):
            UriParser(model).parse("/employees/1/manager/$ref")
