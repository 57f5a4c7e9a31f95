"""Tests for the generation components: type resolution, filtering and links."""

from typing import Callable

import pytest

from odata_example_gen.edm import EdmModel
from odata_example_gen.errors import ModelIntegrityError
from odata_example_gen.generation import PropertyFilter, ReferenceLinkResolver, TypeResolver
from odata_example_gen.generation.parameters import Direction, GenerationContext, GenerationParameters
from odata_example_gen.generation.property_filter import is_insert_restricted
from odata_example_gen.uri import UriParser


class TestGenerationContext:
    """Test the per-run counters."""

    def test_monotonic_starts_at_one(self) -> None:
        """Test the shared sequence starts at 1."""
        context = GenerationContext()
        assert [context.next_monotonic() for _ in range(3)] == [1, 2, 3]

    def test_tags_per_property(self) -> None:
        """Test string tags count per property name."""
        context = GenerationContext()
        assert [context.next_tag("name") for _ in range(3)] == ["value", "value2", "value3"]
        assert context.next_tag("other") == "value"

    def test_toggles_alternate(self) -> None:
        """Test booleans alternate per property name, starting with True."""
        context = GenerationContext()
        assert [context.next_toggle("flag") for _ in range(3)] == [True, False, True]
        assert context.next_toggle("other") is True

    def test_seeded_random(self) -> None:
        """Test equal seeds give equal draws."""
        first = GenerationContext(seed=7)
        second = GenerationContext(seed=7)
        assert [first.next_random(100) for _ in range(5)] == [second.next_random(100) for _ in range(5)]


class TestTypeResolver:
    """Test concrete type selection."""

    def test_abstract_base_candidates(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test an abstract type yields only its concrete derived types."""
        employee = model.find_structured_type("Example.People.Employee")
        candidates = TypeResolver(make_parameters()).resolve_candidates(employee, "employees")
        assert [t.name for t in candidates] == ["FullTimeEmployee", "Contractor"]

    def test_concrete_base_comes_last(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test a concrete type with derived types is appended after them."""
        office = model.find_structured_type("Example.People.Office")
        candidates = TypeResolver(make_parameters()).resolve_candidates(office, "offices")
        assert [t.name for t in candidates] == ["CornerOffice", "Office"]

    def test_no_derived_types(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test a type without derived types is its own only candidate."""
        note = model.find_structured_type("Example.People.Note")
        assert TypeResolver(make_parameters()).resolve_candidates(note, "notes") == [note]

    def test_chosen_type_wins(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test an explicit choice replaces the candidates."""
        employee = model.find_structured_type("Example.People.Employee")
        contractor = model.find_structured_type("Example.People.Contractor")
        resolver = TypeResolver(make_parameters(chosen_types={"manager": contractor}))
        assert resolver.resolve_candidates(employee, "manager") == [contractor]
        assert resolver.resolve_single(employee, "manager", GenerationContext(seed=1)) is contractor
        assert len(resolver.resolve_candidates(employee, "directReports")) == 2

    def test_resolve_single_is_a_candidate(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test random choice stays within the candidates."""
        employee = model.find_structured_type("Example.People.Employee")
        resolver = TypeResolver(make_parameters())
        context = GenerationContext(seed=3)
        names = {resolver.resolve_single(employee, "manager", context).name for _ in range(20)}
        assert names <= {"FullTimeEmployee", "Contractor"}

    @pytest.mark.parametrize(
        "count, max_items, expected",
        [(1, None, 2), (2, None, 2), (3, None, 3), (3, 1, 1), (1, 5, 2), (2, 0, 1)],
    )
    def test_set_size(self, model: EdmModel, count: int, max_items: int, expected: int) -> None:
        """Test at least two members, capped by MaxItems, never below one."""
        note = model.find_structured_type("Example.People.Note")
        assert TypeResolver.set_size([note] * count, max_items) == expected

    def test_type_for_member_repeats_last(self, model: EdmModel) -> None:
        """Test indexes past the end reuse the last candidate."""
        note = model.find_structured_type("Example.People.Note")
        office = model.find_structured_type("Example.People.Office")
        assert TypeResolver.type_for_member([note, office], 0) is note
        assert TypeResolver.type_for_member([note, office], 4) is office


class TestPropertyFilter:
    """Test property inclusion rules."""

    def names(self, props) -> list:
        return [p.name for p in props]

    def test_response_structural(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test responses keep computed properties and drop streams."""
        path = UriParser(model).parse_path("employees")
        contractor = model.find_structured_type("Example.People.Contractor")
        names = self.names(PropertyFilter(make_parameters(), path).structural_properties(contractor, path))
        assert "createdDateTime" in names
        assert "photo" not in names

    def test_request_drops_computed(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test requests drop computed properties."""
        path = UriParser(model).parse_path("employees")
        contractor = model.find_structured_type("Example.People.Contractor")
        parameters = make_parameters(direction=Direction.REQUEST)
        names = self.names(PropertyFilter(parameters, path).structural_properties(contractor, path))
        assert "createdDateTime" not in names
        assert "photo" not in names
        assert "displayName" in names

    def test_keys_survive_skipping(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test key properties cannot be skipped."""
        path = UriParser(model).parse_path("employees")
        contractor = model.find_structured_type("Example.People.Contractor")
        parameters = make_parameters(skipped_properties=frozenset({"id", "displayName"}))
        names = self.names(PropertyFilter(parameters, path).structural_properties(contractor, path))
        assert "id" in names
        assert "displayName" not in names

    def test_response_navigation(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test responses inline only contained or expanded navigation properties."""
        path = UriParser(model).parse_path("employees")
        full_time = model.find_structured_type("Example.People.FullTimeEmployee")

        plain = PropertyFilter(make_parameters(), path)
        assert self.names(plain.navigation_properties(full_time, path)) == ["notes", "profile"]

        expanded = PropertyFilter(make_parameters(expand=frozenset({"manager"})), path)
        assert self.names(expanded.navigation_properties(full_time, path)) == ["manager", "notes", "profile"]

        everything = PropertyFilter(make_parameters(expand=frozenset({"*"})), path)
        assert len(everything.navigation_properties(full_time, path)) == 5

    def test_expand_only_at_request_path(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test `$expand` names do not apply below the request path."""
        parser = UriParser(model)
        request_path = parser.parse_path("employees")
        nested_path = parser.parse_path("employees/1/manager")
        employee = model.find_structured_type("Example.People.Contractor")
        property_filter = PropertyFilter(make_parameters(expand=frozenset({"manager"})), request_path)
        assert "manager" not in self.names(property_filter.navigation_properties(employee, nested_path))

    def test_auto_expand(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test AutoExpand navigation properties are inlined in responses."""
        path = UriParser(model).parse_path("company")
        company = model.find_structured_type("Example.People.Company")
        assert self.names(PropertyFilter(make_parameters(), path).navigation_properties(company, path)) == [
            "headquarters"
        ]

    def test_request_insert_restrictions(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test non-insertable navigation properties are dropped from requests."""
        path = UriParser(model).parse_path("employees")
        full_time = model.find_structured_type("Example.People.FullTimeEmployee")
        property_filter = PropertyFilter(make_parameters(direction=Direction.REQUEST), path)
        assert self.names(property_filter.navigation_properties(full_time, path)) == [
            "manager", "notes", "profile", "office"
        ]

    def test_restriction_path(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test restriction paths drop the root and keys and add casts for derived properties."""
        parser = UriParser(model)
        property_filter = PropertyFilter(make_parameters())

        employees = parser.parse_path("employees")
        full_time = model.find_structured_type("Example.People.FullTimeEmployee")
        office = model.find_property(full_time, "office")
        assert property_filter.restriction_path(office, employees) == "Example.People.FullTimeEmployee/office"

        teams = parser.parse_path("departments/1/teams")
        team = model.find_structured_type("Example.People.Team")
        channels = model.find_property(team, "channels")
        assert property_filter.restriction_path(channels, teams) == "teams/channels"

    def test_is_insert_restricted_record(self) -> None:
        """Test restriction records are matched ignoring case."""
        record = {
            "restrictedProperties": [
                {"navigationProperty": "Members", "insertRestrictions": {"insertable": False}},
                {"NavigationProperty": "owners", "InsertRestrictions": {"Insertable": True}},
            ]
        }
        assert is_insert_restricted(record, "members")
        assert not is_insert_restricted(record, "owners")
        assert not is_insert_restricted(record, "other")
        assert not is_insert_restricted(None, "members")


class TestReferenceLinks:
    """Test reference link URLs built from bindings."""

    def test_multi_segment_target(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test a key is added after every collection-valued step."""
        desks = model.find_navigation_source("desks")
        assigned_team = model.find_property(desks.entity_type, "assignedTeam")
        links = ReferenceLinkResolver(make_parameters()).links_for(desks, assigned_team, GenerationContext())
        assert links == ["https://graph.microsoft.com/beta/departments/id1/teams/id2"]

    def test_collection_gets_two_links(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test collection-valued properties get two links from the shared counter."""
        departments = model.find_navigation_source("departments")
        members = model.find_property(departments.entity_type, "members")
        context = GenerationContext()
        context.next_monotonic()
        resolver = ReferenceLinkResolver(make_parameters(service_root="https://example.com/api/"))
        assert resolver.links_for(departments, members, context) == [
            "https://example.com/api/employees/id2",
            "https://example.com/api/employees/id3",
        ]

    def test_no_binding(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test properties without a binding get no links."""
        employees = model.find_navigation_source("employees")
        notes = model.find_property(employees.entity_type, "notes")
        assert ReferenceLinkResolver(make_parameters()).links_for(employees, notes, GenerationContext()) is None

    def test_broken_binding_raises(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test an unresolvable target segment raises ModelIntegrityError by default."""
        lockers = model.find_navigation_source("lockers")
        owner = model.find_property(lockers.entity_type, "owner")
        with pytest.raises(ModelIntegrityError, match="departments/staff"):
            ReferenceLinkResolver(make_parameters()).links_for(lockers, owner, GenerationContext())

    def test_broken_binding_skipped(self, model: EdmModel, make_parameters: Callable[..., GenerationParameters]) -> None:
        """Test broken bindings are skipped when configured."""
        lockers = model.find_navigation_source("lockers")
        owner = model.find_property(lockers.entity_type, "owner")
        resolver = ReferenceLinkResolver(make_parameters(skip_broken_bindings=True))
        assert resolver.links_for(lockers, owner, GenerationContext()) is None
