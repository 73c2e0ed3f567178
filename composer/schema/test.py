"""Unit tests for the Schema module."""

import pytest

from composer.schema import (
    BUILTIN_SCHEMAS,
    ComponentSchema,
    SchemaRegistry,
    SchemaSource,
    SchemaType,
    create_default_registry,
)


class TestBuiltinCatalog:
    """Tests for the built-in schema catalog."""

    @pytest.mark.unit
    def test_ids_are_unique(self):
        """No two built-in schemas share an id."""
        ids = [s.id for s in BUILTIN_SCHEMAS]
        assert len(ids) == len(set(ids))

    @pytest.mark.unit
    def test_all_entries_have_descriptions(self):
        """Every schema has a non-empty description."""
        for schema in BUILTIN_SCHEMAS:
            assert schema.description, f"{schema.id} missing description"

    @pytest.mark.unit
    def test_card_defaults(self):
        """Card ships with elevation and title defaults."""
        card = create_default_registry().get("Card")
        assert card.default_props == {"elevation": 1, "title": "Card"}

    @pytest.mark.unit
    def test_default_registry_can_be_empty(self):
        """Builtins can be left out."""
        assert len(create_default_registry(include_builtins=False)) == 0


class TestContainerDetection:
    """Tests for the container capability."""

    @pytest.mark.unit
    def test_layout_types_are_containers(self):
        """Layout schemas accept children."""
        registry = create_default_registry()
        for schema_id in ("Container", "Stack", "Grid"):
            assert registry.get(schema_id).is_container

    @pytest.mark.unit
    def test_data_display_card_is_container(self):
        """DataDisplayCard is a container by id despite being a display type."""
        assert create_default_registry().get("DataDisplayCard").is_container

    @pytest.mark.unit
    def test_leaf_types_are_not_containers(self):
        """Display and form leaves reject children."""
        registry = create_default_registry()
        for schema_id in ("Button", "Typography", "Card", "Divider"):
            assert not registry.get(schema_id).is_container

    @pytest.mark.unit
    def test_layout_category_marks_container(self):
        """A layout category is enough to be a container."""
        schema = ComponentSchema("Panel", "Panel", SchemaType.DISPLAY, category="layout")
        assert schema.is_container

    @pytest.mark.unit
    def test_explicit_flag_wins(self):
        """accepts_children overrides the derived capability."""
        schema = ComponentSchema(
            "Stack", "Flat stack", SchemaType.LAYOUT, accepts_children=False
        )
        assert not schema.is_container


class TestNewProps:
    """Tests for default prop merging."""

    @pytest.mark.unit
    def test_overrides_win(self):
        """Supplied props override defaults key by key."""
        card = create_default_registry().get("Card")
        assert card.new_props({"title": "X"}) == {"elevation": 1, "title": "X"}

    @pytest.mark.unit
    def test_defaults_are_not_shared(self):
        """Mutating produced props never leaks into the schema."""
        schema = ComponentSchema(
            "List", "List", SchemaType.DISPLAY, default_props={"items": []}
        )
        props = schema.new_props()
        props["items"].append("a")
        assert schema.default_props == {"items": []}


class TestSchemaRegistry:
    """Tests for registry management."""

    @pytest.mark.unit
    def test_lookup_unknown_returns_none(self):
        """Unknown ids resolve to None."""
        assert SchemaRegistry().lookup("Nope") is None

    @pytest.mark.unit
    def test_get_unknown_raises(self):
        """get() raises KeyError for unknown ids."""
        with pytest.raises(KeyError):
            SchemaRegistry().get("Nope")

    @pytest.mark.unit
    def test_register_and_unregister(self):
        """Schemas can be added, replaced and removed."""
        registry = SchemaRegistry()
        registry.register(ComponentSchema("Box", "Box", SchemaType.LAYOUT))
        registry.register(ComponentSchema("Box", "Box v2", SchemaType.LAYOUT))

        assert "Box" in registry
        assert len(registry) == 1
        assert registry.get("Box").name == "Box v2"
        assert registry.unregister("Box") is True
        assert registry.unregister("Box") is False

    @pytest.mark.unit
    def test_list_by_type(self):
        """list_schemas filters by schema type."""
        registry = create_default_registry()
        layouts = registry.list_schemas(SchemaType.LAYOUT)
        assert {s.id for s in layouts} == {"Container", "Stack", "Grid"}

    @pytest.mark.unit
    def test_satisfies_protocol(self):
        """The in-memory registry is a SchemaSource."""
        assert isinstance(SchemaRegistry(), SchemaSource)

    @pytest.mark.unit
    def test_to_dict(self):
        """Metadata converts to a plain dictionary."""
        d = create_default_registry().get("Grid").to_dict()
        assert d["type"] == "layout"
        assert d["is_container"] is True
        assert d["default_props"]["columns"] == 12
