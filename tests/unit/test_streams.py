"""Tests for stream types and the type registry."""

import json

import pytest

from typesh.streams import (
    OBJECTS,
    StreamKind,
    StreamType,
    TypeRegistry,
    TypeSignature,
    TypesFileError,
    can_connect,
    default_registry,
    load_registry,
)


class TestStreamType:
    def test_display(self):
        assert str(StreamType.opaque()) == "[opaque]"
        assert str(StreamType.none()) == "none"
        assert str(StreamType.typed("objects")) == "objects"

    def test_parse(self):
        assert StreamType.parse("none") == StreamType.none()
        assert StreamType.parse("opaque") == StreamType.opaque()
        assert StreamType.parse("[opaque]") == StreamType.opaque()
        assert StreamType.parse(" csv ") == StreamType.typed("csv")

    def test_parse_empty_rejected(self):
        with pytest.raises(ValueError):
            StreamType.parse("  ")

    def test_typed_requires_format_id(self):
        with pytest.raises(ValueError):
            StreamType(kind=StreamKind.TYPED)

    def test_format_id_only_for_typed(self):
        with pytest.raises(ValueError):
            StreamType(kind=StreamKind.OPAQUE, format_id="objects")

    def test_equality_by_value(self):
        assert StreamType.typed("objects") == StreamType.typed("objects")
        assert StreamType.typed("objects") != StreamType.typed("csv")


class TestCanConnect:
    """The connection rule between adjacent stages."""

    opaque = StreamType.opaque()
    none = StreamType.none()
    objects = StreamType.typed("objects")
    csv = StreamType.typed("csv")

    def test_opaque_consumer_accepts_anything(self):
        for produced in (self.opaque, self.none, self.objects):
            assert can_connect(produced, self.opaque)

    def test_equal_types_connect(self):
        assert can_connect(self.objects, self.objects)
        assert can_connect(self.none, self.none)

    def test_opaque_producer_cannot_feed_typed_consumer(self):
        assert not can_connect(self.opaque, self.objects)

    def test_distinct_formats_do_not_connect(self):
        assert not can_connect(self.csv, self.objects)

    def test_none_is_not_a_wildcard(self):
        assert not can_connect(self.objects, self.none)
        assert not can_connect(self.none, self.objects)


class TestTypeRegistry:
    def test_unregistered_program_is_opaque(self):
        assert TypeRegistry().lookup("ls") == TypeSignature.opaque()

    def test_register_and_lookup(self):
        registry = TypeRegistry()
        registry.register("jq", TypeSignature.of("objects", "objects"))
        assert "jq" in registry
        assert str(registry.lookup("jq")) == "objects -> objects"

    def test_lookup_is_case_sensitive(self):
        registry = TypeRegistry({"get": TypeSignature.of("objects", "objects")})
        assert registry.lookup("GET") == TypeSignature.opaque()

    def test_register_empty_name_rejected(self):
        with pytest.raises(ValueError):
            TypeRegistry().register(" ", TypeSignature.opaque())

    def test_merged_prefers_other(self):
        base = default_registry()
        overlay = TypeRegistry({"get": TypeSignature.of("csv", "objects")})
        merged = base.merged(overlay)
        assert str(merged.lookup("get").input) == "csv"
        assert "cd" in merged
        # The originals are untouched.
        assert base.lookup("get").input == StreamType.typed(OBJECTS)

    def test_default_registry(self):
        registry = default_registry()
        assert list(registry) == ["cd", "get"]
        assert registry.lookup("get") == TypeSignature.of(OBJECTS, OBJECTS)
        assert registry.lookup("cd") == TypeSignature.of("none", "none")
        assert len(registry) == 2

    def test_independent_instances(self):
        a = default_registry()
        a.register("ps", TypeSignature.of("none", "objects"))
        assert "ps" not in default_registry()


class TestLoadRegistry:
    def test_load(self, tmp_path):
        path = tmp_path / "types.json"
        path.write_text(
            json.dumps(
                {
                    "programs": {
                        "ps": {"input": "none", "output": "objects"},
                        "to-json": {"input": "objects"},
                    }
                }
            )
        )
        registry = load_registry(path)
        assert registry.lookup("ps") == TypeSignature.of("none", "objects")
        assert registry.lookup("to-json").output == StreamType.opaque()

    def test_missing_file(self, tmp_path):
        with pytest.raises(TypesFileError, match="cannot read"):
            load_registry(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "types.json"
        path.write_text("{not json")
        with pytest.raises(TypesFileError, match="cannot read"):
            load_registry(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "types.json"
        path.write_text(json.dumps({"programs": ["ps"]}))
        with pytest.raises(TypesFileError, match="invalid types file"):
            load_registry(path)

    def test_empty_type_name(self, tmp_path):
        path = tmp_path / "types.json"
        path.write_text(json.dumps({"programs": {"ps": {"output": ""}}}))
        with pytest.raises(TypesFileError, match="invalid types file"):
            load_registry(path)
