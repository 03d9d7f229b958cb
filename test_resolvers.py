"""Tests for field and container resolution and error rollup."""

from pathlib import Path, PurePosixPath

import pytest

from cachediff.container import ContainerResolver
from cachediff.config import CompilerConfig
from cachediff.diagnostics import DiagnosticAggregator
from cachediff.exceptions import (
    AttributeSyntaxError,
    ConflictingAttributes,
    DiagnosticReport,
    DuplicateAttribute,
    MissingCustomHook,
    NoComparableFields,
    UnknownAttributeKey,
    UnsupportedShape,
)
from cachediff.fields import FieldResolver, IDENTITY_REF, PATH_DISPLAY_REF
from cachediff.grammar import AttributeParser
from cachediff.models import (
    ActiveField,
    FunctionRef,
    IgnoredCustom,
    IgnoredOther,
    Location,
    RawField,
    Scope,
)
from cachediff.utils import is_path_type


def field_annotations(block, owner="Metadata.version"):
    return AttributeParser(Scope.FIELD, owner).parse(block)


class TestFieldResolver:
    """Test resolving a single field."""

    def setup_method(self):
        self.resolver = FieldResolver()

    def test_defaults(self):
        descriptor = self.resolver.resolve("ruby_version", str, [])
        assert descriptor == ActiveField("ruby version", IDENTITY_REF, "ruby_version")

    def test_every_underscore_becomes_a_space(self):
        descriptor = self.resolver.resolve("_modified__by", str, [])
        assert descriptor.label == " modified  by"

    def test_rename(self):
        descriptor = self.resolver.resolve(
            "version", str, field_annotations('rename = "Ruby version"')
        )
        assert descriptor.label == "Ruby version"
        assert descriptor.format_ref == IDENTITY_REF

    def test_display(self):
        descriptor = self.resolver.resolve(
            "version", str, field_annotations("display = my_function")
        )
        assert descriptor.label == "version"
        assert descriptor.format_ref == FunctionRef("my_function")

    def test_path_default_display(self):
        assert self.resolver.resolve("path", Path, []).format_ref == PATH_DISPLAY_REF
        assert self.resolver.resolve("path", PurePosixPath, []).format_ref == PATH_DISPLAY_REF

    def test_path_string_annotation(self):
        assert self.resolver.resolve("path", "Path", []).format_ref == PATH_DISPLAY_REF
        assert self.resolver.resolve("path", "pathlib.Path", []).format_ref == PATH_DISPLAY_REF

    def test_explicit_display_wins_over_path_default(self):
        descriptor = self.resolver.resolve("path", Path, field_annotations("display = str"))
        assert descriptor.format_ref == FunctionRef("str")

    def test_ignore(self):
        descriptor = self.resolver.resolve("version", str, field_annotations("ignore"))
        assert descriptor == IgnoredOther("version", None)

    def test_ignore_with_reason(self):
        descriptor = self.resolver.resolve(
            "version", str, field_annotations('ignore = "not relevant"')
        )
        assert descriptor == IgnoredOther("version", "not relevant")

    def test_ignore_custom(self):
        descriptor = self.resolver.resolve(
            "version", str, field_annotations('ignore = "custom"')
        )
        assert descriptor == IgnoredCustom("version")

    def test_ignore_with_rename_conflicts(self):
        with pytest.raises(ConflictingAttributes) as excinfo:
            self.resolver.resolve(
                "version", str, field_annotations('rename = "Ruby version", ignore')
            )
        assert str(excinfo.value) == (
            "The cache_diff attribute 'ignore' renders other attributes useless, "
            "remove additional attributes"
        )
        assert excinfo.value.field_name == "version"

    def test_ignore_with_display_conflicts(self):
        with pytest.raises(ConflictingAttributes):
            self.resolver.resolve(
                "version", str, field_annotations("display = str, ignore")
            )

    def test_duplicate_rename(self):
        with pytest.raises(DuplicateAttribute) as excinfo:
            self.resolver.resolve(
                "version", str, field_annotations('rename = "Ruby version", rename = "oops"')
            )
        error = excinfo.value
        assert str(error) == "cache_diff duplicate attribute: 'rename'"
        assert error.location == Location("Metadata.version", 0, 25)
        assert error.previous == Location("Metadata.version", 0, 0)
        assert [d.message for d in error.diagnostics()] == [
            "cache_diff duplicate attribute: 'rename'",
            "previously 'rename' defined here",
        ]

    def test_duplicates_checked_before_conflicts(self):
        with pytest.raises(DuplicateAttribute):
            self.resolver.resolve("version", str, field_annotations("ignore, ignore"))

    def test_several_duplicates_are_all_reported(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve(
                "version",
                str,
                field_annotations('rename = "a", display = str, rename = "b", display = repr')
            )
        assert [e.key for e in excinfo.value.errors] == ["rename", "display"]


class TestIsPathType:
    """Test path-like type detection."""

    def test_classes(self):
        assert is_path_type(Path)
        assert not is_path_type(str)
        assert not is_path_type(None)

    def test_strings(self):
        assert is_path_type("PurePath")
        assert not is_path_type("Optional[Path]")
        assert not is_path_type("Path | None")
        assert not is_path_type("MyPath")


class TestContainerResolver:
    """Test resolving whole types."""

    def setup_method(self):
        self.resolver = ContainerResolver()

    def test_fields_in_declaration_order(self):
        descriptor = self.resolver.resolve("Metadata", [], [
            RawField("version", str),
            RawField("distro", str),
            RawField("arch", str),
        ])
        assert [f.field_id for f in descriptor.fields] == ["version", "distro", "arch"]
        assert descriptor.custom_fn is None
        assert descriptor.type_id == "Metadata"

    def test_custom_on_type(self):
        descriptor = self.resolver.resolve(
            "Metadata", ["custom = my_function"], [RawField("version", str)]
        )
        assert descriptor.custom_fn == FunctionRef("my_function")

    def test_ignored_fields_are_partitioned_out(self):
        descriptor = self.resolver.resolve("Metadata", ["custom = diff_os"], [
            RawField("distro", str, ['ignore = "custom"']),
            RawField("version", str),
            RawField("modified_by", str, ["ignore"]),
        ])
        assert [f.field_id for f in descriptor.fields] == ["version"]
        assert descriptor.ignored == [IgnoredCustom("distro"), IgnoredOther("modified_by")]

    def test_missing_custom_hook(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", [], [
                RawField("version", str, ['ignore = "custom"']),
                RawField("normal", str),
            ])
        report = excinfo.value
        assert len(report.errors) == 1
        assert isinstance(report.errors[0], MissingCustomHook)
        assert str(report) == (
            "field 'version' on Metadata marked ignored as custom, "
            "but no 'cache_diff(custom = <function>)' found on 'Metadata'"
        )

    def test_adding_custom_fixes_missing_hook(self):
        fields = [RawField("version", str, ['ignore = "custom"']), RawField("normal", str)]
        descriptor = self.resolver.resolve("Metadata", ["custom = my_function"], fields)
        assert [f.field_id for f in descriptor.fields] == ["normal"]

    def test_custom_only_type_still_needs_an_active_field(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve(
                "Metadata", ["custom = my_function"],
                [RawField("version", str, ['ignore = "custom"'])]
            )
        assert [type(e) for e in excinfo.value.errors] == [NoComparableFields]

    def test_no_fields(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", [], [])
        assert str(excinfo.value) == (
            "No fields to compare for CacheDiff, ensure Metadata has at least one "
            "named field that isn't 'cache_diff(ignore)'-d"
        )

    def test_all_ignored(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", [], [RawField("version", str, ["ignore"])])
        assert isinstance(excinfo.value.errors[0], NoComparableFields)

    def test_unsupported_shape(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Point", ["unknown"], [], named=False)
        errors = excinfo.value.errors
        assert [type(e) for e in errors] == [UnsupportedShape]
        assert str(excinfo.value) == "CacheDiff can only be used on dataclasses with named fields"

    def test_multiple_fields_error_rollup(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", ["custom = my_function"], [
                RawField("version", str, ["unknown"]),
                RawField("architecture", str, ["unknown"]),
            ])
        report = excinfo.value
        assert [type(e) for e in report.errors] == [UnknownAttributeKey, UnknownAttributeKey]
        owners = [d.location.owner for d in report.diagnostics]
        assert owners == ["Metadata.version", "Metadata.architecture"]

    def test_failed_fields_do_not_add_no_comparable_fields(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", [], [RawField("version", str, ["unknown"])])
        assert [type(e) for e in excinfo.value.errors] == [UnknownAttributeKey]

    def test_multiple_container_attribute_problems(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", ["unknown, custom"], [RawField("version", str)])
        text = str(excinfo.value)
        assert text.count("Unknown cache_diff attribute") == 1

    def test_duplicate_custom(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve(
                "Metadata", ["custom = a, custom = b, custom = c"], [RawField("version", str)]
            )
        text = str(excinfo.value)
        assert text.count("duplicate attribute") == 2
        assert text.count("defined here") == 2
        assert all(isinstance(e, DuplicateAttribute) for e in excinfo.value.errors)

    def test_duplicate_custom_does_not_report_missing_hook(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", ["custom = a", "custom = b"], [
                RawField("distro", str, ['ignore = "custom"']),
                RawField("version", str),
            ])
        assert [type(e) for e in excinfo.value.errors] == [DuplicateAttribute]

    def test_type_and_field_errors_together(self):
        with pytest.raises(DiagnosticReport) as excinfo:
            self.resolver.resolve("Metadata", ["custom"], [
                RawField("version", str, ['rename = "x", ignore']),
                RawField("distro", str, ['rename = "a", rename = "b"']),
                RawField("arch", str),
            ])
        assert [type(e) for e in excinfo.value.errors] == [
            AttributeSyntaxError,
            ConflictingAttributes,
            DuplicateAttribute,
        ]

    def test_config_namespace_and_macro_name(self):
        resolver = ContainerResolver(CompilerConfig(namespace="layer_diff", macro_name="LayerDiff"))
        with pytest.raises(DiagnosticReport) as excinfo:
            resolver.resolve("Metadata", [], [RawField("version", str, ["ignore"])])
        assert str(excinfo.value) == (
            "No fields to compare for LayerDiff, ensure Metadata has at least one "
            "named field that isn't 'layer_diff(ignore)'-d"
        )


class TestDiagnosticAggregator:
    """Test error rollup."""

    def test_empty_does_not_raise(self):
        errors = DiagnosticAggregator("Metadata")
        assert not errors
        errors.raise_if_errors()

    def test_exact_duplicates_collapse(self):
        errors = DiagnosticAggregator("Metadata")
        errors.add(NoComparableFields("cache_diff", "CacheDiff", "Metadata"))
        errors.add(NoComparableFields("cache_diff", "CacheDiff", "Metadata"))
        assert len(errors) == 2
        assert len(errors.diagnostics()) == 1

    def test_same_message_different_location_kept(self):
        errors = DiagnosticAggregator("Metadata")
        errors.add(ConflictingAttributes("cache_diff", "a", Location("Metadata.a")))
        errors.add(ConflictingAttributes("cache_diff", "b", Location("Metadata.b")))
        assert len(errors.diagnostics()) == 2

    def test_nested_reports_flatten(self):
        inner = DiagnosticReport([
            DuplicateAttribute("cache_diff", "rename", Location("M.a", 0, 10), Location("M.a", 0, 0)),
            DuplicateAttribute("cache_diff", "display", Location("M.a", 0, 30), Location("M.a", 0, 20)),
        ])
        errors = DiagnosticAggregator("M")
        errors.add(inner)
        errors.add(NoComparableFields("cache_diff", "CacheDiff", "M"))
        assert len(errors) == 3
        assert len(errors.diagnostics()) == 5

    def test_render_includes_locations(self):
        errors = DiagnosticAggregator("Metadata")
        errors.add(DuplicateAttribute(
            "cache_diff", "rename",
            Location("Metadata.version", 0, 25), Location("Metadata.version", 0, 0)
        ))
        with pytest.raises(DiagnosticReport) as excinfo:
            errors.raise_if_errors()
        assert excinfo.value.render() == (
            "Metadata.version:1:26: error: cache_diff duplicate attribute: 'rename'\n"
            "Metadata.version:1:1: error: previously 'rename' defined here"
        )

    def test_to_dict(self):
        report = DiagnosticReport([UnsupportedShape("CacheDiff", "Point")], "Point")
        assert report.to_dict() == {
            "type": "Point",
            "errors": ["UnsupportedShape"],
            "diagnostics": [{
                "message": "CacheDiff can only be used on dataclasses with named fields",
                "location": "Point",
            }],
        }
