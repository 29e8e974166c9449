"""Tests for run options."""

import pytest

from markup_pipeline.shared import CLOSING_STYLES, ConfigError, ConfigValidationError, ProcessOptions


def custom_parser(source, options):
    return []


class TestProcessOptions:
    """Test option defaults and validation."""

    def test_defaults(self):
        """Test the default run options."""
        options = ProcessOptions()

        assert options.skip_parse is False
        assert options.skip_render is False
        assert options.sync is False
        assert options.parser is None
        assert options.render is None
        assert options.lower_case_tags is False
        assert options.recognize_self_closing is True
        assert options.single_tags == []
        assert options.closing_single_tag == "default"
        assert options.quote_all_attributes is True

    def test_single_tags_not_shared(self):
        """Test default lists are per instance."""
        first = ProcessOptions()
        first.single_tags.append("rect")
        assert ProcessOptions().single_tags == []

    def test_invalid_closing_style(self):
        """Test closing style validation."""
        with pytest.raises(ConfigValidationError, match="closing_single_tag must be one of") as excinfo:
            ProcessOptions(closing_single_tag="xhtml")

        assert excinfo.value.field_name == "closing_single_tag"
        assert excinfo.value.suggestions == list(CLOSING_STYLES)
        assert isinstance(excinfo.value, ConfigError)

    @pytest.mark.parametrize("value", ["rect", ["rect", 1]])
    def test_invalid_single_tags(self, value):
        """Test single_tags must be a list of names."""
        with pytest.raises(ConfigValidationError, match="single_tags"):
            ProcessOptions(single_tags=value)

    def test_collaborators_must_be_callable(self):
        """Test parser and render must be callables."""
        with pytest.raises(ConfigValidationError, match="render must be callable"):
            ProcessOptions(render="html")

    def test_validate_after_mutation(self):
        """Test validate() catches values changed after construction."""
        options = ProcessOptions()
        options.closing_single_tag = "bogus"
        with pytest.raises(ConfigValidationError):
            options.validate()


class TestOverride:
    """Test creating per-run copies."""

    def test_override_values(self):
        """Test overrides apply to a new object."""
        base = ProcessOptions()
        options = base.override(sync=True, closing_single_tag="slash")

        assert options is not base
        assert options.sync is True
        assert options.closing_single_tag == "slash"
        assert base.sync is False

    def test_override_copies_lists(self):
        """Test mutable values are not shared with the original."""
        base = ProcessOptions(single_tags=["rect"])
        options = base.override()
        options.single_tags.append("circle")

        assert base.single_tags == ["rect"]

    def test_override_copies_given_values(self):
        """Test values passed as overrides are copied too."""
        single_tags = ["rect"]
        options = ProcessOptions().override(single_tags=single_tags)
        options.single_tags.append("circle")

        assert single_tags == ["rect"]

    def test_override_keeps_collaborators(self):
        """Test callables are carried over by identity."""
        options = ProcessOptions(parser=custom_parser).override(sync=True)
        assert options.parser is custom_parser
        assert ProcessOptions().override(render=custom_parser).render is custom_parser

    def test_override_validates(self):
        """Test overridden values are validated."""
        with pytest.raises(ConfigValidationError):
            ProcessOptions().override(closing_single_tag="none")

    def test_unknown_option(self):
        """Test unknown names are rejected with suggestions."""
        with pytest.raises(ConfigValidationError, match="Unknown process option: singe_tags") as excinfo:
            ProcessOptions().override(singe_tags=["rect"])

        assert "single_tags" in excinfo.value.suggestions
        assert excinfo.value.field_name == "singe_tags"

    def test_copy(self):
        """Test copy() gives an equal, independent object."""
        base = ProcessOptions(single_tags=["a"])
        copied = base.copy()

        assert copied == base
        assert copied is not base
        assert copied.single_tags is not base.single_tags


class TestSerialization:
    """Test dictionary conversion."""

    def test_to_dict(self):
        """Test collaborators are represented by name."""
        data = ProcessOptions(parser=custom_parser, single_tags=["rect"]).to_dict()

        assert data["parser"] == "custom_parser"
        assert data["render"] is None
        assert data["single_tags"] == ["rect"]
        assert data["closing_single_tag"] == "default"

    def test_from_dict(self):
        """Test building options from a mapping."""
        options = ProcessOptions.from_dict({"sync": True, "single_tags": ["x"]})
        assert options.sync is True
        assert options.single_tags == ["x"]

    def test_from_dict_unknown_key(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ConfigValidationError):
            ProcessOptions.from_dict({"bogus": 1})


class TestPresets:
    """Test preset factories."""

    def test_html5(self):
        assert ProcessOptions.html5() == ProcessOptions()

    def test_xhtml(self):
        options = ProcessOptions.xhtml()
        assert options.closing_single_tag == "slash"
        assert options.lower_case_tags is True
        assert options.lower_case_attribute_names is True

    def test_tree_only(self):
        options = ProcessOptions.tree_only()
        assert options.skip_parse is True
        assert options.skip_render is True
