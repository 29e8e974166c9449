"""Tests for the package's public API."""

import markup_pipeline


class TestPublicApi:
    """Test top-level exports."""

    def test_version(self):
        assert markup_pipeline.__version__ == "0.1.0"

    def test_all_exports_resolve(self):
        """Test every name in __all__ is importable."""
        for name in markup_pipeline.__all__:
            assert hasattr(markup_pipeline, name), name

    def test_level_one_usage(self):
        """Test the shortest end-to-end usage."""
        def add_class(tree):
            tree.match({"tag": "p"}, lambda node: {**node, "attrs": {"class": "x"}})

        result = markup_pipeline.pipeline(add_class).process("<p>Hi</p>", sync=True)
        assert result.html == '<p class="x">Hi</p>'
