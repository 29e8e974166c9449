"""Configuration classes for HTML pipeline runs.

This module provides the run options object that doubles as the shared
options handle attached to every tree: plugins read and mutate it, the
parser and renderer honour it.
"""

import copy
import difflib
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Optional

# Valid values for ProcessOptions.closing_single_tag
CLOSING_STYLES = ("default", "slash", "tag")

# Option names that are callables and must not be deep-copied
_COLLABORATOR_FIELDS = ("parser", "render")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass
class ProcessOptions:
    """Options for a single pipeline run.

    One instance is created per run and attached to the tree as
    ``tree.options``. Every plugin in the run sees the same instance, and the
    renderer reads it after the last plugin, so a plugin may change e.g.
    ``single_tags`` or ``closing_single_tag`` mid-run.
    """

    # Execution settings
    skip_parse: bool = False
    skip_render: bool = False
    sync: bool = False

    # Collaborator overrides: parser(source, options) and render(tree, options)
    parser: Optional[Callable[..., Any]] = None
    render: Optional[Callable[..., Any]] = None

    # Parser settings
    lower_case_tags: bool = False
    lower_case_attribute_names: bool = False
    recognize_self_closing: bool = True

    # Renderer settings
    single_tags: List[str] = field(default_factory=list)
    closing_single_tag: str = "default"  # default, slash, tag
    quote_all_attributes: bool = True

    def __post_init__(self) -> None:
        """Validate run options."""
        self.validate()

    def validate(self) -> None:
        """Validate option values.

        Called on construction and again by the renderer, since plugins may
        have changed the values in between.
        """
        if self.closing_single_tag not in CLOSING_STYLES:
            raise ConfigValidationError(
                f"closing_single_tag must be one of {list(CLOSING_STYLES)}, "
                f"got {self.closing_single_tag!r}",
                field_name="closing_single_tag",
                suggestions=list(CLOSING_STYLES),
            )
        if isinstance(self.single_tags, str) or not all(
            isinstance(tag, str) for tag in self.single_tags
        ):
            raise ConfigValidationError(
                "single_tags must be a list of tag names",
                field_name="single_tags",
            )
        for name in _COLLABORATOR_FIELDS:
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise ConfigValidationError(
                    f"{name} must be callable or None",
                    field_name=name,
                )

    def override(self, **kwargs: Any) -> "ProcessOptions":
        """Create a new, independent options object with overrides applied.

        Args:
            **kwargs: Option names and their new values

        Returns:
            New ProcessOptions instance; mutable values are copied so the
            result never shares state with ``self``

        Raises:
            ConfigValidationError: If an option name is unknown

        Example:
            >>> options = ProcessOptions()
            >>> run_options = options.override(sync=True, closing_single_tag="slash")
        """
        known = {f.name for f in fields(self)}
        for key in kwargs:
            if key not in known:
                suggestions = difflib.get_close_matches(key, sorted(known), n=3)
                hint = f" (did you mean {', '.join(suggestions)}?)" if suggestions else ""
                raise ConfigValidationError(
                    f"Unknown process option: {key}{hint}",
                    field_name=key,
                    suggestions=suggestions,
                )

        new_fields = {
            f.name: copy.deepcopy(getattr(self, f.name))
            for f in fields(self)
            if f.name not in _COLLABORATOR_FIELDS
        }
        new_fields.update({
            key: value if key in _COLLABORATOR_FIELDS else copy.deepcopy(value)
            for key, value in kwargs.items()
        })
        return replace(self, **new_fields)

    def copy(self) -> "ProcessOptions":
        """Return an independent copy suitable for a new run."""
        return self.override()

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary format.

        Collaborator callables are represented by their names.
        """
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _COLLABORATOR_FIELDS:
                value = getattr(value, "__name__", repr(value)) if value else None
            elif isinstance(value, list):
                value = list(value)
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessOptions":
        """Create options from a dictionary, rejecting unknown keys."""
        return cls().override(**data)

    # Preset factory methods
    @classmethod
    def html5(cls) -> "ProcessOptions":
        """Default HTML output: void elements rendered as ``<br>``."""
        return cls()

    @classmethod
    def xhtml(cls) -> "ProcessOptions":
        """XHTML-style output: void elements rendered as ``<br />``."""
        return cls(closing_single_tag="slash", lower_case_tags=True,
                   lower_case_attribute_names=True)

    @classmethod
    def tree_only(cls) -> "ProcessOptions":
        """Run plugins over an already built tree without rendering."""
        return cls(skip_parse=True, skip_render=True)
