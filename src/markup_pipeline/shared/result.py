"""Result objects and metrics for pipeline runs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PluginTiming:
    """Timing of a single plugin invocation."""

    name: str
    index: int
    kind: str
    duration_ms: float = 0.0

    def __post_init__(self) -> None:
        """Validate timing entry."""
        if not self.name:
            raise ValueError("Plugin name cannot be empty")
        if self.index < 0:
            raise ValueError("Plugin index must be >= 0")


@dataclass
class PipelineMetrics:
    """Performance metrics for one pipeline run."""

    processing_time_ms: float = 0.0
    parse_time_ms: float = 0.0
    render_time_ms: float = 0.0
    plugins_executed: int = 0
    plugin_timings: List[PluginTiming] = field(default_factory=list)

    @property
    def plugin_time_ms(self) -> float:
        """Total time spent inside plugins."""
        return sum(timing.duration_ms for timing in self.plugin_timings)

    @property
    def slowest_plugin(self) -> Optional[PluginTiming]:
        """Plugin invocation with the longest duration, if any ran."""
        if not self.plugin_timings:
            return None
        return max(self.plugin_timings, key=lambda timing: timing.duration_ms)

    def record_plugin(self, name: str, index: int, kind: str, duration_ms: float) -> None:
        """Record a completed plugin invocation."""
        self.plugin_timings.append(PluginTiming(name, index, kind, duration_ms))
        self.plugins_executed += 1


@dataclass
class ProcessResult:
    """Outcome of a pipeline run.

    Attributes:
        tree: Final tree, carrying ``walk``/``match`` and ``options``
        html: Rendered markup, or None when rendering was skipped
        metrics: Timing information for the run
    """

    tree: Any
    html: Optional[str] = None
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    @property
    def rendered(self) -> bool:
        """Check whether the run produced markup."""
        return self.html is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary representation."""
        result: Dict[str, Any] = {
            "tree": self.tree,
            "processing_time_ms": self.metrics.processing_time_ms,
            "plugins_executed": self.metrics.plugins_executed,
        }
        if self.html is not None:
            result["html"] = self.html
        return result
