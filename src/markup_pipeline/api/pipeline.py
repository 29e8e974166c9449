"""Pipeline façade: parse, run plugins, render.

This module provides :class:`HTMLPipeline`, the single entry point that
owns an ordered plugin list and processes markup or trees through it, in
blocking mode (``sync=True``) or, by default, as a coroutine.
"""

import time
import uuid
from collections.abc import Mapping
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Tuple, Union

from markup_pipeline.api.parser import parse
from markup_pipeline.engine import ChainExecutor, Plugin, RunContext
from markup_pipeline.shared.config import ConfigValidationError, ProcessOptions
from markup_pipeline.shared.logging import CorrelationLogger, get_logger
from markup_pipeline.shared.result import ProcessResult
from markup_pipeline.tree import CapableTree, attach_capabilities, render

MS_PER_SECOND = 1000


class HTMLPipeline:
    """Ordered plugin chain applied to HTML documents.

    The pipeline is reusable: every ``process`` call starts from its own
    tree and its own copy of the options, and applies all plugins added so
    far.

    Attributes:
        plugins: Plugins in execution order
        options: Default options for every run
        correlation_id: Correlation ID used for all runs, if fixed

    Examples:
        Blocking run:
        >>> def add_class(tree):
        ...     tree.match({"tag": "p"}, lambda node: {**node, "attrs": {"class": "x"}})
        >>> HTMLPipeline([add_class]).process("<p>Hi</p>", sync=True).html
        '<p class="x">Hi</p>'

        Non-blocking run:
        >>> result = await HTMLPipeline().use(add_class).process("<p>Hi</p>")
    """

    def __init__(
        self,
        plugins: Optional[Iterable[Plugin]] = None,
        options: Optional[ProcessOptions] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the pipeline.

        Args:
            plugins: Initial plugins, in execution order
            options: Default run options (defaults to ``ProcessOptions()``)
            correlation_id: Optional fixed correlation ID; a fresh one is
                generated per run otherwise
        """
        self.plugins: List[Plugin] = []
        self.options = options or ProcessOptions()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "html_pipeline")

        # Usage statistics across runs
        self._run_count = 0
        self._successful_runs = 0
        self._total_processing_time = 0.0

        if plugins is not None:
            self.use(*plugins)

    def use(self, *plugins: Union[Plugin, Iterable[Plugin]]) -> "HTMLPipeline":
        """Append plugins; lists and tuples of plugins are flattened.

        Returns:
            The pipeline itself, for chaining

        Raises:
            TypeError: If a plugin is not callable
        """
        for plugin in _flatten(plugins):
            if not callable(plugin):
                raise TypeError(f"Plugin must be callable, got {type(plugin).__name__}")
            self.plugins.append(plugin)
        return self

    def process(
        self,
        source: Any,
        options: Union[ProcessOptions, Mapping, None] = None,
        **overrides: Any
    ) -> Union[ProcessResult, Awaitable[ProcessResult]]:
        """Run ``source`` through the plugin chain.

        Args:
            source: Markup (str, bytes, Path or file-like), or a tree when
                ``skip_parse`` is set
            options: Options for this run, replacing the pipeline defaults;
                a mapping is treated as overrides
            **overrides: Individual option overrides, e.g. ``sync=True``

        Returns:
            ProcessResult in blocking mode; in non-blocking mode, a coroutine
            resolving to the ProcessResult. In non-blocking mode this method
            never raises: every failure surfaces when the coroutine is awaited.

        Raises:
            ModeViolationError: Blocking mode met an asynchronous plugin
            ConfigValidationError: ``options`` or an override is invalid
            ParseError: The default parser could not read ``source``
            Exception: Any exception raised by a plugin, unmodified
        """
        if isinstance(options, Mapping):
            overrides = {**options, **overrides}
            options = None
        base = options if options is not None else self.options
        plugins = tuple(self.plugins)

        if overrides.get("sync", isinstance(base, ProcessOptions) and base.sync):
            return self._process_sync(source, base, overrides, plugins)
        return self._process_async(source, base, overrides, plugins)

    def _process_sync(
        self,
        source: Any,
        base: ProcessOptions,
        overrides: Dict[str, Any],
        plugins: Tuple[Plugin, ...]
    ) -> ProcessResult:
        start_time = time.time()
        context = self._create_context(base, overrides)
        logger = self._run_logger(context)
        self._log_start(logger, context, plugins, "sync")

        try:
            tree = self._load_tree(source, context)
            tree = ChainExecutor(plugins).run_sync(tree, context)
            result = self._finish(tree, context, start_time)
        except Exception:
            self._record_run(False, start_time)
            logger.exception("Pipeline run failed")
            raise

        self._record_run(True, start_time)
        self._log_finish(logger, result)
        return result

    async def _process_async(
        self,
        source: Any,
        base: ProcessOptions,
        overrides: Dict[str, Any],
        plugins: Tuple[Plugin, ...]
    ) -> ProcessResult:
        start_time = time.time()
        logger = self.logger

        try:
            context = self._create_context(base, overrides)
            logger = self._run_logger(context)
            self._log_start(logger, context, plugins, "async")

            tree = self._load_tree(source, context)
            tree = await ChainExecutor(plugins).run_async(tree, context)
            result = self._finish(tree, context, start_time)
        except Exception:
            self._record_run(False, start_time)
            logger.exception("Pipeline run failed")
            raise

        self._record_run(True, start_time)
        self._log_finish(logger, result)
        return result

    def _create_context(
        self, base: ProcessOptions, overrides: Dict[str, Any]
    ) -> RunContext:
        if not isinstance(base, ProcessOptions):
            raise ConfigValidationError(
                "options must be ProcessOptions or a mapping, "
                f"got {type(base).__name__}",
                field_name="options",
            )
        return RunContext(
            options=base.override(**overrides),
            correlation_id=self.correlation_id or uuid.uuid4().hex[:12],
        )

    def _load_tree(self, source: Any, context: RunContext) -> CapableTree:
        options = context.options
        if options.skip_parse:
            return attach_capabilities(source, options)

        started = time.perf_counter()
        if options.parser is not None:
            tree = options.parser(source, options)
        else:
            tree = parse(source, options, correlation_id=context.correlation_id)
        context.metrics.parse_time_ms = (time.perf_counter() - started) * MS_PER_SECOND

        return attach_capabilities(tree, options)

    def _finish(
        self, tree: CapableTree, context: RunContext, start_time: float
    ) -> ProcessResult:
        # Plugins may have changed the handle; render with the final state
        options = tree.options
        html = None

        if not options.skip_render:
            started = time.perf_counter()
            if options.render is not None:
                html = options.render(tree, options)
            else:
                html = render(tree, options, correlation_id=context.correlation_id)
            context.metrics.render_time_ms = (
                (time.perf_counter() - started) * MS_PER_SECOND
            )

        context.metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        return ProcessResult(tree=tree, html=html, metrics=context.metrics)

    def _run_logger(self, context: RunContext) -> CorrelationLogger:
        return get_logger(__name__, context.correlation_id, "html_pipeline")

    def _log_start(
        self,
        logger: CorrelationLogger,
        context: RunContext,
        plugins: Tuple[Plugin, ...],
        mode: str
    ) -> None:
        logger.info(
            "Starting pipeline run",
            extra={
                "mode": mode,
                "plugin_count": len(plugins),
                "skip_parse": context.options.skip_parse,
                "run_number": self._run_count + 1,
            }
        )

    def _log_finish(self, logger: CorrelationLogger, result: ProcessResult) -> None:
        logger.info(
            "Pipeline run completed",
            extra={
                "processing_time_ms": result.metrics.processing_time_ms,
                "plugins_executed": result.metrics.plugins_executed,
                "rendered": result.rendered,
            }
        )

    def _record_run(self, success: bool, start_time: float) -> None:
        self._run_count += 1
        self._total_processing_time += (time.time() - start_time) * MS_PER_SECOND
        if success:
            self._successful_runs += 1

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get pipeline usage statistics.

        Returns:
            Dictionary with run counts and timing
        """
        return {
            "total_runs": self._run_count,
            "successful_runs": self._successful_runs,
            "failed_runs": self._run_count - self._successful_runs,
            "success_rate": (
                self._successful_runs / self._run_count
                if self._run_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._run_count
                if self._run_count > 0 else 0.0
            ),
            "plugin_count": len(self.plugins),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset pipeline usage statistics."""
        self._run_count = 0
        self._successful_runs = 0
        self._total_processing_time = 0.0

        self.logger.info("Pipeline statistics reset")


def pipeline(*plugins: Union[Plugin, Iterable[Plugin]], **option_overrides: Any) -> HTMLPipeline:
    """Create a pipeline from plugins and default option overrides.

    Examples:
        >>> pipeline(minify, add_ids, closing_single_tag="slash")
        >>> pipeline([minify, add_ids]).process(html, sync=True)
    """
    return HTMLPipeline(plugins, options=ProcessOptions().override(**option_overrides))


def _flatten(plugins: Iterable[Any]) -> Iterable[Any]:
    for plugin in plugins:
        if isinstance(plugin, (list, tuple)):
            yield from _flatten(plugin)
        else:
            yield plugin
