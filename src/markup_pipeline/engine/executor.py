"""Chain execution of plugins over a tree.

Two disciplines are supported. ``run_sync`` calls every plugin on the
caller's thread and rejects plugins that would complete later. ``run_async``
adapts every call, whatever its convention, into an asyncio future and
awaits each one before the next plugin starts. In both, the first failure
ends the run.
"""

import asyncio
import functools
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from markup_pipeline.engine.conventions import (
    Plugin,
    PluginKind,
    classify_result,
    declared_kind,
    discard_thenable,
    is_thenable,
    plugin_name,
    settle_thenable,
)
from markup_pipeline.engine.normalizer import normalize_result
from markup_pipeline.shared.config import ProcessOptions
from markup_pipeline.shared.errors import ModeViolationError, PluginReportedError
from markup_pipeline.shared.logging import CorrelationLogger, get_logger
from markup_pipeline.shared.result import PipelineMetrics
from markup_pipeline.tree.node import CapableTree, attach_capabilities

MS_PER_SECOND = 1000


@dataclass
class RunContext:
    """State scoped to a single pipeline run.

    Created by the pipeline for each ``process`` call and discarded when the
    run ends; nothing in it is shared between runs.
    """

    options: ProcessOptions
    correlation_id: Optional[str] = None
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)
    logger: CorrelationLogger = field(init=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(__name__, self.correlation_id, "chain_executor")


class ChainExecutor:
    """Runs an ordered list of plugins over a tree.

    The plugin list is copied on construction, so plugins added to a
    pipeline while a run is in progress only apply to later runs.
    """

    def __init__(self, plugins: Sequence[Plugin]) -> None:
        self.plugins = tuple(plugins)

    def run_sync(self, tree: Any, context: RunContext) -> CapableTree:
        """Run all plugins on the caller's thread.

        Raises:
            ModeViolationError: If a plugin is callback-style, a coroutine
                function, or returns an awaitable; later plugins do not run
            Exception: Whatever a plugin raised, unmodified
        """
        tree = attach_capabilities(tree, context.options)

        for index, plugin in enumerate(self.plugins):
            name = plugin_name(plugin)
            logger = context.logger.bind(plugin=name, index=index)

            kind = declared_kind(plugin)
            if kind is not PluginKind.SYNC:
                logger.warning("Async plugin rejected in sync mode", extra={"kind": kind.label})
                raise ModeViolationError(name)

            started = time.perf_counter()
            result = plugin(tree)
            if classify_result(result) is not PluginKind.SYNC:
                discard_thenable(result)
                logger.warning("Plugin returned an awaitable in sync mode")
                raise ModeViolationError(name)

            tree = normalize_result(result, tree, context.options, logger)
            self._record(context, logger, name, index, kind, started)

        return tree

    async def run_async(self, tree: Any, context: RunContext) -> CapableTree:
        """Run all plugins, awaiting each one's completion in order.

        Raises:
            Exception: The first plugin failure: a raised exception, the
                error passed to ``done``, or the failure of an awaitable
        """
        tree = attach_capabilities(tree, context.options)

        for index, plugin in enumerate(self.plugins):
            name = plugin_name(plugin)
            logger = context.logger.bind(plugin=name, index=index)
            started = time.perf_counter()

            kind = declared_kind(plugin)
            if kind is PluginKind.CALLBACK:
                result = await self._invoke_callback(plugin, tree, name, logger)
            else:
                result = plugin(tree)
                kind = classify_result(result)
                if kind is PluginKind.THENABLE:
                    result = await settle_thenable(result)

            tree = normalize_result(result, tree, context.options, logger)
            self._record(context, logger, name, index, kind, started)

        return tree

    async def _invoke_callback(
        self,
        plugin: Plugin,
        tree: CapableTree,
        name: str,
        logger: CorrelationLogger
    ) -> Any:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def settle(error: Any, result: Any) -> None:
            if future.done():
                logger.warning("Plugin completion callback called more than once")
                return
            if error:
                future.set_exception(
                    error if isinstance(error, BaseException)
                    else PluginReportedError(name, error)
                )
            else:
                future.set_result(result)

        def done(error: Any = None, result: Any = None) -> None:
            # done may be called from another thread
            loop.call_soon_threadsafe(settle, error, result)

        returned = plugin(tree, done)
        if is_thenable(returned):
            # async def plugin(tree, done): the body must run to call done
            body = asyncio.ensure_future(settle_thenable(returned))
            body.add_done_callback(
                functools.partial(self._settle_body, future, logger)
            )
        return await future

    @staticmethod
    def _settle_body(
        future: asyncio.Future,
        logger: CorrelationLogger,
        body: asyncio.Future
    ) -> None:
        if body.cancelled():
            return
        error = body.exception()
        if error is None:
            return
        if future.done():
            logger.warning(
                "Plugin failed after calling its completion callback",
                extra={"error": repr(error)}
            )
        else:
            future.set_exception(error)

    @staticmethod
    def _record(
        context: RunContext,
        logger: CorrelationLogger,
        name: str,
        index: int,
        kind: PluginKind,
        started: float
    ) -> None:
        duration_ms = (time.perf_counter() - started) * MS_PER_SECOND
        context.metrics.record_plugin(name, index, kind.label, duration_ms)
        logger.debug(
            "Plugin completed",
            extra={"kind": kind.label, "duration_ms": duration_ms}
        )
