"""Tests for the chain executor."""

import asyncio

import pytest

from markup_pipeline.engine import ChainExecutor, RunContext
from markup_pipeline.shared import ModeViolationError, PluginReportedError, ProcessOptions
from markup_pipeline.tree import Tree


@pytest.fixture
def context():
    """Fresh run context."""
    return RunContext(options=ProcessOptions(), correlation_id="test-run")


def append(value):
    def plugin(tree):
        tree.append(value)
    plugin.__name__ = f"append_{value}"
    return plugin


class TestRunContext:
    """Test per-run state."""

    def test_logger_bound_to_run(self, context):
        """Test the context logger carries the correlation ID."""
        assert context.logger.correlation_id == "test-run"
        assert context.logger.component == "chain_executor"

    def test_metrics_not_shared(self):
        """Test every context gets its own metrics."""
        first = RunContext(options=ProcessOptions())
        second = RunContext(options=ProcessOptions())
        assert first.metrics is not second.metrics


class TestRunSync:
    """Test blocking chain execution."""

    def test_empty_chain_returns_capable_tree(self, context):
        """Test the tree gets capabilities even without plugins."""
        tree = ChainExecutor([]).run_sync([], context)

        assert isinstance(tree, Tree)
        assert tree.options is context.options

    def test_plugins_run_in_order(self, context):
        """Test plugins see the effects of earlier plugins."""
        tree = ChainExecutor([append("a"), append("b")]).run_sync([], context)
        assert tree == ["a", "b"]

    def test_plugin_list_snapshot(self, context):
        """Test the executor keeps its own copy of the plugin list."""
        plugins = [append("a")]
        executor = ChainExecutor(plugins)
        plugins.append(append("b"))

        assert executor.run_sync([], context) == ["a"]

    def test_metrics_recorded(self, context):
        """Test every completed plugin is timed."""
        ChainExecutor([append("a"), append("b")]).run_sync([], context)

        timings = context.metrics.plugin_timings
        assert context.metrics.plugins_executed == 2
        assert [(t.name, t.index, t.kind) for t in timings] == [
            ("append_a", 0, "sync"),
            ("append_b", 1, "sync"),
        ]
        assert all(t.duration_ms >= 0 for t in timings)

    def test_callback_plugin_rejected_before_call(self, context):
        """Test callback plugins are not called in blocking mode."""
        calls = []

        def needs_done(tree, done):
            calls.append("called")

        with pytest.raises(ModeViolationError) as excinfo:
            ChainExecutor([needs_done]).run_sync([], context)

        assert excinfo.value.plugin_name == "needs_done"
        assert calls == []

    def test_awaitable_result_rejected(self, context):
        """Test a plain function returning a coroutine is rejected."""
        async def later():
            return []

        def returns_coroutine(tree):
            return later()

        with pytest.raises(ModeViolationError, match="returns_coroutine"):
            ChainExecutor([returns_coroutine, append("x")]).run_sync([], context)

        assert context.metrics.plugins_executed == 0

    def test_exception_propagates(self, context):
        """Test plugin exceptions are not wrapped."""
        def boom(tree):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            ChainExecutor([boom]).run_sync([], context)


class TestRunAsync:
    """Test non-blocking chain execution."""

    @pytest.mark.asyncio
    async def test_mixed_conventions(self, context):
        """Test every convention's result flows to the next plugin."""
        def sync_plugin(tree):
            return ["sync"]

        def callback_plugin(tree, done):
            done(None, list(tree) + ["callback"])

        async def coroutine_plugin(tree):
            return list(tree) + ["coroutine"]

        tree = await ChainExecutor(
            [sync_plugin, callback_plugin, coroutine_plugin]
        ).run_async([], context)

        assert tree == ["sync", "callback", "coroutine"]
        assert tree.options is context.options
        assert [t.kind for t in context.metrics.plugin_timings] == [
            "sync", "callback", "thenable"
        ]

    @pytest.mark.asyncio
    async def test_callback_without_result_keeps_tree(self, context):
        """Test done() with no result keeps the current tree."""
        def in_place(tree, done):
            tree.append("x")
            done()

        assert await ChainExecutor([in_place]).run_async([], context) == ["x"]

    @pytest.mark.asyncio
    async def test_callback_error_stops_chain(self, context):
        """Test an error passed to done fails the run."""
        def failing(tree, done):
            done(ValueError("bad"))

        with pytest.raises(ValueError, match="bad"):
            await ChainExecutor([failing, append("x")]).run_async([], context)

        assert context.metrics.plugins_executed == 0

    @pytest.mark.asyncio
    async def test_callback_string_error_wrapped(self, context):
        """Test a non-exception error value is wrapped."""
        def failing(tree, done):
            done("bad input")

        with pytest.raises(PluginReportedError, match="Plugin failing reported an error: bad input"):
            await ChainExecutor([failing]).run_async([], context)

    @pytest.mark.asyncio
    async def test_falsy_error_is_success(self, context):
        """Test done(False, result) and done(0, result) complete normally."""
        def falsy(tree, done):
            done(False, ["ok"])

        assert await ChainExecutor([falsy]).run_async([], context) == ["ok"]

    @pytest.mark.asyncio
    async def test_coroutine_callback_plugin(self, context):
        """Test a coroutine function taking done completes through done."""
        async def later(tree, done):
            await asyncio.sleep(0)
            done(None, ["later"])

        tree = await asyncio.wait_for(
            ChainExecutor([later]).run_async([], context), timeout=1
        )
        assert tree == ["later"]

    @pytest.mark.asyncio
    async def test_coroutine_callback_failure_after_done(self, context, caplog):
        """Test a failure after done is logged and the result kept."""
        async def late_failure(tree, done):
            done(None, ["ok"])
            await asyncio.sleep(0)
            raise RuntimeError("after")

        tree = await ChainExecutor([late_failure]).run_async([], context)
        for _ in range(3):
            await asyncio.sleep(0)

        assert tree == ["ok"]
        assert "Plugin failed after calling its completion callback" in caplog.text
