import threading
import time

import pytest

from assetpipe.core.errors import GraphError, TaskCancelled, TaskFailed
from assetpipe.orchestration.graph import TaskGraph


def recorder(log, name, result=None):
    def run(cancel):
        log.append(name)
        return result

    return run


def test_order_respects_dependencies_and_insertion():
    graph = TaskGraph()
    graph.add("compress", lambda cancel: None, after=["styles", "js"])
    graph.add("styles", lambda cancel: None)
    graph.add("js", lambda cancel: None)

    assert graph.order() == ["styles", "js", "compress"]


def test_cycle_is_rejected():
    graph = TaskGraph()
    graph.add("a", lambda cancel: None, after=["b"])
    graph.add("b", lambda cancel: None, after=["a"])

    with pytest.raises(GraphError, match="cycle"):
        graph.run()


def test_unknown_dependency_is_rejected():
    graph = TaskGraph()
    graph.add("a", lambda cancel: None, after=["missing"])

    with pytest.raises(GraphError, match="missing"):
        graph.order()


def test_duplicate_node_is_rejected():
    graph = TaskGraph()
    graph.add("a", lambda cancel: None)

    with pytest.raises(GraphError):
        graph.add("a", lambda cancel: None)


def test_independent_nodes_run_concurrently():
    barrier = threading.Barrier(3, timeout=5)
    graph = TaskGraph()
    for name in ("styles", "js", "images"):
        graph.add(name, lambda cancel, name=name: barrier.wait() is not None and name)

    results = graph.run()

    assert results == {"styles": "styles", "js": "js", "images": "images"}


def test_series_waits_for_all_dependencies():
    log = []
    graph = TaskGraph()
    graph.add("styles", recorder(log, "styles"))
    graph.add("js", recorder(log, "js"))
    graph.add("compress", recorder(log, "compress"), after=["styles", "js"])

    graph.run(max_workers=2)

    assert log[-1] == "compress"
    assert sorted(log[:2]) == ["js", "styles"]


def test_failure_skips_dependants_and_reports_first_failing_task():
    log = []

    def broken(cancel):
        raise ValueError("bad stylesheet")

    graph = TaskGraph()
    graph.add("styles", broken)
    graph.add("js", recorder(log, "js"))
    graph.add("compress", recorder(log, "compress"), after=["styles", "js"])

    with pytest.raises(TaskFailed) as info:
        graph.run()

    assert info.value.task == "styles"
    assert isinstance(info.value.cause, ValueError)
    assert "compress" not in log


def test_failure_sets_cancellation_for_running_siblings():
    started = threading.Event()
    observed = []

    def slow(cancel):
        started.set()
        observed.append(cancel.wait(timeout=5))
        raise TaskCancelled("images cancelled")

    def broken(cancel):
        started.wait(timeout=5)
        raise RuntimeError("boom")

    graph = TaskGraph()
    graph.add("images", slow)
    graph.add("styles", broken)

    with pytest.raises(TaskFailed) as info:
        graph.run()

    assert info.value.task == "styles"
    assert observed == [True]


def test_queued_nodes_do_not_start_after_failure():
    log = []

    def broken(cancel):
        raise RuntimeError("boom")

    def slow(cancel):
        time.sleep(0.05)
        log.append("slow")

    graph = TaskGraph()
    graph.add("styles", broken)
    graph.add("js", slow)
    graph.add("images", recorder(log, "images"))

    with pytest.raises(TaskFailed):
        graph.run(max_workers=1)

    assert log == []
