"""
Timing of expensive operations.

Benchmarks are organized in groups. A group is retrieved by name from a
`BenchmarkManager` and a single benchmark is retrieved by label from a group::

    init_bench = get("Aggregate").get("Engine (md) Init")
    init_bench.before()
    ...
    init_bench.after()

Each benchmark accumulates the time spent between calls to
`~Benchmark.before` and `~Benchmark.after`. Nested pairs of calls are allowed
and only the outermost pair is timed, so that code that is re-entered while it
is being timed is not counted twice.

When a group is finished, the benchmarks that took a significant share of the
group's total time are logged with level ``DEBUG``.
"""

import logging
import time
import typing

# Logger used by this module.
logger = logging.getLogger(__name__)


class Benchmark:
    """
    Accumulating timer for one kind of operation.
    """

    def __init__(self, label: str):
        self.label = label
        self.call_count = 0
        self._depth = 0
        self._start: typing.Optional[float] = None
        self._total = 0.0

    def before(self) -> None:
        """
        Start timing.

        If the benchmark is already running, this only increments the nesting
        depth.
        """
        if self._depth == 0:
            self._start = time.perf_counter()
        self._depth += 1
        self.call_count += 1

    def after(self) -> None:
        """
        Stop timing.

        Raises a ``RuntimeError`` if there is no matching call to `before`.
        """
        if self._depth == 0:
            raise RuntimeError(
                f"Benchmark {self.label!r}: after() called without before()."
            )
        self._depth -= 1
        if self._depth == 0:
            self._total += time.perf_counter() - self._start
            self._start = None

    @property
    def is_running(self) -> bool:
        """``True`` while `before` has been called more often than `after`."""
        return self._depth > 0

    @property
    def total(self) -> float:
        """Accumulated time in seconds (not including a running span)."""
        return self._total


class BenchmarkGroup:
    """
    Named collection of `Benchmark` objects.
    """

    def __init__(self, name: str, min_share: float = 0.08):
        """
        Create a benchmark group.

        :param name:
            name of the group. It is only used when logging.
        :param min_share:
            fraction of the group's total time that a benchmark must exceed in
            order to be logged by `finish`.
        """
        self.name = name
        self._benchmarks: typing.Dict[str, Benchmark] = {}
        self._min_share = min_share

    def get(self, label: str) -> Benchmark:
        """
        Return the benchmark with the specified label, creating it if it does
        not exist yet.
        """
        try:
            return self._benchmarks[label]
        except KeyError:
            benchmark = Benchmark(label)
            self._benchmarks[label] = benchmark
            return benchmark

    def __contains__(self, label: str) -> bool:
        return label in self._benchmarks

    def __iter__(self) -> typing.Iterator[Benchmark]:
        return iter(self._benchmarks.values())

    def finish(self) -> None:
        """
        Log benchmarks that took a significant share of the total time and
        reset the group.
        """
        total = sum(benchmark.total for benchmark in self)
        for benchmark in self:
            if benchmark.is_running:
                logger.warning(
                    "Benchmark %r in group %r is still running.",
                    benchmark.label,
                    self.name,
                )
            if total > 0 and benchmark.total / total >= self._min_share:
                logger.debug(
                    "%s: %s took %.3f s (%d calls, %.0f%% of %.3f s)",
                    self.name,
                    benchmark.label,
                    benchmark.total,
                    benchmark.call_count,
                    100.0 * benchmark.total / total,
                    total,
                )
        self._benchmarks.clear()


class BenchmarkManager:
    """
    Registry of `BenchmarkGroup` objects.
    """

    def __init__(self):
        self._groups: typing.Dict[str, BenchmarkGroup] = {}

    def get(self, name: str) -> BenchmarkGroup:
        """
        Return the group with the specified name, creating it if it does not
        exist yet.
        """
        try:
            return self._groups[name]
        except KeyError:
            group = BenchmarkGroup(name)
            self._groups[name] = group
            return group

    def finish(self) -> None:
        """
        Finish all groups.
        """
        for group in self._groups.values():
            group.finish()


#: Manager used by default.
bench = BenchmarkManager()


def get(name: str) -> BenchmarkGroup:
    """
    Return the group with the specified name from the default manager.
    """
    return bench.get(name)
