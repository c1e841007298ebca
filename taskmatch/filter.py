"""
taskmatch Filter

Runs all matchers, then merges and sorts. It is NOT smart. It is deterministic.

  1. Execute: every configured matcher sees every task (see parallel.py)
  2. Merge:   walk matcher types in priority order, first match wins
  3. Sort:    tasks by index, containers by index, unmatched tasks dropped

Partial failure is the normal case: failing matchers are reported in the
returned FilterError while every other match is kept.
"""

from __future__ import annotations

from loguru import logger

from taskmatch.errors import FilterError
from taskmatch.event_bus import EventBus
from taskmatch.matchers import MatcherType, TargetMatcher, matcher_orders
from taskmatch.models import MatchResult, Task, TaskAnnotated, annotate
from taskmatch.parallel import log_safely, run_matchers


class TaskFilter:
    def __init__(
        self,
        matchers: dict[MatcherType, list[TargetMatcher]],
        max_workers: int = 1,
        logger=logger,
        bus: EventBus | None = None,
    ):
        unknown = [tpe for tpe in matchers if tpe not in matcher_orders()]
        if unknown:
            raise ValueError(f"Matcher types without a priority: {unknown}")
        self.matchers = matchers
        self.max_workers = max_workers
        self.logger = logger
        self.bus = bus

    def filter(self, tasks: list[Task] | list[TaskAnnotated]) -> tuple[list[TaskAnnotated], FilterError | None]:
        """
        Return the tasks with at least one matched container, sorted.

        Every call works on fresh annotated wrappers. TaskAnnotated input
        keeps its index but not its earlier matches.
        The error is None unless some matcher failed; its failures never
        suppress the matches of other matchers.
        """
        annotated = self._annotate(tasks)

        execution = run_matchers(
            annotated,
            self.matchers,
            max_workers=self.max_workers,
            logger=self.logger,
            bus=self.bus,
        )

        touched = self._merge(annotated, execution.results)
        sorted_tasks = self._sort(annotated, touched)

        err = None
        if execution.errors:
            err = FilterError(f"{len(execution.errors)} matcher(s) failed", execution.errors)

        log_safely(
            self.logger,
            "info",
            f"[FILTER] {len(sorted_tasks)}/{len(annotated)} tasks matched, "
            f"{len(execution.errors)} matcher failure(s)"
        )
        return sorted_tasks, err

    @staticmethod
    def _annotate(tasks: list[Task] | list[TaskAnnotated]) -> list[TaskAnnotated]:
        wrapped = [isinstance(t, TaskAnnotated) for t in tasks]
        if not any(wrapped):
            return annotate(list(tasks))
        if not all(wrapped):
            raise TypeError("filter() takes either Task or TaskAnnotated items, not a mix")
        return [TaskAnnotated(task=t.task, index=t.index) for t in tasks]

    def _merge(
        self,
        tasks: list[TaskAnnotated],
        results: dict[MatcherType, list[MatchResult]],
    ) -> set[int]:
        """Attach matched containers in matcher priority order; returns touched task indexes."""
        by_index = {t.index: t for t in tasks}
        touched: set[int] = set()
        for tpe in matcher_orders():
            for res in results.get(tpe, []):
                for container in res.containers:
                    touched.add(container.task_index)
                    if not by_index[container.task_index].add_matched_container(container):
                        log_safely(
                            self.logger,
                            "trace",
                            f"[FILTER] task {container.task_index} container "
                            f"{container.container_index} already matched, skipping {tpe.value}"
                        )
        return touched

    @staticmethod
    def _sort(tasks: list[TaskAnnotated], touched: set[int]) -> list[TaskAnnotated]:
        by_index = {t.index: t for t in tasks}
        sorted_tasks = []
        for i in sorted(touched):
            task = by_index[i]
            task.matched.sort(key=lambda c: c.container_index)
            sorted_tasks.append(task)
        return sorted_tasks
