"""
taskmatch Matchers

Each matcher is:
  - A matcher type, which fixes its priority
  - An export setting (job, metrics path, ports)
  - A match_targets() that decides one container at a time

Matchers are opaque to the filter. It only calls evaluate() and reads
the MatchResult it returns.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from taskmatch.errors import ContainerError, MatcherError, NotMatched
from taskmatch.models import (
    Container,
    MatchedContainer,
    MatchedTarget,
    MatchResult,
    TaskAnnotated,
)


class MatcherType(str, Enum):
    SERVICE = "service"
    TASK_DEFINITION = "task_definition"
    DOCKER_LABEL = "docker_label"

    @property
    def priority(self) -> int:
        """Position in matcher_orders(), 0 is the highest priority."""
        return MATCHER_ORDERS.index(self)


# Highest priority first. A container claimed by an earlier type is never
# reclassified by a later one. New types must be placed here explicitly.
MATCHER_ORDERS: tuple[MatcherType, ...] = (
    MatcherType.SERVICE,
    MatcherType.TASK_DEFINITION,
    MatcherType.DOCKER_LABEL,
)


def matcher_orders() -> tuple[MatcherType, ...]:
    return MATCHER_ORDERS


@dataclass
class ExportSetting:
    """Where the metrics of a matched container are scraped from."""
    job_name: str = ""
    metrics_path: str = "/metrics"
    metrics_ports: list[int] = field(default_factory=list)

    def to_targets(self, matcher_type: MatcherType) -> list[MatchedTarget]:
        return [
            MatchedTarget(
                matcher_type=matcher_type,
                port=port,
                metrics_path=self.metrics_path,
                job=self.job_name,
            )
            for port in self.metrics_ports
        ]


class TargetMatcher(ABC):
    """
    Base class for all matchers.

    Subclasses define:
      - matcher_type: MatcherType
      - match_targets(): raise NotMatched, raise on bad input, or return targets
    """

    matcher_type: MatcherType

    def __init__(self, export: ExportSetting | None = None, container_name_pattern: str = ""):
        self.export = export or ExportSetting()
        self.container_name_pattern = container_name_pattern
        self._container_re = re.compile(container_name_pattern) if container_name_pattern else None

    def evaluate(self, tasks: list[TaskAnnotated], matcher_index: int) -> tuple[MatchResult, MatcherError | None]:
        """Run this matcher over every container of every task."""
        return match_containers(tasks, self, matcher_index)

    @abstractmethod
    def match_targets(self, task: TaskAnnotated, container: Container) -> list[MatchedTarget]:
        ...

    def describe(self) -> str:
        """Short human-readable pattern summary for tables and logs."""
        return self.container_name_pattern or "*"

    def _check_container_name(self, container: Container) -> None:
        if self._container_re is not None and not self._container_re.search(container.name):
            raise NotMatched(container.name)


def match_containers(
    tasks: list[TaskAnnotated],
    matcher: TargetMatcher,
    matcher_index: int,
) -> tuple[MatchResult, MatcherError | None]:
    """
    Evaluate ``matcher`` against all containers of all tasks.

    Always returns a usable result. Containers that fail are recorded and
    skipped; every failure of this invocation ends up in one MatcherError.
    """
    result = MatchResult()
    causes: list[BaseException] = []

    for task in tasks:
        for container_index, container in enumerate(task.containers):
            try:
                targets = matcher.match_targets(task, container)
            except NotMatched:
                continue
            except Exception as e:
                causes.append(ContainerError(task.index, container_index, e))
                continue

            if not targets:
                continue
            for target in targets:
                target.matcher_type = matcher.matcher_type
                target.matcher_index = matcher_index
            result.containers.append(
                MatchedContainer(
                    task_index=task.index,
                    container_index=container_index,
                    targets=targets,
                )
            )

    err = MatcherError(matcher.matcher_type, matcher_index, causes) if causes else None
    return result, err
