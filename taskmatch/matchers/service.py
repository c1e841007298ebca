"""
Service matcher: selects containers of tasks that belong to an ECS service
whose name matches a regex.
"""

from __future__ import annotations

import re

from taskmatch.errors import NotMatched
from taskmatch.matchers import ExportSetting, MatcherType, TargetMatcher
from taskmatch.models import Container, MatchedTarget, TaskAnnotated


class ServiceMatcher(TargetMatcher):
    matcher_type = MatcherType.SERVICE

    def __init__(self, name_pattern: str, export: ExportSetting | None = None, container_name_pattern: str = ""):
        super().__init__(export, container_name_pattern)
        self.name_pattern = name_pattern
        self._name_re = re.compile(name_pattern)

    def match_targets(self, task: TaskAnnotated, container: Container) -> list[MatchedTarget]:
        service = task.task.service_name
        if not service or not self._name_re.search(service):
            raise NotMatched(service or "")
        self._check_container_name(container)
        return self.export.to_targets(self.matcher_type)

    def describe(self) -> str:
        return f"service={self.name_pattern} container={super().describe()}"
