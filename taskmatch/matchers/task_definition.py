"""
Task definition matcher: selects containers by task definition ARN.
"""

from __future__ import annotations

import re

from taskmatch.errors import NotMatched
from taskmatch.matchers import ExportSetting, MatcherType, TargetMatcher
from taskmatch.models import Container, MatchedTarget, TaskAnnotated


class TaskDefinitionMatcher(TargetMatcher):
    matcher_type = MatcherType.TASK_DEFINITION

    def __init__(self, arn_pattern: str, export: ExportSetting | None = None, container_name_pattern: str = ""):
        super().__init__(export, container_name_pattern)
        self.arn_pattern = arn_pattern
        self._arn_re = re.compile(arn_pattern)

    def match_targets(self, task: TaskAnnotated, container: Container) -> list[MatchedTarget]:
        if not self._arn_re.search(task.task.task_definition_arn):
            raise NotMatched(task.task.task_definition_arn)
        self._check_container_name(container)
        return self.export.to_targets(self.matcher_type)

    def describe(self) -> str:
        return f"arn={self.arn_pattern} container={super().describe()}"
