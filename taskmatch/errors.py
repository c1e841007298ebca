"""
taskmatch error types.

Matcher failures are localized: a failing matcher is recorded and the run
carries on. The filter hands all of them back as one FilterError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskmatch.matchers import MatcherType


class NotMatched(Exception):
    """Raised by a matcher when a container simply does not match."""


class ContainerError(Exception):
    """A matcher failed while looking at one container."""

    def __init__(self, task_index: int, container_index: int, cause: BaseException):
        self.task_index = task_index
        self.container_index = container_index
        self.cause = cause
        super().__init__(f"task {task_index} container {container_index}: {cause}")


class MatcherError(Exception):
    """All failures produced by one matcher invocation, in scan order."""

    def __init__(self, matcher_type: MatcherType, matcher_index: int, causes: list[BaseException]):
        self.matcher_type = matcher_type
        self.matcher_index = matcher_index
        self.causes = list(causes)
        detail = "; ".join(str(c) for c in self.causes[:3])
        if len(self.causes) > 3:
            detail += f"; ... {len(self.causes) - 3} more"
        super().__init__(f"matcher {matcher_type.value}[{matcher_index}] failed: {detail}")


class FilterError(ExceptionGroup):
    """Aggregated matcher failures of one filter run."""


class ConfigError(Exception):
    pass
