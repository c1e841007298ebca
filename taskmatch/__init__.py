"""
taskmatch: deterministic multi-matcher filtering for discovered tasks.

Matchers are grouped by type, run over every container of every task,
merged by fixed type priority, and returned in a stable order ready for
scrape-target generation.
"""

__version__ = "0.1.0"

from taskmatch.errors import FilterError, MatcherError, NotMatched  # noqa: E402,F401
from taskmatch.filter import TaskFilter  # noqa: E402,F401
from taskmatch.matchers import MatcherType, TargetMatcher, matcher_orders  # noqa: E402,F401
from taskmatch.models import Container, Task, TaskAnnotated  # noqa: E402,F401
