import pytest

from taskmatch.matchers import ExportSetting, TargetMatcher
from taskmatch.errors import NotMatched
from taskmatch.models import Container, Task


class FakeMatcher(TargetMatcher):
    """Matches containers by (task index, container name); optionally fails on some."""

    def __init__(self, matcher_type, hits=(), fail_on=(), port=9090):
        super().__init__(ExportSetting(metrics_ports=[port], job_name=matcher_type.value))
        self.matcher_type = matcher_type
        self.hits = set(hits)
        self.fail_on = set(fail_on)

    def match_targets(self, task, container):
        key = (task.index, container.name)
        if key in self.fail_on:
            raise ValueError(f"malformed metadata on {container.name}")
        if key not in self.hits:
            raise NotMatched(container.name)
        return self.export.to_targets(self.matcher_type)


@pytest.fixture
def tasks():
    """T0 with containers c0, c1; T1 with c2; T2 with c3 that nothing matches."""
    return [
        Task(task_arn="arn:aws:ecs:task/t0", private_ip="10.0.0.1",
             containers=[Container(name="c0"), Container(name="c1")]),
        Task(task_arn="arn:aws:ecs:task/t1", private_ip="10.0.0.2",
             containers=[Container(name="c2")]),
        Task(task_arn="arn:aws:ecs:task/t2", private_ip="10.0.0.3",
             containers=[Container(name="c3")]),
    ]
