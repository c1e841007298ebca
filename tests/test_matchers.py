import pytest

from taskmatch.errors import ContainerError, NotMatched
from taskmatch.matchers import ExportSetting, MatcherType, match_containers, matcher_orders
from taskmatch.matchers.docker_label import DockerLabelMatcher
from taskmatch.matchers.service import ServiceMatcher
from taskmatch.matchers.task_definition import TaskDefinitionMatcher
from taskmatch.models import Container, Task, annotate


def _annotated():
    return annotate([
        Task(
            task_arn="arn:aws:ecs:us-west-2:123:task/a",
            task_definition_arn="arn:aws:ecs:us-west-2:123:task-definition/nginx:3",
            service_name="nginx-frontend",
            containers=[
                Container(name="nginx", docker_labels={"PORT": "9113", "PATH": "/stats"}),
                Container(name="sidecar-envoy", docker_labels={"PORT": "not-a-port"}),
            ],
        ),
        Task(
            task_arn="arn:aws:ecs:us-west-2:123:task/b",
            task_definition_arn="arn:aws:ecs:us-west-2:123:task-definition/redis:1",
            containers=[Container(name="redis", docker_labels={"JOB": "cache", "PORT": "9121"})],
        ),
    ])


def test_priority_order_is_fixed():
    assert matcher_orders() == (
        MatcherType.SERVICE,
        MatcherType.TASK_DEFINITION,
        MatcherType.DOCKER_LABEL,
    )
    assert [t.priority for t in matcher_orders()] == [0, 1, 2]


def test_export_setting_one_target_per_port():
    export = ExportSetting(job_name="web", metrics_path="/m", metrics_ports=[80, 9090])
    targets = export.to_targets(MatcherType.SERVICE)
    assert [(t.port, t.metrics_path, t.job) for t in targets] == [(80, "/m", "web"), (9090, "/m", "web")]


def test_service_matcher():
    tasks = _annotated()
    matcher = ServiceMatcher("^nginx-", export=ExportSetting(metrics_ports=[9113]))

    result, err = matcher.evaluate(tasks, 0)

    assert err is None
    assert [(c.task_index, c.container_index) for c in result.containers] == [(0, 0), (0, 1)]
    assert result.tasks == [0]


def test_service_matcher_skips_tasks_without_service():
    tasks = _annotated()
    matcher = ServiceMatcher(".*", export=ExportSetting(metrics_ports=[9121]))
    with pytest.raises(NotMatched):
        matcher.match_targets(tasks[1], tasks[1].containers[0])


def test_container_name_pattern():
    tasks = _annotated()
    matcher = ServiceMatcher(
        "nginx", container_name_pattern="^nginx$", export=ExportSetting(metrics_ports=[9113])
    )
    result, _ = matcher.evaluate(tasks, 0)
    assert [(c.task_index, c.container_index) for c in result.containers] == [(0, 0)]


def test_task_definition_matcher():
    tasks = _annotated()
    matcher = TaskDefinitionMatcher("task-definition/redis:[0-9]+$", export=ExportSetting(metrics_ports=[9121]))

    result, err = matcher.evaluate(tasks, 2)

    assert err is None
    assert [(c.task_index, c.container_index) for c in result.containers] == [(1, 0)]
    target = result.containers[0].targets[0]
    assert target.matcher_type == MatcherType.TASK_DEFINITION
    assert target.matcher_index == 2
    assert target.port == 9121


def test_docker_label_matcher_reads_labels():
    tasks = _annotated()
    matcher = DockerLabelMatcher(
        port_label="PORT",
        metrics_path_label="PATH",
        job_name_label="JOB",
        export=ExportSetting(job_name="default-job"),
    )

    result, err = matcher.evaluate(tasks, 0)

    targets = {(c.task_index, c.container_index): c.targets[0] for c in result.containers}
    assert (targets[(0, 0)].port, targets[(0, 0)].metrics_path, targets[(0, 0)].job) == (9113, "/stats", "default-job")
    assert (targets[(1, 0)].port, targets[(1, 0)].metrics_path, targets[(1, 0)].job) == (9121, "/metrics", "cache")

    # The bad label fails only its own container.
    assert (0, 1) not in targets
    assert err is not None
    assert err.matcher_type == MatcherType.DOCKER_LABEL
    assert len(err.causes) == 1
    cause = err.causes[0]
    assert isinstance(cause, ContainerError)
    assert (cause.task_index, cause.container_index) == (0, 1)
    assert "not-a-port" in str(cause)


def test_docker_label_port_out_of_range():
    tasks = annotate([Task(task_arn="t", containers=[Container(name="x", docker_labels={"PORT": "70000"})])])
    result, err = match_containers(tasks, DockerLabelMatcher(port_label="PORT"), 0)
    assert result.containers == []
    assert "out of range" in str(err)


def test_docker_label_missing_label_is_not_a_failure():
    tasks = annotate([Task(task_arn="t", containers=[Container(name="x")])])
    result, err = DockerLabelMatcher(port_label="PORT").evaluate(tasks, 0)
    assert result.containers == []
    assert err is None
