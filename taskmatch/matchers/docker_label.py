"""
Docker label matcher.

A container matches when it carries the configured port label. The label
value is the port to scrape; optional labels override the metrics path and
job name per container. A label value that is not a valid port is a
failure for that container only.
"""

from __future__ import annotations

from taskmatch.errors import NotMatched
from taskmatch.matchers import ExportSetting, MatcherType, TargetMatcher
from taskmatch.models import Container, MatchedTarget, TaskAnnotated


class DockerLabelMatcher(TargetMatcher):
    matcher_type = MatcherType.DOCKER_LABEL

    def __init__(
        self,
        port_label: str,
        job_name_label: str = "",
        metrics_path_label: str = "",
        export: ExportSetting | None = None,
    ):
        super().__init__(export)
        self.port_label = port_label
        self.job_name_label = job_name_label
        self.metrics_path_label = metrics_path_label

    def match_targets(self, task: TaskAnnotated, container: Container) -> list[MatchedTarget]:
        labels = container.docker_labels
        raw_port = labels.get(self.port_label)
        if raw_port is None:
            raise NotMatched(self.port_label)

        port = _parse_port(raw_port, self.port_label)

        metrics_path = self.export.metrics_path
        if self.metrics_path_label and labels.get(self.metrics_path_label):
            metrics_path = labels[self.metrics_path_label]

        job = self.export.job_name
        if self.job_name_label and labels.get(self.job_name_label):
            job = labels[self.job_name_label]

        return [
            MatchedTarget(
                matcher_type=self.matcher_type,
                port=port,
                metrics_path=metrics_path,
                job=job,
            )
        ]

    def describe(self) -> str:
        return f"label={self.port_label}"


def _parse_port(value: str, label: str) -> int:
    try:
        port = int(value.strip())
    except ValueError:
        raise ValueError(f"invalid port label value {value!r} for {label}")
    if not 0 < port < 65536:
        raise ValueError(f"port {port} out of range for {label}")
    return port
