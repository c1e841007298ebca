"""
Scrape targets from filter output.

Flattens sorted annotated tasks into one target per exported port. The
order follows the filter output, so it is stable across runs.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel

from taskmatch.models import TaskAnnotated


class ScrapeTarget(BaseModel):
    address: str
    metrics_path: str
    job: str = ""
    task_arn: str
    container_name: str
    matcher_type: str
    matcher_index: int


def build_targets(tasks: list[TaskAnnotated]) -> list[ScrapeTarget]:
    targets: list[ScrapeTarget] = []
    for task in tasks:
        ip = task.task.private_ip
        if not ip:
            logger.warning(f"[TARGETS] Task {task.task.task_arn} has no private IP, skipping")
            continue
        for matched in task.matched:
            container = task.containers[matched.container_index]
            for t in matched.targets:
                targets.append(ScrapeTarget(
                    address=f"{ip}:{container.host_port(t.port)}",
                    metrics_path=t.metrics_path,
                    job=t.job,
                    task_arn=task.task.task_arn,
                    container_name=container.name,
                    matcher_type=t.matcher_type.value,
                    matcher_index=t.matcher_index,
                ))
    return targets
