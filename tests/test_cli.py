import json

from typer.testing import CliRunner

from taskmatch import __version__
from taskmatch.cli import app

runner = CliRunner()

TASKS = """
tasks:
  - task_arn: arn:task/a
    service_name: nginx-web
    private_ip: 10.0.0.1
    containers:
      - name: nginx
        docker_labels:
          ECS_PROMETHEUS_EXPORTER_PORT: "9113"
      - name: app
  - task_arn: arn:task/b
    private_ip: 10.0.0.2
    containers:
      - name: redis
"""

CONFIG = """
services:
  - name_pattern: "^nginx-"
    container_name_pattern: "^app$"
    metrics_ports: [8080]
"""


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"taskmatch v{__version__}" in result.stdout


def test_orders():
    result = runner.invoke(app, ["orders"])
    assert result.exit_code == 0
    assert "service" in result.stdout
    assert "docker_label" in result.stdout


def test_filter_json(tmp_path):
    tasks = tmp_path / "tasks.yaml"
    tasks.write_text(TASKS)
    cfg = tmp_path / "config.yaml"
    cfg.write_text(CONFIG)

    result = runner.invoke(app, ["filter", "--tasks", str(tasks), "--config", str(cfg), "--json"])

    assert result.exit_code == 0
    targets = json.loads(result.stdout)
    assert [(t["address"], t["matcher_type"]) for t in targets] == [
        ("10.0.0.1:9113", "docker_label"),
        ("10.0.0.1:8080", "service"),
    ]


def test_filter_strict_fails_on_matcher_error(tmp_path):
    tasks = tmp_path / "tasks.yaml"
    tasks.write_text("""
- task_arn: arn:task/a
  private_ip: 10.0.0.1
  containers:
    - name: bad
      docker_labels:
        ECS_PROMETHEUS_EXPORTER_PORT: "http"
""")
    result = runner.invoke(app, ["filter", "--tasks", str(tasks), "--strict"])
    assert result.exit_code == 1


def test_filter_missing_tasks_file(tmp_path):
    result = runner.invoke(app, ["filter", "--tasks", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1


def test_filter_malformed_tasks_file(tmp_path):
    tasks = tmp_path / "tasks.yaml"
    tasks.write_text("tasks: [unclosed\n")

    result = runner.invoke(app, ["filter", "--tasks", str(tasks)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid YAML" in result.output
