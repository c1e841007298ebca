"""
taskmatch Match Executor

Runs every configured matcher against the full task list. Matchers are
independent of each other, so they may run on a thread pool. Results are
keyed by (type, index) and handed back in configuration order, so the
completion order of workers never shows up in the output.
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field

from loguru import logger

from taskmatch.errors import MatcherError
from taskmatch.event_bus import EventBus, MatchEvent
from taskmatch.matchers import MatcherType, TargetMatcher, matcher_orders
from taskmatch.models import MatchResult, TaskAnnotated


@dataclass
class ExecutionResult:
    """Per-type results in configuration order, plus failures in recorded order."""
    results: dict[MatcherType, list[MatchResult]] = field(default_factory=dict)
    errors: list[MatcherError] = field(default_factory=list)


def _run_single_matcher(
    tasks: list[TaskAnnotated],
    matcher_type: MatcherType,
    matcher: TargetMatcher,
    index: int,
    logger=logger,
) -> tuple[MatchResult, MatcherError | None]:
    """
    Evaluate one matcher.
    A matcher that blows up as a whole still yields an empty result.
    """
    try:
        return matcher.evaluate(tasks, index)
    except Exception as e:
        log_safely(logger, "error", f"[EXECUTOR] {matcher_type.value}[{index}] raised: {e}")
        return MatchResult(), MatcherError(matcher_type, index, [e])


def run_matchers(
    tasks: list[TaskAnnotated],
    matchers: dict[MatcherType, list[TargetMatcher]],
    max_workers: int = 1,
    logger=logger,
    bus: EventBus | None = None,
) -> ExecutionResult:
    """
    Run every (type, index) matcher and collect the results.

    With ``max_workers`` above 1 the matchers run on a thread pool.
    Failures are recorded by type priority, then configuration index.
    """
    jobs = [
        (tpe, index, matcher)
        for tpe in _ordered_types(matchers)
        for index, matcher in enumerate(matchers[tpe])
    ]

    outcomes: dict[tuple[MatcherType, int], tuple[MatchResult, MatcherError | None]] = {}

    if max_workers > 1 and len(jobs) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_key = {
                executor.submit(_run_single_matcher, tasks, tpe, matcher, index, logger): (tpe, index)
                for tpe, index, matcher in jobs
            }
            for future in concurrent.futures.as_completed(future_to_key):
                outcomes[future_to_key[future]] = future.result()
    else:
        for tpe, index, matcher in jobs:
            outcomes[(tpe, index)] = _run_single_matcher(tasks, tpe, matcher, index, logger)

    execution = ExecutionResult()
    for tpe, index, _ in jobs:
        res, err = outcomes[(tpe, index)]
        if err is not None:
            execution.errors.append(err)
        execution.results.setdefault(tpe, []).append(res)
        _report(logger, bus, tasks, tpe, index, res, err)

    return execution


# --- Helpers ---

def log_safely(logger, level: str, message: str) -> None:
    """Write one diagnostic line. A failing logger never changes a filter result."""
    try:
        getattr(logger, level)(message)
    except Exception:
        # nowhere left to report it
        return


def _ordered_types(matchers: dict[MatcherType, list[TargetMatcher]]) -> list[MatcherType]:
    return [tpe for tpe in matcher_orders() if tpe in matchers]


def _report(logger, bus, tasks, tpe, index, res, err) -> None:
    log_safely(
        logger,
        "debug",
        f"[EXECUTOR] matched {tpe.value}[{index}]: "
        f"tasks={len(tasks)} matched_tasks={len(res.tasks)} "
        f"matched_containers={len(res.containers)}"
    )
    if err is not None:
        log_safely(logger, "warning", f"[EXECUTOR] {err}")
    if bus is not None:
        bus.emit(MatchEvent(
            matcher_type=tpe.value,
            matcher_index=index,
            tasks=len(tasks),
            matched_tasks=len(res.tasks),
            matched_containers=len(res.containers),
            failed=err is not None,
        ))
