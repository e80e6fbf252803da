from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator

from .classifier import ContainerDescriptor
from .docker_ops import (
    ContainerGone,
    ContainerLookupError,
    container_events,
    descriptor_from_event,
    inspect_container,
    running_containers,
)
from .reconciler import EventStatus, LifecycleEvent, Outcome, ReconcileResult, Reconciler
from .runtime import RuntimeState

LOG = logging.getLogger(__name__)


def log_result(result: ReconcileResult) -> None:
    target = result.target
    where = f"{target.record_name} -> {target.value}" if target else "-"
    if result.outcome is Outcome.FAILED:
        LOG.error(
            "%s %s: %s failed for %s: %s",
            result.status, result.container_id[:12], result.action or "reconcile", where, result.error,
        )
    elif result.outcome in (Outcome.CREATED, Outcome.DELETED):
        LOG.info("%s %s: %s %s", result.status, result.container_id[:12], result.outcome.value, where)
    elif result.outcome in (Outcome.ALREADY_EXISTS, Outcome.NOT_FOUND):
        LOG.info("%s %s: nothing to do, %s %s", result.status, result.container_id[:12], result.outcome.value, where)
    else:
        LOG.debug("%s %s: skipped (%s)", result.status, result.container_id[:12], result.reason)


class EventWatcher:
    """Single consumer of the docker event stream.

    Each event is reconciled to completion before the next one is read, so
    two events for one container never overlap within this process.
    """

    def __init__(
        self,
        client: Any,
        reconciler: Reconciler,
        runtime: RuntimeState,
        events: Callable[[Any], Iterable[LifecycleEvent]] = container_events,
    ):
        self.client = client
        self.reconciler = reconciler
        self.runtime = runtime
        self._events = events

    def describe(self, event: LifecycleEvent) -> ContainerDescriptor:
        # Ignored statuses never reach the record store; skip the inspect call too.
        if event.kind is EventStatus.OTHER:
            return descriptor_from_event(event)
        try:
            return inspect_container(self.client, event.container_id)
        except ContainerGone:
            LOG.debug("container %s already removed, using event attributes", event.container_id[:12])
            return descriptor_from_event(event)

    def handle(self, event: LifecycleEvent) -> ReconcileResult:
        try:
            descriptor = self.describe(event)
        except ContainerLookupError as e:
            result = ReconcileResult(
                Outcome.FAILED, container_id=event.container_id, status=event.status, action="inspect", error=str(e)
            )
        else:
            result = self.reconciler.reconcile(event, descriptor)
        log_result(result)
        self.runtime.record(result)
        return result

    def sync(self) -> list[ReconcileResult]:
        running = running_containers(self.client)
        LOG.info("Syncing zone with %d running container(s)", len(running))
        results = self.reconciler.sync(running)
        for result in results:
            log_result(result)
            self.runtime.record(result)
        return results

    def subscribe(self) -> Iterator[LifecycleEvent]:
        return iter(self._events(self.client))

    def run(self, stream: Iterator[LifecycleEvent] | None = None) -> None:
        """Consume events until the stream ends. Per-event errors never stop the loop."""
        stream = stream if stream is not None else self.subscribe()
        LOG.info("Listening for Docker events ...")
        try:
            for event in stream:
                try:
                    self.handle(event)
                except Exception:
                    LOG.exception("Unexpected error handling %s event for %s", event.status, event.container_id[:12])
        except Exception:
            LOG.exception("Docker event stream failed")
            return
        LOG.warning("Docker event stream closed")
