from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Mapping, Protocol

from .classifier import Classification, ContainerDescriptor
from .metadata import MetadataError
from .route53 import Action, RecordSet, RegistrationTarget, StoreError


class Outcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    SKIPPED = "skipped"
    FAILED = "failed"


class EventStatus(str, Enum):
    START = "start"
    STOP = "stop"
    OTHER = "other"


# The runtime may deliver any or all of these for one termination.
STOP_STATUSES = frozenset({"stop", "die", "kill"})


def event_status(raw: str) -> EventStatus:
    if raw == "start":
        return EventStatus.START
    if raw in STOP_STATUSES:
        return EventStatus.STOP
    return EventStatus.OTHER


@dataclass(frozen=True)
class LifecycleEvent:
    container_id: str
    status: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    time: int | None = None

    @property
    def kind(self) -> EventStatus:
        return event_status(self.status)


@dataclass(frozen=True)
class ReconcileResult:
    outcome: Outcome
    container_id: str = ""
    status: str = ""
    target: RegistrationTarget | None = None
    action: str = ""  # CREATE|DELETE|query|metadata|inspect
    error: str = ""
    reason: str = ""


class Classifier(Protocol):
    def classify(self, descriptor: ContainerDescriptor) -> Classification: ...

    def owns(self, record_name: str) -> bool: ...


class RecordStore(Protocol):
    def list_records(self, zone_id: str) -> list[RecordSet]: ...

    def find_by_name_and_value(self, zone_id: str, name: str, value: str) -> bool: ...

    def apply(self, zone_id: str, action: Action, target: RegistrationTarget) -> dict: ...


class Reconciler:
    """Decides and issues the single mutation a lifecycle event calls for.

    Nothing is cached: the zone is queried right before every mutation, which
    makes duplicate and out-of-order events harmless. Two processes racing on
    the same target can still both pass the check; there is no lock.
    """

    def __init__(
        self,
        classifier: Classifier,
        resolve_address: Callable[[], str],
        store: RecordStore,
        zone_id: str,
    ):
        self.classifier = classifier
        self.resolve_address = resolve_address
        self.store = store
        self.zone_id = zone_id

    def reconcile(self, event: LifecycleEvent, descriptor: ContainerDescriptor) -> ReconcileResult:
        base = {"container_id": event.container_id, "status": event.status}

        cls = self.classifier.classify(descriptor)
        if not cls.in_scope:
            return ReconcileResult(Outcome.SKIPPED, reason=cls.reason, **base)

        kind = event.kind
        # Ignored statuses end here, before the metadata lookup, so they never make a network call.
        if kind is EventStatus.OTHER:
            return ReconcileResult(Outcome.SKIPPED, reason=f"status {event.status!r} ignored", **base)

        try:
            address = self.resolve_address()
        except MetadataError as e:
            return ReconcileResult(Outcome.FAILED, action="metadata", error=str(e), **base)

        target = RegistrationTarget(cls.record_name, address)
        if kind is EventStatus.START:
            return self._create(target, **base)
        return self._delete(target, **base)

    def _create(self, target: RegistrationTarget, **base: str) -> ReconcileResult:
        try:
            if self.store.find_by_name_and_value(self.zone_id, target.record_name, target.value):
                return ReconcileResult(Outcome.ALREADY_EXISTS, target=target, **base)
        except StoreError as e:
            return ReconcileResult(Outcome.FAILED, target=target, action="query", error=str(e), **base)
        try:
            self.store.apply(self.zone_id, Action.CREATE, target)
        except StoreError as e:
            return ReconcileResult(Outcome.FAILED, target=target, action=Action.CREATE.value, error=str(e), **base)
        return ReconcileResult(Outcome.CREATED, target=target, action=Action.CREATE.value, **base)

    def _delete(self, target: RegistrationTarget, **base: str) -> ReconcileResult:
        try:
            if not self.store.find_by_name_and_value(self.zone_id, target.record_name, target.value):
                return ReconcileResult(Outcome.NOT_FOUND, target=target, **base)
        except StoreError as e:
            return ReconcileResult(Outcome.FAILED, target=target, action="query", error=str(e), **base)
        try:
            self.store.apply(self.zone_id, Action.DELETE, target)
        except StoreError as e:
            return ReconcileResult(Outcome.FAILED, target=target, action=Action.DELETE.value, error=str(e), **base)
        return ReconcileResult(Outcome.DELETED, target=target, action=Action.DELETE.value, **base)

    def sync(self, running: Iterable[ContainerDescriptor]) -> list[ReconcileResult]:
        """Align the zone with the containers running right now.

        Records this host owns (set identifier == its address) under a managed
        name but with no running container behind them are deleted, then every
        running in-scope container is registered.
        """
        try:
            address = self.resolve_address()
        except MetadataError as e:
            return [ReconcileResult(Outcome.FAILED, status="sync", action="metadata", error=str(e))]

        wanted: dict[RegistrationTarget, ContainerDescriptor] = {}
        for d in running:
            cls = self.classifier.classify(d)
            if cls.in_scope:
                wanted.setdefault(RegistrationTarget(cls.record_name, address), d)

        results: list[ReconcileResult] = []
        try:
            records = self.store.list_records(self.zone_id)
        except StoreError as e:
            results.append(ReconcileResult(Outcome.FAILED, status="sync", action="query", error=str(e)))
            records = []

        stale = {
            RegistrationTarget(r.name, address)
            for r in records
            if r.set_identifier == address and address in r.values and self.classifier.owns(r.name)
        }
        for target in sorted(stale - set(wanted), key=lambda t: t.record_name):
            results.append(self._delete(target, container_id="", status="sync"))

        for target, d in wanted.items():
            results.append(self._create(target, container_id=d.id, status="sync"))
        return results
