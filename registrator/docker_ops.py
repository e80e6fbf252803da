from __future__ import annotations

from typing import Any, Iterator

import docker
from docker.errors import DockerException, NotFound

from .classifier import ContainerDescriptor
from .reconciler import LifecycleEvent


# Actor.Attributes keys that docker adds next to the container labels.
_EVENT_ATTRIBUTE_KEYS = {"name", "image", "exitCode", "signal", "execID", "container"}


class ContainerLookupError(Exception):
    pass


class ContainerGone(ContainerLookupError):
    """The container no longer exists (e.g. removed with --rm)."""


def connect(base_url: str = "") -> docker.DockerClient:
    """Open a client and ping the daemon. Failures here are fatal for the process."""
    client = docker.DockerClient(base_url=base_url) if base_url else docker.from_env()
    client.ping()
    return client


def inspect_container(client: docker.DockerClient, container_id: str) -> ContainerDescriptor:
    try:
        c = client.containers.get(container_id)
    except NotFound as e:
        raise ContainerGone(f"container {container_id} not found") from e
    except DockerException as e:
        raise ContainerLookupError(f"inspect {container_id} failed: {type(e).__name__}: {e}") from e
    return ContainerDescriptor(id=c.id, name=c.name, labels=dict(c.labels or {}))


def running_containers(client: docker.DockerClient) -> list[ContainerDescriptor]:
    containers = client.containers.list(filters={"status": "running"})
    return [ContainerDescriptor(id=c.id, name=c.name, labels=dict(c.labels or {})) for c in containers]


def decode_event(raw: dict[str, Any]) -> LifecycleEvent | None:
    """Build a LifecycleEvent from a decoded docker event; None for non-container events."""
    if raw.get("Type", "container") != "container":
        return None
    actor = raw.get("Actor") or {}
    container_id = actor.get("ID") or raw.get("id")
    status = raw.get("Action") or raw.get("status")
    if not container_id or not status:
        return None
    return LifecycleEvent(
        container_id=container_id,
        status=status,
        attributes=dict(actor.get("Attributes") or {}),
        time=raw.get("time"),
    )


def descriptor_from_event(event: LifecycleEvent) -> ContainerDescriptor:
    attrs = event.attributes
    labels = {k: v for k, v in attrs.items() if k not in _EVENT_ATTRIBUTE_KEYS}
    return ContainerDescriptor(id=event.container_id, name=attrs.get("name", ""), labels=labels)


def container_events(client: docker.DockerClient) -> Iterator[LifecycleEvent]:
    """Subscribe now, so a failed subscription raises here rather than on first read."""
    stream = client.events(decode=True, filters={"type": "container"})
    return (e for e in map(decode_event, stream) if e is not None)
