from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping


DNS_NAME_RE = re.compile(r"^(?!-)[a-z0-9\-]{1,63}(?<!-)(\.(?!-)[a-z0-9\-]{1,63}(?<!-))*$")


def normalize_name(name: str) -> str:
    """Fully-qualify a DNS name: exactly one trailing dot.

    Names are also lowercased; DNS compares names case-insensitively.
    """
    return name.strip().rstrip(".").lower() + "."


def names_match(a: str, b: str) -> bool:
    """Compare names ignoring a trailing dot and letter case."""
    return a.rstrip(".").lower() == b.rstrip(".").lower()


@dataclass(frozen=True)
class ContainerDescriptor:
    id: str
    name: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Classification:
    in_scope: bool
    record_name: str = ""
    reason: str = ""


OUT_OF_SCOPE = Classification(False)


class NameClassifier:
    """Observe exactly one container, matched by name."""

    def __init__(self, container_name: str, record_name: str):
        self.container_name = container_name.lstrip("/")
        self.record_name = normalize_name(record_name)

    def classify(self, descriptor: ContainerDescriptor) -> Classification:
        # docker reports names with a leading "/"
        if descriptor.name.lstrip("/") != self.container_name:
            return Classification(False, reason=f"name {descriptor.name!r} is not {self.container_name!r}")
        return Classification(True, self.record_name)

    def owns(self, record_name: str) -> bool:
        return names_match(record_name, self.record_name)


class LabelClassifier:
    """Observe containers whose name label ends with the service suffix.

    A container labelled ``dns.name=web-service.service`` is registered as
    ``web-service.service.<domain>.``.
    """

    def __init__(self, label: str, service_suffix: str, domain: str):
        self.label = label
        self.service_suffix = service_suffix.lower()
        self.domain = domain.strip(".").lower()

    def classify(self, descriptor: ContainerDescriptor) -> Classification:
        value = (descriptor.labels or {}).get(self.label)
        if not value:
            return Classification(False, reason=f"no {self.label} label")
        value = value.strip().rstrip(".").lower()
        if not value.endswith(self.service_suffix):
            return Classification(False, reason=f"{value!r} does not end with {self.service_suffix!r}")
        if not DNS_NAME_RE.match(value):
            return Classification(False, reason=f"{value!r} is not a valid DNS name")
        return Classification(True, normalize_name(f"{value}.{self.domain}"))

    def owns(self, record_name: str) -> bool:
        name = record_name.rstrip(".").lower()
        return name.endswith(f"{self.service_suffix}.{self.domain}")
