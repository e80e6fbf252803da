from __future__ import annotations

import functools
import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .classifier import names_match, normalize_name


F = TypeVar("F", bound=Callable[..., Any])


class StoreError(Exception):
    pass


class ProviderError(StoreError):
    """Route 53 answered with a service error."""

    def __init__(self, operation: str, code: str, message: str):
        super().__init__(f"{operation}: {code}: {message}")
        self.operation = operation
        self.code = code
        self.message = message


class TransportError(StoreError):
    """Route 53 could not be reached (endpoint, credentials, timeout)."""


def provider_call(fn: F) -> F:
    """Classify botocore failures raised by a record store call."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ClientError as e:
            err = e.response.get("Error", {})
            raise ProviderError(fn.__name__, err.get("Code", "Unknown"), err.get("Message", str(e))) from e
        except BotoCoreError as e:
            raise TransportError(f"{fn.__name__}: {type(e).__name__}: {e}") from e

    return wrapper  # type: ignore[return-value]


class Action(str, Enum):
    CREATE = "CREATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RegistrationTarget:
    record_name: str
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "record_name", normalize_name(self.record_name))


@dataclass(frozen=True)
class RecordSet:
    name: str
    type: str
    values: tuple[str, ...] = ()
    set_identifier: str = ""
    weight: int | None = None
    ttl: int | None = None

    @property
    def value(self) -> str:
        return self.values[0] if self.values else ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RecordSet":
        return cls(
            name=data["Name"],
            type=data["Type"],
            values=tuple(r["Value"] for r in data.get("ResourceRecords", [])),
            set_identifier=data.get("SetIdentifier", ""),
            weight=data.get("Weight"),
            ttl=data.get("TTL"),
        )


def record_type_for(value: str, configured: str = "auto") -> str:
    if configured != "auto":
        return configured
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return "CNAME"
    return "A"


class Route53Store:
    """Queries and single-change mutations against one Route 53 account."""

    def __init__(
        self,
        client: Any = None,
        region: str = "us-east-1",
        record_type: str = "auto",
        ttl: int = 5,
        weight: int = 50,
    ):
        self.client = client or boto3.client("route53", region_name=region)
        self.record_type = record_type
        self.ttl = ttl
        self.weight = weight

    @provider_call
    def list_records(self, zone_id: str) -> list[RecordSet]:
        paginator = self.client.get_paginator("list_resource_record_sets")
        out: list[RecordSet] = []
        for page in paginator.paginate(HostedZoneId=zone_id):
            for rrs in page.get("ResourceRecordSets", []):
                out.append(RecordSet.from_api(rrs))
        return out

    def find_by_name(self, zone_id: str, name: str) -> list[RecordSet]:
        # Route 53 always returns FQDNs with a trailing dot
        return [r for r in self.list_records(zone_id) if names_match(r.name, name)]

    def find_by_name_and_value(self, zone_id: str, name: str, value: str) -> bool:
        return any(value in r.values for r in self.find_by_name(zone_id, name))

    def record_set_for(self, target: RegistrationTarget) -> dict[str, Any]:
        return {
            "Name": target.record_name,
            "Type": record_type_for(target.value, self.record_type),
            "TTL": self.ttl,
            "Weight": self.weight,
            "SetIdentifier": target.value,
            "ResourceRecords": [{"Value": target.value}],
        }

    @provider_call
    def apply(self, zone_id: str, action: Action, target: RegistrationTarget) -> dict[str, Any]:
        """Submit exactly one change for the target and return its ChangeInfo."""
        action = Action(action)
        batch = {
            "Comment": f"registrator {action.value.lower()} {target.record_name} -> {target.value}",
            "Changes": [{"Action": action.value, "ResourceRecordSet": self.record_set_for(target)}],
        }
        resp = self.client.change_resource_record_sets(HostedZoneId=zone_id, ChangeBatch=batch)
        return resp.get("ChangeInfo", {})
