from collections import Counter

import pytest
from botocore.exceptions import ClientError
from docker.errors import NotFound

from registrator.classifier import LabelClassifier
from registrator.reconciler import LifecycleEvent, Reconciler
from registrator.route53 import Route53Store


ZONE = "Z1P7DHMHEAX6O3"


class _FakePaginator:
    def __init__(self, client):
        self.client = client

    def paginate(self, HostedZoneId):
        self.client.calls["list"] += 1
        if self.client.fail_list:
            raise self.client.fail_list
        yield {
            "ResourceRecordSets": [dict(r) for r in self.client.zones.setdefault(HostedZoneId, [])],
            "IsTruncated": False,
            "MaxItems": "100",
        }


class FakeRoute53Client:
    """In-memory stand-in for a boto3 route53 client."""

    def __init__(self):
        self.zones: dict[str, list[dict]] = {}
        self.changes: list[dict] = []
        self.calls: Counter = Counter()
        self.fail_list: Exception | None = None
        self.fail_change: Exception | None = None

    def get_paginator(self, name):
        assert name == "list_resource_record_sets"
        return _FakePaginator(self)

    def change_resource_record_sets(self, HostedZoneId, ChangeBatch):
        self.calls["change"] += 1
        if self.fail_change:
            raise self.fail_change
        records = self.zones.setdefault(HostedZoneId, [])
        for change in ChangeBatch["Changes"]:
            self.changes.append(change)
            rrs = change["ResourceRecordSet"]
            if change["Action"] == "CREATE":
                records.append(dict(rrs))
            elif rrs in records:
                records.remove(rrs)
            else:
                raise client_error("InvalidChangeBatch", "record set not found", "ChangeResourceRecordSets")
        return {"ChangeInfo": {"Id": "/change/C1", "Status": "PENDING"}}

    def add(self, zone, name, value, type_="A", set_identifier=None, weight=50, ttl=5):
        self.zones.setdefault(zone, []).append(
            {
                "Name": name,
                "Type": type_,
                "TTL": ttl,
                "Weight": weight,
                "SetIdentifier": set_identifier if set_identifier is not None else value,
                "ResourceRecords": [{"Value": value}],
            }
        )


def client_error(code, message, operation):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class CountingResolver:
    def __init__(self, address="10.0.0.5", error=None):
        self.address = address
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.address


class FakeContainer:
    def __init__(self, id, name, labels=None):
        self.id = id
        self.name = name
        self.labels = labels or {}


class FakeContainers:
    def __init__(self):
        self.items: dict[str, FakeContainer] = {}
        self.get_error: Exception | None = None
        self.gets = 0

    def get(self, container_id):
        self.gets += 1
        if self.get_error:
            raise self.get_error
        if container_id not in self.items:
            raise NotFound(f"No such container: {container_id}")
        return self.items[container_id]

    def list(self, filters=None):
        return list(self.items.values())


class FakeDockerClient:
    def __init__(self):
        self.containers = FakeContainers()
        self.raw_events: list[dict] = []

    def add(self, id, name, labels=None):
        self.containers.items[id] = FakeContainer(id, name, labels)

    def events(self, decode=False, filters=None):
        return iter(self.raw_events)


def event(container_id, status, **attributes):
    return LifecycleEvent(container_id=container_id, status=status, attributes=attributes)


@pytest.fixture
def route53_client():
    return FakeRoute53Client()


@pytest.fixture
def store(route53_client):
    return Route53Store(client=route53_client)


@pytest.fixture
def resolver():
    return CountingResolver()


@pytest.fixture
def classifier():
    return LabelClassifier("dns.name", ".service", "discovery")


@pytest.fixture
def reconciler(classifier, resolver, store):
    return Reconciler(classifier, resolver, store, ZONE)


@pytest.fixture
def docker_client():
    return FakeDockerClient()
