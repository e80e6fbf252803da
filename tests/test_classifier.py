import pytest

from registrator.classifier import (
    ContainerDescriptor,
    LabelClassifier,
    NameClassifier,
    names_match,
    normalize_name,
)


@pytest.fixture
def labels():
    return LabelClassifier("dns.name", ".service", "discovery")


def test_label_suffix_in_scope(labels):
    d = ContainerDescriptor(id="1", name="web-service", labels={"dns.name": "web-service.service"})
    cls = labels.classify(d)
    assert cls.in_scope is True
    assert cls.record_name == "web-service.service.discovery."


@pytest.mark.parametrize(
    "label_value",
    [
        None,
        "",
        "web-service",
        "web-service.services",
        "-bad.service",
        "web_service.service",
    ],
)
def test_label_out_of_scope(labels, label_value):
    lbls = {} if label_value is None else {"dns.name": label_value}
    cls = labels.classify(ContainerDescriptor(id="1", name="web", labels=lbls))
    assert cls.in_scope is False
    assert cls.record_name == ""
    assert cls.reason


def test_missing_label_is_never_a_wildcard():
    cls = LabelClassifier("dns.name", "", "discovery").classify(ContainerDescriptor(id="1", name="web"))
    assert cls.in_scope is False


def test_label_value_is_normalized(labels):
    d = ContainerDescriptor(id="1", labels={"dns.name": "  Web-Service.Service. "})
    assert labels.classify(d).record_name == "web-service.service.discovery."


def test_label_owns(labels):
    assert labels.owns("api.service.discovery.")
    assert labels.owns("api.service.discovery")
    assert not labels.owns("api.discovery.")
    assert not labels.owns("api.service.example.com.")


@pytest.mark.parametrize("name", ["docker-registry", "/docker-registry"])
def test_name_classifier_matches_with_or_without_slash(name):
    c = NameClassifier("docker-registry", "registry.example.com")
    cls = c.classify(ContainerDescriptor(id="1", name=name))
    assert cls.in_scope is True
    assert cls.record_name == "registry.example.com."


def test_name_classifier_rejects_other_names():
    c = NameClassifier("/docker-registry", "registry.example.com.")
    assert c.classify(ContainerDescriptor(id="1", name="/docker-registry-2")).in_scope is False
    assert c.owns("registry.example.com")
    assert not c.owns("other.example.com.")


def test_name_helpers():
    assert normalize_name("svc.example.com") == "svc.example.com."
    assert normalize_name("svc.example.com.") == "svc.example.com."
    assert names_match("svc.example.com", "svc.example.com.")
    assert names_match("svc.example.com.", "svc.example.com")
    assert not names_match("svc.example.com", "svc2.example.com")
