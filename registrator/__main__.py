from __future__ import annotations

import argparse
import dataclasses
import functools
import logging
import sys
from threading import Thread

import uvicorn

from .api import create_app
from .classifier import LabelClassifier, NameClassifier
from .docker_ops import connect
from .metadata import resolve_address
from .reconciler import Reconciler
from .route53 import Route53Store
from .runtime import RuntimeState
from .settings import Settings, settings
from .watcher import EventWatcher

LOG = logging.getLogger("registrator")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def parse_settings(argv: list[str] | None = None, base: Settings = settings) -> Settings:
    p = argparse.ArgumentParser(prog="registrator", description="Register docker containers in Route 53")
    p.add_argument("--container", dest="container_name", help="Watch only the container with this name")
    p.add_argument("--cname", help="Record name for the watched container")
    p.add_argument("--label", dest="name_label", help="Label holding a container's record name")
    p.add_argument("--service-suffix", help="Label values ending with this suffix are registered")
    p.add_argument("--domain", help="Domain appended to label values")
    p.add_argument("--metadata", dest="metadata_address", help="Address of the metadata service")
    p.add_argument("--metadata-path", help="Metadata path returning this host's address")
    p.add_argument("--region", help="AWS region for Route 53")
    p.add_argument("--zone", dest="zone_id", help="Route 53 hosted zone id")
    p.add_argument("--docker-host", help="Docker daemon URL")
    p.add_argument("--record-type", choices=["auto", "A", "CNAME"])
    p.add_argument("--ttl", type=int)
    p.add_argument("--weight", type=int)
    p.add_argument("--listen", help="host:port for the liveness endpoint")
    p.add_argument("--no-sync", dest="sync_on_start", action="store_false", default=None,
                   help="Do not align the zone with running containers at startup")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = vars(p.parse_args(argv))

    if args.pop("verbose"):
        args["log_level"] = "DEBUG"
    overrides = {k: v for k, v in args.items() if v is not None}
    return dataclasses.replace(base, **overrides)


def build_reconciler(cfg: Settings, store: Route53Store | None = None) -> Reconciler:
    if cfg.mode == "name":
        classifier = NameClassifier(cfg.container_name, cfg.cname)
    else:
        classifier = LabelClassifier(cfg.name_label, cfg.service_suffix, cfg.domain)
    resolver = functools.partial(resolve_address, cfg.metadata_address, cfg.metadata_path, cfg.metadata_timeout_s)
    store = store or Route53Store(region=cfg.region, record_type=cfg.record_type, ttl=cfg.ttl, weight=cfg.weight)
    return Reconciler(classifier, resolver, store, cfg.zone_id)


def serve_liveness(runtime: RuntimeState, listen: tuple[str, int]) -> Thread:
    host, port = listen
    server = uvicorn.Server(uvicorn.Config(create_app(runtime), host=host, port=port, log_level="warning"))
    thr = Thread(target=server.run, name="liveness", daemon=True)
    thr.start()
    return thr


def main(argv: list[str] | None = None) -> int:
    cfg = parse_settings(argv)
    _setup_logging(cfg.log_level)
    try:
        cfg.validate()
    except ValueError as e:
        LOG.error("Invalid configuration: %s", e)
        return 2

    LOG.info(
        "mode=%s zone=%s region=%s metadata=%s/%s",
        cfg.mode, cfg.zone_id, cfg.region, cfg.metadata_address, cfg.metadata_path,
    )

    try:
        client = connect(cfg.docker_host)
        reconciler = build_reconciler(cfg)
    except Exception:
        LOG.exception("Cannot start: docker daemon or AWS client unavailable")
        return 1

    runtime = RuntimeState(cfg.history_size)
    serve_liveness(runtime, cfg.listen_address())
    watcher = EventWatcher(client, reconciler, runtime)

    try:
        stream = watcher.subscribe()
    except Exception:
        LOG.exception("Cannot subscribe to docker events")
        return 1

    if cfg.sync_on_start:
        try:
            watcher.sync()
        except Exception:
            LOG.exception("Startup sync failed; continuing with the event stream")

    watcher.run(stream)
    # The stream only ends when the daemon connection goes away.
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
