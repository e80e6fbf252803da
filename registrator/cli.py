from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Route 53 registrator CLI")
    p.add_argument("--api", default="http://localhost:8080", help="Registrator liveness API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("health", help="Show liveness")
    sub.add_parser("stats", help="Count reconciliations per outcome")

    s_ev = sub.add_parser("events", help="Show recent reconciliations")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    try:
        if args.cmd == "health":
            r = requests.get(f"{base}/health", timeout=10)
        elif args.cmd == "stats":
            r = requests.get(f"{base}/stats", timeout=10)
        elif args.cmd == "events":
            r = requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10)
        else:
            return 2
    except requests.RequestException as e:
        print(f"cannot reach {base}: {e}", file=sys.stderr)
        return 1

    _print(r.json())
    return 0 if r.ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
