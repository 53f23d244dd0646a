from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="ManagedOCS Reconciler CLI")
    p.add_argument("--api", default="http://localhost:8000", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_apply = sub.add_parser("apply", help="Create/update a ManagedOCS")
    s_apply.add_argument("--namespace", required=True)
    s_apply.add_argument("--name", required=True)
    s_apply.add_argument("--reconcile-strategy", default="", help="Strict (default) or Unmanaged")
    s_apply.add_argument("--label", action="append", default=[], metavar="KEY=VALUE")

    s_get = sub.add_parser("get", help="Show a resource")
    s_get.add_argument("kind", choices=["managedocs", "storageclusters"])
    s_get.add_argument("--namespace", required=True)
    s_get.add_argument("--name", required=True)

    s_rec = sub.add_parser("reconcile", help="Run one reconcile pass now")
    s_rec.add_argument("--namespace", required=True)
    s_rec.add_argument("--name", required=True)

    s_phase = sub.add_parser("set-phase", help="Report a StorageCluster status phase")
    s_phase.add_argument("--namespace", required=True)
    s_phase.add_argument("--name", default="ocs-storagecluster")
    s_phase.add_argument("--phase", required=True)

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)

    sub.add_parser("ready", help="Query the readiness probe")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "apply":
        labels: dict[str, str] = {}
        for item in args.label:
            k, sep, v = item.partition("=")
            if not sep or not k:
                p.error(f"invalid --label '{item}', expected KEY=VALUE")
            labels[k] = v
        payload = {"reconcile_strategy": args.reconcile_strategy, "labels": labels}
        r = requests.put(f"{base}/managedocs/{args.namespace}/{args.name}", json=payload, timeout=30)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "get":
        r = requests.get(f"{base}/{args.kind}/{args.namespace}/{args.name}", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "reconcile":
        r = requests.post(f"{base}/reconcile/{args.namespace}/{args.name}", timeout=60)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "set-phase":
        r = requests.put(
            f"{base}/storageclusters/{args.namespace}/{args.name}/status",
            json={"phase": args.phase},
            timeout=10,
        )
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "events":
        _print(requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10).json())
        return 0

    if args.cmd == "ready":
        r = requests.get(f"{base}/readyz", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
