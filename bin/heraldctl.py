from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

import httpx

DEFAULT_BASE_URL = os.getenv("HERALD_BASE_URL", "http://127.0.0.1:8000")


def _print_json(data: Any, pretty: bool = True) -> None:
    if pretty:
        print(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=False))
    else:
        print(json.dumps(data, ensure_ascii=False))


def _request(
    method: str,
    url: str,
    *,
    json_body: dict | None = None,
    params: dict | None = None,
    admin_key: str | None = None,
    timeout: float = 5.0,
) -> Any:
    headers = {"accept": "application/json"}
    if json_body is not None:
        headers["content-type"] = "application/json"
    if admin_key:
        headers["X-Admin-Key"] = admin_key

    if params:
        params = {k: v for k, v in params.items() if v is not None}

    try:
        with httpx.Client(timeout=timeout) as client:
            resp = client.request(method, url, headers=headers, json=json_body, params=params)
    except httpx.RequestError as e:
        raise RuntimeError(f"Request failed: {e}") from e

    content_type = resp.headers.get("content-type", "")
    if "application/json" in content_type:
        payload: Any = resp.json()
    else:
        payload = resp.text

    if resp.status_code >= 400:
        raise RuntimeError(f"HTTP {resp.status_code} error: {payload}")

    return payload


def _normalize_base_url(base_url: str) -> str:
    return base_url.rstrip("/")


# -------------------------
# Command implementations
# -------------------------
def cmd_alerts(args: argparse.Namespace) -> Any:
    base = f"{_normalize_base_url(args.base_url)}/api/alerts"

    if args.action == "list":
        params = {
            "search": args.search,
            "severity": args.severity,
            "status": args.status,
            "limit": args.limit,
            "offset": args.offset,
        }
        return _request("GET", base, params=params, timeout=args.timeout)

    if args.action == "logs":
        params = {"alert_id": args.alert_id, "limit": args.limit}
        return _request("GET", f"{base}/email-logs", params=params, timeout=args.timeout)

    if args.action == "test_email":
        return _request("POST", f"{base}/test-email", json_body={"recipient": args.recipient}, timeout=args.timeout)

    if args.action == "trigger":
        body = {"metric": args.metric, "value": args.value, "source": args.source}
        return _request("POST", f"{base}/trigger", json_body=body, timeout=args.timeout)

    alert_id = args.alert_id

    if args.action == "get":
        return _request("GET", f"{base}/{alert_id}", timeout=args.timeout)

    if args.action == "ack":
        body = {"acknowledgedBy": args.by}
        return _request("POST", f"{base}/{alert_id}/acknowledge", json_body=body, timeout=args.timeout)

    if args.action == "resolve":
        return _request("POST", f"{base}/{alert_id}/resolve", timeout=args.timeout)

    if args.action == "delete":
        return _request("DELETE", f"{base}/{alert_id}", timeout=args.timeout)

    raise RuntimeError(f"Unknown alerts action: {args.action}")


def cmd_rules(args: argparse.Namespace) -> Any:
    base = f"{_normalize_base_url(args.base_url)}/api/alert-rules"

    if args.action == "list":
        enabled = None if args.enabled is None else str(args.enabled == "true").lower()
        return _request("GET", base, params={"enabled": enabled}, timeout=args.timeout)

    if args.action == "create":
        body = {
            "name": args.name,
            "metric": args.metric,
            "condition": args.condition,
            "threshold": args.threshold,
            "notify": args.notify,
            "channel": args.channel,
            "description": args.description,
        }
        return _request("POST", base, json_body={k: v for k, v in body.items() if v is not None}, timeout=args.timeout)

    rule_id = args.rule_id

    if args.action == "get":
        return _request("GET", f"{base}/{rule_id}", timeout=args.timeout)

    if args.action in ("enable", "disable"):
        body = {"enabled": args.action == "enable"}
        return _request("PUT", f"{base}/{rule_id}", json_body=body, timeout=args.timeout)

    if args.action == "delete":
        return _request("DELETE", f"{base}/{rule_id}", timeout=args.timeout)

    raise RuntimeError(f"Unknown rules action: {args.action}")


def cmd_monitor(args: argparse.Namespace) -> Any:
    base = f"{_normalize_base_url(args.base_url)}/api/monitoring"

    if args.action == "stats":
        return _request("GET", f"{base}/stats", timeout=args.timeout)

    if args.action == "states":
        return _request("GET", f"{base}/rule-states", timeout=args.timeout)

    if args.action in ("start", "stop", "run_cycle"):
        return _request("POST", f"{base}/{args.action.replace('_', '-')}", timeout=args.timeout)

    if args.action == "reset_state":
        return _request("POST", f"{base}/rule-states/{args.rule_id}/reset", timeout=args.timeout)

    raise RuntimeError(f"Unknown monitor action: {args.action}")


def cmd_limits(args: argparse.Namespace) -> Any:
    base = f"{_normalize_base_url(args.base_url)}/api/rate-limits"

    if args.action == "show":
        return _request("GET", base, params={"recipient": args.recipient}, timeout=args.timeout)

    if not args.admin_key:
        raise RuntimeError("Admin key required: pass --admin-key or set HERALD_ADMIN_KEY")

    if args.action == "reset":
        body = {"recipient": args.recipient}
        return _request("POST", f"{base}/reset", json_body=body, admin_key=args.admin_key, timeout=args.timeout)

    if args.action == "clear":
        return _request("POST", f"{base}/clear", admin_key=args.admin_key, timeout=args.timeout)

    if args.action == "entries":
        return _request("GET", f"{base}/entries", admin_key=args.admin_key, timeout=args.timeout)

    if args.action == "reset_system":
        return _request("POST", f"{base}/reset-system", admin_key=args.admin_key, timeout=args.timeout)

    raise RuntimeError(f"Unknown limits action: {args.action}")


# -------------------------
# CLI parser
# -------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="heraldctl",
        description="Herald alerting operations (API wrapper).",
    )

    p.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help="Base URL of Herald API (default: $HERALD_BASE_URL or http://127.0.0.1:8000)",
    )
    p.add_argument("--timeout", type=float, default=5.0, help="HTTP timeout seconds (default: 5)")
    p.add_argument("--raw", action="store_true", help="Print raw JSON without pretty formatting")
    p.add_argument("--admin-key", default=os.getenv("HERALD_ADMIN_KEY"), help="X-Admin-Key for admin operations")

    sub = p.add_subparsers(dest="cmd", required=True)

    # alerts
    al = sub.add_parser("alerts", help="Alert APIs")
    al_sub = al.add_subparsers(dest="action", required=True)

    al_list = al_sub.add_parser("list", help="GET /api/alerts")
    al_list.add_argument("--search")
    al_list.add_argument("--severity", choices=["critical", "warning", "info"])
    al_list.add_argument("--status", choices=["active", "acknowledged", "resolved"])
    al_list.add_argument("--limit", type=int, default=50)
    al_list.add_argument("--offset", type=int, default=0)

    al_get = al_sub.add_parser("get", help="GET /api/alerts/{alert_id}")
    al_get.add_argument("alert_id")

    al_ack = al_sub.add_parser("ack", help="POST /api/alerts/{alert_id}/acknowledge")
    al_ack.add_argument("alert_id")
    al_ack.add_argument("--by", default=os.getenv("USER", "admin"))

    al_res = al_sub.add_parser("resolve", help="POST /api/alerts/{alert_id}/resolve")
    al_res.add_argument("alert_id")

    al_del = al_sub.add_parser("delete", help="DELETE /api/alerts/{alert_id}")
    al_del.add_argument("alert_id")

    al_logs = al_sub.add_parser("logs", help="GET /api/alerts/email-logs")
    al_logs.add_argument("--alert-id", dest="alert_id")
    al_logs.add_argument("--limit", type=int, default=50)

    al_test = al_sub.add_parser("test_email", help="POST /api/alerts/test-email")
    al_test.add_argument("recipient")

    al_trig = al_sub.add_parser("trigger", help="POST /api/alerts/trigger")
    al_trig.add_argument("metric")
    al_trig.add_argument("value", type=float)
    al_trig.add_argument("--source", default="heraldctl")

    # rules
    ru = sub.add_parser("rules", help="Alert rule APIs")
    ru_sub = ru.add_subparsers(dest="action", required=True)

    ru_list = ru_sub.add_parser("list", help="GET /api/alert-rules")
    ru_list.add_argument("--enabled", choices=["true", "false"])

    ru_create = ru_sub.add_parser("create", help="POST /api/alert-rules")
    ru_create.add_argument("name")
    ru_create.add_argument("metric")
    ru_create.add_argument("condition", help="e.g. greater_than, '>=', less-than")
    ru_create.add_argument("threshold")
    ru_create.add_argument("--notify", help="Comma-separated email addresses")
    ru_create.add_argument("--channel", choices=["email", "sms"])
    ru_create.add_argument("--description")

    for action in ("get", "enable", "disable", "delete"):
        ru_action = ru_sub.add_parser(action, help=f"{action} one rule")
        ru_action.add_argument("rule_id")

    # monitor
    mo = sub.add_parser("monitor", help="Monitoring loop APIs")
    mo_sub = mo.add_subparsers(dest="action", required=True)

    mo_sub.add_parser("stats", help="GET /api/monitoring/stats")
    mo_sub.add_parser("states", help="GET /api/monitoring/rule-states")
    mo_sub.add_parser("start", help="POST /api/monitoring/start")
    mo_sub.add_parser("stop", help="POST /api/monitoring/stop")
    mo_sub.add_parser("run_cycle", help="POST /api/monitoring/run-cycle")

    mo_reset = mo_sub.add_parser("reset_state", help="POST /api/monitoring/rule-states/{rule_id}/reset")
    mo_reset.add_argument("rule_id")

    # limits
    li = sub.add_parser("limits", help="Email rate limit APIs")
    li_sub = li.add_subparsers(dest="action", required=True)

    li_show = li_sub.add_parser("show", help="GET /api/rate-limits")
    li_show.add_argument("--recipient")

    li_reset = li_sub.add_parser("reset", help="POST /api/rate-limits/reset (admin)")
    li_reset.add_argument("recipient")

    li_sub.add_parser("entries", help="GET /api/rate-limits/entries (admin)")
    li_sub.add_parser("clear", help="POST /api/rate-limits/clear (admin)")
    li_sub.add_parser("reset_system", help="POST /api/rate-limits/reset-system (admin)")

    return p


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    try:
        if args.cmd == "alerts":
            result = cmd_alerts(args)
        elif args.cmd == "rules":
            result = cmd_rules(args)
        elif args.cmd == "monitor":
            result = cmd_monitor(args)
        elif args.cmd == "limits":
            result = cmd_limits(args)
        else:
            raise RuntimeError(f"Unknown command: {args.cmd}")

        _print_json(result, pretty=not args.raw)
        return 0

    except Exception as e:
        base = _normalize_base_url(getattr(args, "base_url", DEFAULT_BASE_URL))
        print(f"[ERROR] base_url={base} - {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
