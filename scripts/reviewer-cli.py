#!/usr/bin/env python3
"""
reviewer — CLI for the code review service.

Usage:
    reviewer clone https://github.com/your-org/your-repo --branch main
    reviewer sync <repo-id> https://github.com/your-org/your-repo
    reviewer files <repo-id>
    reviewer analyze <repo-id> src/app.py src/db.py --model openai/gpt-4o-mini
    reviewer delete <repo-id>
"""

from __future__ import annotations

import argparse
import os
import sys

import httpx

API_BASE = os.getenv("REVIEWER_API", "http://localhost:3001")
API_KEY = os.getenv("REVIEWER_API_KEY", "")
DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"

# Reviews of a full window can take several minutes
_TIMEOUT = httpx.Timeout(600.0, connect=10.0)


def _headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {API_KEY}"} if API_KEY else {}


def _fail(resp: httpx.Response):
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    if isinstance(detail, dict):
        detail = detail.get("error", detail)
    print(f"\033[31m✗ Error ({resp.status_code}): {detail}\033[0m")
    sys.exit(1)


def _print_files(files: list[dict]):
    for f in files:
        print(f"  {f['size']:>9}  {f['path']}")
    print(f"\n{len(files)} files")


def clone_repo(args):
    """Clone a repository (or reuse the existing working tree)."""
    payload = {"repo_url": args.url, "branch": args.branch, "access_token": args.token}
    resp = httpx.post(f"{API_BASE}/api/repo/clone", json=payload, headers=_headers(), timeout=_TIMEOUT)
    if resp.status_code != 200:
        _fail(resp)

    data = resp.json()
    label = "Reused existing clone" if data["cached"] else "Cloned"
    print(f"\033[32m✓ {label}\033[0m")
    print(f"  Repo ID: {data['repo_id']}")
    print(f"  Files:   {len(data['files'])}")


def sync_repo(args):
    """Fetch and hard-reset a working tree."""
    payload = {"repo_url": args.url, "branch": args.branch, "access_token": args.token}
    resp = httpx.post(
        f"{API_BASE}/api/repo/sync/{args.repo_id}", json=payload, headers=_headers(), timeout=_TIMEOUT
    )
    if resp.status_code != 200:
        _fail(resp)
    print(f"\033[32m✓ Synced\033[0m  {len(resp.json()['files'])} files")


def list_files(args):
    resp = httpx.get(f"{API_BASE}/api/repo/files/{args.repo_id}", headers=_headers())
    if resp.status_code != 200:
        _fail(resp)
    _print_files(resp.json()["files"])


def delete_repo(args):
    resp = httpx.delete(f"{API_BASE}/api/repo/{args.repo_id}", headers=_headers())
    if resp.status_code != 200:
        _fail(resp)
    print(f"\033[32m✓ Deleted {args.repo_id}\033[0m")


def analyze_files(args):
    """Review files and print one line per result plus the summary."""
    payload = {
        "repo_id": args.repo_id,
        "model": args.model,
        "files": [{"path": p} for p in args.paths],
    }
    resp = httpx.post(
        f"{API_BASE}/api/review/analyze", json=payload, headers=_headers(), timeout=_TIMEOUT
    )
    if resp.status_code != 200:
        _fail(resp)

    data = resp.json()
    for result in data["results"]:
        score = result.get("score")
        if result.get("error"):
            print(f"\033[31m✗ {result['file']}\033[0m  {result['error']}")
        else:
            color = "32" if (score or 0) >= 80 else "33" if (score or 0) >= 60 else "31"
            print(f"\033[{color}m● {score if score is not None else '—':>3}\033[0m  {result['file']}")
        for vuln in result.get("vulnerabilities") or []:
            print(f"        line {vuln.get('line', '?')}: [{vuln['severity']}] {vuln['type']}")

    summary = data["summary"]
    print(f"\n\033[1mOverall score: {summary['overall_score']}\033[0m")
    print(f"  Files:           {summary['total_files']}")
    print(f"  Vulnerabilities: {summary['vulnerability_count']}")


def main():
    global API_BASE

    parser = argparse.ArgumentParser(
        prog="reviewer",
        description="Code reviewer CLI — clone repositories and review their files",
    )
    parser.add_argument("--api", default=API_BASE, help="API base URL")
    subparsers = parser.add_subparsers(dest="command")

    clone_parser = subparsers.add_parser("clone", help="Clone a repository")
    clone_parser.add_argument("url", help="Repository URL")
    clone_parser.add_argument("--branch", default=None, help="Branch (default: main)")
    clone_parser.add_argument("--token", default=None, help="Access token for private repositories")

    sync_parser = subparsers.add_parser("sync", help="Sync a working tree with its remote")
    sync_parser.add_argument("repo_id", help="Repository ID")
    sync_parser.add_argument("url", help="Repository URL")
    sync_parser.add_argument("--branch", default=None, help="Branch (default: main)")
    sync_parser.add_argument("--token", default=None, help="Access token for private repositories")

    files_parser = subparsers.add_parser("files", aliases=["ls"], help="List files")
    files_parser.add_argument("repo_id", help="Repository ID")

    delete_parser = subparsers.add_parser("delete", aliases=["rm"], help="Delete a working tree")
    delete_parser.add_argument("repo_id", help="Repository ID")

    analyze_parser = subparsers.add_parser("analyze", help="Review files")
    analyze_parser.add_argument("repo_id", help="Repository ID")
    analyze_parser.add_argument("paths", nargs="+", help="File paths relative to the repository root")
    analyze_parser.add_argument("--model", default=DEFAULT_MODEL, help="Model ID")

    args = parser.parse_args()
    API_BASE = args.api.rstrip("/")

    if args.command == "clone":
        clone_repo(args)
    elif args.command == "sync":
        sync_repo(args)
    elif args.command in ("files", "ls"):
        list_files(args)
    elif args.command in ("delete", "rm"):
        delete_repo(args)
    elif args.command == "analyze":
        analyze_files(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
