"""CLI entrypoint for the workflow API client."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from pydantic import ValidationError

from wf_client import __version__
from wf_client.config import WfClientSettings
from wf_client.errors import RemoteError, UnresolvedWorkflow
from wf_client.jobs import JobRequest
from wf_client.logging import configure_logging
from wf_client.service import WfClient

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


def _parse_pairs(values: list[str] | None) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values or []:
        key, sep, val = value.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {value!r}")
        pairs[key.strip()] = val
    return pairs


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wf-client",
        description="Keep local workflow definitions registered with a workflow API and queue jobs",
    )
    parser.add_argument("--version", action="version", version=f"wf-client {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Check that the workflow API is reachable")

    sync = subparsers.add_parser(
        "sync", help="Create or update the configured workflows on the workflow API"
    )
    sync.add_argument(
        "--workflow",
        action="append",
        default=None,
        help="Workflow name to sync (repeatable; overrides WF_WORKFLOWS)",
    )
    sync.add_argument(
        "--force-replace",
        action="store_true",
        help="Update every existing workflow even if unchanged",
    )
    sync.add_argument(
        "--force-md5-check",
        action="store_true",
        help="Update existing workflows whose step digests differ",
    )
    sync.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Give up after this many sync attempts (default: WF_RETRY_MAX_ATTEMPTS)",
    )

    create_job = subparsers.add_parser("create-job", help="Queue a job for a workflow")
    ref = create_job.add_mutually_exclusive_group(required=True)
    ref.add_argument("--workflow", help="Configured workflow name (synced first)")
    ref.add_argument("--workflow-id", help="Remote workflow identifier")
    create_job.add_argument("--target", required=True, help="Job target")
    create_job.add_argument(
        "--param",
        action="append",
        default=None,
        help="Extra job parameter as key=value (repeatable)",
    )
    create_job.add_argument("--request-id", default=None, help="Request correlation id")

    get_job = subparsers.add_parser("get-job", help="Show a job")
    get_job.add_argument("job_id")

    job_info = subparsers.add_parser("job-info", help="Show the info entries of a job")
    job_info.add_argument("job_id")

    list_jobs = subparsers.add_parser("list-jobs", help="List jobs")
    list_jobs.add_argument(
        "--query",
        action="append",
        default=None,
        help="Filter as key=value (repeatable), e.g. execution=queued",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        pairs = _parse_pairs(getattr(args, "param", None) or getattr(args, "query", None))
    except ValueError as e:
        parser.error(str(e))

    overrides: dict[str, Any] = {}
    if args.command == "sync":
        if args.workflow:
            overrides["workflows"] = args.workflow
        if args.force_replace:
            overrides["force_replace"] = True
        if args.force_md5_check:
            overrides["force_md5_check"] = True
        if args.max_attempts is not None:
            overrides["retry_max_attempts"] = args.max_attempts

    try:
        settings = WfClientSettings(**overrides)
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)

    try:
        with WfClient(settings) as client:
            if args.command == "ping":
                _print_json(client.ping())
                return 0

            if args.command == "sync":
                result = client.connect()
                if not result.ok:
                    print(str(result.error), file=sys.stderr)
                    return 3
                for item in result.results:
                    print(f"{item.display_name}: {item.action.value} ({item.identifier})")
                return 0

            if args.command == "create-job":
                headers = {REQUEST_ID_HEADER: args.request_id} if args.request_id else {}
                if args.workflow:
                    client.load_workflow(args.workflow)
                request = JobRequest(
                    target=args.target,
                    workflow=args.workflow,
                    workflow_identifier=args.workflow_id,
                    params=pairs,
                    headers=headers,
                )
                job = client.create_job(request)
                print(f"Queued job {job.identifier} ({job.execution})")
                return 0

            if args.command == "get-job":
                _print_json(client.get_job(args.job_id).model_dump(mode="json"))
                return 0

            if args.command == "job-info":
                _print_json(client.get_job_info(args.job_id))
                return 0

            if args.command == "list-jobs":
                jobs = client.list_jobs(pairs)
                _print_json([job.model_dump(mode="json") for job in jobs])
                return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except UnresolvedWorkflow as e:
        logger.error(str(e))
        print(str(e), file=sys.stderr)
        return 3

    except RemoteError as e:
        logger.error(str(e), extra={"status_code": e.status_code})
        print(str(e), file=sys.stderr)
        return 4

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
