#!/usr/bin/env python3
"""Programmatic usage example.

This demonstrates using the client directly:

* load settings from the environment / `.env` (at least `WF_URL`)
* register the workflows in `examples/workflows`
* queue a job for the `say` workflow
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from wf_client import JobRequest, WfClient, WfClientSettings
from wf_client.logging import configure_logging

WORKFLOWS_DIR = Path(__file__).parent / "workflows"


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync example workflows and queue a job.")
    parser.add_argument("--target", default="say-target", help="Job target")
    parser.add_argument("--name", default="Tester", help="Name passed to the say workflow")
    parser.add_argument(
        "--max-attempts", type=int, default=5, help="Give up syncing after this many attempts"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = WfClientSettings(
        path=WORKFLOWS_DIR,
        workflows=["say", "foobar"],
        retry_max_attempts=args.max_attempts,
    )
    configure_logging(settings.log_level, settings.log_format)

    with WfClient(settings) as client:
        result = client.connect()
        if not result.ok:
            print(str(result.error))
            return 1

        for item in result.results:
            print(f"{item.display_name}: {item.action.value} ({item.identifier})")

        job = client.create_job(
            JobRequest(workflow="say", target=args.target, params={"name": args.name})
        )
        print(f"Queued job {job.identifier} ({job.execution})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
