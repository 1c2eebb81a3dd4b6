"""
Job runner for finledger.

Cron calls one subcommand per trigger; each run completes and exits.

    python -m app.main evaluate-alerts
    python -m app.main remind-subscriptions
    python -m app.main sync-sips --user USER_ID
    python -m app.main what-if --corpus 100000 --monthly 10000 --monthly-alt 15000 --goal 5000000

Every job prints its summary as JSON on stdout. A failing job exits
non-zero so the scheduler can alert on it.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

from finledger.config import get_settings
from finledger.models import WhatIfScenario, utc_now
from finledger.orchestrator import AppComponents, create_app_components
from finledger.planning import simulate

logger = structlog.get_logger("app.main")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="finledger", description="Run a finledger job")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use in-memory storage instead of Google Sheets",
    )
    sub = parser.add_subparsers(dest="job", required=True)

    sub.add_parser("evaluate-alerts", help="Check active price alerts against market quotes")
    sub.add_parser("remind-subscriptions", help="Send subscription due reminders")

    sip = sub.add_parser("sync-sips", help="Refresh SIP valuations and post due installments")
    sip.add_argument("--user", required=True, help="User id whose SIPs to sync")

    what_if = sub.add_parser("what-if", help="Compare two contribution plans")
    what_if.add_argument("--corpus", type=float, default=0.0)
    what_if.add_argument("--monthly", type=float, default=0.0)
    what_if.add_argument("--monthly-alt", type=float, default=None)
    what_if.add_argument("--return", dest="annual_return", type=float, default=12.0)
    what_if.add_argument("--years", type=float, default=10.0)
    what_if.add_argument("--goal", type=float, default=0.0)

    return parser


async def _run(args: argparse.Namespace, components: Optional[AppComponents]) -> dict:
    now = utc_now()

    if args.job == "what-if":
        scenario = WhatIfScenario(
            current_corpus=args.corpus,
            monthly_contribution=args.monthly,
            monthly_contribution_alt=args.monthly_alt,
            annual_return_percent=args.annual_return,
            years=args.years,
            goal_amount=args.goal,
        )
        result = simulate(scenario, max_months=get_settings().app.what_if_max_months)
        return result.model_dump(mode="json")

    if args.job == "evaluate-alerts":
        summary = await components.alert_evaluator.evaluate_all(now)
    elif args.job == "remind-subscriptions":
        summary = await components.reminder_job.run(now.date())
    else:
        summary = await components.sip_sync_job.run(args.user, now)
    return summary.model_dump(mode="json")


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=get_settings().app.log_level,
        format="%(message)s",
        stream=sys.stderr,
    )

    components = None
    if args.job != "what-if":
        components = create_app_components(use_storage=not args.memory)

    try:
        output = asyncio.run(_run(args, components))
    except Exception as e:
        logger.error("job_failed", job=args.job, error=str(e), exc_info=True)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
