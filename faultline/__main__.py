import argparse
import asyncio
import sys
from typing import get_args

from faultline.env import Env, load_env
from faultline.logging import LoggingConfig, LogLevelName
from faultline.scenario import (
    ScenarioResult,
    ScenarioRunner,
    run_from_json,
    signing_fault_scenario,
)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="faultline",
        description=(
            "Start a keystore, a signing proxy and a conductor, then run a "
            "signing-fault scenario against the conductor admin API."
        ),
    )
    parser.add_argument(
        "--scenario",
        help="JSON scenario file. Runs the built-in signing-fault scenario when omitted.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="dotenv file with FAULTLINE_* settings (default: .env)",
    )
    parser.add_argument(
        "--log-level",
        choices=get_args(LogLevelName),
        help="Override FAULTLINE_LOG_LEVEL",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    env = load_env(Env, env_file=args.env_file)
    LoggingConfig().update(log_level=args.log_level or env.FAULTLINE_LOG_LEVEL)

    if args.scenario is None:
        outcome = asyncio.run(ScenarioRunner(env).run(signing_fault_scenario()))

    else:
        try:
            outcome = asyncio.run(run_from_json(args.scenario, env))

        except (OSError, ValueError) as err:
            print(f"faultline: cannot load scenario {args.scenario} - {err}", file=sys.stderr)
            return 2

    return 0 if outcome.result == ScenarioResult.PASSED else 1


if __name__ == "__main__":
    sys.exit(main())
