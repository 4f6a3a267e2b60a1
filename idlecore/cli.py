from __future__ import annotations

import argparse
import sys

from idlecore import economy
from idlecore.clock import ManualClock
from idlecore.logging import LOG_FORMATS, LOG_LEVELS, setup_logging
from idlecore.offline import OfflineProgressResult
from idlecore.resource import RESOURCE_IDS
from idlecore.runtime import GameRuntime
from idlecore.upgrade import UpgradeCategory

# Arbitrary fixed epoch so previews are reproducible
_PREVIEW_EPOCH_MS = 1_700_000_000_000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idlecore",
        description="idlecore: idle game progression core",
    )
    parser.add_argument("--log-dir", default=None, help="Also write logs to this directory")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log verbosity (default: $IDLECORE_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=LOG_FORMATS,
        help="Log rendering on stderr (default: $IDLECORE_LOG_FORMAT or console)",
    )
    sub = parser.add_subparsers(dest="command")

    cat = sub.add_parser("catalog", help="List upgrades as purchase rows")
    cat.add_argument(
        "--category",
        default=None,
        choices=[c.value for c in UpgradeCategory],
        help="Only show one category",
    )
    cat.add_argument(
        "--buy",
        action="append",
        default=[],
        metavar="UPGRADE",
        help="Purchase an upgrade before listing (repeatable)",
    )
    _add_state_arguments(cat)

    off = sub.add_parser("offline", help="Preview welcome-back earnings")
    off.add_argument("--away", type=float, required=True, help="Seconds spent away")
    off.add_argument(
        "--buy",
        action="append",
        default=[],
        metavar="UPGRADE",
        help="Purchase an upgrade before going offline (repeatable)",
    )
    _add_state_arguments(off)

    rates = sub.add_parser("rates", help="Show generation rates")
    _add_state_arguments(rates)

    return parser


def _add_state_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--score",
        action="append",
        default=[],
        metavar="MINIGAME=SCORE",
        help="Record a minigame score (repeatable)",
    )
    for rid in RESOURCE_IDS:
        parser.add_argument(f"--{rid}", default=None, help=f"Starting {rid} balance")


def parse_score(text: str) -> tuple[str, str]:
    """Split "code-breaker=1500" into its minigame and score parts."""
    minigame_id, sep, score = text.partition("=")
    if not sep or not minigame_id or not economy.is_valid_decimal_string(score):
        raise ValueError(f"Invalid score {text!r}, expected MINIGAME=SCORE")
    return minigame_id.strip(), score.strip()


def build_runtime(args: argparse.Namespace, clock: ManualClock) -> GameRuntime:
    runtime = GameRuntime(clock=clock)
    for rid in RESOURCE_IDS:
        value = getattr(args, rid, None)
        if value is not None:
            runtime.state.set_resource(rid, value)
    for text in args.score:
        minigame_id, score = parse_score(text)
        runtime.record_score(minigame_id, score)
    return runtime


def _buy_all(runtime: GameRuntime, upgrade_ids: list[str]) -> None:
    for upgrade_id in upgrade_ids:
        result = runtime.purchase(upgrade_id)
        if not result:
            print(f"Could not buy {upgrade_id}: {result.reason}", file=sys.stderr)


def format_catalog(runtime: GameRuntime, category: UpgradeCategory | None = None) -> str:
    lines: list[str] = []
    categories = [category] if category is not None else list(UpgradeCategory)
    for cat in categories:
        infos = runtime.upgrade_info(cat)
        if not infos:
            continue
        lines.append(f"[{cat.value}]")
        for info in infos:
            level = f"{info.level}/{info.max_level}" if info.max_level else str(info.level)
            cost = f"{info.cost_formatted} {info.cost_resource}"
            if info.secondary_cost_formatted is not None:
                cost += f" + {info.secondary_cost_formatted} {info.secondary_cost_resource}"
            flag = "*" if info.can_afford else " "
            lines.append(f" {flag} {info.name:<20} lv {level:<6} {cost:<24} {info.effect}")
    return "\n".join(lines)


def format_offline(result: OfflineProgressResult) -> str:
    if not result.was_calculated:
        return "No offline progress."
    lines = [
        "Welcome back!" if result.should_show_modal else "Offline progress applied.",
        f"Time away: {result.formatted_time_away}" + (" (capped)" if result.was_capped else ""),
        f"Efficiency: {economy.format_percent(result.efficiency)}",
    ]
    for rid, amount in result.earnings.items():
        if economy.is_positive(amount):
            lines.append(f"Earned: {economy.format_resource(rid, amount)}")
    for automation_id, count in result.automation_applied.items():
        potential = result.automation_triggers.get(automation_id, count)
        lines.append(f"Automation {automation_id}: {count}/{potential} runs")
    return "\n".join(lines)


def format_rates(rates: dict[str, str]) -> str:
    return "\n".join(
        f"{rid:<10} {economy.format_resource(rid, rate)}/sec" for rid, rate in rates.items()
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        setup_logging(args.log_dir, args.log_level, args.log_format)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    clock = ManualClock(_PREVIEW_EPOCH_MS)
    try:
        runtime = build_runtime(args, clock)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    if args.command == "catalog":
        _buy_all(runtime, args.buy)
        category = UpgradeCategory(args.category) if args.category else None
        print(format_catalog(runtime, category))

    elif args.command == "offline":
        _buy_all(runtime, args.buy)
        runtime.suspend()
        clock.advance(int(args.away * 1000))
        result = runtime.resume_session()
        if result.should_show_modal:
            result = runtime.acknowledge_offline()
        print(format_offline(result))
        print()
        for rid in RESOURCE_IDS:
            print(f"{rid:<10} {economy.format_resource(rid, runtime.state.resource(rid))}")

    elif args.command == "rates":
        print(format_rates(runtime.rates()))


if __name__ == "__main__":
    main()
