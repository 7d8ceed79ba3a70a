"""
Scenarios subcommand: list the scenarios defined in the config file.
"""

import argparse
import json


def scenarios_handler(args: argparse.Namespace) -> int:
    """
    Handle 'scenarios' command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = args.config
    scenarios = sorted(config.scenarios.items())

    if args.format == "json":
        output = {name: scenario.to_dict() for name, scenario in scenarios}
        print(json.dumps(output, indent=2))
    else:
        if not scenarios:
            print("No scenarios configured")
        for name, scenario in scenarios:
            device = f" [{scenario.device}]" if scenario.device else ""
            print(f"{name}\t{scenario.use}{device}\t{scenario.description or ''}")

    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'scenarios' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    scenarios_parser = subparsers.add_parser(
        "scenarios",
        parents=[parent],
        help="List configured scenarios",
        description="List the hook scenarios devtools_session_start accepts",
    )

    scenarios_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)",
    )

    scenarios_parser.set_defaults(func=scenarios_handler)
