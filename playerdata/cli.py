import argparse
import asyncio
from pathlib import Path

from playerdata import runner
from playerdata.config import DEFAULT_CONFIG_PATH, load_config
from playerdata.errors import ConfigLoadError
from playerdata.logging_utils import configure_logging

# Root logger, so playerdata.* and mcapi.* module loggers share its handlers.
LOGGER_NAME = ""


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aggregate Minecraft player data into cached snapshots.")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the YAML config file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "-u",
        "--uuid",
        action="append",
        default=None,
        help="Only aggregate this player. Can be given more than once.",
    )
    parser.add_argument(
        "--whitelist-only",
        action="store_true",
        help="Only aggregate whitelisted players instead of every player with a save file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write the rotating log here instead of the default location.",
    )
    return parser


def main(argv=None) -> int:
    cli_args = build_cli_parser().parse_args(argv)
    logger, log_file = configure_logging(LOGGER_NAME, log_file=cli_args.log_file, verbose=cli_args.verbose)
    try:
        config = load_config(cli_args.config)
    except ConfigLoadError as e:
        logger.error("Config: %s", e)
        return 2

    logger.info("Starting aggregation. Log file: %s", log_file)
    summary = asyncio.run(
        runner.run(config, uuids=cli_args.uuid, whitelist_only=cli_args.whitelist_only)
    )
    return 0 if summary.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
