#!/usr/bin/env python3
"""
Main script for Stargazer.
Creates awesome lists of your starred GitHub repositories.
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from core.filters import IgnoreFilter
from core.use_cases import GenerateStarList
from infrastructure.config import (
    DEFAULT_CONFIG_FILE,
    Config,
    ConfigError,
    apply_env,
    load_config,
)
from infrastructure.github_client import GitHubClient, StarFetchError
from infrastructure.renderer import AVAILABLE_FORMATS, ListRenderer
from infrastructure.sample_data import SampleStarFetcher
from infrastructure.state_store import RateLimitStateStore

logger = logging.getLogger(__name__)

APP_NAME = "stargazer"
APP_DESC = "Creates awesome lists of your starred GitHub repositories"


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def add_toggle(parser: argparse.ArgumentParser, name: str, dest: str, help: str):
    """Add a --with-<name>/--no-<name> pair; None when neither is given."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(f"--with-{name}", dest=dest, action="store_true", default=None, help=help)
    group.add_argument(f"--no-{name}", dest=dest, action="store_false", default=None, help=f"don't {help}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description=APP_DESC)
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=DEFAULT_CONFIG_FILE,
        help=f"YAML config file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    generate = subparsers.add_parser(
        "generate",
        help="Generate the starred repositories list",
    )
    init = subparsers.add_parser(
        "init-config",
        help="Write the effective configuration (without token) to the config file",
    )
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )

    for sub in (generate, init):
        sub.add_argument("-o", "--output-file", dest="output_file", help="the file to create (default: README.md)")
        sub.add_argument(
            "-f",
            "--output-format",
            dest="output_format",
            choices=AVAILABLE_FORMATS,
            help=f"the format of the output [{', '.join(AVAILABLE_FORMATS)}]",
        )
        sub.add_argument("-u", "--github-user", dest="github_user", help="github user name")
        sub.add_argument("--github-token", dest="github_token", help="github access token")
        sub.add_argument("--rate-limit", dest="rate_limit", type=int, help="number of API requests per second (default: 5)")
        sub.add_argument("--timeout", dest="timeout", type=int, help="overall time budget for fetching in seconds (default: 180)")
        sub.add_argument(
            "-i",
            "--ignore",
            dest="ignore_repos",
            action="append",
            help="repositories to ignore (flag can be specified multiple times)",
        )
        sub.add_argument("-t", "--test", dest="test", action="store_true", default=None, help="just put out some test data")
        add_toggle(sub, "toc", "with_toc", "print table of contents")
        add_toggle(sub, "stars", "with_stars", "print starcount of repositories")
        add_toggle(sub, "license", "with_license", "print license of repositories")
        add_toggle(sub, "back-to-top", "with_back_to_top", "generate 'back to top' links for each language")

    return parser


def resolve_config(args: argparse.Namespace, environ=None) -> Config:
    """Defaults < config file < environment < command line flags."""
    config = load_config(args.config)
    apply_env(config, environ)

    flags = {
        key: getattr(args, key, None)
        for key in (
            "output_file",
            "output_format",
            "github_user",
            "github_token",
            "rate_limit",
            "timeout",
            "ignore_repos",
            "test",
            "with_toc",
            "with_stars",
            "with_license",
            "with_back_to_top",
        )
    }
    config.update(flags)
    return config


def run_generate(config: Config) -> int:
    config.validate()

    renderer = ListRenderer(config.render_options())
    ignore = IgnoreFilter(config.ignore_repos)
    if ignore:
        logger.info(f"Ignoring {len(ignore)} repositories")

    if config.test:
        fetcher = SampleStarFetcher(ignore=ignore)
    else:
        fetcher = GitHubClient(
            token=config.github_token,
            rate_limit=config.rate_limit,
            ignore=ignore,
            state_store=RateLimitStateStore(config.rate_limit_file),
            timeout=config.timeout,
        )

    result = GenerateStarList(fetcher, renderer).execute(
        login=config.github_user,
        output_path=config.output_file,
    )

    logger.info(
        f"Successfully generated starred repositories list: "
        f"{result.total:,} repositories"
    )
    return 0


def run_init_config(config: Config, path: str, force: bool = False) -> int:
    if os.path.exists(path) and not force:
        logger.error(f"{path} already exists. Use --force to overwrite it.")
        return 1
    config.save(path)
    logger.info(f"Wrote configuration to {path}")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    load_dotenv(os.path.join(os.getcwd(), ".env"))

    try:
        config = resolve_config(args)

        if args.command == "init-config":
            return run_init_config(config, args.config, force=args.force)

        logger.info("=" * 60)
        logger.info(f"{APP_NAME} - {APP_DESC}")
        logger.info("=" * 60)
        logger.info(f"User: {config.github_user or 'N/A'}")
        logger.info(f"Output: {config.output_file} ({config.output_format})")
        logger.info(f"Test mode: {config.test}")
        logger.info("=" * 60)

        return run_generate(config)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    except KeyboardInterrupt:
        logger.info("\nInterrupted by user. No list was written.")
        return 130  # Standard exit code for SIGINT

    except StarFetchError as e:
        if e.timed_out:
            logger.error(f"Timed out after fetching {e.partial.total} repositories. No list was written.")
        else:
            logger.error(f"Fetching stars failed: {e}. No list was written.")
        return 1

    except Exception as e:
        logger.error(f"Generating list failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
