"""CLI entrypoint for get-secretmanager-secrets."""
import sys
import asyncio
import argparse
import logging

from get_secretmanager_secrets.runner.github_actions import GitHubActionsRunner
from get_secretmanager_secrets.secrets.domains.config_loader import (
    load_config_from_file,
    load_config_from_inputs,
)
from get_secretmanager_secrets.secrets.domains.errors import SecretsActionError
from get_secretmanager_secrets.secrets.domains.reference_parser import parse_secrets_refs
from get_secretmanager_secrets.secrets.workflows.secret_operations import run_action

VERSION = "0.1.0"
ACTION_NAME = "get-secretmanager-secrets"

logger = logging.getLogger(__name__)


def _configure_logging(args):
    level = logging.WARNING
    if getattr(args, "debug", False):
        level = logging.DEBUG
    elif getattr(args, "verbose", False):
        level = logging.INFO

    # Configure logging to stderr
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr
    )


def _load_config(args, runner):
    if getattr(args, "inputs_file", None):
        return load_config_from_file(args.inputs_file, repository=runner.environ.get("GITHUB_REPOSITORY"))
    return load_config_from_inputs(runner)


def failure_message(err: BaseException) -> str:
    return f"{ACTION_NAME} failed with: {err}"


def cmd_version(args):
    """Show version information."""
    print(f"{ACTION_NAME} {VERSION}")


def cmd_run(args, runner=None):
    """Fetch every referenced secret and publish it to the job."""
    runner = runner or GitHubActionsRunner()

    try:
        config = _load_config(args, runner)
        asyncio.run(run_action(config, runner))
    except SecretsActionError as e:
        runner.set_failed(failure_message(e))
        sys.exit(1)
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        runner.set_failed(failure_message(e))
        sys.exit(1)


def cmd_parse(args, runner=None):
    """Print the references a secrets input resolves to, without fetching anything."""
    runner = runner or GitHubActionsRunner()

    try:
        if args.secrets is not None:
            raw = args.secrets
        else:
            raw = _load_config(args, runner).secrets
        refs = parse_secrets_refs(raw)
    except SecretsActionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for ref in refs:
        print(f"{ref.output_name}\t{ref.resource_name}")


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (invalid inputs, malformed references, access denied, subscription denied)
        2 - Usage errors (invalid arguments)
    """
    parser = argparse.ArgumentParser(
        prog=ACTION_NAME,
        description="Fetch secrets from Google Cloud Secret Manager and expose them to GitHub Actions steps",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (invalid inputs, malformed reference, access denied, etc.)
  2 - Usage error (invalid arguments)

Environment variables:
  INPUT_SECRETS                 - Secret references, one per line (required)
  INPUT_UNIVERSE                - Cloud universe domain (default: googleapis.com)
  INPUT_MIN_MASK_LENGTH         - Shortest line that gets masked (default: 4)
  INPUT_EXPORT_TO_ENVIRONMENT   - Also export each secret as an env var (default: false)
  INPUT_ENCODING                - Payload encoding (default: utf8)
  GOOGLE_APPLICATION_CREDENTIALS - Path to service account key JSON
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # version command
    _version_parser = subparsers.add_parser(
        "version",
        help="Show version information",
        description=f"Display the current version of {ACTION_NAME}"
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Fetch secrets and publish them as outputs",
        description="""
Fetch every referenced secret and publish it to the job.

Behavior:
  1. Checks the repository subscription (only an explicit denial is fatal)
  2. Parses the secrets input, one reference per line
  3. For each reference, in order: fetch, mask every line, set the output
     and, with export_to_environment, the environment variable

Reference format:
  <locator>[:<output_name>]
  locator: projects/<p>/secrets/<s>[/versions/<v>]
           projects/<p>/locations/<l>/secrets/<s>[/versions/<v>]
           <p>/<s>[/<v>]
        """
    )
    run_parser.add_argument(
        "--inputs-file",
        help="YAML file with the action inputs (instead of INPUT_* environment variables)"
    )

    # parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Show how a secrets input is parsed",
        description="Print '<output_name> <resource_name>' for every reference without fetching anything."
    )
    parse_source = parse_parser.add_mutually_exclusive_group()
    parse_source.add_argument(
        "--secrets",
        help="Secrets input to parse (defaults to INPUT_SECRETS)"
    )
    parse_source.add_argument(
        "--inputs-file",
        help="YAML file with the action inputs"
    )

    for sub in (run_parser, parse_parser):
        sub.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Log progress for every secret"
        )
        sub.add_argument(
            "--debug",
            action="store_true",
            help="Log debug details (never secret values)"
        )

    args = parser.parse_args(argv)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    _configure_logging(args)

    # Route to command handlers
    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "run":
            cmd_run(args)
        elif args.command == "parse":
            cmd_parse(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
