"""Video Indexer access command-line tool. Use --help for usage."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

import yaml
from dotenv import load_dotenv

from vi_access.accounts.models import Account
from vi_access.auth.authenticator import Authenticator, run_sync
from vi_access.auth.credentials import resolve
from vi_access.auth.exchange import Permission, Scope
from vi_access.config.settings import AppConfig, load_config
from vi_access.errors.exceptions import VideoIndexerError
from vi_access.logging.context import generate_operation_id
from vi_access.logging.context_managers import LogContext
from vi_access.logging.setup import setup_logging
from vi_access.utils.json_serializers import json_serializer

# __main__.py is at src/vi_access/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vi-access",
        description="Acquire Video Indexer access tokens and resolve accounts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Contributor token for the configured account (masked)
    python -m vi_access token

    # Reader token for one video, printed in full
    python -m vi_access token --permission Reader --scope Video --video-id abc123 --show

    # Resolve the account id and location, bypassing the cache
    python -m vi_access account --refresh

    # Validate configuration without touching the network
    python -m vi_access check
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (default: from VI_CONFIG_FILE env var, else env only)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from LOG_LEVEL env var or INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines on the console",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Also write rotated JSON log files to this directory",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    token = subparsers.add_parser("token", help="Print an account access token")
    token.add_argument(
        "--permission",
        choices=[p.value for p in Permission],
        default=Permission.CONTRIBUTOR.value,
        help="Token permission (default: Contributor)",
    )
    token.add_argument(
        "--scope",
        choices=[s.value for s in Scope],
        default=Scope.ACCOUNT.value,
        help="Token scope (default: Account)",
    )
    token.add_argument("--video-id", default=None, help="Video id for Video scope")
    token.add_argument("--project-id", default=None, help="Project id for Project scope")
    token.add_argument(
        "--show",
        action="store_true",
        help="Print the full token instead of a masked preview",
    )

    account = subparsers.add_parser("account", help="Print the configured account id and location")
    account.add_argument(
        "--refresh",
        action="store_true",
        help="Look the account up again instead of using the cache",
    )

    subparsers.add_parser("accounts", help="List the accounts of the resource group")
    subparsers.add_parser("check", help="Validate configuration without network access")

    return parser.parse_args(argv)


def mask_token(token: str) -> str:
    if len(token) <= 12:
        return "***"
    return f"{token[:6]}...{token[-4:]} ({len(token)} chars)"


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.log_level:
        config.logging.level = args.log_level
    if args.json_logs:
        config.logging.json_format = True
    if args.log_dir:
        config.logging.log_dir = args.log_dir
        config.logging.log_to_stdout = False
    return config


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, default=json_serializer))


def _account_dict(account: Account) -> dict:
    return {k: v for k, v in asdict(account).items() if v is not None}


async def _run_command(args: argparse.Namespace, config: AppConfig):
    async with Authenticator.from_config(config) as auth:
        if args.command == "token":
            token = await auth.get_access_token(
                Permission(args.permission),
                Scope(args.scope),
                video_id=args.video_id,
                project_id=args.project_id,
            )
            return token if args.show else mask_token(token)

        if args.command == "account":
            account = await auth.get_account(force_refresh=args.refresh)
            return _account_dict(account)

        if args.command == "accounts":
            accounts = await auth.resolver.list_accounts()
            return [_account_dict(a) for a in accounts]

    raise ValueError(f"Unknown command: {args.command}")


def check(config: AppConfig) -> tuple[dict, bool]:
    """Configuration diagnostics and whether the configuration is usable."""
    missing = config.api.missing_settings()
    diagnostics = {
        "credential": resolve().get_diagnostics(),
        "subscription_id": config.api.subscription_id or None,
        "resource_group": config.api.resource_group or None,
        "account_name": config.api.account_name or None,
        "api_version": config.api.api_version,
        "azure_resource": config.api.azure_resource,
        "api_endpoint": config.api.api_endpoint,
        "http_client_name": config.api.http_client_name,
        "resilience": asdict(config.resilience),
        "missing_settings": missing,
        "valid": not missing,
    }
    return diagnostics, not missing


def main(argv: list[str] | None = None) -> int:
    load_dotenv(PROJECT_ROOT / ".env")
    args = parse_args(argv)

    try:
        config = _apply_overrides(load_config(args.config), args)
    except (ValueError, OSError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG

    setup_logging(
        name="vi_access",
        log_dir=config.logging.log_dir,
        json_format=config.logging.json_format,
        console_level=config.logging.level,
        log_to_stdout=config.logging.log_to_stdout,
        component="cli",
    )

    if args.command == "check":
        diagnostics, valid = check(config)
        _print_json(diagnostics)
        return EXIT_OK if valid else EXIT_CONFIG

    missing = config.api.missing_settings()
    if missing:
        logger.error(
            "Missing required settings: %s",
            ", ".join(missing),
            extra={"config_section": "api"},
        )
        print(f"Missing required settings: {', '.join(missing)}", file=sys.stderr)
        return EXIT_CONFIG

    with LogContext(
        operation_id=generate_operation_id(),
        account_name=config.api.account_name,
        component="cli",
    ):
        try:
            result = run_sync(_run_command(args, config))
        except VideoIndexerError as e:
            logger.error(
                "Command %s failed",
                args.command,
                extra={
                    "error_category": e.category.value,
                    "error_type": type(e).__name__,
                    "error_message": str(e)[:200],
                },
            )
            print(f"Error: {e.message}", file=sys.stderr)
            return EXIT_ERROR
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, aborting")
            return EXIT_ERROR

    if isinstance(result, str):
        print(result)
    else:
        _print_json(result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
