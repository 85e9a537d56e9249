"""Command-line entrypoint for vault-issued cloud credentials.

Typical use from a shell:

    eval "$(vaultutil --path aws-account --role admin aws)"
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError

from .config import Config, Settings
from .console import ConsoleLogin
from .credentials import CREDENTIAL_KINDS, get_kind
from .environment import EnvironmentCache
from .errors import ConfigurationError, VaultUtilError
from .logging_config import configure_logging
from .manager import CredentialManager
from .vault import VaultClient

logger = structlog.get_logger(__name__)


def _build_config_from_args(args: argparse.Namespace, settings: Settings) -> Config:
    return Config(
        partition=args.partition or settings.partition,
        path=args.path or settings.path,
        role=args.role or settings.role,
        buffer_seconds=args.buffer if args.buffer is not None else settings.buffer_seconds,
        vault_binary=args.vault_binary or settings.vault_binary,
    )


def _require_endpoint(config: Config) -> None:
    if not config.path or not config.role:
        raise SystemExit(
            "Missing vault endpoint. Provide --path and --role or set "
            "VAULTUTIL_PATH and VAULTUTIL_ROLE."
        )


def _ensure_token(client: VaultClient, login_method: Optional[str]) -> None:
    try:
        client.check_token()
    except VaultUtilError as e:
        if not login_method:
            raise
        logger.info("vault token unusable - logging in", reason=str(e))
        client.login(login_method)


def _print_lines(lines: List[str]) -> None:
    for line in lines:
        print(line)


def cmd_credentials(args: argparse.Namespace, config: Config) -> int:
    _require_endpoint(config)
    manager = CredentialManager(config)
    if not args.skip_token_check:
        _ensure_token(manager.client, args.login_method)
    credential = manager.get_credential(get_kind(args.command))
    _print_lines(credential.export_lines())
    return 0


def cmd_revoke(args: argparse.Namespace, config: Config) -> int:
    kind = get_kind(args.kind)
    client = VaultClient(binary=config.vault_binary)
    credential = EnvironmentCache().load(kind)
    credential.revoke(client)
    _print_lines([f"unset {name}" for name in kind.env_vars])
    return 0


def cmd_check_token(args: argparse.Namespace, config: Config) -> int:
    ttl = VaultClient(binary=config.vault_binary).check_token()
    print(f"vault token valid for {ttl} seconds")
    return 0


def cmd_login(args: argparse.Namespace, config: Config) -> int:
    VaultClient(binary=config.vault_binary).login(args.method)
    return 0


def cmd_console(args: argparse.Namespace, config: Config) -> int:
    _require_endpoint(config)
    if config.aws_base_url is None:
        raise ConfigurationError(
            f"no AWS base URL for partition '{config.partition}' (use 'aws' or 'gov')"
        )
    manager = CredentialManager(config)
    credential = manager.aws_credentials()
    console = ConsoleLogin(config)
    try:
        print(console.build(credential))
    finally:
        console.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Obtain short-lived cloud credentials from vault."
    )
    parser.add_argument("--path", help="Vault secrets engine mount path")
    parser.add_argument("--role", help="Vault role name")
    parser.add_argument("--partition", help="AWS partition: aws or gov")
    parser.add_argument(
        "--buffer", type=int, help="Seconds before expiration to renew credentials"
    )
    parser.add_argument("--vault-binary", help="Path to the vault executable")
    parser.add_argument("--log-level", help="Log level")
    parser.add_argument(
        "--log-json", action="store_true", default=None, help="Emit JSON log lines"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name in CREDENTIAL_KINDS:
        sub = subparsers.add_parser(name, help=f"Print export statements for {name} credentials")
        sub.add_argument(
            "--login-method",
            help="Run 'vault login -method <m>' if the current token is unusable",
        )
        sub.add_argument(
            "--skip-token-check",
            action="store_true",
            help="Do not verify the vault token before requesting credentials",
        )
        sub.set_defaults(handler=cmd_credentials)

    revoke = subparsers.add_parser("revoke", help="Revoke credentials exported in the environment")
    revoke.add_argument("kind", choices=sorted(CREDENTIAL_KINDS))
    revoke.set_defaults(handler=cmd_revoke)

    check = subparsers.add_parser("check-token", help="Verify the vault token TTL")
    check.set_defaults(handler=cmd_check_token)

    login = subparsers.add_parser("login", help="Log in to vault interactively")
    login.add_argument("--method", required=True, help="Vault auth method")
    login.set_defaults(handler=cmd_login)

    console = subparsers.add_parser("console", help="Print an AWS console sign-in URL")
    console.set_defaults(handler=cmd_console)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = Settings()
        config = _build_config_from_args(args, settings)
    except ValidationError as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return 1

    configure_logging(
        args.log_level or settings.log_level,
        json_logs=args.log_json if args.log_json is not None else settings.log_json,
    )

    try:
        return args.handler(args, config)
    except VaultUtilError as e:
        logger.error("command failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
