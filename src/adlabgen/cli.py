"""
ADLabGen Command Line Interface

Usage:
    adlabgen populate groups.txt names.txt --domain lab.example.com \\
        --server dc01.lab.example.com --bind-user 'LAB\\Administrator' --ldaps

    adlabgen populate groups.txt names.txt --domain lab.example.com --simulate

Exit codes:
    0  run completed (individual users or memberships may have been skipped)
    1  run aborted by a fatal error
    2  invalid configuration or usage
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from returns.result import Failure

from adlabgen import __version__
from adlabgen.core.exceptions import ConfigurationError, LabGenError
from adlabgen.directory.adapter import DirectoryAdapter
from adlabgen.directory.discovery import discover_domain_controllers
from adlabgen.directory.ldap_directory import connect_ldap_directory
from adlabgen.directory.memory import create_simulated_directory
from adlabgen.lab.config import (
    DEFAULT_USER_COUNT,
    MAX_USER_COUNT,
    MAX_WORKERS,
    MIN_USER_COUNT,
    LabConfig,
    load_group_specs,
    load_name_seeds,
)
from adlabgen.lab.orchestrator import LabOrchestrator, RunReport
from adlabgen.generation.passwords import (
    DEFAULT_PASSWORD_LENGTH,
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
)

logger = structlog.get_logger()

EXIT_FATAL = 1
EXIT_CONFIG = 2


def configure_logging(verbose: int, json_output: bool = False) -> None:
    """
    Configure structlog for CLI use.

    WARNING by default, INFO with -v, DEBUG with -vv. Logs go to stderr so
    the report on stdout stays parseable.
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


class Info:
    """Options shared between commands."""

    def __init__(self) -> None:
        self.verbose: int = 0
        self.json: bool = False


pass_info = click.make_pass_decorator(Info, ensure=True)


@click.group()
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.option("--json", "-j", "json_output", is_flag=True, help="Emit JSON logs and report.")
@pass_info
def cli(info: Info, verbose: int, json_output: bool) -> None:
    """Populate an Active Directory lab with random users and groups."""
    configure_logging(verbose, json_output)
    info.verbose = verbose
    info.json = json_output


@cli.command()
def version() -> None:
    """Print the version."""
    click.echo(__version__)


@cli.command()
@click.argument("groups_file", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("seeds_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--domain", "-d", required=True, help="Target AD domain (e.g. lab.example.com).")
@click.option(
    "--target-dn",
    help="Container for all created objects (default: the domain's Users container).",
)
@click.option(
    "--count",
    "-n",
    "user_count",
    type=click.IntRange(MIN_USER_COUNT, MAX_USER_COUNT),
    default=DEFAULT_USER_COUNT,
    show_default=True,
    help="Number of users to create.",
)
@click.option("--clean-roles", is_flag=True, help="Users join only a role group.")
@click.option("--no-roles", is_flag=True, help="Do not create or use role groups.")
@click.option(
    "--export-passwords",
    is_flag=True,
    help="Write account_id:password lines for created users.",
)
@click.option(
    "--export-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Credential export file (default ./<domain>-credentials.txt).",
)
@click.option(
    "--password-length",
    type=click.IntRange(MIN_PASSWORD_LENGTH, MAX_PASSWORD_LENGTH),
    default=DEFAULT_PASSWORD_LENGTH,
    show_default=True,
)
@click.option(
    "--workers",
    type=click.IntRange(1, MAX_WORKERS),
    default=1,
    show_default=True,
    help="Parallel user provisioning workers.",
)
@click.option("--seed", type=int, help="Random seed for a reproducible lab.")
@click.option("--server", help="Domain controller (default: discovered via DNS SRV).")
@click.option("--bind-user", help="Bind account, DOMAIN\\user for NTLM or a UPN/DN.")
@click.option(
    "--bind-password",
    envvar="ADLABGEN_BIND_PASSWORD",
    help="Bind password (or set ADLABGEN_BIND_PASSWORD).",
)
@click.option("--ldaps", is_flag=True, help="Connect with LDAPS (required to set passwords).")
@click.option("--simulate", is_flag=True, help="Run against an in-memory directory.")
@pass_info
def populate(
    info: Info,
    groups_file: Path,
    seeds_file: Path,
    domain: str,
    target_dn: Optional[str],
    user_count: int,
    clean_roles: bool,
    no_roles: bool,
    export_passwords: bool,
    export_path: Optional[Path],
    password_length: int,
    workers: int,
    seed: Optional[int],
    server: Optional[str],
    bind_user: Optional[str],
    bind_password: Optional[str],
    ldaps: bool,
    simulate: bool,
) -> None:
    """Create groups and users from GROUPS_FILE and SEEDS_FILE."""
    try:
        config = LabConfig.from_flags(
            domain=domain,
            clean_roles=clean_roles,
            no_roles=no_roles,
            target_dn=target_dn,
            user_count=user_count,
            export_passwords=export_passwords,
            export_path=export_path,
            password_length=password_length,
            workers=workers,
            seed=seed,
        )
        groups = load_group_specs(groups_file)
        seeds = load_name_seeds(seeds_file)
    except ConfigurationError as e:
        _fail(e.message, EXIT_CONFIG)
    except ValueError as e:
        _fail(str(e), EXIT_CONFIG)

    try:
        directory = _open_directory(config, server, bind_user, bind_password, ldaps, simulate)
    except LabGenError as e:
        _fail(e.message, EXIT_FATAL)

    try:
        result = LabOrchestrator(config=config, directory=directory).run(groups, seeds)
    finally:
        directory.close()

    if isinstance(result, Failure):
        error = result.failure()
        exit_code = EXIT_CONFIG if isinstance(error, ConfigurationError) else EXIT_FATAL
        _fail(f"{type(error).__name__}: {error.message}", exit_code)

    report = result.unwrap()
    if info.json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_summary(report)


# =============================================================================
# HELPERS
# =============================================================================


def _open_directory(
    config: LabConfig,
    server: Optional[str],
    bind_user: Optional[str],
    bind_password: Optional[str],
    ldaps: bool,
    simulate: bool,
) -> DirectoryAdapter:
    if simulate:
        logger.info("simulated_directory", domain=config.domain)
        return create_simulated_directory(config.domain, config.target_dn)

    if not bind_user:
        _fail("--bind-user is required unless --simulate is given", EXIT_CONFIG)

    if not server:
        controllers = discover_domain_controllers(config.domain)
        if not controllers:
            _fail(
                f"No domain controller found for {config.domain}; pass --server",
                EXIT_FATAL,
            )
        server = controllers[0][0]
        logger.info("domain_controller_selected", server=server)

    if bind_password is None:
        bind_password = click.prompt(f"Password for {bind_user}", hide_input=True)

    return connect_ldap_directory(
        server=server,
        domain=config.domain,
        user=bind_user,
        password=bind_password,
        use_ssl=ldaps,
    )


def _print_summary(report: RunReport) -> None:
    click.echo(click.style("Lab population complete", bold=True))
    click.echo(f"  Mode:              {report.mode.name}")
    click.echo(f"  Target:            {report.target_dn}")
    click.echo(
        f"  Groups:            {report.groups_created} created, "
        f"{report.groups_skipped} already present"
    )
    click.echo(
        f"  Role memberships:  {report.role_memberships_added} added, "
        f"{report.role_memberships_failed} skipped"
    )
    click.echo(
        f"  Users:             {report.users_created} created, "
        f"{report.users_failed} skipped (of {report.users_requested})"
    )
    click.echo(
        f"  User memberships:  {report.user_memberships_added} added, "
        f"{report.user_memberships_failed} skipped"
    )
    if report.export_path is not None:
        click.echo(f"  Credentials:       {report.export_path}")
    if report.has_skipped_items:
        click.echo(
            click.style("Some items were skipped; see warnings above.", fg="yellow")
        )


def _fail(message: str, exit_code: int) -> None:
    click.echo(click.style(f"Error: {message}", fg="red", bold=True), err=True)
    sys.exit(exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
