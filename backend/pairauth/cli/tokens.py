"""Flask CLI commands for token housekeeping."""

from __future__ import annotations

import logging

import click
from flask.cli import AppGroup

from pairauth.services.tokens.service import TokenPairService

LOGGER = logging.getLogger(__name__)


tokens_cli = AppGroup("tokens", help="Token maintenance commands.")


@tokens_cli.command("prune-expired")
def prune_expired() -> None:
    """Delete every pair whose refresh token has expired."""
    removed = TokenPairService().prune_expired()
    LOGGER.info("prune-expired finished", extra={"count": removed})
    click.echo(f"Removed {removed} expired token record(s).")


@tokens_cli.command("revoke-user")
@click.argument("user_id", type=int)
def revoke_user(user_id: int) -> None:
    """Delete every token pair owned by USER_ID."""
    removed = TokenPairService().revoke_all(user_id)
    click.echo(f"Removed {removed} token record(s) for user {user_id}.")
