"""Flask CLI commands for operating on user accounts."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from identity_service.api.deps import get_refresh_token_store
from identity_service.models.user import User, UserRole
from identity_service.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("users")
def users_cli() -> None:
    """User account administration commands."""


@users_cli.command("create-admin")
@click.option("--email", required=True, help="Login email of the administrator.")
@click.option("--full-name", required=True, help="Display name.")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Initial password (prompted when omitted).",
)
@with_appcontext
def create_admin_command(email: str, full_name: str, password: str) -> None:
    """Create a verified administrator account."""
    try:
        with SQLAlchemyUnitOfWork() as uow:
            if uow.users.exists_by_email(email):
                raise click.ClickException(f"A user with email {email!r} already exists.")
            try:
                user = User.create(
                    email=email, password=password, full_name=full_name, role=UserRole.ADMIN
                )
            except ValueError as exc:
                raise click.BadParameter(str(exc)) from exc
            # A freshly created admin starts verified at version 1
            user.is_verified = True
            uow.users.add(user)
            user_id = user.id
    except IntegrityError as exc:
        raise click.ClickException(f"A user with email {email!r} already exists.") from exc
    LOGGER.info("Admin created", extra={"event": "user.admin_created", "user_id": user_id})
    click.echo(f"Created admin {email} (id={user_id}).")


@users_cli.command("revoke-tokens")
@click.argument("user_id", type=int)
@with_appcontext
def revoke_tokens_command(user_id: int) -> None:
    """Revoke every refresh token of USER_ID."""
    revoked = get_refresh_token_store().revoke_all_for_user(user_id)
    LOGGER.info(
        "Refresh tokens revoked from CLI",
        extra={"event": "token.revoked_all", "user_id": user_id},
    )
    click.echo(f"Revoked {revoked} refresh token(s) for user {user_id}.")
