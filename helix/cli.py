"""CLI tools for Helix administration."""

import click

from helix.core.errors import HelixError
from helix.db.enums import DEFAULT_PROFILE_STATUS, INITIAL_ONBOARDING_STEP
from helix.db.models import User
from helix.db.session import SessionLocal
from helix.services import permission_service, settings_service, user_service
from helix.utils.normalization import normalize_email


@click.group()
def cli():
    """Helix CLI tools."""
    pass


@cli.command()
def seed_rbac():
    """
    Create the permission registry and system roles.

    Safe to re-run: existing rows are kept, and Super Admin is topped up with
    any permission added since the last run.

    Example:
        helix seed-rbac
    """
    db = SessionLocal()
    try:
        counts = permission_service.seed_rbac(db)
        created = settings_service.seed_default_settings(db)
        click.echo(f"✓ Permissions created: {counts['permissions_created']}")
        click.echo(f"✓ Roles created: {counts['roles_created']}")
        click.echo(f"✓ Default settings created: {created}")
    except Exception as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--role", "role_name", required=True, help="Role name (e.g. 'Super Admin')")
def assign_role(email: str, role_name: str):
    """
    Assign an access role to a user, creating the user if needed.

    This is the bootstrap path for the first administrator, who then logs
    in with an emailed code.

    Example:
        helix assign-role --email admin@helix.com --role "Super Admin"
    """
    db = SessionLocal()
    try:
        normalized = normalize_email(email)
        if not normalized:
            raise click.ClickException("Email is required")

        user = user_service.get_user_by_email(db, normalized)
        if not user:
            user = User(
                email=normalized,
                profile_status=DEFAULT_PROFILE_STATUS.value,
                onboarding_step=INITIAL_ONBOARDING_STEP,
            )
            db.add(user)
            db.commit()
            click.echo(f"✓ Created user {normalized}")

        permission_service.assign_role(db, user.id, role_name)
        click.echo(f"✓ Assigned role '{role_name}' to {normalized}")
    except HelixError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
