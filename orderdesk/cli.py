import click
from flask import current_app
from orderdesk.extensions import bcrypt, db
from orderdesk.models import User
from orderdesk.services.reconciliation import reconcile_approval_intents


def register_commands(app):
    @app.cli.command("create-admin")
    @click.argument("username")
    @click.argument("email")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--full-name", default=None)
    @click.option("--role", type=click.Choice(["admin", "director", "staff"]), default="admin")
    def create_admin(username, email, password, full_name, role):
        """Create a console user."""
        if User.query.filter((User.username == username) | (User.email == email)).first():
            raise click.ClickException("A user with this username or email already exists")

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            role=role,
            password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
        )
        db.session.add(user)
        db.session.commit()
        click.echo(f"Created {role} {username} (id {user.id})")

    @app.cli.command("reconcile-approvals")
    @click.option(
        "--older-than",
        type=int,
        default=None,
        help="Only touch attempts idle for at least this many minutes.",
    )
    def reconcile_approvals(older_than):
        """Void or delete Stripe invoices of approvals that never committed."""
        summary = reconcile_approval_intents(older_than_minutes=older_than)
        for key, value in summary.items():
            click.echo(f"{key}: {value}")
        if summary["needs_attention"] or summary["errors"]:
            current_app.logger.warning("[reconcile] Some attempts still need attention")
            raise SystemExit(1)
