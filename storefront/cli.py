# storefront/cli.py
import click

from storefront.extensions import db


def register_commands(app):
    @app.cli.command("create-db")
    def create_db():
        """Create all tables without migrations (dev / first run)."""
        db.create_all()
        click.echo("✅ Tables created")

    @app.cli.command("create-admin")
    @click.option("--username", envvar="ADMIN_USERNAME", default="admin",
                  show_default=True, help="Admin username")
    @click.option("--password", envvar="ADMIN_PASSWORD",
                  help="Password (prompted when omitted)")
    @click.option("--force", is_flag=True, default=False,
                  help="Reset the password if the admin already exists")
    def create_admin(username: str, password: str | None, force: bool):
        """Create an admin account (bcrypt hash, same as the login check)."""
        from storefront.models import Admin

        if not password:
            password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

        admin = Admin.query.filter_by(username=username).first()
        if admin and not force:
            click.echo(f"❗ Admin '{username}' already exists. Use --force to reset the password.")
            return

        if not admin:
            admin = Admin(username=username)
            db.session.add(admin)
        admin.set_password(password)
        db.session.commit()
        click.echo(f"✅ Admin ready: {username}")

    @app.cli.command("purge-orphans")
    def purge_orphans():
        """Retry deleting image files left behind by failed deletions."""
        from storefront.models import OrphanedFile
        from storefront.services.asset_store import AssetStore
        from storefront.services.product_writer import purge_orphaned_files

        purged = purge_orphaned_files(AssetStore.from_app(app))
        left = OrphanedFile.query.count()
        click.echo(f"Purged {purged} orphaned file(s), {left} still pending")
