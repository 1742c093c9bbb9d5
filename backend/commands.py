import click

from backend.database import db, init_db
from backend.storage import Storage


def register_commands(app):

    @app.cli.command('init-db')
    def init_db_command():
        """Create the database tables."""
        init_db(app)
        click.echo("Database initialized.")

    @app.cli.command('create-user')
    @click.argument('username')
    @click.password_option()
    @click.option('--email', default=None, help="Address for premium receipts.")
    def create_user_command(username, password, email):
        """Create an account from the command line.

        Accounts start on the free trial; premium is only granted by a
        confirmed payment.
        """
        storage = Storage(db.session)

        # Check if the user already exists
        if storage.get_user_by_username(username):
            click.echo(f"User '{username}' already exists.")
            return

        user = storage.create_user(username, password, email=email)
        storage.commit()

        click.echo(f"User '{username}' created (id {user.id}).")
