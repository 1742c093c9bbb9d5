import logging

from flask_sqlalchemy import SQLAlchemy

logger = logging.getLogger(__name__)

# Shared Flask-SQLAlchemy handle; models and the app factory import it from here
db = SQLAlchemy()


def init_db(app):
    """Creates all tables for the models registered on `db`."""
    # Import here so the model classes are attached to the metadata
    from backend import models  # noqa: F401

    with app.app_context():
        db.create_all()
        logger.info(f"Database ready at {app.config['SQLALCHEMY_DATABASE_URI']}")
