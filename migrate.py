import logging
import os
import sys

from flask_migrate import upgrade
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

from trackflow import app, db

logger = logging.getLogger(__name__)

# Test database connection
try:
    engine = create_engine(app.config["SQLALCHEMY_DATABASE_URI"])
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
except OperationalError as e:
    logger.error(f"Database connection failed: {e}")
    sys.exit(1)

with app.app_context():
    try:
        if os.path.isdir(os.path.join(os.path.dirname(os.path.abspath(__file__)), "migrations")):
            upgrade()  # Apply migrations
            logger.info("Database migrations applied successfully")
        else:
            db.create_all()
            logger.info("No migrations directory, created tables from models")
    except Exception as e:
        logger.error(f"Failed to apply migrations: {e}")
        sys.exit(1)
