# Overview: Flask extension instances (database session and Alembic migrations) shared across the app.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
