"""Flask extension instances.

Created unbound here and attached to the application in ``create_app`` so that
models and services can import them without a circular import on ``app``.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt

db = SQLAlchemy()
migrate = Migrate()
bcrypt = Bcrypt()
