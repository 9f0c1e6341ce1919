"""
extensions.py — Flask extension singletons.

Created here without an app and bound in the app factory with init_app(app),
so tests can build isolated app instances:

    from backend.app.extensions import db, ma
"""

from flask_marshmallow import Marshmallow
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Validation schemas in app/schemas/ inherit from marshmallow.Schema directly,
# NOT from ma.Schema: ma.Schema needs an application context and the unit
# tests load schemas without one.
ma = Marshmallow()
