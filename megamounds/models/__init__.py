"""
Megamounds Construction Dashboard
SQLAlchemy extension instance shared by all models.

Usage:
    from megamounds.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
