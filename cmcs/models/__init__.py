"""
CMCS — Claims Management
SQLAlchemy database handle shared by every model module.

Usage:
    from cmcs.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
