# Overview: Flask extension instances for the in-memory database.

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
