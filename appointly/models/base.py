# appointly/models/base.py
"""Shared declarative base for all booking models"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
