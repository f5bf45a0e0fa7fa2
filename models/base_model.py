#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the LibBuddy API.

Primary keys are declared per model: users use a surrogate integer id,
refresh tokens are keyed by their own value.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


class BaseModel:
    """Base mixin for all persistent models: a database-set created_at."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        created_at is left to the database unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
