"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from formbuilder.models.database import Base, engine, SessionLocal, get_db
from formbuilder.models.form import Form
from formbuilder.models.section import Section
from formbuilder.models.question import Question
from formbuilder.models.option import Option
from formbuilder.models.response import FormResponse
from formbuilder.models.answer import Answer

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "Form",
    "Section",
    "Question",
    "Option",
    "FormResponse",
    "Answer",
]
