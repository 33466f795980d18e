"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Any, Callable, Dict, Generator, List, Optional

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")

from formbuilder.models import (
    Answer,
    Base,
    Form,
    FormResponse,
    Option,
    Question,
    Section,
    get_db,
)
from formbuilder.models.database import enable_sqlite_foreign_keys
from formbuilder.schemas.answer import parse_answer_value
from formbuilder.schemas.form import QuestionType

OWNER_ID = "user_owner"
OTHER_USER_ID = "user_other"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        A StaticPool keeps one connection so the TestClient's worker thread
        sees the same in-memory database as the test body.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,  # Set to True for SQL debugging
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Yields:
        Session: SQLAlchemy session for testing
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
    )

    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def client(db_session):
    """FastAPI TestClient whose requests share the test session."""
    from fastapi.testclient import TestClient

    from formbuilder.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> Dict[str, str]:
    return {"X-User-Id": OWNER_ID}


@pytest.fixture
def other_headers() -> Dict[str, str]:
    return {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def build_form(db_session) -> Callable[..., Form]:
    """Factory persisting a form tree.

    Usage:
        form = build_form(sections=[
            ("Section A", [{"text": "Q1"}, {"text": "Color", "type": QuestionType.DROPDOWN,
                                            "options": ["Red", "Blue"]}]),
        ])
    """

    def _build(
        sections: Optional[List] = None,
        owner_id: str = OWNER_ID,
        title: str = "Customer Survey",
    ) -> Form:
        form = Form(owner_id=owner_id, title=title, description="Original description")
        db_session.add(form)
        db_session.flush()

        for s_index, (section_title, questions) in enumerate(sections or []):
            section = Section(form_id=form.id, title=section_title, order=s_index)
            db_session.add(section)
            db_session.flush()

            for q_index, question_def in enumerate(questions):
                question = Question(
                    section_id=section.id,
                    text=question_def["text"],
                    type=question_def.get("type", QuestionType.SHORT_ANSWER),
                    required=question_def.get("required", False),
                    order=q_index,
                )
                db_session.add(question)
                db_session.flush()

                for position, option_text in enumerate(question_def.get("options", [])):
                    db_session.add(Option(
                        question_id=question.id,
                        text=option_text,
                        position=position,
                    ))

        db_session.commit()
        return form

    return _build


@pytest.fixture
def submit_response(db_session) -> Callable[..., FormResponse]:
    """Factory recording a response with answers keyed by question id."""

    def _submit(form: Form, answers: Dict[str, Any], email: Optional[str] = None) -> FormResponse:
        response = FormResponse(form_id=form.id, email=email)
        db_session.add(response)
        db_session.flush()

        for question_id, raw in answers.items():
            db_session.add(Answer.from_value(response.id, question_id, parse_answer_value(raw)))

        db_session.commit()
        return response

    return _submit


@pytest.fixture
def find_question_id(db_session) -> Callable[[str], str]:
    """Look up a question id by its text."""
    return lambda text: db_session.execute(
        select(Question.id).where(Question.text == text)
    ).scalar_one()


@pytest.fixture
def find_section_id(db_session) -> Callable[[str], str]:
    """Look up a section id by its title."""
    return lambda title: db_session.execute(
        select(Section.id).where(Section.title == title)
    ).scalar_one()
