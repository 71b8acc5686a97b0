"""SQLAlchemy ORM models for the two destination tables."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import TIMESTAMP


class Base(DeclarativeBase):
    pass


class GithubIssueORM(Base):
    """
    SQLAlchemy ORM model for GitHub issues.
    Schema:
      id            SERIAL PRIMARY KEY,
      title         TEXT,
      issue_number  INT,
      created_at    TIMESTAMPTZ,
      closed_at     TIMESTAMPTZ,
      repo          TEXT
    The table is dropped and recreated at the start of every run.
    """
    __tablename__ = "github_issues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[Optional[str]] = mapped_column(Text)
    issue_number: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    closed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    repo: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<GithubIssueORM(id={self.id}, repo='{self.repo}', issue_number={self.issue_number})>"


class SOPostORM(Base):
    """
    SQLAlchemy ORM model for Stack Overflow questions.
    Schema:
      id          SERIAL PRIMARY KEY,
      title       TEXT,
      body        TEXT,
      created_at  TIMESTAMPTZ,
      closed_at   TIMESTAMPTZ,
      technology  TEXT
    The table is dropped and recreated at the start of every run.
    """
    __tablename__ = "so_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[Optional[str]] = mapped_column(Text)
    body: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    closed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    technology: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<SOPostORM(id={self.id}, technology='{self.technology}', title='{self.title}')>"
