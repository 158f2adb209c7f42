"""SQLAlchemy ORM models mirroring schema.sql."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Email(Base):
    __tablename__ = "emails"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    message_id: Mapped[str] = mapped_column(String, unique=True)
    subject: Mapped[str] = mapped_column(String)
    sender: Mapped[str] = mapped_column(String)
    body: Mapped[str] = mapped_column(Text)
    received_at: Mapped[str] = mapped_column(String)
    priority: Mapped[str] = mapped_column(String, default="normal")
    sentiment: Mapped[str] = mapped_column(String, default="neutral")
    is_processed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    extracted_info: Mapped[str] = mapped_column(Text, default="{}")
    tags: Mapped[str] = mapped_column(Text, default="[]")
    created_at: Mapped[str] = mapped_column(String)
    updated_at: Mapped[str] = mapped_column(String)

    responses: Mapped[list["Response"]] = relationship(back_populates="email")

    def __str__(self) -> str:
        return self.subject


class Response(Base):
    __tablename__ = "responses"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email_id: Mapped[str] = mapped_column(String, ForeignKey("emails.id"))
    content: Mapped[str] = mapped_column(Text)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    sent_at: Mapped[str | None] = mapped_column(String)
    generated_at: Mapped[str] = mapped_column(String)
    model: Mapped[str] = mapped_column(String)
    confidence: Mapped[int] = mapped_column(Integer, default=0)

    email: Mapped[Email] = relationship(back_populates="responses")


class DailyAnalytics(Base):
    __tablename__ = "daily_analytics"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    date: Mapped[str] = mapped_column(String, unique=True)
    total_emails: Mapped[int] = mapped_column(Integer, default=0)
    resolved_emails: Mapped[int] = mapped_column(Integer, default=0)
    pending_emails: Mapped[int] = mapped_column(Integer, default=0)
    urgent_emails: Mapped[int] = mapped_column(Integer, default=0)
    avg_response_time: Mapped[int] = mapped_column(Integer, default=0)
    sentiment_breakdown: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[str] = mapped_column(String)
