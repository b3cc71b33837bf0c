"""SQLAlchemy VerificationCode model."""

from sqlalchemy import BigInteger, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


class VerificationCode(Base):
    """The pending verification code for one phone number.

    Keyed by the normalized phone number, so storing a new code for the
    same phone replaces the previous one.  Timestamps are epoch
    milliseconds.
    """

    __tablename__ = "verification_codes"

    phone_key: Mapped[str] = mapped_column(String(32), primary_key=True)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[int] = mapped_column(
        BigInteger, nullable=False, doc="Epoch ms; invalid at or after this instant"
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (Index("ix_verification_codes_expires_at", "expires_at"),)

    def __repr__(self) -> str:
        return (
            f"<VerificationCode phone_key={self.phone_key!r} "
            f"expires_at={self.expires_at}>"
        )
