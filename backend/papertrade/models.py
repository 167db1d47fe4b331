from sqlalchemy import Integer, String, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db import Base

class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, default="")
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    password: Mapped[str] = mapped_column(String)
    balance: Mapped[float] = mapped_column(Float, default=10000.0)
    portfolio: Mapped[list["Position"]] = relationship(
        back_populates="user", order_by="Position.id",
        cascade="all, delete-orphan", lazy="selectin",
    )

    def position(self, ticker: str) -> "Position | None":
        for p in self.portfolio:
            if p.ticker == ticker:
                return p
        return None

class Position(Base):
    __tablename__ = "positions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    ticker: Mapped[str] = mapped_column(String)
    units: Mapped[int] = mapped_column(Integer)
    avg_cost: Mapped[float] = mapped_column(Float)
    user: Mapped[User] = relationship(back_populates="portfolio")
