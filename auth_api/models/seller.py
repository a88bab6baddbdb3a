"""Seller and Shop ORM models."""

import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, ForeignKey, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from auth_api.db.database import Base


class Seller(Base):
    __tablename__ = "sellers"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(64), nullable=False)
    region: Mapped[str | None] = mapped_column(String(128))
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    seller_type: Mapped[str] = mapped_column(String(64), default="fashion-retailer")
    business_registration: Mapped[str | None] = mapped_column(String(128))
    years_in_business: Mapped[str | None] = mapped_column(String(16))
    portfolio_link: Mapped[str | None] = mapped_column(String(512))

    # Payment: provider is None until linked or skipped
    payment_provider: Mapped[str | None] = mapped_column(String(32))
    is_payment_setup: Mapped[bool] = mapped_column(Boolean, default=False)
    payment_skipped: Mapped[bool] = mapped_column(Boolean, default=False)
    bank_details: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    shop = relationship("Shop", back_populates="seller", uselist=False, lazy="selectin")


class Shop(Base):
    __tablename__ = "shops"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    seller_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("sellers.id"), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(64), default="ready-to-wear")
    address: Mapped[dict] = mapped_column(JSON, nullable=False)
    opening_hours: Mapped[list] = mapped_column(JSON, default=list)
    shop_type: Mapped[str] = mapped_column(String(16), default="both")
    website: Mapped[str | None] = mapped_column(String(512))
    social_links: Mapped[list] = mapped_column(JSON, default=list)
    return_policy: Mapped[str | None] = mapped_column(Text)
    shipping_policy: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    seller = relationship("Seller", back_populates="shop")
