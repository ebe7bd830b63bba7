"""
Models: Property, LeadPropertySearch, PropertyMatch
====================================================

- Property: imóvel importado de um feed (MLS/portal), identificado por external_id.
- LeadPropertySearch: critérios de busca do lead (um ativo por lead).
- PropertyMatch: imóvel que casa com a busca, com score 0-100.
"""

from typing import Optional
from sqlalchemy import String, Integer, Float, Boolean, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.mutable import MutableList

from .base import Base, TimestampMixin, json_type
from .enums import LeadInterest


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[str] = mapped_column(String(100), unique=True, index=True)

    address: Mapped[str] = mapped_column(String(300))
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)

    price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    property_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    images: Mapped[list] = mapped_column(MutableList.as_mutable(json_type()), default=list)
    features: Mapped[list] = mapped_column(MutableList.as_mutable(json_type()), default=list)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="Active", index=True)


class LeadPropertySearch(Base, TimestampMixin):
    """Critérios de busca de imóvel do lead."""

    __tablename__ = "lead_property_searches"

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(ForeignKey("leads.id", ondelete="CASCADE"), index=True)

    min_bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    min_bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    min_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    min_square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    locations: Mapped[list] = mapped_column(MutableList.as_mutable(json_type()), default=list)
    property_types: Mapped[list] = mapped_column(MutableList.as_mutable(json_type()), default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original_search_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)


class PropertyMatch(Base, TimestampMixin):
    __tablename__ = "property_matches"
    __table_args__ = (
        UniqueConstraint("lead_id", "property_id", "search_id", name="uq_property_match"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(ForeignKey("leads.id", ondelete="CASCADE"), index=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    search_id: Mapped[int] = mapped_column(
        ForeignKey("lead_property_searches.id", ondelete="CASCADE"), index=True
    )

    match_score: Mapped[float] = mapped_column(Float, default=0)
    was_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    was_viewed: Mapped[bool] = mapped_column(Boolean, default=False)
    lead_interest: Mapped[str] = mapped_column(String(20), default=LeadInterest.UNKNOWN.value)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    property: Mapped["Property"] = relationship()
