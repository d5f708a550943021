"""
User Collection Models - Favorites & Visited Places
"""
from sqlalchemy import Column, Integer, Date, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from travelle.utils.database import Base


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "place_id", name="uq_favorites_user_place"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    place_id = Column(Integer, ForeignKey("places.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="favorites")
    place = relationship("Place")

    def __repr__(self):
        return f"<Favorite user={self.user_id} place={self.place_id}>"


class VisitedPlace(Base):
    __tablename__ = "visited_places"
    __table_args__ = (UniqueConstraint("user_id", "place_id", name="uq_visited_user_place"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    place_id = Column(Integer, ForeignKey("places.id", ondelete="CASCADE"), nullable=False)
    visit_date = Column(Date, nullable=False)
    notes = Column(Text, default="")

    user = relationship("User", back_populates="visits")
    place = relationship("Place")

    def __repr__(self):
        return f"<VisitedPlace user={self.user_id} place={self.place_id} on {self.visit_date}>"
