"""
Catalog Models - Countries, Cities, Places & Categories (static reference data)
"""
from sqlalchemy import Column, Integer, String, Text, Float, Numeric, ForeignKey, Table
from sqlalchemy.orm import relationship

from travelle.utils.database import Base


place_categories = Table(
    "place_categories",
    Base.metadata,
    Column("place_id", Integer, ForeignKey("places.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Country(Base):
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    flag = Column(Text)  # Flag image URL

    cities = relationship("City", back_populates="country", order_by="City.name")

    def __repr__(self):
        return f"<Country {self.name}>"


class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    country_id = Column(Integer, ForeignKey("countries.id"), nullable=False, index=True)

    country = relationship("Country", back_populates="cities")
    places = relationship("Place", back_populates="city")

    def __repr__(self):
        return f"<City {self.name}>"


class Place(Base):
    __tablename__ = "places"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    price = Column(Numeric(10, 2))
    rating = Column(Float)

    # Location
    latitude = Column(Float, nullable=True, index=True)
    longitude = Column(Float, nullable=True, index=True)

    # Up to three image URLs, displayed in order
    image1 = Column(Text)
    image2 = Column(Text)
    image3 = Column(Text)

    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False, index=True)

    city = relationship("City", back_populates="places")
    categories = relationship("Category", secondary=place_categories, back_populates="places")

    def __repr__(self):
        return f"<Place {self.name}>"

    @property
    def images(self):
        """Non-empty image refs in display order"""
        return [image for image in (self.image1, self.image2, self.image3) if image]


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)

    places = relationship("Place", secondary=place_categories, back_populates="categories")

    def __repr__(self):
        return f"<Category {self.name}>"
