"""SQLAlchemy Models"""
from travelle.models.user import User, PasswordResetToken
from travelle.models.catalog import Country, City, Place, Category, place_categories
from travelle.models.collections import Favorite, VisitedPlace

__all__ = [
    "User", "PasswordResetToken",
    "Country", "City", "Place", "Category", "place_categories",
    "Favorite", "VisitedPlace",
]
