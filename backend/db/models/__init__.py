"""SQLAlchemy ORM models for the SEOPilot database.

All models use Flask-SQLAlchemy's db.Model as the base class.
Import all models from here so db.create_all() registers every table.
"""

from db.models.catalog import BlogPost, Collection, Product, Shop
from db.models.diagnostics import DiagnosticRun
from db.models.jobs import ProductGenerationJob, ResolutionJob

__all__ = [
    "BlogPost",
    "Collection",
    "DiagnosticRun",
    "Product",
    "ProductGenerationJob",
    "ResolutionJob",
    "Shop",
]
