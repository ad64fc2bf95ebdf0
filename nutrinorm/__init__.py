"""NutriNorm — fertilizer dose and nutrient usage norm service."""

__version__ = "0.1.0"
