"""Backend de fichas clinicas para una veterinaria."""

__version__ = "1.1.0"
