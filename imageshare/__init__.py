"""ImageShare: upload images, browse the gallery, like and dislike posts."""

__version__ = "0.1.0"
