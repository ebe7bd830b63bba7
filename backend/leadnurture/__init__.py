"""Backend de nutrição de leads imobiliários (SMS + IA)."""

__version__ = "0.1.0"
