"""Model Gateway - Moteur de sélection et de fallback des modèles IA."""

__version__ = "0.1.0"
