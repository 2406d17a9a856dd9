"""Adapters Layer - Implémentations concrètes des ports."""
