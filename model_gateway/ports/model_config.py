"""Model Config Ports - Interfaces abstraites pour la configuration des modèles.

Architecture Hexagonale:
- ModelConfigSourcePort: lecture seule (instantané pour le moteur)
- ModelConfigRepositoryPort: lecture + écriture (API d'administration)
"""

from abc import ABC, abstractmethod

from model_gateway.domain.models import (
    AIModel,
    ConfigSnapshot,
    ModelActivationRule,
    WidgetSettings,
)


class ModelConfigSourcePort(ABC):
    """Source de configuration consommée par le moteur de sélection."""

    @abstractmethod
    async def load_snapshot(self) -> ConfigSnapshot:
        """Charge un instantané immuable (modèles, règles, défaut).

        Returns:
            ConfigSnapshot utilisé pour toute la durée d'un appel
        """
        pass

    @abstractmethod
    async def get_widget_settings(self, widget_id: int) -> WidgetSettings | None:
        """Récupère les réglages d'un widget.

        Args:
            widget_id: Identifiant du widget

        Returns:
            Les réglages ou None si le widget est inconnu
        """
        pass


class ModelConfigRepositoryPort(ModelConfigSourcePort):
    """Repository complet de la configuration des modèles.

    Les opérations qui touchent au défaut sont atomiques: l'adapter met à
    jour le modèle et le pointeur de défaut dans la même transaction.
    """

    # -------------------------------------------------------------------------
    # Models
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_models(self) -> list[AIModel]:
        """Liste les modèles (is_default dérivé du pointeur)."""
        pass

    @abstractmethod
    async def get_model(self, model_id: int) -> AIModel | None:
        """Récupère un modèle par son ID."""
        pass

    @abstractmethod
    async def create_model(self, model: AIModel, make_default: bool = False) -> AIModel:
        """Crée un modèle (l'id fourni est ignoré).

        Args:
            model: Modèle à créer
            make_default: Si True, le pointeur de défaut est déplacé sur ce modèle

        Returns:
            Le modèle créé avec son ID
        """
        pass

    @abstractmethod
    async def update_model(self, model: AIModel, make_default: bool = False) -> AIModel:
        """Met à jour un modèle existant.

        Un api_key à None conserve la clé existante (champ en écriture seule).
        """
        pass

    @abstractmethod
    async def delete_model(self, model_id: int, promote_id: int | None = None) -> bool:
        """Supprime un modèle, ses règles et les fallbacks qui pointent vers lui.

        Args:
            model_id: Modèle à supprimer
            promote_id: Nouveau défaut si model_id était le défaut

        Returns:
            True si supprimé, False si non trouvé
        """
        pass

    @abstractmethod
    async def get_default_model_id(self) -> int | None:
        """Retourne l'ID pointé comme défaut."""
        pass

    @abstractmethod
    async def set_default_model(self, model_id: int | None) -> None:
        """Déplace (ou efface) le pointeur de défaut."""
        pass

    # -------------------------------------------------------------------------
    # Activation rules
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_rules(self, model_id: int) -> list[ModelActivationRule]:
        """Règles d'un modèle, triées par priorité croissante."""
        pass

    @abstractmethod
    async def get_rule(self, model_id: int, rule_id: int) -> ModelActivationRule | None:
        """Récupère une règle d'un modèle."""
        pass

    @abstractmethod
    async def create_rule(self, rule: ModelActivationRule) -> ModelActivationRule:
        """Crée une règle (l'id fourni est ignoré)."""
        pass

    @abstractmethod
    async def update_rule(self, rule: ModelActivationRule) -> ModelActivationRule:
        """Met à jour une règle existante."""
        pass

    @abstractmethod
    async def delete_rule(self, model_id: int, rule_id: int) -> bool:
        """Supprime une règle. True si supprimée."""
        pass

    # -------------------------------------------------------------------------
    # Widgets
    # -------------------------------------------------------------------------

    @abstractmethod
    async def save_widget_settings(self, widget: WidgetSettings) -> WidgetSettings:
        """Crée ou remplace les réglages d'un widget."""
        pass
