# L2: Classification Layer - Column role classifier strategies
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Sequence, Tuple
import logging

from autotablero.config import Settings, settings as default_settings
from autotablero.layers.l2_classification.binding_selector import select_bindings
from autotablero.layers.l2_classification.domain_classifier import classify_domain
from autotablero.models.schemas import Bindings, ClassificationResult, ColumnMetadata

logger = logging.getLogger(__name__)


class ColumnRoleClassifier(ABC):
    """Decides a table's family and which columns feed the charts and KPIs."""

    @abstractmethod
    def classify(
        self,
        column_names: Iterable[str],
        rows: Sequence[Dict[str, Any]] = ()
    ) -> ClassificationResult:
        ...

    @abstractmethod
    def select_bindings(
        self,
        columns: Dict[str, ColumnMetadata],
        rows: Sequence[Dict[str, Any]] = ()
    ) -> Bindings:
        ...

    def classify_table(
        self,
        columns: Dict[str, ColumnMetadata],
        rows: Sequence[Dict[str, Any]] = ()
    ) -> Tuple[ClassificationResult, Bindings]:
        """Family and bindings for one table."""
        return self.classify(columns.keys(), rows), self.select_bindings(columns, rows)


class KeywordHeuristicClassifier(ColumnRoleClassifier):
    """Keyword substring matching on column names."""

    def __init__(self, settings: Settings = None, binding_tags: Dict[str, List[str]] = None):
        self.settings = settings or default_settings
        self.binding_tags = binding_tags

    def classify(self, column_names, rows=()):
        return classify_domain(
            column_names,
            override_threshold=self.settings.OPERATIONAL_OVERRIDE_THRESHOLD,
            profile_threshold=self.settings.OPERATIONAL_PROFILE_THRESHOLD,
        )

    def select_bindings(self, columns, rows=()):
        return select_bindings(columns, self.binding_tags)


def get_role_classifier(settings: Settings = None) -> ColumnRoleClassifier:
    """Classifier selected by CLASSIFIER_STRATEGY."""
    settings = settings or default_settings
    strategy = settings.CLASSIFIER_STRATEGY.lower()

    if strategy == "external":
        if settings.GROQ_API_KEY:
            from autotablero.layers.l10_llm.external_classifier import ExternalModelClassifier
            return ExternalModelClassifier.from_settings(settings)
        logger.warning("External classifier requested without GROQ_API_KEY, using keyword heuristic")
    elif strategy != "keyword":
        logger.warning(f"Unknown classifier strategy '{strategy}', using keyword heuristic")

    return KeywordHeuristicClassifier(settings)
