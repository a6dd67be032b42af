# API Dependencies
from typing import Iterator

from autotablero.config import get_settings
from autotablero.layers.l2_classification.role_classifier import ColumnRoleClassifier, get_role_classifier


def get_classifier() -> Iterator[ColumnRoleClassifier]:
    """FastAPI dependency for the configured column role classifier."""
    classifier = get_role_classifier(get_settings())
    try:
        yield classifier
    finally:
        close = getattr(classifier, "close", None)
        if close:
            close()
