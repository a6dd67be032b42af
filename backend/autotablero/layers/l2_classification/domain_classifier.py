# L2: Classification Layer - Domain Classifier
from typing import Dict, Iterable

from autotablero.config import settings
from autotablero.models.schemas import ClassificationResult, DomainFamily


OPERATIVO = "OPERATIVO"

# Signal definitions per family. A column name scores for every family
# with at least one matching substring; families are not exclusive.
FAMILY_SIGNALS = {
    DomainFamily.OBRA_PUBLICA.value: {
        "keywords": ["obra", "contrato", "utopia", "avance", "fisico", "licitacion",
                     "ubicacion", "alcaldia", "empresa"],
        "weight": 15
    },
    DomainFamily.FINANCIERO.value: {
        "keywords": ["monto", "presupuesto", "ejercido", "pagado", "economico", "costo",
                     "inversion", "capitulo", "partida", "importe"],
        "weight": 15
    },
    DomainFamily.PROGRAMA_SOCIAL.value: {
        "keywords": ["meta", "beneficiario", "poblacion", "cobertura", "apoyo", "entregado",
                     "solicitud", "cancha", "punto"],
        "weight": 15
    },
    OPERATIVO: {
        "keywords": ["cuadrilla", "personal", "base", "unidad", "cantidad", "concepto",
                     "clasificacion"],
        "weight": 20
    }
}

# First family at the max score wins.
TIE_BREAK_ORDER = [
    DomainFamily.OBRA_PUBLICA,
    DomainFamily.FINANCIERO,
    DomainFamily.PROGRAMA_SOCIAL,
]


def score_families(column_names: Iterable[str]) -> Dict[str, int]:
    """Keyword score per family, including the operational one."""
    scores = {family: 0 for family in FAMILY_SIGNALS}

    for name in column_names:
        lower = str(name).lower()
        for family, signals in FAMILY_SIGNALS.items():
            if any(keyword in lower for keyword in signals["keywords"]):
                scores[family] += signals["weight"]

    return scores


def classify_domain(
    column_names: Iterable[str],
    override_threshold: int = None,
    profile_threshold: int = None
) -> ClassificationResult:
    """
    Guess the dataset family from its column names.

    An operational-dominant dataset above the override threshold is
    reported as GENERICO with an operational profile, never as its own
    family. No keyword match at all also gives GENERICO.
    """
    if override_threshold is None:
        override_threshold = settings.OPERATIONAL_OVERRIDE_THRESHOLD
    if profile_threshold is None:
        profile_threshold = settings.OPERATIONAL_PROFILE_THRESHOLD

    scores = score_families(column_names)
    max_score = max(scores.values())

    family = DomainFamily.GENERICO
    if scores[OPERATIVO] == max_score and max_score > override_threshold:
        family = DomainFamily.GENERICO
    else:
        for candidate in TIE_BREAK_ORDER:
            if max_score > 0 and scores[candidate.value] == max_score:
                family = candidate
                break

    return ClassificationResult(
        family=family,
        scores=scores,
        confidence=max_score,
        operational_profile=scores[OPERATIVO] > profile_threshold
    )
