# Analysis API Routes
from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool
from typing import Dict, Any, List
import structlog

from autotablero.api.deps import get_classifier
from autotablero.config import settings
from autotablero.core.exceptions import EmptyInputError, UnsupportedFileError, bad_request, unprocessable
from autotablero.layers.l1_ingestion.parser import parse_upload
from autotablero.layers.l2_classification.column_profiler import ColumnProfiler
from autotablero.layers.l2_classification.role_classifier import ColumnRoleClassifier
from autotablero.layers.l7_analytics.aggregator import dashboard_series
from autotablero.layers.l7_analytics.kpi import evaluate_kpis
from autotablero.models.schemas import (
    AnalysisResult,
    AnalyzeRequest,
    ColumnMetadata,
    KPIRequest,
    ProfileRequest,
    Table,
)
from autotablero.services.pipeline import analyze_tables

router = APIRouter()
logger = structlog.get_logger()

ANALYSIS_FAILED = "No se pudieron analizar los datos"


def _run_analysis(tables: Dict[str, Table], classifier: ColumnRoleClassifier) -> AnalysisResult:
    try:
        return analyze_tables(tables, classifier=classifier)
    except EmptyInputError as e:
        logger.warning("Analysis rejected", reason=e.message)
        raise unprocessable(ANALYSIS_FAILED)


@router.post("/analyze", response_model=AnalysisResult)
def analyze(
    request: AnalyzeRequest,
    classifier: ColumnRoleClassifier = Depends(get_classifier)
):
    """Propose a dashboard for tables sent as JSON records."""
    result = _run_analysis(request.tables, classifier)
    logger.info("Dashboard proposed", tables=len(request.tables), family=result.suggested_config.family.value)
    return result


@router.post("/analyze/upload", response_model=AnalysisResult)
async def analyze_upload(
    files: List[UploadFile] = File(...),
    classifier: ColumnRoleClassifier = Depends(get_classifier)
):
    """Parse uploaded spreadsheets/JSON/CSV files and propose a dashboard."""
    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    tables: Dict[str, Table] = {}

    for upload in files:
        filename = upload.filename or "upload"
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension not in settings.ALLOWED_EXTENSIONS:
            raise bad_request(f"File type not allowed: {filename}")

        content = await upload.read()
        if len(content) > max_bytes:
            raise bad_request(f"File too large: {filename}")

        try:
            tables.update(await parse_upload(filename, content))
        except UnsupportedFileError as e:
            logger.warning("Upload could not be parsed", filename=filename, error=e.message)
            raise bad_request(e.message)

    result = await run_in_threadpool(_run_analysis, tables, classifier)
    logger.info("Dashboard proposed from upload", files=len(files), tables=len(tables))
    return result


@router.post("/profile", response_model=Dict[str, ColumnMetadata])
async def profile_table(request: ProfileRequest):
    """Column metadata for one table."""
    profiler = ColumnProfiler(settings.PROFILE_SAMPLE_SIZE, settings.DIMENSION_MAX_UNIQUE)
    return profiler.profile(request.rows)


@router.post("/dashboard/data")
async def dashboard_data(request: KPIRequest) -> Dict[str, Any]:
    """KPI values and chart series for a (possibly edited) dashboard."""
    kpis = evaluate_kpis(request.config, request.tables)
    return {
        "kpis": [kpi.model_dump(by_alias=True, mode="json") for kpi in kpis],
        "charts": dashboard_series(request.config, request.tables)
    }
