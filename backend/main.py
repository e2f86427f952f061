"""SEO Auditor API – FastAPI app exposing the analysis pipeline."""

import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analyzer import SEOAnalyzer
from cache import AnalysisCache
from database import SQLiteAnalysisStore
from errors import InvalidUrlError, SEOAnalysisError
from schemas import AnalysisHistoryItem, AnalysisReport, AnalyzeRequest
from settings import LOG_LEVEL, PERSIST_ANALYSES

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SEO Auditor API",
    description="Single-page SEO audit: signals, scores, grade and recommendations",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

store = SQLiteAnalysisStore() if PERSIST_ANALYSES else None
analyzer = SEOAnalyzer(cache=AnalysisCache(), store=store)


@app.on_event("startup")
def startup() -> None:
    if store is not None:
        store.init()


def get_analyzer() -> SEOAnalyzer:
    return analyzer


def get_store() -> SQLiteAnalysisStore | None:
    return store


@app.exception_handler(SEOAnalysisError)
async def analysis_error_handler(request: Request, exc: SEOAnalysisError) -> JSONResponse:
    logger.warning("Analysis failed path=%s kind=%s: %s", request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected request path=%s: %s", request.url.path, exc.errors())
    error = InvalidUrlError("Send a JSON object with a 'url' string, e.g. {\"url\": \"example.com\"}.")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.post("/api/analyze", response_model=AnalysisReport)
def analyze(body: AnalyzeRequest, service: SEOAnalyzer = Depends(get_analyzer)) -> AnalysisReport:
    """Fetch the page, score it and return the full report."""
    return service.analyze(body.url)


@app.get("/api/analyze", response_model=AnalysisReport)
def analyze_query(url: str = "", service: SEOAnalyzer = Depends(get_analyzer)) -> AnalysisReport:
    """Query-parameter form of POST /api/analyze."""
    return service.analyze(url)


@app.get("/api/analyses", response_model=list[AnalysisHistoryItem])
def recent_analyses(
    limit: int = 20,
    history: SQLiteAnalysisStore | None = Depends(get_store),
) -> list[AnalysisHistoryItem]:
    """Return recent analyses for the history view."""
    if history is None:
        return []
    return [AnalysisHistoryItem(**row) for row in history.list_recent(limit=limit)]


@app.get("/api/analyses/{analysis_id}", response_model=AnalysisReport)
def stored_analysis(
    analysis_id: int,
    history: SQLiteAnalysisStore | None = Depends(get_store),
) -> AnalysisReport:
    """Return a stored report by id."""
    report = history.get_report(analysis_id) if history is not None else None
    if report is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return report


@app.get("/health")
def health() -> dict:
    """Health check for deployment."""
    return {"status": "ok"}
