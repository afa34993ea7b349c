import logging
import time
from typing import Any, Dict

from fastapi import Body, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .api_models import BatchRequest, BatchResponse, ComparisonRow, LCARequest, LCAResponse
from .batch import run_batch
from .config import configure_logging, get_settings
from .errors import IngestError, ReportGenerationError, ReportServiceNotConfigured
from .ingest import build_template, read_spreadsheet
from .lca_engine import build_lca_json
from .report_service import NarrativeClient, markdown_to_pdf
from .scenarios import batch_averages, compare_routes

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

BATCH_WORKERS = 4

# Initialize FastAPI app
app = FastAPI(
    title="Metal Product LCA API",
    description="Cradle-to-gate life cycle impact estimates for metal products, with batch upload and PDF reports.",
    version="1.0.0"
)

# Allow CORS for the dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IngestError)
def ingest_error_handler(request: Request, exc: IngestError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ReportServiceNotConfigured)
def report_not_configured_handler(request: Request, exc: ReportServiceNotConfigured):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(ReportGenerationError)
def report_generation_error_handler(request: Request, exc: ReportGenerationError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def get_narrative_client() -> NarrativeClient:
    return NarrativeClient(settings)


def _batch_payload(records) -> Dict[str, Any]:
    results = run_batch(records, max_workers=BATCH_WORKERS)
    return {"count": len(results), "results": results, "averages": batch_averages(results)}


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint to confirm API is running."""
    return {"status": "ok", "llm_configured": settings.llm_configured}


@app.post("/api/lca", response_model=LCAResponse, tags=["LCA"])
def run_lca_analysis(request: LCARequest):
    """Run the cradle-to-gate assessment for one record."""
    return build_lca_json(request.to_record())


@app.post("/api/lca/batch", response_model=BatchResponse, tags=["LCA"])
def run_lca_batch(request: BatchRequest):
    """Run one assessment per record; records are independent of each other."""
    return _batch_payload(request.records)


@app.post("/api/lca/upload", response_model=BatchResponse, tags=["LCA"])
async def upload_process_data(file: UploadFile = File(...)):
    """Batch assessment from an uploaded CSV/XLSX/XLS file."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    rows = read_spreadsheet(content, file.filename or "")
    if not rows:
        raise HTTPException(status_code=400, detail="No data rows found in the uploaded file.")
    return _batch_payload(rows)


@app.post("/api/lca/compare", response_model=list[ComparisonRow], tags=["LCA"])
def compare_scenarios(request: LCARequest):
    """Conventional (primary, fossil, no recycled content) vs the entered route."""
    return compare_routes(request.to_record())


@app.get("/api/templates/{kind}", tags=["Templates"])
def download_template(kind: str):
    try:
        filename, data, media_type = build_template(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown template '{kind}'. Use 'basic' or 'advanced'.")
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/generate-lca-pdf", tags=["Reports"])
def generate_lca_pdf(lca_json: Dict[str, Any] = Body(default=None)):
    """Turn an LCA report JSON into a narrative PDF."""
    if not lca_json:
        raise HTTPException(status_code=400, detail="Please POST a JSON body with LCA data.")

    markdown = get_narrative_client().generate(lca_json)
    try:
        pdf_bytes = markdown_to_pdf(markdown)
    except Exception as e:
        logger.exception("PDF rendering failed")
        raise HTTPException(status_code=500, detail=f"Internal error generating PDF: {e}")

    filename = f"LCA_Report_{int(time.time() * 1000)}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
