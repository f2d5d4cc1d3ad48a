"""
FastAPI routes for CSV transaction ingestion.
Thin HTTP layer; all pipeline logic lives in the service.
"""
from typing import Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response

from core.config import get_settings
from core.exceptions import GENERIC_FAILURE_MESSAGE
from core.logger import setup_logger
from services.ingestion_service import IngestionService

logger = setup_logger(__name__)
settings = get_settings()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

# Initialize FastAPI app
app = FastAPI(
    title="CSV Transaction Ingestion",
    description="Import bank-transaction CSV exports into the organization ledger",
    version="1.0.0"
)

# Service instance
ingestion_service = IngestionService()


@app.middleware("http")
async def cors(request: Request, call_next):
    """Answer every preflight and stamp permissive CORS headers on all responses."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "csv_ingest",
        "version": "1.0.0"
    }


@app.post("/process-csv-transactions")
async def process_csv_transactions(
    request: Request,
    authorization: Optional[str] = Header(default=None),
):
    """
    Import the transactions in an uploaded CSV.

    Body: {csvContent, orgId, accountId, accountName, institution}

    Returns:
        200 {success, imported}, 400/401 {error} for caller errors,
        500 {error} with a generic message for everything else
    """
    if authorization and authorization.strip():
        try:
            body = await request.json()
        except ValueError as e:
            logger.error(f"Request body is not valid JSON: {e}")
            return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})
    else:
        body = None

    status_code, content = await ingestion_service.handle(authorization, body)
    return JSONResponse(status_code=status_code, content=content)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
