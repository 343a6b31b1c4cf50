"""
FastAPI application for the E-Invoice QC Service.
Provides REST API endpoints for invoice normalization and validation.
"""

import logging
from typing import Any, Callable, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from einvoice_qc.config import configure_logging, get_settings
from einvoice_qc.models import (
    INVOICE_TYPE_CODES,
    PAYMENT_MEANS_CODES,
    InvoiceSubmission,
    ValidationReport,
    ValidationResult,
)
from einvoice_qc.validator import InvoiceValidator

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

ENDPOINTS = {
    "health": "GET /health",
    "info": "GET /api/info",
    "codes": "GET /codes",
    "validate": "POST /validate",
    "validate_xml": "POST /validate-xml",
    "validate_batch": "POST /validate-batch",
    "docs": "GET /docs",
}

app = FastAPI(
    title="E-Invoice QC Service",
    description="API for normalizing and validating invoices for FIRS e-invoicing",
    version=settings.service_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

validator = InvoiceValidator(settings)


def _run_validation(func: Callable[..., Any], *args: Any) -> Any:
    """Call into the validator, turning unexpected failures into a 500 response.

    Invalid invoices are not failures: they come back as 200 with isValid false.
    """
    try:
        return func(*args)
    except Exception as e:
        logger.exception("Unexpected validation failure")
        raise HTTPException(
            status_code=500,
            detail=f"Validation error: {str(e)}"
        )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "endpoints": ENDPOINTS,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": settings.service_name,
        "version": settings.service_version,
        "environment": settings.environment,
    }


@app.post("/validate", response_model=ValidationResult)
async def validate(submission: InvoiceSubmission):
    """
    Validate a single invoice given as canonical JSON, legacy JSON, or XML text.

    Example request body:
    ```json
    {
        "format": "json",
        "payload": {
            "invoiceNumber": "INV-001",
            "supplier": {"taxId": "12345678-0001", "name": "Acme", "email": "a@acme.com"},
            "lineItems": [{"description": "Widget", "quantity": 2, "unitPrice": 500, "totalPrice": 1000}],
            "total": {"subtotal": 1000, "taxTotal": 75, "amount": 1075}
        }
    }
    ```
    """
    return _run_validation(validator.validate, submission.payload, submission.format)


@app.post("/validate-xml", response_model=ValidationResult)
async def validate_xml(request: Request):
    """
    Validate a UBL-like XML invoice sent as the raw request body.

    Example:
    ```bash
    curl -X POST http://localhost:8000/validate-xml \
      -H "Content-Type: application/xml" \
      --data-binary @invoice.xml
    ```
    """
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Request body is empty")
    return _run_validation(validator.validate, body, 'xml')


@app.post("/validate-batch", response_model=ValidationReport)
async def validate_batch(submissions: List[InvoiceSubmission]):
    """
    Validate a list of invoices; IRNs repeated within the list are reported.

    Returns:
        ValidationReport with summary and per-invoice results
    """
    return _run_validation(validator.validate_batch, submissions)


@app.get("/codes")
async def codes():
    """Invoice type and payment means code tables."""
    return {
        "invoice_type_codes": INVOICE_TYPE_CODES,
        "payment_means_codes": {str(code): label for code, label in PAYMENT_MEANS_CODES.items()},
    }


@app.get("/api/info")
async def api_info():
    """Describe supported formats and the operating-country defaults."""
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "description": "Normalize and validate invoices for FIRS e-invoicing",
        "capabilities": [
            "Canonical JSON pass-through",
            "Legacy JSON conversion",
            "UBL-like XML conversion",
            "Schema validation with field-level errors",
            "Business rule and compliance validation",
            "Batch validation with duplicate IRN detection"
        ],
        "supported_formats": ["json", "xml"],
        "defaults": {
            "country": settings.country_code,
            "currency": settings.currency_code,
            "vat_rate": settings.standard_vat_rate,
            "invoice_type_code": settings.default_invoice_type_code,
            "warn_on_defaults": settings.warn_on_defaults,
        }
    }


@app.exception_handler(404)
async def not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": f"No endpoint at {request.url.path}",
            "available_endpoints": list(ENDPOINTS.values()),
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
