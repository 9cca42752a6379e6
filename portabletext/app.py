"""
FastAPI application exposing Portable Text parsing and PDF rendering.

Provides REST API endpoints that classify Portable Text documents into
styled runs or render them to PDF, with structured error responses,
request logging, and health checks.

License: MIT
"""

import base64
import logging
import os
import time
from typing import Any, Dict, List as ListType, Literal, Optional
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from portabletext.errors import ErrorKind, PortableTextError
from portabletext.models import CodeBlock, ConcreteBlock, Heading
from portabletext.parser import ValidationWarning, parse_portable_text
from portabletext.renderer import RenderOptions, render_blocks
from portabletext.runs import runs_for_block

LOG_LEVEL = os.getenv("PORTABLETEXT_LOG_LEVEL", "INFO").upper()
MAX_PAYLOAD_BYTES = int(os.getenv("PORTABLETEXT_MAX_PAYLOAD_BYTES", str(1024 * 1024)))

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Portable Text Renderer API",
    version="1.0.0",
    description="Parses Portable Text documents into styled runs and renders them to PDF",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing information."""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} "
        f"completed in {duration:.3f}s with status {response.status_code}"
    )

    return response


async def read_payload(request: Request) -> bytes:
    """Read the raw request body, enforcing the payload size limit."""
    body = await request.body()
    if len(body) > MAX_PAYLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Request body exceeds maximum size")
    return body


def block_payload(block: ConcreteBlock) -> Dict[str, Any]:
    """JSON summary of a classified block and its styled runs."""
    payload: Dict[str, Any] = {
        "kind": block.kind,
        "key": block.key,
        "style_key": block.style_key,
        "text": block.plain_text,
        "runs": [run.model_dump(mode="json") for run in runs_for_block(block)],
    }
    if isinstance(block, Heading):
        payload["level"] = block.level
    elif isinstance(block, CodeBlock):
        payload["language"] = block.language
    return payload


def content_disposition(filename: str) -> str:
    """
    Attachment header for ``filename``.

    The quoted ``filename`` keeps printable ASCII only (no quotes or
    backslashes); ``filename*`` carries the full UTF-8 name.
    """
    fallback = "".join(ch for ch in filename if " " <= ch <= "~" and ch not in '"\\')
    return f'attachment; filename="{fallback or "document.pdf"}"; filename*=UTF-8\'\'{quote(filename)}'


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Status dictionary indicating service health
    """
    return {"status": "ok"}


@app.post("/parse")
async def parse_document(request: Request) -> Dict[str, Any]:
    """
    Classify a Portable Text document and resolve its styled runs.

    Returns:
        Classified blocks with their runs, plus any validation warnings
    """
    body = await read_payload(request)
    warnings: ListType[ValidationWarning] = []

    blocks = parse_portable_text(body, on_warning=warnings.append)
    logger.info(f"Parsed document with {len(blocks)} blocks")

    return {
        "blocks": [block_payload(block) for block in blocks],
        "warnings": [
            {"block_key": w.block_key, "span_index": w.span_index, "message": w.message}
            for w in warnings
        ],
    }


@app.post("/render")
async def render_pdf(
    request: Request,
    page_size: Literal["A4", "LETTER"] = Query(default="A4"),
    title: Optional[str] = Query(default=None),
) -> Response:
    """
    Render a Portable Text document to PDF.

    Returns:
        PDF file as binary response
    """
    start_time = time.time()
    body = await read_payload(request)

    blocks = parse_portable_text(body)
    pdf_bytes = render_blocks(blocks, options=RenderOptions(page_size=page_size, title=title))

    render_time = time.time() - start_time
    logger.info(f"Rendered document with {len(blocks)} blocks in {render_time:.3f}s")

    headers = {
        "Content-Disposition": content_disposition(f"{title or 'document'}.pdf"),
        "X-Render-Time": f"{render_time:.3f}"
    }

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers=headers
    )


@app.post("/render-base64")
async def render_pdf_base64(
    request: Request,
    page_size: Literal["A4", "LETTER"] = Query(default="A4"),
    title: Optional[str] = Query(default=None),
) -> Dict[str, Any]:
    """
    Render a Portable Text document and return the PDF base64-encoded.

    Useful for API clients that cannot handle binary responses.

    Returns:
        JSON with base64-encoded PDF and metadata
    """
    start_time = time.time()
    body = await read_payload(request)

    blocks = parse_portable_text(body)
    pdf_bytes = render_blocks(blocks, options=RenderOptions(page_size=page_size, title=title))

    render_time = time.time() - start_time
    logger.info(f"Rendered document (base64) with {len(blocks)} blocks in {render_time:.3f}s")

    return {
        "success": True,
        "pdf_base64": base64.b64encode(pdf_bytes).decode('utf-8'),
        "filename": f"{title or 'document'}.pdf",
        "size_bytes": len(pdf_bytes),
        "render_time_seconds": round(render_time, 3),
    }


@app.exception_handler(PortableTextError)
async def portable_text_error_handler(request: Request, exc: PortableTextError):
    """Map taxonomy errors onto structured 4xx/5xx responses."""
    status_code = 500 if exc.kind is ErrorKind.RENDERING_FAILURE else 400
    if status_code == 500:
        logger.error(f"Rendering error: {exc}")
    else:
        logger.warning(f"Rejected document: {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
