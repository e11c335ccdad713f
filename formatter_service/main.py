from __future__ import annotations

import logging
from typing import Optional

from fastapi import Body, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.config import FormatterSettings, OpenAISettings
from common.results import FormatFailure
from common.schemas import FormatErrorResponse, FormatRequest, FormatResponse
from formatter_service.formatter import format_segments

logger = logging.getLogger(__name__)

settings = FormatterSettings()
openai_settings = OpenAISettings()
app = FastAPI(title="Notes Formatter")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


@app.middleware("http")
async def allow_any_origin(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    detail = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    )
    logger.warning("Rejected format request: %s", detail)
    return JSONResponse(
        status_code=500,
        content=FormatErrorResponse(detail=f"Invalid request body: {detail}").model_dump(),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/format", response_model=FormatResponse, responses={500: {"model": FormatErrorResponse}})
async def format_notes(req: Optional[FormatRequest] = Body(default=None)):
    req = req or FormatRequest()
    language = req.language or settings.default_language
    result = await format_segments(language, req.segments, openai_settings, settings)
    if isinstance(result, FormatFailure):
        logger.error("Formatting failed (%s): %s", result.kind, result.detail)
        return JSONResponse(
            status_code=500,
            content=FormatErrorResponse(detail=result.detail).model_dump(),
        )
    return FormatResponse(markdown=result.markdown)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
