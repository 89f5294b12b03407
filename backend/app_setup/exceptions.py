"""
Gestionnaires d’exceptions de l’API.
- AppError (taxonomie métier) -> {"error": message} avec le code porté par l’erreur.
- RequestValidationError (corps JSON mal formé) -> 400 {"error": "Requête invalide", "fields": [...]}.
- HTTPException (auth, 404 de routage, 429) -> {"detail": ...} standard FastAPI.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.utils.errors import AppError, SignatureMismatchError

logger = logging.getLogger(__name__)


def _field_path(loc) -> str:
    # ('body', 'items', 0, 'id') -> 'items.0.id'
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or "body"

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, SignatureMismatchError):
            logger.warning("security: %s %s rejected: %s", request.method, request.url.path, exc.message)
        elif exc.status_code >= 500:
            logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = sorted({_field_path(err.get("loc", ())) for err in exc.errors()})
        return JSONResponse(status_code=400, content={"error": "Requête invalide", "fields": fields})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
