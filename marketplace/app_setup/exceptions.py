"""
Gestionnaires d'exceptions de l'API.
- CheckoutError: corps {"ok": false, "error": detail, "kind": kind} (+ stock_errors si présent)
- HTTPException (401/429/...): corps {"ok": false, "error": detail}
- RequestValidationError: corps invalide => 400 de type "validation"
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from marketplace.checkout.errors import CheckoutError, error_body

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = f"Invalid request: {field} {first.get('msg', '')}".strip() if field else "Invalid request"
        logger.info("app.request_validation path=%s errors=%s", request.url.path, len(errors))
        return JSONResponse(status_code=400, content={"ok": False, "error": detail, "kind": "validation"})
