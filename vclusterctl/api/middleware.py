import secrets

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from vclusterctl.config import Config

class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/docs") or request.url.path.startswith("/openapi.json"):
            return await call_next(request)

        token = Config.API_KEY
        auth_header = request.headers.get("X-API-Key", "")
        if not token or not secrets.compare_digest(auth_header, token):
            return JSONResponse(status_code=403, content={"detail": "Unauthorized"})
        return await call_next(request)
