from fastapi import FastAPI
from backend.config import SUPABASE_URL, COOKIE_SECURE

# Widget Razorpay (checkout.js) chargé par le front
RAZORPAY_SOURCES = ["https://checkout.razorpay.com", "https://api.razorpay.com"]
SWAGGER_CDNS = ["https://cdn.jsdelivr.net", "https://unpkg.com"]

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")

        csp_connect = ["'self'"] + RAZORPAY_SOURCES
        if SUPABASE_URL:
            csp_connect.append(SUPABASE_URL.rstrip("/"))
        sources = " ".join(SWAGGER_CDNS + RAZORPAY_SOURCES)
        csp = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            "img-src 'self' data: blob: https://fastapi.tiangolo.com; "
            f"style-src 'self' 'unsafe-inline' {' '.join(SWAGGER_CDNS)}; "
            f"script-src 'self' 'unsafe-inline' {sources}; "
            f"frame-src {' '.join(RAZORPAY_SOURCES)}; "
            f"connect-src {' '.join(csp_connect)}"
        )
        response.headers["Content-Security-Policy"] = csp
        return response
