from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from valida.core.settings import get_settings

CORS_ALLOW_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-hotmart-hottok",
    "x-workflow-token",
]


def add_cors_middleware(app: FastAPI):
    """Allow the listed origins plus any origin matching CORS_ORIGIN_REGEX.

    Origins outside the allow-list get no Access-Control-Allow-Origin header.
    """
    settings = get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )
