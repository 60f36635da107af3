# dashboard/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashboard import __version__
from dashboard.app.config import settings
from dashboard.app.routers.articles import router as articles_router
from dashboard.app.routers.auth import router as auth_router
from dashboard.app.routers.books import router as books_router
from dashboard.app.routers.links import router as links_router
from dashboard.app.routers.notes import router as notes_router
from dashboard.app.routers.podcasts import router as podcasts_router
from dashboard.app.routers.preferences import router as preferences_router
from dashboard.app.routers.proxy import router as proxy_router
from dashboard.app.routers.tags import router as tags_router
from dashboard.app.routers.widgets import router as widgets_router

# Plain stdout logging for dev and containers
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = FastAPI(title="Everything Dashboard API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public proxies and widgets
app.include_router(proxy_router)
app.include_router(widgets_router)

# Authenticated, per-user data
app.include_router(auth_router)
app.include_router(articles_router)
app.include_router(links_router)
app.include_router(notes_router)
app.include_router(books_router)
app.include_router(podcasts_router)
app.include_router(tags_router)
app.include_router(preferences_router)


@app.get("/health")
def health():
    return {"ok": True, "env": settings.APP_ENV}
