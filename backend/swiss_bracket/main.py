import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from swiss_bracket.config import CORS_ORIGINS, LOG_LEVEL
from swiss_bracket.database import init_db
from swiss_bracket.routes import knockout, matches, players, swiss, tournament

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Swiss Bracket Tournament API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(players.router, prefix="/api", tags=["players"])
app.include_router(swiss.router, prefix="/api", tags=["swiss"])
app.include_router(knockout.router, prefix="/api", tags=["knockout"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(tournament.router, prefix="/api", tags=["tournament"])


@app.on_event("startup")
def on_startup():
    init_db()
    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("Swiss Bracket API ready (%d routes)", route_count)


@app.get("/")
def root():
    return {"message": "Swiss Bracket Tournament API"}


@app.get("/api/health")
def health_check():
    """Liveness probe"""
    return {"app_name": "Swiss Bracket Tournament API", "status": "healthy"}
