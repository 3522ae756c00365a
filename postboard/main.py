import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from postboard.db.couchdb import get_couch
from postboard.repos.posts_repo import CouchPostsRepo
from postboard.routers import blog, posts
from postboard.settings import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Postboard API", description="Blog posts with a small browser UI")


def prepare_database() -> None:
    CouchPostsRepo(get_couch()).ensure_indexes()


@asynccontextmanager
async def lifespan(app: FastAPI):
    prepare_database()
    logger.info("CouchDB posts indexes ready")
    yield
    logger.info("Postboard API shutting down")


app.router.lifespan_context = lifespan

app.include_router(posts.router)
app.include_router(blog.router)


@app.get("/health")
async def health():
    return {"message": "Postboard API is running"}
