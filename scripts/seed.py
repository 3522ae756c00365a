import logging

from postboard.db.couchdb import get_couch
from postboard.repos.posts_repo import CouchPostsRepo
from postboard.services.posts_service import PostsService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_POSTS = [
    {"title": "Learning Redux", "author": "Daniel Bugl", "tags": ["redux"]},
    {"title": "Learn React Hooks", "author": "Daniel Bugl", "tags": ["react"]},
    {
        "title": "Full-Stack React Projects",
        "author": "Daniel Bugl",
        "tags": ["react", "nodejs"],
    },
    {"title": "Guide to TypeScript"},
]

if __name__ == "__main__":
    try:
        repo = CouchPostsRepo(get_couch())
        repo.ensure_indexes()
        service = PostsService(repo=repo)
        for fields in SAMPLE_POSTS:
            post = service.create_post(fields)
            logger.info(f"Seeded {post.id}: {post.title}")
        logger.info("Seeding completed successfully.")
    except Exception as e:
        logger.error(f"Seeding failed: {e}", exc_info=True)
