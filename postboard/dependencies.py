import httpx
from fastapi import Depends

from postboard.db.couchdb import get_couch
from postboard.repos.posts_repo import CouchPostsRepo
from postboard.services.posts_service import PostsService
from postboard.settings import settings
from postboard.ui.client import BlogApiClient


def get_posts_repo(couch_db=Depends(get_couch)):
    return CouchPostsRepo(couch_db)


def get_posts_service(repo=Depends(get_posts_repo)):
    return PostsService(repo=repo)


def get_blog_client():
    with httpx.Client(
        base_url=settings.BLOG_API_URL, timeout=settings.BLOG_API_TIMEOUT
    ) as http:
        yield BlogApiClient(http)
