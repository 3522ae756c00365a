import logging
from typing import List, Optional

import httpx

from postboard.schemas.post import Post

logger = logging.getLogger(__name__)


class BlogApiClient:
    """
    Thin wrapper the blog UI uses to talk to the posts API.
    Any httpx.Client pointed at the API works, including a TestClient.
    """

    def __init__(self, http: httpx.Client):
        self.http = http

    def get_posts(
        self,
        author: str = "",
        sort_by: str = "createdAt",
        sort_order: str = "descending",
    ) -> List[Post]:
        params = {"sortBy": sort_by, "sortOrder": sort_order}
        if author:
            params["author"] = author
        res = self.http.get("/posts", params=params)
        res.raise_for_status()
        return [Post.model_validate(item) for item in res.json()]

    def create_post(
        self,
        title: str,
        author: Optional[str] = None,
        contents: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Post:
        payload = {"title": title, "author": author, "contents": contents, "tags": tags}
        res = self.http.post(
            "/posts", json={k: v for k, v in payload.items() if v is not None}
        )
        res.raise_for_status()
        post = Post.model_validate(res.json())
        logger.debug(f"UI created post {post.id}")
        return post


def parse_tags(raw: str) -> List[str]:
    """Split the comma separated tag input of the creation form."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]
