import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from postboard import dependencies as deps
from postboard.errors import PostValidationError
from postboard.schemas.post import (
    DeleteResult,
    ListOptions,
    Post,
    PostCreate,
    PostUpdate,
    SortField,
    SortOrder,
)
from postboard.services.posts_service import PostsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/posts", response_model=List[Post], response_model_exclude_none=True)
def list_posts(
    author: Optional[str] = None,
    tag: Optional[str] = None,
    sortBy: SortField = SortField.CREATED_AT,
    sortOrder: SortOrder = SortOrder.DESCENDING,
    service: PostsService = Depends(deps.get_posts_service),
):
    """List posts, optionally filtered by author or tag."""
    filters: Dict[str, str] = {}
    if author:
        filters["author"] = author
    if tag:
        filters["tags"] = tag
    try:
        return service.list_posts(
            filters, ListOptions(sortBy=sortBy, sortOrder=sortOrder)
        )
    except Exception as e:
        logger.error(f"Unexpected error listing posts: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve posts")


@router.post(
    "/posts",
    response_model=Post,
    response_model_exclude_none=True,
    status_code=201,
)
def create_post(
    post: PostCreate,
    service: PostsService = Depends(deps.get_posts_service),
):
    try:
        return service.create_post(post)
    except PostValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error creating post: {e}")
        raise HTTPException(status_code=500, detail="Failed to create post")


@router.get("/posts/{post_id}", response_model=Post, response_model_exclude_none=True)
def get_post(
    post_id: str,
    service: PostsService = Depends(deps.get_posts_service),
):
    """Get a single post by id."""
    try:
        post = service.get_post_by_id(post_id)
        if not post:
            raise HTTPException(status_code=404, detail="Post not found")
        return post
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error retrieving post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve post")


@router.patch(
    "/posts/{post_id}", response_model=Post, response_model_exclude_none=True
)
def update_post(
    post_id: str,
    changes: PostUpdate,
    service: PostsService = Depends(deps.get_posts_service),
):
    try:
        post = service.update_post(post_id, changes)
        if not post:
            raise HTTPException(status_code=404, detail="Post not found")
        return post
    except HTTPException:
        raise
    except PostValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error updating post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update post")


@router.delete("/posts/{post_id}", response_model=DeleteResult)
def delete_post(
    post_id: str,
    service: PostsService = Depends(deps.get_posts_service),
):
    try:
        return service.delete_one(post_id)
    except Exception as e:
        logger.error(f"Unexpected error deleting post {post_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete post")
