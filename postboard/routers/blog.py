import logging
from pathlib import Path

import httpx
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from postboard import dependencies as deps
from postboard.schemas.post import SortField, SortOrder
from postboard.ui.client import BlogApiClient, parse_tags

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

SORT_FIELDS = [field.value for field in SortField]
SORT_ORDERS = [order.value for order in SortOrder]


def _render(request: Request, client: BlogApiClient, state: dict, error=None, status_code=200):
    posts = []
    try:
        posts = client.get_posts(
            author=state["author"],
            sort_by=state["sortBy"],
            sort_order=state["sortOrder"],
        )
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch posts for {state}: {e}")
        error = error or "Could not load posts"

    return templates.TemplateResponse(
        request,
        "blog.html",
        {
            "posts": posts,
            "state": state,
            "sort_fields": SORT_FIELDS,
            "sort_orders": SORT_ORDERS,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/", include_in_schema=False, name="blog")
def blog(
    request: Request,
    author: str = "",
    sortBy: SortField = SortField.CREATED_AT,
    sortOrder: SortOrder = SortOrder.DESCENDING,
    client: BlogApiClient = Depends(deps.get_blog_client),
):
    state = {"author": author, "sortBy": sortBy.value, "sortOrder": sortOrder.value}
    return _render(request, client, state)


@router.post("/create", include_in_schema=False, name="blog_create")
def submit_post(
    request: Request,
    title: str = Form(""),
    author: str = Form(""),
    contents: str = Form(""),
    tags: str = Form(""),
    filterAuthor: str = Form(""),
    sortBy: SortField = Form(SortField.CREATED_AT),
    sortOrder: SortOrder = Form(SortOrder.DESCENDING),
    client: BlogApiClient = Depends(deps.get_blog_client),
):
    state = {"author": filterAuthor, "sortBy": sortBy.value, "sortOrder": sortOrder.value}
    try:
        client.create_post(
            title=title,
            author=author or None,
            contents=contents or None,
            tags=parse_tags(tags),
        )
    except httpx.HTTPStatusError as e:
        detail = _error_detail(e.response)
        logger.warning(f"Post creation rejected: {detail}")
        return _render(request, client, state, error=detail, status_code=e.response.status_code)
    except httpx.HTTPError as e:
        logger.warning(f"Post creation failed: {e}")
        return _render(request, client, state, error="Could not create post", status_code=502)

    url = request.url_for("blog").include_query_params(**state)
    return RedirectResponse(url=str(url), status_code=303)


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text
