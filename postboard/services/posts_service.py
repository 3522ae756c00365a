import datetime
import logging
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from postboard.errors import PostValidationError
from postboard.repos.posts_repo import POST_DOC_TYPE
from postboard.schemas.post import (
    DeleteResult,
    ListOptions,
    Post,
    PostCreate,
    PostUpdate,
    SortOrder,
)

logger = logging.getLogger(__name__)

FILTER_FIELDS = ("author", "tags", "title", "contents")
ONE_TICK = datetime.timedelta(microseconds=1)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class PostsService:
    def __init__(self, repo, clock: Optional[Callable[[], datetime.datetime]] = None):
        self.repo = repo
        self.clock = clock or _utcnow

    def create_post(self, fields: Union[PostCreate, Mapping[str, Any]]) -> Post:
        data = validate_new_post(_coerce(fields, PostCreate))
        now = self.clock()
        doc = {
            "_id": uuid.uuid4().hex,
            **data,
            "createdAt": format_timestamp(now),
            "updatedAt": format_timestamp(now),
        }
        saved = self.repo.insert(doc)
        logger.info(f"Created post {saved['_id']}")
        return to_post(saved)

    def list_posts(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        options: Optional[ListOptions] = None,
    ) -> List[Post]:
        options = options or ListOptions()
        selector = build_selector(filters or {}, options.sortBy.value)
        docs = self.repo.find(selector, build_sort(options))
        return [to_post(doc) for doc in docs]

    def list_all_posts(self, options: Optional[ListOptions] = None) -> List[Post]:
        return self.list_posts({}, options)

    def list_all_posts_by_author(
        self, author: str, options: Optional[ListOptions] = None
    ) -> List[Post]:
        return self.list_posts({"author": author}, options)

    def list_all_posts_by_tag(
        self, tag: str, options: Optional[ListOptions] = None
    ) -> List[Post]:
        return self.list_posts({"tags": tag}, options)

    def get_post_by_id(self, post_id: str) -> Optional[Post]:
        doc = self.repo.get(post_id)
        if not doc:
            return None
        return to_post(doc)

    def update_post(
        self, post_id: str, fields: Union[PostUpdate, Mapping[str, Any]]
    ) -> Optional[Post]:
        """
        Merge the supplied fields into an existing post.
        Fields left out of the request keep their stored values.
        """
        changes = validate_post_changes(_coerce(fields, PostUpdate))
        doc = self.repo.get(post_id)
        if not doc:
            return None

        for field, value in changes.items():
            if value is None:
                doc.pop(field, None)
            else:
                doc[field] = value
        previous = parse_timestamp(doc["updatedAt"])
        doc["updatedAt"] = format_timestamp(max(self.clock(), previous + ONE_TICK))

        saved = self.repo.replace(doc)
        logger.info(f"Updated post {post_id}: {sorted(changes)}")
        return to_post(saved)

    def delete_one(self, post_id: str) -> DeleteResult:
        deleted = self.repo.delete(post_id)
        if deleted:
            logger.info(f"Deleted post {post_id}")
        return DeleteResult(deletedCount=1 if deleted else 0)


def _coerce(fields, model):
    if isinstance(fields, model):
        return fields
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_unset=True)
    return model.model_validate(dict(fields))


def validate_new_post(fields: PostCreate) -> Dict[str, Any]:
    """Check a creation request and return the fields to persist."""
    if fields.title is None or not fields.title.strip():
        raise PostValidationError("title")
    data = fields.model_dump(exclude_none=True)
    data["tags"] = list(fields.tags or [])
    return data


def validate_post_changes(fields: PostUpdate) -> Dict[str, Any]:
    """Return only the fields the caller explicitly set."""
    changes = fields.model_dump(exclude_unset=True)
    if "title" in changes and (changes["title"] is None or not changes["title"].strip()):
        raise PostValidationError("title", "`title` cannot be empty")
    if "tags" in changes:
        changes["tags"] = list(changes["tags"] or [])
    return changes


def build_selector(filters: Mapping[str, Any], sort_by: str) -> Dict[str, Any]:
    """
    Translate exact-match filters into a Mango selector.
    ``tags`` matches posts whose tag list contains the value.
    """
    selector: Dict[str, Any] = {"type": POST_DOC_TYPE}
    for field, value in filters.items():
        if field not in FILTER_FIELDS:
            raise PostValidationError(field, f"cannot filter posts by `{field}`")
        if field == "tags":
            selector["tags"] = {"$elemMatch": {"$eq": value}}
        else:
            selector[field] = value
    # CouchDB only sorts on fields the selector references
    selector[sort_by] = {"$exists": True}
    return selector


def build_sort(options: ListOptions) -> List[Dict[str, str]]:
    direction = "asc" if options.sortOrder == SortOrder.ASCENDING else "desc"
    return [{options.sortBy.value: direction}]


def to_post(doc: dict) -> Post:
    return Post(
        id=doc["_id"],
        title=doc["title"],
        author=doc.get("author"),
        contents=doc.get("contents"),
        tags=doc.get("tags") or [],
        createdAt=parse_timestamp(doc["createdAt"]),
        updatedAt=parse_timestamp(doc["updatedAt"]),
    )


def format_timestamp(value: datetime.datetime) -> str:
    # fixed precision keeps lexical order equal to chronological order
    return value.astimezone(datetime.timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(value)
