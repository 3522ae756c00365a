import copy
import datetime
import json
import uuid
from types import SimpleNamespace

import pycouchdb
import pytest

from postboard.repos.posts_repo import CouchPostsRepo
from postboard.services.posts_service import PostsService

_MISSING = object()

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


class FakeResource:
    """
    Answers the Mango endpoints (_find, _index) the repo posts to.
    """

    def __init__(self, db):
        self.db = db

    def post(self, path, data=None, headers=None):
        body = json.loads(data)
        self.db.calls.append((path, body))
        if path == "_find":
            matches = self.db.find(body["selector"], body.get("sort", []))
            # CouchDB pages _find results, 25 per page unless a limit is given
            start = int(body.get("bookmark") or 0)
            end = start + body.get("limit", 25)
            return None, {"docs": matches[start:end], "bookmark": str(end)}
        if path == "_index":
            self.db.indexes.append(body)
            return None, {"result": "created", "id": f"_design/{body['ddoc']}"}
        raise pycouchdb.exceptions.NotFound(path)


class FakeCouchDB:
    """
    Minimal in-memory CouchDB stand-in.
    Understands the subset of Mango selectors the posts service builds.
    """

    def __init__(self, docs=None):
        self.docs = {doc["_id"]: copy.deepcopy(doc) for doc in docs or []}
        self.calls = []
        self.indexes = []
        self.resource = FakeResource(self)
        self._revs = 0

    def get(self, doc_id: str) -> dict:
        if doc_id not in self.docs:
            raise pycouchdb.exceptions.NotFound(doc_id)
        return copy.deepcopy(self.docs[doc_id])

    def save(self, doc: dict) -> dict:
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", uuid.uuid4().hex)
        current = self.docs.get(doc["_id"])
        if current is not None and current.get("_rev") != doc.get("_rev"):
            raise pycouchdb.exceptions.Conflict(doc["_id"])
        self._revs += 1
        doc["_rev"] = f"{self._revs}-fake"
        self.docs[doc["_id"]] = doc
        return copy.deepcopy(doc)

    def delete(self, doc_or_id):
        doc_id = doc_or_id["_id"] if isinstance(doc_or_id, dict) else doc_or_id
        if doc_id not in self.docs:
            raise pycouchdb.exceptions.NotFound(doc_id)
        del self.docs[doc_id]

    def find(self, selector: dict, sort: list) -> list:
        docs = [d for d in self.docs.values() if _matches(d, selector)]
        for spec in reversed(sort):
            ((field, direction),) = spec.items()
            docs.sort(key=lambda d: d[field], reverse=direction == "desc")
        return copy.deepcopy(docs)


def _matches(doc: dict, selector: dict) -> bool:
    for field, cond in selector.items():
        value = doc.get(field, _MISSING)
        if isinstance(cond, dict):
            if "$exists" in cond and (value is not _MISSING) != cond["$exists"]:
                return False
            if "$elemMatch" in cond:
                wanted = cond["$elemMatch"]["$eq"]
                if not isinstance(value, list) or wanted not in value:
                    return False
        elif value != cond:
            return False
    return True


class FakeClock:
    """Deterministic clock that moves forward one second per reading."""

    def __init__(self, start=None, step=datetime.timedelta(seconds=1)):
        self.now = start or datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


class FakeRepo:
    """
    Minimal repo stand-in used in service tests.
    """

    def __init__(self, docs=None):
        self.docs = {doc["_id"]: doc for doc in docs or []}
        self.queries = []

    def insert(self, doc):
        saved = {**doc, "type": "post", "_rev": "1-a"}
        self.docs[doc["_id"]] = saved
        return saved

    def find(self, selector, sort):
        self.queries.append((selector, sort))
        return list(self.docs.values())

    def get(self, doc_id):
        doc = self.docs.get(doc_id)
        return dict(doc) if doc else None

    def replace(self, doc):
        self.docs[doc["_id"]] = doc
        return doc

    def delete(self, doc_id):
        return self.docs.pop(doc_id, None) is not None


class FakePostsService:
    """
    Minimal posts service stand-in for router tests.
    """

    def __init__(self, list_posts_return=None, get_post_return=None):
        self._list_posts_return = list_posts_return or []
        self._get_post_return = get_post_return
        self.list_calls = []

    def list_posts(self, filters=None, options=None):
        self.list_calls.append((filters, options))
        return self._list_posts_return

    def get_post_by_id(self, post_id: str):
        return self._get_post_return


@pytest.fixture
def store():
    """A posts service over an empty fake CouchDB, with a stepping clock."""
    db = FakeCouchDB()
    clock = FakeClock()
    service = PostsService(repo=CouchPostsRepo(db), clock=clock)
    return SimpleNamespace(db=db, clock=clock, service=service)


@pytest.fixture
def sample_posts(store):
    """The store above, seeded with SAMPLE_POSTS in order."""
    created = [store.service.create_post(post) for post in SAMPLE_POSTS]
    return SimpleNamespace(**vars(store), posts=created)
