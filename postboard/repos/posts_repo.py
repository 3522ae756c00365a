import json
import logging
from typing import List, Optional

import pycouchdb

logger = logging.getLogger(__name__)

POST_DOC_TYPE = "post"
INDEXED_FIELDS = ("createdAt", "updatedAt")
JSON_HEADERS = {"Content-Type": "application/json"}
FIND_PAGE_SIZE = 200


class CouchPostsRepo:
    def __init__(self, couch_db):
        self.db = couch_db

    def ensure_indexes(self) -> None:
        """Create the Mango indexes that back sorted listings."""
        for field in INDEXED_FIELDS:
            self._post(
                "_index",
                {
                    "index": {"fields": [field]},
                    "name": f"post-{field}",
                    "ddoc": f"post-{field}",
                    "type": "json",
                },
            )
            logger.debug(f"Ensured index on {field}")

    def insert(self, doc: dict) -> dict:
        return self.db.save({**doc, "type": POST_DOC_TYPE})

    def find(self, selector: dict, sort: List[dict]) -> List[dict]:
        """Return every match, following bookmarks past CouchDB's page limit."""
        docs: List[dict] = []
        query = {"selector": selector, "sort": sort, "limit": FIND_PAGE_SIZE}
        while True:
            _response, body = self._post("_find", query)
            if body.get("warning"):
                logger.warning(f"CouchDB query warning: {body['warning']}")
            page = body.get("docs", [])
            docs.extend(page)
            if len(page) < FIND_PAGE_SIZE or not body.get("bookmark"):
                return docs
            query = {**query, "bookmark": body["bookmark"]}

    def get(self, doc_id: str) -> Optional[dict]:
        try:
            doc = self.db.get(doc_id)
        except pycouchdb.exceptions.NotFound:
            return None
        return doc if self._is_valid(doc) else None

    def replace(self, doc: dict) -> dict:
        """Write a full document back; ``doc`` must carry the ``_rev`` it was read with."""
        return self.db.save(doc)

    def delete(self, doc_id: str) -> bool:
        doc = self.get(doc_id)
        if doc is None:
            return False
        try:
            self.db.delete(doc)
        except pycouchdb.exceptions.NotFound:
            return False
        return True

    def _post(self, path: str, body: dict):
        return self.db.resource.post(path, data=json.dumps(body), headers=JSON_HEADERS)

    @staticmethod
    def _is_valid(doc: dict | None) -> bool:
        if not doc:
            return False
        return doc.get("type") == POST_DOC_TYPE and not doc.get("_deleted", False)
