"""
Match comments with one level of replies and like/dislike reactions.

Reply and reaction counts come from the server-side functions
`get_comment_reply_counts` / `get_comment_reaction_counts` when they are
installed; if the server reports the function (or a column it needs) as
missing, the counts are rebuilt from the raw rows instead. Any other failure
is a storage error.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from postgrest.exceptions import APIError as PostgrestError

from ..adapters.supabase_client import first_row, run_counted, run_rows
from ..config import setup_logger
from ..constants import (
    COMMENT_REACTIONS_TABLE,
    COMMENTS_TABLE,
    RPC_COMMENT_REACTION_COUNTS,
    RPC_COMMENT_REPLY_COUNTS,
    USERS_TABLE,
)
from ..domain.contracts import Comment
from ..errors import NotFoundError, PermissionDeniedError, StorageError, ValidationError, is_missing_capability
from ..validators import validate_reaction
from .base import BaseService

log = setup_logger(__name__)

_AUTHOR_COLUMNS = "user_id, name, avatar_url"


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current_page": page,
        "per_page": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


class CommentService(BaseService):
    # ---------- counts ----------

    def _rpc_rows(self, fn: str, comment_ids: List[int]) -> Optional[List[Dict[str, Any]]]:
        """Call a counting function; None means the server doesn't have it."""
        try:
            return list(self.client.rpc(fn, {"comment_ids": comment_ids}).execute().data or [])
        except PostgrestError as exc:
            if is_missing_capability(exc):
                log.info("comment_counts_rpc_missing fn=%s code=%s", fn, getattr(exc, "code", None))
                return None
            raise StorageError.wrap("Failed to fetch comment counts", exc) from exc

    def reaction_counts(self, comment_ids: Iterable[int]) -> Dict[int, Dict[str, int]]:
        ids = list(comment_ids)
        counts = {comment_id: {"likes": 0, "dislikes": 0} for comment_id in ids}
        if not ids:
            return counts

        rows = self._rpc_rows(RPC_COMMENT_REACTION_COUNTS, ids)
        if rows is not None:
            for row in rows:
                if row.get("comment_id") in counts:
                    counts[row["comment_id"]] = {
                        "likes": int(row.get("likes") or 0),
                        "dislikes": int(row.get("dislikes") or 0),
                    }
            return counts

        query = self.client.table(COMMENT_REACTIONS_TABLE).select("comment_id, reaction_type").in_("comment_id", ids)
        tally = Counter(
            (row["comment_id"], row["reaction_type"])
            for row in run_rows(query, "Failed to fetch comment reactions")
        )
        for comment_id in ids:
            counts[comment_id] = {
                "likes": tally[(comment_id, "like")],
                "dislikes": tally[(comment_id, "dislike")],
            }
        return counts

    def reply_counts(self, comment_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(comment_ids)
        counts = {comment_id: 0 for comment_id in ids}
        if not ids:
            return counts

        rows = self._rpc_rows(RPC_COMMENT_REPLY_COUNTS, ids)
        if rows is not None:
            for row in rows:
                if row.get("comment_id") in counts:
                    counts[row["comment_id"]] = int(row.get("reply_count") or 0)
            return counts

        query = self.client.table(COMMENTS_TABLE).select("parent_comment_id").in_("parent_comment_id", ids)
        tally = Counter(row["parent_comment_id"] for row in run_rows(query, "Failed to fetch comment replies"))
        return {comment_id: tally[comment_id] for comment_id in ids}

    def _authors(self, user_ids: Iterable[Any]) -> Dict[Any, Dict[str, Any]]:
        ids = sorted({user_id for user_id in user_ids if user_id is not None})
        if not ids:
            return {}
        query = self.client.table(USERS_TABLE).select(_AUTHOR_COLUMNS).in_("user_id", ids)
        return {
            row["user_id"]: {"name": row.get("name"), "avatar_url": row.get("avatar_url")}
            for row in run_rows(query, "Failed to fetch comment authors")
        }

    def _enrich(self, comments: List[Dict[str, Any]], with_replies: bool = True) -> List[Dict[str, Any]]:
        ids = [comment["comment_id"] for comment in comments]
        reactions = self.reaction_counts(ids)
        replies = self.reply_counts(ids) if with_replies else {}
        authors = self._authors(comment.get("user_id") for comment in comments)
        enriched = []
        for comment in comments:
            row = {**comment, **reactions.get(comment["comment_id"], {"likes": 0, "dislikes": 0})}
            if with_replies:
                row["reply_count"] = replies.get(comment["comment_id"], 0)
            row["user"] = authors.get(comment.get("user_id"))
            enriched.append(row)
        return enriched

    # ---------- reads ----------

    def list_match_comments(self, match_id: int, page: int, limit: int) -> Dict[str, Any]:
        """Top-level comments for a match, newest first, one page at a time."""
        start = (page - 1) * limit
        query = (
            self.client.table(COMMENTS_TABLE)
            .select("*", count="exact")
            .eq("match_id", match_id)
            .is_("parent_comment_id", "null")
            .order("timestamp", desc=True)
            .range(start, start + limit - 1)
        )
        rows, total = run_counted(query, "Failed to fetch match comments")
        return {"comments": self._enrich(rows), "pagination": _pagination(page, limit, total)}

    def list_replies(self, comment_id: int, page: int, limit: int) -> Dict[str, Any]:
        """Replies to one comment, oldest first."""
        self._get_raw(comment_id)
        start = (page - 1) * limit
        query = (
            self.client.table(COMMENTS_TABLE)
            .select("*", count="exact")
            .eq("parent_comment_id", comment_id)
            .order("timestamp")
            .range(start, start + limit - 1)
        )
        rows, total = run_counted(query, "Failed to fetch comment replies")
        return {"replies": self._enrich(rows, with_replies=False), "pagination": _pagination(page, limit, total)}

    def list_comments(self, match_id: Optional[int] = None, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = self.client.table(COMMENTS_TABLE).select("*")
        if match_id is not None:
            query = query.eq("match_id", match_id)
        if user_id is not None:
            query = query.eq("user_id", user_id)
        rows = run_rows(query.order("timestamp", desc=True), "Failed to fetch comments")
        return self._enrich(rows)

    def _get_raw(self, comment_id: int) -> Dict[str, Any]:
        comment = self.find_by_id(COMMENTS_TABLE, comment_id, "comment_id")
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def get_comment(self, comment_id: int) -> Comment:
        return self._enrich([self._get_raw(comment_id)])[0]

    # ---------- writes ----------

    def create_comment(
        self,
        match_id: int,
        user_id: int,
        comment_text: str,
        parent_comment_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        if parent_comment_id is not None:
            parent = self.find_by_id(COMMENTS_TABLE, parent_comment_id, "comment_id")
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.get("parent_comment_id") is not None:
                raise ValidationError("Replies can only be added to top-level comments")
            if parent.get("match_id") != match_id:
                raise ValidationError("Parent comment belongs to a different match")

        payload = {
            "match_id": match_id,
            "user_id": user_id,
            "comment_text": comment_text.strip(),
            "parent_comment_id": parent_comment_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        comment = self.create(COMMENTS_TABLE, payload)
        log.debug("comment_created match_id=%s parent=%s", match_id, parent_comment_id)
        return self._enrich([comment], with_replies=parent_comment_id is None)[0]

    def _check_owner(self, comment: Dict[str, Any], actor: Optional[Dict[str, Any]]) -> None:
        if actor is None or actor.get("type") == "admin":
            return
        if comment.get("user_id") != actor.get("user_id"):
            raise PermissionDeniedError("You can only modify your own comments")

    def update_comment(
        self, comment_id: int, comment_text: Any, actor: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if not isinstance(comment_text, str) or not comment_text.strip():
            raise ValidationError("Comment text is required and must be a non-empty string")
        self._check_owner(self._get_raw(comment_id), actor)
        comment = self.update(COMMENTS_TABLE, comment_id, {"comment_text": comment_text.strip()}, "comment_id")
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def delete_comment(self, comment_id: int, actor: Optional[Dict[str, Any]] = None) -> int:
        """Delete a comment, its replies and every reaction on them. Returns rows removed."""
        self._check_owner(self._get_raw(comment_id), actor)

        query = self.client.table(COMMENTS_TABLE).select("comment_id").eq("parent_comment_id", comment_id)
        reply_ids = [row["comment_id"] for row in run_rows(query, "Failed to fetch comment replies")]
        thread_ids = [comment_id, *reply_ids]

        query = self.client.table(COMMENT_REACTIONS_TABLE).delete().in_("comment_id", thread_ids)
        run_rows(query, "Failed to delete comment reactions")
        if reply_ids:
            query = self.client.table(COMMENTS_TABLE).delete().in_("comment_id", reply_ids)
            run_rows(query, "Failed to delete comment replies")
        self.delete(COMMENTS_TABLE, comment_id, "comment_id")
        log.info("comment_deleted id=%s replies=%s", comment_id, len(reply_ids))
        return len(thread_ids)

    def add_reaction(self, comment_id: int, user_id: int, reaction_type: Any) -> Dict[str, Any]:
        """Toggle a like/dislike. Returns the action taken and fresh counts."""
        reaction_type = validate_reaction(reaction_type)
        self._get_raw(comment_id)

        query = (
            self.client.table(COMMENT_REACTIONS_TABLE)
            .select("*")
            .eq("comment_id", comment_id)
            .eq("user_id", user_id)
            .limit(1)
        )
        existing = first_row(run_rows(query, "Failed to fetch comment reactions"))

        if existing is None:
            payload = {"comment_id": comment_id, "user_id": user_id, "reaction_type": reaction_type}
            self.create(COMMENT_REACTIONS_TABLE, payload)
            action = "added"
        elif existing.get("reaction_type") == reaction_type:
            self.delete(COMMENT_REACTIONS_TABLE, existing["reaction_id"], "reaction_id")
            action = "removed"
        else:
            query = (
                self.client.table(COMMENT_REACTIONS_TABLE)
                .update({"reaction_type": reaction_type})
                .eq("reaction_id", existing["reaction_id"])
            )
            run_rows(query, "Failed to update comment reaction")
            action = "changed"

        counts = self.reaction_counts([comment_id])[comment_id]
        return {"comment_id": comment_id, "action": action, "reaction_type": reaction_type, **counts}
