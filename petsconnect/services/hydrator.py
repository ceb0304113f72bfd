"""
petsconnect.services.hydrator — Post Hydrator
==============================================

The single place that assembles a hydrated post view.

Given raw :class:`Post` rows, it issues four batched ``IN (...)`` lookups
(likes, helpful marks, comments, then profiles for every post and comment
author), joins them in memory and projects each post into a
:class:`HydratedPost`.  Read-only.  A failed lookup aborts the whole
hydration with :class:`UpstreamFailure`; partial engagement data is never
returned as if it were complete.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from petsconnect.database.models import Comment, HelpfulMark, Like, Post, Profile
from petsconnect.errors import UpstreamFailure

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# View models
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HydratedComment:
    comment: Comment
    profile: Profile | None  # None when the author has no profile row


@dataclass(frozen=True, slots=True)
class CommentThread:
    """A top-level comment and every reply beneath it, oldest first."""

    root: HydratedComment
    replies: list[HydratedComment] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class HydratedPost:
    post: Post
    profile: Profile | None
    likes: list[Like]
    helpful_marks: list[HelpfulMark]
    comments: list[HydratedComment]

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    def liked_by(self, user_id: str) -> bool:
        return any(like.user_id == user_id for like in self.likes)

    def marked_helpful_by(self, user_id: str) -> bool:
        return any(mark.user_id == user_id for mark in self.helpful_marks)

    def threads(self) -> list[CommentThread]:
        """Group comments into one-level threads.

        Replies to replies are flattened under their top-level ancestor.
        A reply whose parent isn't on this post becomes a thread root.
        """
        by_id = {hc.comment.id: hc for hc in self.comments}

        def _root_id(hc: HydratedComment) -> str:
            seen: set[str] = set()
            current = hc
            while current.comment.parent_id in by_id and current.comment.id not in seen:
                seen.add(current.comment.id)
                current = by_id[current.comment.parent_id]
            return current.comment.id

        threads: dict[str, CommentThread] = {}
        for hc in self.comments:
            root_id = _root_id(hc)
            if root_id == hc.comment.id:
                threads[root_id] = CommentThread(root=hc)
        for hc in self.comments:
            root_id = _root_id(hc)
            if root_id != hc.comment.id:
                threads[root_id].replies.append(hc)
        return list(threads.values())


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------
def _group_by_post(rows):
    grouped = defaultdict(list)
    for row in rows:
        grouped[row.post_id].append(row)
    return grouped


def hydrate(session: Session, posts: Sequence[Post]) -> list[HydratedPost]:
    """Attach authors, likes, helpful marks and comments to *posts*.

    Output order matches input order.  An empty input returns ``[]``
    without touching the database.

    Raises
    ------
    UpstreamFailure
        If any batched lookup fails.
    """
    if not posts:
        return []

    post_ids = list({p.id for p in posts})

    try:
        likes = session.scalars(select(Like).where(Like.post_id.in_(post_ids))).all()
        marks = session.scalars(
            select(HelpfulMark).where(HelpfulMark.post_id.in_(post_ids))
        ).all()
        comments = session.scalars(
            select(Comment)
            .where(Comment.post_id.in_(post_ids))
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        ).all()

        author_ids = {p.user_id for p in posts} | {c.user_id for c in comments}
        profiles = session.scalars(
            select(Profile).where(Profile.user_id.in_(author_ids))
        ).all()
    except SQLAlchemyError as exc:
        logger.exception("Hydration lookup failed for %d posts", len(post_ids))
        raise UpstreamFailure("Could not load post engagement.") from exc

    profile_by_user = {p.user_id: p for p in profiles}
    likes_by_post = _group_by_post(likes)
    marks_by_post = _group_by_post(marks)

    comments_by_post: dict[str, list[HydratedComment]] = defaultdict(list)
    for c in comments:
        comments_by_post[c.post_id].append(
            HydratedComment(comment=c, profile=profile_by_user.get(c.user_id))
        )

    logger.debug(
        "Hydrated %d posts (%d likes, %d marks, %d comments, %d profiles)",
        len(posts), len(likes), len(marks), len(comments), len(profiles),
    )

    return [
        HydratedPost(
            post=p,
            profile=profile_by_user.get(p.user_id),
            likes=list(likes_by_post.get(p.id, [])),
            helpful_marks=list(marks_by_post.get(p.id, [])),
            comments=list(comments_by_post.get(p.id, [])),
        )
        for p in posts
    ]
