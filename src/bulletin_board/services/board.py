"""Anonymous board: categories, posts and comments.

Creating a post sends keyword alerts to subscribed employees; creating a
comment notifies the post's author. Both notifications run after the
content itself is committed, and their outcome never undoes the write.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bulletin_board.models import AnonymousPost, BoardCategory, Comment, Employee
from bulletin_board.schemas.board import CategoryCreate, CommentCreate, PostCreate
from bulletin_board.services import notifications
from bulletin_board.services.change_feed import ChangeFeed
from bulletin_board.services.votes import CommentNotFoundError, PostNotFoundError

logger = logging.getLogger(__name__)


class CategoryNotFoundError(LookupError):
    """Raised when posting into a category that does not exist."""


class NotAuthorError(PermissionError):
    """Raised when someone other than the author tries to delete content."""


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
def list_categories(db: Session) -> Sequence[BoardCategory]:
    return db.execute(select(BoardCategory).order_by(BoardCategory.id)).scalars().all()


def create_category(db: Session, data: CategoryCreate) -> BoardCategory:
    category = BoardCategory(
        name=data.name.strip(),
        description=data.description,
        is_anonymous=data.is_anonymous,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def post_counts_by_category(db: Session) -> dict[int, int]:
    rows = db.execute(
        select(AnonymousPost.category_id, func.count(AnonymousPost.id)).group_by(
            AnonymousPost.category_id
        )
    ).all()
    return {category_id: count for category_id, count in rows}


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
def list_posts(
    db: Session,
    *,
    category_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[AnonymousPost]:
    """Return posts newest first, optionally within one category."""
    query = select(AnonymousPost)
    if category_id is not None:
        query = query.where(AnonymousPost.category_id == category_id)
    query = query.order_by(AnonymousPost.created_at.desc(), AnonymousPost.id.desc())
    return db.execute(query.offset(skip).limit(limit)).scalars().all()


def get_post(db: Session, post_id: int) -> AnonymousPost:
    post = db.get(AnonymousPost, post_id)
    if post is None:
        raise PostNotFoundError(f"Post {post_id} not found")
    return post


def create_post(
    db: Session,
    data: PostCreate,
    author: Employee,
    *,
    feed: ChangeFeed | None = None,
) -> AnonymousPost:
    """Store a post and alert employees watching for its keywords."""
    if db.get(BoardCategory, data.category_id) is None:
        raise CategoryNotFoundError(f"Category {data.category_id} not found")

    post = AnonymousPost(
        title=data.title.strip(),
        content=data.content.strip(),
        category_id=data.category_id,
        author_employee_id=author.employee_id,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    matches = notifications.keyword_recipients(
        db, f"{post.title}\n{post.content}", exclude_user_ids=[author.id]
    )
    for keyword, user_ids in matches.items():
        result = notifications.notify_keyword(
            db, keyword, post.id, post.title, user_ids, feed=feed
        )
        if not result.succeeded:
            logger.warning("Keyword alert %r for post %s failed", keyword, post.id)
    return post


def delete_post(db: Session, post_id: int, employee_id: str) -> None:
    post = get_post(db, post_id)
    if post.author_employee_id != employee_id:
        raise NotAuthorError("Only the author can delete this post")
    db.delete(post)
    db.commit()


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def list_comments(db: Session, post_id: int) -> Sequence[Comment]:
    """Return a post's comments oldest first."""
    return db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    ).scalars().all()


def get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise CommentNotFoundError(f"Comment {comment_id} not found")
    return comment


def create_comment(
    db: Session,
    post_id: int,
    data: CommentCreate,
    author: Employee,
    *,
    feed: ChangeFeed | None = None,
) -> Comment:
    """Store a comment and notify the post's author."""
    get_post(db, post_id)
    comment = Comment(
        post_id=post_id,
        author_employee_id=author.employee_id,
        content=data.content.strip(),
        likes=0,
        dislikes=0,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    result = notifications.notify_comment(db, post_id, author.employee_id, feed=feed)
    if not result.succeeded:
        logger.warning("Comment notification for post %s failed", post_id)
    return comment


def delete_comment(db: Session, comment_id: int, employee_id: str) -> None:
    comment = get_comment(db, comment_id)
    if comment.author_employee_id != employee_id:
        raise NotAuthorError("Only the author can delete this comment")
    db.delete(comment)
    db.commit()
