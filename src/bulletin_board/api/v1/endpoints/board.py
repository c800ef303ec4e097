# src/bulletin_board/api/v1/endpoints/board.py
"""Anonymous board endpoints: categories, posts and comments."""

from collections.abc import Sequence

from fastapi import APIRouter, HTTPException, Query, status

from bulletin_board.api.v1.dependencies import AdminDep, CurrentEmployeeDep, FeedDep, SessionDep
from bulletin_board.models import AnonymousPost, Comment
from bulletin_board.schemas.board import (
    CategoryCreate,
    CategoryResponse,
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostResponse,
)
from bulletin_board.services import board as board_service
from bulletin_board.services.board import CategoryNotFoundError, NotAuthorError
from bulletin_board.services.votes import CommentNotFoundError, PostNotFoundError

router = APIRouter(prefix="/board", tags=["board"])


def _not_found(err: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err))


def _forbidden(err: NotAuthorError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err))


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: SessionDep, _employee: CurrentEmployeeDep) -> list[CategoryResponse]:
    counts = board_service.post_counts_by_category(db)
    return [
        CategoryResponse(
            id=category.id,
            name=category.name,
            description=category.description,
            is_anonymous=category.is_anonymous,
            post_count=counts.get(category.id, 0),
        )
        for category in board_service.list_categories(db)
    ]


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: SessionDep, _admin: AdminDep) -> CategoryResponse:
    category = board_service.create_category(db, data)
    return CategoryResponse.model_validate(category)


@router.get("/posts", response_model=list[PostResponse])
async def list_posts(
    db: SessionDep,
    _employee: CurrentEmployeeDep,
    category_id: int | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> Sequence[AnonymousPost]:
    return board_service.list_posts(db, category_id=category_id, skip=skip, limit=limit)


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
    feed: FeedDep,
) -> AnonymousPost:
    try:
        return board_service.create_post(db, data, current_employee, feed=feed)
    except CategoryNotFoundError as err:
        raise _not_found(err) from err


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep, _employee: CurrentEmployeeDep) -> AnonymousPost:
    try:
        return board_service.get_post(db, post_id)
    except PostNotFoundError as err:
        raise _not_found(err) from err


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: int, db: SessionDep, current_employee: CurrentEmployeeDep) -> None:
    try:
        board_service.delete_post(db, post_id, current_employee.employee_id)
    except PostNotFoundError as err:
        raise _not_found(err) from err
    except NotAuthorError as err:
        raise _forbidden(err) from err


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    post_id: int,
    db: SessionDep,
    _employee: CurrentEmployeeDep,
) -> Sequence[Comment]:
    try:
        board_service.get_post(db, post_id)
    except PostNotFoundError as err:
        raise _not_found(err) from err
    return board_service.list_comments(db, post_id)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    data: CommentCreate,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
    feed: FeedDep,
) -> Comment:
    try:
        return board_service.create_comment(db, post_id, data, current_employee, feed=feed)
    except PostNotFoundError as err:
        raise _not_found(err) from err


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
) -> None:
    try:
        board_service.delete_comment(db, comment_id, current_employee.employee_id)
    except CommentNotFoundError as err:
        raise _not_found(err) from err
    except NotAuthorError as err:
        raise _forbidden(err) from err
