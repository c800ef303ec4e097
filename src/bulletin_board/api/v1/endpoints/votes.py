# src/bulletin_board/api/v1/endpoints/votes.py
"""Vote-related endpoints for the bulletin board API."""

from fastapi import APIRouter, HTTPException, status

from bulletin_board.api.v1.dependencies import CurrentEmployeeDep, SessionDep
from bulletin_board.schemas.vote import MyVoteResponse, VoteRequest, VoteResponse
from bulletin_board.services import votes as vote_service
from bulletin_board.services.votes import CommentNotFoundError, PostNotFoundError, VoteOutcome

router = APIRouter(prefix="/board", tags=["votes"])


def _respond(outcome: VoteOutcome) -> VoteResponse:
    if not outcome.success:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=outcome.error or "Could not record vote",
        )
    return VoteResponse(**outcome.to_dict())


@router.post("/comments/{comment_id}/vote", response_model=VoteResponse)
async def vote_comment(
    comment_id: int,
    body: VoteRequest,
    current_employee: CurrentEmployeeDep,
    db: SessionDep,
) -> VoteResponse:
    """Toggle the caller's reaction on a comment.

    Repeating the same reaction removes it; choosing the other one switches.
    """
    try:
        outcome = vote_service.vote_comment(
            db, comment_id, body.vote_type, current_employee.employee_id
        )
    except CommentNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    return _respond(outcome)


@router.post("/posts/{post_id}/vote", response_model=VoteResponse)
async def vote_post(
    post_id: int,
    body: VoteRequest,
    current_employee: CurrentEmployeeDep,
    db: SessionDep,
) -> VoteResponse:
    try:
        outcome = vote_service.vote_post(db, post_id, body.vote_type, current_employee.employee_id)
    except PostNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    return _respond(outcome)


@router.get("/comments/{comment_id}/my-vote", response_model=MyVoteResponse)
async def get_my_comment_vote(
    comment_id: int,
    current_employee: CurrentEmployeeDep,
    db: SessionDep,
) -> MyVoteResponse:
    vote = vote_service.get_comment_vote(db, comment_id, current_employee.employee_id)
    return MyVoteResponse(user_vote=vote.value if vote else None)


@router.get("/posts/{post_id}/my-vote", response_model=MyVoteResponse)
async def get_my_post_vote(
    post_id: int,
    current_employee: CurrentEmployeeDep,
    db: SessionDep,
) -> MyVoteResponse:
    vote = vote_service.get_post_vote(db, post_id, current_employee.employee_id)
    return MyVoteResponse(user_vote=vote.value if vote else None)
