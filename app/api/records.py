from fastapi import APIRouter

from services import follow_up_service as fs
from services import loan_service as ls

router = APIRouter(tags=["records"])


@router.delete("/loans/{loan_id}")
def remove_loan(loan_id: int):
    ls.delete_loan(loan_id)
    return {"status": "deleted"}


@router.delete("/follow-ups/{follow_up_id}")
def remove_follow_up(follow_up_id: int):
    fs.delete_follow_up(follow_up_id)
    return {"status": "deleted"}
