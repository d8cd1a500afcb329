from fastapi import APIRouter

from services import client_service as cs
from services import follow_up_service as fs
from services import loan_service as ls
from ..schemas import (
    ClientCreate,
    ClientRead,
    ClientStatusUpdate,
    ClientUpdate,
    FollowUpCreate,
    FollowUpRead,
    LoanCreate,
    LoanRead,
)

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("/", response_model=list[ClientRead])
def read_clients():
    return list(cs.list_clients())


@router.post("/", response_model=ClientRead, status_code=201)
def add_client(client_in: ClientCreate):
    return cs.add_client(**client_in.model_dump(exclude_none=True))


@router.get("/{client_id}", response_model=ClientRead)
def read_client(client_id: int):
    return cs.get_client(client_id)


@router.put("/{client_id}", response_model=ClientRead)
def edit_client(client_id: int, client_in: ClientUpdate):
    return cs.update_client(client_id, **client_in.model_dump(exclude_unset=True))


@router.patch("/{client_id}/status", response_model=ClientRead)
def change_status(client_id: int, body: ClientStatusUpdate):
    return cs.update_client_status(client_id, body.status)


@router.post("/{client_id}/merge", response_model=ClientRead)
def merge_client(client_id: int, client_in: ClientUpdate):
    return cs.merge_client(client_id, **client_in.model_dump(exclude_none=True))


@router.delete("/{client_id}")
def remove_client(client_id: int):
    cs.delete_client(client_id)
    return {"status": "deleted"}


@router.get("/{client_id}/loans", response_model=list[LoanRead])
def read_loans(client_id: int):
    cs.get_client(client_id)
    return ls.list_loans(client_id)


@router.post("/{client_id}/loans", response_model=LoanRead, status_code=201)
def add_loan(client_id: int, loan_in: LoanCreate):
    return ls.add_loan(client_id, **loan_in.model_dump())


@router.get("/{client_id}/follow-ups", response_model=list[FollowUpRead])
def read_follow_ups(client_id: int):
    cs.get_client(client_id)
    return fs.list_follow_ups(client_id)


@router.post("/{client_id}/follow-ups", response_model=FollowUpRead, status_code=201)
def add_follow_up(client_id: int, follow_up_in: FollowUpCreate):
    return fs.add_follow_up(client_id, **follow_up_in.model_dump())
