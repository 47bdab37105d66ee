from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from orderbroker.api.deps import get_current_user
from orderbroker.data.database import get_db
from orderbroker.domain.errors import OrderBrokerError
from orderbroker.domain.schemas import UserCreate, UserRead
from orderbroker.services.token_service import Principal
from orderbroker.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    caller: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = UserService(db)
    try:
        return service.create_user(caller, payload)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    caller: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = UserService(db)
    try:
        return service.get_user(caller, user_id)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
