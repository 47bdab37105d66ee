from sqlalchemy.orm import Session
from orderbroker.data.models.user import UserModel
from orderbroker.domain.enums import Role
from orderbroker.domain.errors import Forbidden, InvalidArgument, NotFound
from orderbroker.domain.schemas import UserCreate, UserRead
from orderbroker.repos.user_repo import UserRepo
from orderbroker.services.token_service import Principal


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, caller: Principal, payload: UserCreate) -> UserRead:
        if caller.role != Role.ADMIN:
            raise Forbidden("Only administrators can create users")

        if self.repo.get_by_phone(payload.phone_number):
            raise InvalidArgument("Phone number already registered")

        user = UserModel(
            name=payload.name,
            phone_number=payload.phone_number,
            role=payload.role.value,
        )
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, caller: Principal, user_id: int) -> UserRead:
        if not caller.is_staff and caller.user_id != user_id:
            raise Forbidden("You can only view your own profile")

        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return UserRead.model_validate(user)
