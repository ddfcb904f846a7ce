from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash, generate_password_hash

from library_api.errors import Conflict, LibraryError, NotFound, ValidationFailure
from library_api.models.user import User
from library_api.unit_of_work import SqlAlchemyUnitOfWork
from library_api.utils.policy import ROLES
from library_api.utils.serializers import user_to_dict


class InvalidCredentials(LibraryError):
    status_code = 401
    code = "invalid_credentials"


class AuthService:
    def __init__(self, uow_factory=SqlAlchemyUnitOfWork):
        self._uow_factory = uow_factory

    def register(self, username: str, email: str, password: str, role: str = "member"):
        if role not in ROLES:
            raise ValidationFailure(f"role must be one of: {', '.join(ROLES)}")

        with self._uow_factory() as uow:
            if uow.users.get_by_username(username) or uow.users.get_by_email(email):
                raise Conflict(Conflict.DUPLICATE_USER)

            user = User(
                username=username,
                email=email,
                password_hash=generate_password_hash(password),
                role=role
            )
            uow.users.add(user)
            return user_to_dict(user)

    def login(self, username: str, password: str):
        with self._uow_factory() as uow:
            user = uow.users.get_by_username(username)
            if not user or not check_password_hash(user.password_hash, password):
                raise InvalidCredentials("Invalid username or password")

            token = create_access_token(
                identity=str(user.id),
                additional_claims={"role": user.role, "username": user.username}
            )
            return token, user_to_dict(user)

    def get_user(self, user_id: int):
        with self._uow_factory() as uow:
            user = uow.users.get_by_id(user_id)
            if not user:
                raise NotFound("User", user_id)
            return user_to_dict(user)
