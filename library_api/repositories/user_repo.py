from sqlalchemy import select

from library_api.models.user import User


class UserRepo:
    def __init__(self, session):
        self.session = session

    def get_by_username(self, username: str):
        return self.session.execute(select(User).filter_by(username=username)).scalar_one_or_none()

    def get_by_email(self, email: str):
        return self.session.execute(select(User).filter_by(email=email)).scalar_one_or_none()

    def get_by_id(self, user_id: int):
        return self.session.get(User, user_id)

    def add(self, user: User):
        self.session.add(user)
        self.session.flush()
        return user
