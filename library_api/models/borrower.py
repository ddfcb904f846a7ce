from library_api.extensions import db
from library_api.utils.timeutil import utcnow


class Borrower(db.Model):
    __tablename__ = "borrowers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)

    registered_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    borrowings = db.relationship(
        "Borrowing",
        back_populates="borrower",
        cascade="save-update, merge, delete",
    )
