from library_api.extensions import db
from library_api.utils.timeutil import utcnow


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= quantity",
            name="ck_books_available_range",
        ),
        db.CheckConstraint("quantity >= 0", name="ck_books_quantity_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=False, index=True)
    location = db.Column(db.String(120), nullable=True)

    # total copies owned; available_quantity is kept in sync with open borrowings
    quantity = db.Column(db.Integer, nullable=False, default=1)
    available_quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    borrowings = db.relationship(
        "Borrowing",
        back_populates="book",
        cascade="save-update, merge, delete",
    )
