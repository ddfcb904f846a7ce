from library_api.extensions import db
from library_api.utils.timeutil import utcnow


class Borrowing(db.Model):
    __tablename__ = "borrowings"

    id = db.Column(db.Integer, primary_key=True)

    book_id = db.Column(
        db.Integer, db.ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True
    )
    borrower_id = db.Column(
        db.Integer, db.ForeignKey("borrowers.id", ondelete="CASCADE"), nullable=False, index=True
    )

    checkout_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    # None while the copy is out
    return_date = db.Column(db.DateTime, nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    book = db.relationship("Book", back_populates="borrowings")
    borrower = db.relationship("Borrower", back_populates="borrowings")

    @property
    def is_open(self) -> bool:
        return self.return_date is None
