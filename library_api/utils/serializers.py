from library_api.services import status_resolver


def book_to_dict(b):
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "isbn": b.isbn,
        "location": b.location,
        "quantity": b.quantity,
        "available_quantity": b.available_quantity,
        "created_at": b.created_at,
        "updated_at": b.updated_at,
    }


def book_summary(b):
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "isbn": b.isbn,
        "location": b.location,
    }


def borrower_to_dict(br):
    return {
        "id": br.id,
        "name": br.name,
        "email": br.email,
        "registered_at": br.registered_at,
        "updated_at": br.updated_at,
    }


def borrower_summary(br):
    return {"id": br.id, "name": br.name, "email": br.email}


def borrowing_to_dict(x, now, full_book=False):
    """Ledger row plus the derived status fields and the joined parties."""
    data = {
        "id": x.id,
        "book_id": x.book_id,
        "borrower_id": x.borrower_id,
        "checkout_date": x.checkout_date,
        "due_date": x.due_date,
        "return_date": x.return_date,
    }
    data.update(status_resolver.describe(x, now))

    if x.book is not None:
        data["book"] = book_to_dict(x.book) if full_book else book_summary(x.book)
    if x.borrower is not None:
        data["borrower"] = borrower_summary(x.borrower)
    return data


def user_to_dict(u):
    return {"id": u.id, "username": u.username, "email": u.email, "role": u.role}
