# library_api/controllers/report_controller.py
import csv
import io

from flask import Blueprint, Response, request, jsonify

from library_api.registry import get_services
from library_api.utils import policy
from library_api.utils.policy import capability_required
from library_api.utils.validators import parse_date_range

report_bp = Blueprint("reports", __name__)

CSV_FIELDS = [
    "id",
    "book_title",
    "book_author",
    "book_isbn",
    "borrower_name",
    "borrower_email",
    "checkout_date",
    "due_date",
    "return_date",
    "status",
]


@report_bp.get("/reports/borrowings")
@capability_required(policy.REPORTS)
def borrowing_report():
    from_date, to_date = parse_date_range(request.args)
    report = get_services().reports.get_borrowing_report(from_date, to_date)
    return jsonify({"success": True, "data": report})


@report_bp.get("/exports/borrowings/csv")
@capability_required(policy.REPORTS)
def export_borrowings_csv():
    from_date, to_date = parse_date_range(request.args)
    rows = get_services().reports.export_rows(from_date, to_date)

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_FIELDS)
    writer.writeheader()
    writer.writerows(rows)

    filename = f"borrowings_{from_date.date().isoformat()}_to_{to_date.date().isoformat()}.csv"
    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
