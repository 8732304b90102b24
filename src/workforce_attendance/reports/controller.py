from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import api_login_required, current_identity, error_response, server_error
from ..core.exceptions import DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @api_login_required
    def attendance_summary():
        _, workspace_id = current_identity()
        try:
            now = container.clock.now()
            date_s = request.args.get("date")
            try:
                work_date = parse_iso_date(date_s) if date_s else now.date()
            except ValueError:
                raise ValidationError("date must be YYYY-MM-DD")

            summary = container.summary_service.get_workspace_summary(workspace_id, work_date, now=now)
            return jsonify({"summary": summary.as_dict()}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Failed to fetch attendance summary")
