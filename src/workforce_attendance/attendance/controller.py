from __future__ import annotations

from flask import Flask, current_app, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import api_login_required, client_origin, current_identity, error_response, server_error
from ..common.validators import require_coordinate, require_non_empty, require_page_size, require_positive_int
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_ADDRESS_LENGTH
from ..core.enums import AttendanceAction, WorkType
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import GeoLocation
from .serializers import history_to_dict, record_to_dict, today_status_to_dict


def parse_location(value) -> GeoLocation | None:
    """`{"latitude", "longitude", "address"?}` from the request body."""
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError("location must be an object")

    address = value.get("address")
    if address is not None and not isinstance(address, str):
        raise ValidationError("location.address must be a string")
    address = (address or "").strip() or None
    if address and len(address) > MAX_ADDRESS_LENGTH:
        raise ValidationError(f"location.address must be at most {MAX_ADDRESS_LENGTH} characters")

    return GeoLocation(
        latitude=require_coordinate(value.get("latitude"), "location.latitude", limit=90),
        longitude=require_coordinate(value.get("longitude"), "location.longitude", limit=180),
        address=address,
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @api_login_required
    def attendance_today():
        user_id, workspace_id = current_identity()
        try:
            now = container.clock.now()
            status = container.attendance_service.get_today_status(user_id, workspace_id, now=now)
            summary = container.summary_service.get_workspace_summary(workspace_id, now.date(), now=now)
            payload = today_status_to_dict(status)
            payload["workspaceSummary"] = summary.as_dict()
            return jsonify(payload), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Failed to fetch today's attendance")

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_action")
    @api_login_required
    def attendance_action():
        user_id, workspace_id = current_identity()
        data = request.get_json(silent=True)
        try:
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise ValidationError("Request body must be a JSON object")

            try:
                action = AttendanceAction(require_non_empty(str(data.get("action") or ""), "action"))
            except ValueError:
                raise ValidationError("Invalid action")

            notes = data.get("notes")
            location = parse_location(data.get("location"))
            service = container.attendance_service

            if action == AttendanceAction.CLOCK_IN:
                try:
                    work_type = WorkType(data.get("workType") or WorkType.OFFICE.value)
                except ValueError:
                    raise ValidationError("Invalid work type")
                shift_id = data.get("shiftId")
                ip, device = client_origin()
                record = service.clock_in(
                    user_id,
                    workspace_id,
                    shift_id=require_positive_int(shift_id, "shiftId") if shift_id else None,
                    work_type=work_type,
                    note=notes,
                    location=location,
                    ip=ip,
                    device=device,
                )
            elif action == AttendanceAction.START_BREAK:
                record = service.start_break(user_id, workspace_id)
            elif action == AttendanceAction.END_BREAK:
                record = service.end_break(user_id, workspace_id)
            else:
                record = service.clock_out(user_id, workspace_id, note=notes, location=location)

            return jsonify({
                "success": True,
                "attendance": record_to_dict(record),
                "message": f"Successfully {action.value.replace('_', ' ')}",
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Attendance action failed")

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_history")
    @api_login_required
    def attendance_history():
        user_id, workspace_id = current_identity()
        try:
            start_s = request.args.get("startDate")
            end_s = request.args.get("endDate")
            try:
                start = parse_iso_date(start_s) if start_s else None
                end = parse_iso_date(end_s) if end_s else None
            except ValueError:
                raise ValidationError("Dates must be YYYY-MM-DD")

            page = require_positive_int(request.args.get("page", 1), "page")
            limit = require_page_size(request.args.get("limit", current_app.config.get("DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)))

            history = container.attendance_service.get_history(
                user_id, workspace_id, start=start, end=end, page=page, limit=limit
            )
            return jsonify(history_to_dict(history)), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("Failed to fetch attendance records")
