from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.http import json_body, json_errors, require_session_principal, session_principal
from ..container import Container
from ..core.enums import RecordKind
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import Principal
from .model import record_to_dict

# URL segment -> record kind
KIND_SLUGS = {
    "payroll": RecordKind.PAYROLL,
    "additional-payments": RecordKind.ADDITIONAL_PAYMENT,
    "leaves": RecordKind.LEAVE,
    "inventory": RecordKind.INVENTORY,
    "users": RecordKind.USERS,
    "departments": RecordKind.DEPARTMENTS,
}


def register(app: Flask, container: Container) -> None:
    def current_principal() -> Optional[Principal]:
        return session_principal(container.directory)

    def signed_in() -> Principal:
        return require_session_principal(container.directory)

    def _kind(slug: str) -> RecordKind:
        kind = KIND_SLUGS.get(slug)
        if kind is None:
            raise NotFoundError(f"Unknown resource: {slug}")
        return kind

    def _throttle(principal: Optional[Principal]) -> None:
        who = principal.user_id if principal is not None else request.remote_addr
        container.upload_throttle.hit(f"create:{who}")

    @app.route("/api/<slug>", methods=["GET"], endpoint="list_records")
    @json_errors
    def list_records(slug: str):
        kind = _kind(slug)
        raw_limit = request.args.get("limit")
        kwargs = {}
        if raw_limit is not None:
            try:
                kwargs["limit"] = int(raw_limit)
            except ValueError:
                raise ValidationError("limit must be a positive number")
        records = container.record_service.list_records(current_principal(), kind, **kwargs)
        return jsonify({slug: [record_to_dict(r) for r in records]})

    @app.route("/api/<slug>/<int:record_id>", methods=["GET"], endpoint="get_record")
    @json_errors
    def get_record(slug: str, record_id: int):
        record = container.record_service.get_record(current_principal(), _kind(slug), record_id)
        return jsonify(record_to_dict(record))

    @app.route("/api/<slug>/<int:record_id>/status", methods=["PATCH"], endpoint="update_status")
    @json_errors
    def update_status(slug: str, record_id: int):
        principal = signed_in()
        kind = _kind(slug)
        if kind not in (RecordKind.PAYROLL, RecordKind.ADDITIONAL_PAYMENT, RecordKind.LEAVE):
            raise NotFoundError(f"{slug} has no status workflow")
        record = container.record_service.update_status(principal, kind, record_id, json_body().get("status"))
        return jsonify(record_to_dict(record))

    @app.route("/api/<slug>/<int:record_id>", methods=["PATCH"], endpoint="edit_record")
    @json_errors
    def edit_record(slug: str, record_id: int):
        principal = signed_in()
        kind = _kind(slug)
        if kind == RecordKind.DEPARTMENTS:
            department = container.department_service.update_department(principal, record_id, json_body())
            return jsonify(record_to_dict(department))
        record = container.record_service.edit_record(principal, kind, record_id, json_body())
        return jsonify(record_to_dict(record))

    @app.route("/api/<slug>/<int:record_id>", methods=["DELETE"], endpoint="delete_record")
    @json_errors
    def delete_record(slug: str, record_id: int):
        principal = signed_in()
        kind = _kind(slug)
        if kind == RecordKind.DEPARTMENTS:
            container.department_service.delete_department(principal, record_id)
        else:
            container.record_service.delete_record(principal, kind, record_id)
        return jsonify({"deleted": True, "id": record_id})

    @app.route("/api/leaves", methods=["POST"], endpoint="create_leave")
    @json_errors
    def create_leave():
        principal = signed_in()
        _throttle(principal)
        data = json_body()
        record = container.record_service.create_leave(
            principal,
            leave_type=data.get("leave_type"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            reason=data.get("reason") or "",
            note=data.get("note"),
            user_id=data.get("user_id"),
        )
        return jsonify(record_to_dict(record)), 201

    @app.route("/api/payroll", methods=["POST"], endpoint="create_payroll")
    @json_errors
    def create_payroll():
        principal = signed_in()
        _throttle(principal)
        data = json_body()
        record = container.record_service.create_payroll(
            principal,
            employee_id=data.get("employee_id"),
            month=data.get("month"),
            year=data.get("year"),
            items=data.get("items") or (),
            bonus_amount=data.get("bonus_amount", 0),
            deduction_amount=data.get("deduction_amount", 0),
            adjustment_note=data.get("adjustment_note") or "",
        )
        return jsonify(record_to_dict(record)), 201

    @app.route("/api/additional-payments", methods=["POST"], endpoint="create_additional_payment")
    @json_errors
    def create_additional_payment():
        principal = signed_in()
        _throttle(principal)
        data = json_body()
        record = container.record_service.create_additional_payment(
            principal,
            employee_id=data.get("employee_id"),
            category=data.get("category"),
            description=data.get("description") or "",
            amount=data.get("amount"),
            month=data.get("month"),
            year=data.get("year"),
            payment_type=data.get("payment_type") or "bankTransfer",
            notes=data.get("notes"),
        )
        return jsonify(record_to_dict(record)), 201

    @app.route("/api/departments", methods=["POST"], endpoint="create_department")
    @json_errors
    def create_department():
        principal = signed_in()
        data = json_body()
        department = container.department_service.create_department(
            principal,
            name=data.get("name"),
            description=data.get("description"),
            is_active=data.get("is_active", True),
        )
        return jsonify(record_to_dict(department)), 201

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="generate_payroll")
    @json_errors
    def generate_payroll():
        principal = signed_in()
        data = json_body()
        result = container.payroll_service.generate_monthly(principal, data.get("month"), data.get("year"))
        return jsonify(
            {
                "created": [record_to_dict(r) for r in result.created],
                "skipped": result.skipped,
            }
        ), 201
