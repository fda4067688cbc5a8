from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, json_errors, require_session_principal, session_principal
from ..container import Container
from ..records.model import record_to_dict


def register(app: Flask, container: Container) -> None:
    service = container.payroll_settings_service

    @app.route("/api/payroll-settings", methods=["GET"], endpoint="list_payroll_settings")
    @json_errors
    def list_settings():
        settings = service.list_settings(session_principal(container.directory))
        return jsonify({"payroll-settings": [record_to_dict(s) for s in settings]})

    @app.route("/api/payroll-settings/<int:setting_id>", methods=["GET"], endpoint="get_payroll_setting")
    @json_errors
    def get_setting(setting_id: int):
        return jsonify(record_to_dict(service.get_setting(session_principal(container.directory), setting_id)))

    @app.route("/api/payroll-settings", methods=["POST"], endpoint="create_payroll_setting")
    @json_errors
    def create_setting():
        principal = require_session_principal(container.directory)
        data = json_body()
        setting = service.create_setting(
            principal,
            employee_id=data.get("employee_id"),
            amount=data.get("amount"),
            description=data.get("description"),
            payroll_type=data.get("payroll_type") or "salary",
            payment_type=data.get("payment_type") or "bankTransfer",
        )
        return jsonify(record_to_dict(setting)), 201

    @app.route("/api/payroll-settings/<int:setting_id>", methods=["PATCH"], endpoint="update_payroll_setting")
    @json_errors
    def update_setting(setting_id: int):
        principal = require_session_principal(container.directory)
        setting = service.update_setting(principal, setting_id, json_body())
        return jsonify(record_to_dict(setting))

    @app.route("/api/payroll-settings/<int:setting_id>", methods=["DELETE"], endpoint="delete_payroll_setting")
    @json_errors
    def delete_setting(setting_id: int):
        service.delete_setting(require_session_principal(container.directory), setting_id)
        return jsonify({"deleted": True, "id": setting_id})
