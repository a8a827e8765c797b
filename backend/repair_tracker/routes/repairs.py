from __future__ import annotations
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required
from repair_tracker import get_services
from repair_tracker.config.settings import allowed_file_types
from repair_tracker.constants.permissions import Capability
from repair_tracker.decorators.auth import require_capability, current_actor
from repair_tracker.errors import RepairNotFound, ValidationError
from repair_tracker.services.serializers import case_json, note_json
from repair_tracker.utils.validation import (
    validate_create_repair, validate_status_update, validate_note, validate_report_filters, validate_upload,
)

repairs_bp = Blueprint('repairs', __name__)


def _payload():
    """JSON body, or form fields for multipart submissions."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


@repairs_bp.get('')
@require_capability(Capability.VIEW_DASHBOARD)
def list_repairs():
    repairs = get_services().lifecycle.list_cases(
        status=request.args.get('status'),
        branch=request.args.get('branch'),
        search=request.args.get('search'),
    )
    return {'success': True, 'repairs': repairs}


@repairs_bp.get('/status/counts')
@require_capability(Capability.VIEW_DASHBOARD)
def status_counts():
    return {'success': True, 'counts': get_services().reports.status_counts()}


@repairs_bp.get('/search/qr')
@require_capability(Capability.SCAN_QR)
def search_by_qr():
    qr_data = (request.args.get('qrData') or '').strip()
    if not qr_data:
        raise ValidationError([{'field': 'qrData', 'message': 'QR data is required'}], 'QR data is required')
    repair = get_services().lifecycle.get_case(qr_data)
    if repair is None:
        raise RepairNotFound()
    return {'success': True, 'repair': repair}


@repairs_bp.get('/reports/generate')
@require_capability(Capability.VIEW_REPORTS)
def generate_report():
    start, end, branch = validate_report_filters(request.args)
    report = get_services().reports.generate(start, end, branch)
    return {'success': True, **report}


@repairs_bp.get('/<repair_id>')
def get_repair(repair_id: str):
    # public: customers track their device with the identifier alone
    repair = get_services().lifecycle.get_case(repair_id)
    if repair is None:
        raise RepairNotFound()
    return {'success': True, 'repair': repair}


@repairs_bp.post('')
@require_capability(Capability.ADD_REPAIR)
def create_repair():
    cfg = current_app.config
    image_bytes = validate_upload(
        request.files.get('image'), allowed_file_types(cfg), int(cfg['MAX_FILE_SIZE'])
    )
    data = validate_create_repair(_payload(), image_bytes=image_bytes)
    result = get_services().lifecycle.create_repair(data, current_actor())
    return {'success': True, **result}, 201


@repairs_bp.patch('/<repair_id>/status')
@require_capability(Capability.EDIT_REPAIR)
def update_status(repair_id: str):
    update = validate_status_update(request.get_json(silent=True) or {})
    case = get_services().lifecycle.update_status(repair_id, update, current_actor())
    return {'success': True, 'repair': case_json(case)}


@repairs_bp.post('/<repair_id>/notes')
@jwt_required()
def add_note(repair_id: str):
    text = validate_note(request.get_json(silent=True) or {})
    note = get_services().lifecycle.add_note(repair_id, text, current_actor())
    return {'success': True, 'note': note_json(note)}
