"""
HTTP endpoints for uploads, audit issues and monthly statistics.
"""
from flask import Blueprint, request, jsonify, current_app
from werkzeug.utils import secure_filename
import logging

from residuals_engine import (
    ReconciliationEngine,
    parse_processor_file,
    parse_lead_sheet,
    calculate_monthly_stats,
    FormatError,
)
from residuals_engine.schemas import IssueStatus, UploadStatus, UploadType
from config import config

logger = logging.getLogger(__name__)
bp = Blueprint('main', __name__)


def get_storage_service():
    """Storage backend attached to the running app."""
    return current_app.extensions['storage']


def _bad_request(message: str):
    return jsonify({'error': message}), 400


def _decode_upload(file) -> str:
    raw = file.read()
    try:
        return raw.decode(config.upload.encoding)
    except UnicodeDecodeError as e:
        raise FormatError(f"File is not valid {config.upload.encoding} text: {e}")


def _reconcile_upload(engine: ReconciliationEngine, upload_type: str, text: str, processor_id, month: str):
    if upload_type == UploadType.PROCESSOR.value:
        records = parse_processor_file(text, processor_name=str(processor_id))
        return engine.match_processor_records(records, processor_id, month)
    return engine.match_lead_records(parse_lead_sheet(text))


@bp.route('/api/upload/<month>', methods=['POST'])
def upload(month: str):
    """Reconcile an uploaded processor extract or lead sheet."""
    if 'file' not in request.files:
        return _bad_request('No file uploaded')

    file = request.files['file']
    if file.filename == '':
        return _bad_request('No file selected')

    upload_type = request.form.get('type', '')
    if upload_type not in config.upload.upload_types:
        return _bad_request(f"Upload type must be one of: {', '.join(config.upload.upload_types)}")

    processor_id = None
    if upload_type == UploadType.PROCESSOR.value:
        try:
            processor_id = int(request.form.get('processorId', ''))
        except ValueError:
            return _bad_request('processorId is required for processor uploads')

    storage = get_storage_service()
    filename = secure_filename(file.filename) or file.filename
    file_upload = storage.create_file_upload({
        'filename': filename,
        'month': month,
        'upload_type': upload_type,
        'processor_id': processor_id,
    })
    logger.info(f"[UPLOAD] {upload_type} file '{filename}' for {month} (upload {file_upload.id})")

    try:
        text = _decode_upload(file)
        result = _reconcile_upload(ReconciliationEngine(storage), upload_type, text, processor_id, month)
    except FormatError as e:
        logger.warning(f"[UPLOAD] Rejected '{filename}': {e}")
        storage.update_file_upload(file_upload.id, {
            'status': UploadStatus.FAILED.value,
            'error_message': str(e),
        })
        return jsonify({'error': str(e), 'fileUploadId': file_upload.id}), 400
    except Exception as e:
        logger.error(f"[UPLOAD] Failed processing '{filename}': {e}", exc_info=True)
        storage.update_file_upload(file_upload.id, {
            'status': UploadStatus.FAILED.value,
            'error_message': str(e),
        })
        raise

    storage.update_file_upload(file_upload.id, {
        'status': UploadStatus.COMPLETED.value,
        'records_processed': result.records_processed,
    })

    return jsonify({
        'success': True,
        'fileUploadId': file_upload.id,
        'result': result.to_dict(),
    })


@bp.route('/api/file-uploads/<month>')
def file_uploads(month: str):
    uploads = get_storage_service().get_file_uploads(month)
    return jsonify([u.to_dict() for u in uploads])


@bp.route('/api/audit-issues/<month>')
def audit_issues(month: str):
    """List audit issues for a month, optionally filtered by ?status=."""
    status = request.args.get('status')
    if status is not None and status not in {s.value for s in IssueStatus}:
        return _bad_request(f"Unknown status '{status}'")

    issues = get_storage_service().get_audit_issues(month, status=status)
    return jsonify([i.to_dict() for i in issues])


@bp.route('/api/audit-issues/<int:issue_id>', methods=['PUT'])
def update_audit_issue(issue_id: int):
    """Move an audit issue to open, resolved or ignored."""
    payload = request.get_json(silent=True) or {}
    status = payload.get('status')
    if status not in {s.value for s in IssueStatus}:
        return _bad_request("status must be one of: open, resolved, ignored")

    try:
        issue = get_storage_service().update_audit_issue(issue_id, {'status': status})
    except KeyError:
        return jsonify({'error': f"Audit issue {issue_id} not found"}), 404

    logger.info(f"[AUDIT] Issue {issue_id} -> {status}")
    return jsonify(issue.to_dict())


@bp.route('/api/audit/run/<month>', methods=['POST'])
def run_audit(month: str):
    summary = ReconciliationEngine(get_storage_service()).run_full_audit(month)
    return jsonify(summary.to_dict())


@bp.route('/api/stats/<month>')
def stats(month: str):
    return jsonify(calculate_monthly_stats(get_storage_service(), month))
