from io import BytesIO

from flask import request, send_file, current_app

from utils.decorators import admin_required, log_action, handle_db_errors
from utils.errors import EventNotFound, ValidationError
from utils.registration_export import export_filename, registrations_to_csv, registrations_to_xlsx

from . import admin_bp, db_manager, logger

EXPORT_FORMATS = ('csv', 'xlsx')


def _export_response(registrations, event=None):
    export_format = request.args.get('format', 'csv').strip().lower() or 'csv'
    if export_format not in EXPORT_FORMATS:
        raise ValidationError(f'format must be one of: {", ".join(EXPORT_FORMATS)}')

    date_format = current_app.config['EXPORT_DATE_FORMAT']
    include_event = event is None
    filename = export_filename(event, export_format, current_app.config['EXPORT_ALL_FILENAME'])

    if export_format == 'xlsx':
        content = registrations_to_xlsx(registrations, date_format, include_event)
        mimetype = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    else:
        content = registrations_to_csv(registrations, date_format, include_event).encode('utf-8')
        mimetype = 'text/csv'

    logger.info(f"导出报名 {len(registrations)} 条: {filename}")
    return send_file(
        BytesIO(content),
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename,
    )


@admin_bp.route('/registrations/export', methods=['GET'])
@admin_required
@log_action('导出全部报名')
@handle_db_errors
def export_all_registrations():
    """导出全部活动的报名（含活动名和社团名列）"""
    registrations, _ = db_manager.get_registrations_with_count()
    return _export_response(registrations)


@admin_bp.route('/events/<int:event_id>/registrations/export', methods=['GET'])
@admin_required
@log_action('导出活动报名')
@handle_db_errors
def export_event_registrations(event_id):
    """导出单个活动的报名"""
    event = db_manager.get_event_by_id(event_id)
    if not event:
        raise EventNotFound(event_id)

    registrations, _ = db_manager.get_registrations_with_count(event_id=event_id)
    return _export_response(registrations, event)
