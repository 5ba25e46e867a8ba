#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
报名数据导出（CSV / XLSX）
"""

import csv
from io import StringIO, BytesIO

import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill

from utils.helpers import format_date

REGISTRATION_COLUMNS = [
    'Registration ID',
    'Team Leader Name',
    'Team Leader Enrollment',
    'Team Leader Email',
    'Team Leader Department',
    'Team Leader Program',
    'Team Leader Semester',
    'Team Members Count',
    'Team Members Details',
    'Verified',
    'Registration Date',
]

EVENT_COLUMNS = ['Event Name', 'Club Name']


def format_team_members(team_members):
    """'Name (Enrollment) - email'，多人以 ' | ' 连接"""
    return ' | '.join(
        f"{member.name} ({member.enrollment}) - {member.email}"
        for member in team_members
    )


def registration_row(registration, date_format, include_event=False):
    row = [
        registration.registration_id,
        registration.team_leader_name,
        registration.team_leader_enrollment,
        registration.team_leader_email,
        registration.team_leader_department,
        registration.team_leader_program,
        registration.team_leader_semester,
        len(registration.team_members),
        format_team_members(registration.team_members),
        'Yes' if registration.verified else 'No',
        format_date(registration.created_at, date_format),
    ]
    if include_event:
        row = [registration.event_name or '', registration.club_name or ''] + row
    return row


def export_filename(event=None, extension='csv', all_filename='All Registrations'):
    if event is None:
        return f"{all_filename}.{extension}"
    return f"{event.club_name} - {event.name}.{extension}"


def registrations_to_csv(registrations, date_format='%d/%m/%Y', include_event=False):
    """所有字段加双引号，内部双引号加倍"""
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    header = (EVENT_COLUMNS if include_event else []) + REGISTRATION_COLUMNS
    writer.writerow(header)
    for registration in registrations:
        writer.writerow(registration_row(registration, date_format, include_event))
    return output.getvalue()


def registrations_to_xlsx(registrations, date_format='%d/%m/%Y', include_event=False, sheet_name='Registrations'):
    """导出为Excel，列与 CSV 相同"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_name

    header = (EVENT_COLUMNS if include_event else []) + REGISTRATION_COLUMNS
    for col, title in enumerate(header, 1):
        cell = ws.cell(row=1, column=col, value=title)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal='center')
        cell.fill = PatternFill(start_color='CCCCCC', end_color='CCCCCC', fill_type='solid')

    for row_index, registration in enumerate(registrations, 2):
        for col, value in enumerate(registration_row(registration, date_format, include_event), 1):
            ws.cell(row=row_index, column=col, value=value)

    # 调整列宽
    for column in ws.columns:
        max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
        ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 60)

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()
