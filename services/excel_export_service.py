"""
Excel export service for the School Result Portal
Class broadsheet of approved results
"""

import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from io import BytesIO

from services.result_engine import ResultEngine

class ExcelExportService:
    """Service for exporting results to Excel"""

    @staticmethod
    def style_header_row(ws, row_num, columns):
        """Apply styling to header row"""
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="000000", end_color="000000", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")

        for col_num, header in enumerate(columns, 1):
            cell = ws.cell(row=row_num, column=col_num, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment

    @staticmethod
    def auto_adjust_columns(ws):
        """Auto-adjust column widths"""
        for column in ws.columns:
            column_letter = get_column_letter(column[0].column)
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[column_letter].width = min(max_length + 2, 50)

    @staticmethod
    def format_number(value):
        """Whole numbers without decimals, fractional numbers with 2 decimal places"""
        if value is None:
            return None
        num = float(value)
        if num == int(num):
            return int(num)
        return round(num, 2)

    @staticmethod
    def export_broadsheet(school_class, term, session_name, standings):
        """Build the broadsheet workbook and return it as bytes.

        ``standings`` is a list of (position, Result) pairs in rank order.
        """
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Broadsheet"

        ws.cell(row=1, column=1, value=f"{school_class.name} - {term.title()} Term {session_name}").font = Font(bold=True, size=13)

        # One column per subject, in first-seen order across the class
        subject_names = []
        for _position, result in standings:
            for subject in result.subjects or []:
                if subject['name'] not in subject_names:
                    subject_names.append(subject['name'])

        headers = ['Position', 'Student Number', 'Student Name', 'Arm'] + subject_names + ['Total', 'Average', 'Grade']
        ExcelExportService.style_header_row(ws, 3, headers)

        row_num = 4
        for position, result in standings:
            by_name = {subject['name']: subject for subject in result.subjects or []}
            row = [
                ResultEngine.position_in_words(position),
                result.student.student_number if result.student else '',
                result.student.name if result.student else '',
                result.arm,
            ]
            for name in subject_names:
                subject = by_name.get(name)
                row.append(subject['total'] if subject else None)

            average = ExcelExportService.format_number(result.average_score)
            row.extend([result.total_score, average, ResultEngine.compute_grade(round(result.average_score))])

            for col_num, value in enumerate(row, 1):
                cell = ws.cell(row=row_num, column=col_num, value=value)
                cell.alignment = Alignment(horizontal="left" if col_num in (2, 3) else "center", vertical="center")
            row_num += 1

        if not standings:
            ws.cell(row=4, column=1, value="No approved results")

        ExcelExportService.auto_adjust_columns(ws)

        output = BytesIO()
        wb.save(output)
        return output.getvalue()
