"""
Reporting service for the School Result Portal
Renders student report cards to PDF
"""

from io import BytesIO
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from services.result_engine import ResultEngine

PAGE_MARGIN = 18 * mm

class ReportingService:
    """Service for generating report cards"""

    @staticmethod
    def _format_number(value):
        """Format number: whole numbers without decimals, fractional numbers with 2 decimal places."""
        if value is None:
            return ''
        num = float(value)
        if num == int(num):
            return int(num)
        return round(num, 2)

    @staticmethod
    def _paragraph(value, style):
        text = xml_escape('' if value is None else str(value)).replace('\n', '<br/>')
        return Paragraph(text, style)

    @staticmethod
    def _build_table(rows, col_widths, header_bg=colors.black, center_cols=None):
        """Standard bordered table with a dark header row"""
        table = Table(rows, colWidths=col_widths, repeatRows=1)
        style = [
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('BACKGROUND', (0, 0), (-1, 0), header_bg),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]
        for col in center_cols or ():
            style.append(('ALIGN', (col, 0), (col, -1), 'CENTER'))
        table.setStyle(TableStyle(style))
        return table

    @staticmethod
    def generate_report_card_pdf(report_card, school_name):
        """Generate a PDF for a report card dictionary and return bytes"""
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=PAGE_MARGIN, rightMargin=PAGE_MARGIN,
                                topMargin=PAGE_MARGIN, bottomMargin=PAGE_MARGIN)
        styles = getSampleStyleSheet()
        title_center = ParagraphStyle('TitleCenter', parent=styles['Title'], alignment=1)
        subtitle_center = ParagraphStyle('SubtitleCenter', parent=styles['Normal'], alignment=1)
        cell_style = ParagraphStyle('Cell', parent=styles['Normal'], fontSize=9, leading=11)
        page_width = A4[0] - 2 * PAGE_MARGIN

        elements = [
            Paragraph(xml_escape(school_name), title_center),
            Paragraph(
                xml_escape(f"Report Card - {str(report_card['term']).title()} Term, {report_card['session']} Session"),
                subtitle_center
            ),
            Spacer(1, 10),
        ]

        info_rows = [
            ['Name', report_card.get('student_name') or ''],
            ['Student Number', report_card.get('student_number') or ''],
            ['Class', f"{report_card.get('class_name') or ''} {report_card.get('arm') or ''}".strip()],
            ['Position', f"{report_card.get('position_in_words') or '-'} out of {report_card.get('total_students') or '-'}"],
        ]
        info_table = Table(info_rows, colWidths=[45 * mm, page_width - 45 * mm])
        info_table.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))
        elements.extend([info_table, Spacer(1, 12)])

        elements.append(Paragraph('Subject Scores', styles['Heading2']))
        score_rows = [['Subject', 'CA1', 'CA2', 'Exam', 'Total', 'Grade', 'Remark']]
        for subject in report_card.get('subjects', []):
            score_rows.append([
                ReportingService._paragraph(subject.get('name'), cell_style),
                subject.get('ca1'), subject.get('ca2'), subject.get('exam'),
                subject.get('total'), subject.get('grade'),
                ReportingService._paragraph(subject.get('remark'), cell_style),
            ])
        col_fracs = [0.30, 0.09, 0.09, 0.09, 0.10, 0.09, 0.24]
        elements.append(ReportingService._build_table(
            score_rows, [page_width * frac for frac in col_fracs], center_cols={1, 2, 3, 4, 5}
        ))
        elements.append(Spacer(1, 10))

        summary_rows = [
            ['Total Score', ReportingService._format_number(report_card.get('total_score'))],
            ['Average Score', ReportingService._format_number(report_card.get('average_score'))],
            ['Subjects Offered', report_card.get('subject_count')],
        ]
        summary_table = Table(summary_rows, colWidths=[45 * mm, page_width - 45 * mm])
        summary_table.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ]))
        elements.extend([summary_table, Spacer(1, 12)])

        elements.append(Paragraph('Remarks', styles['Heading2']))
        remark_rows = [
            ["Class Teacher", ReportingService._paragraph(report_card.get('class_teacher_remark'), cell_style)],
            ["Principal", ReportingService._paragraph(report_card.get('principal_remark'), cell_style)],
            ["Recommendation", ReportingService._paragraph(report_card.get('recommendation'), cell_style)],
        ]
        remark_table = Table(remark_rows, colWidths=[45 * mm, page_width - 45 * mm])
        remark_table.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        elements.append(remark_table)

        elements.append(Spacer(1, 12))
        grading_rows = [['Grade', 'Range', 'Remark']]
        for grade, band in ResultEngine.grading_system().items():
            grading_rows.append([grade, f"{band['min']} - {band['max']}", band['remark']])
        elements.append(ReportingService._build_table(
            grading_rows, [page_width * 0.2, page_width * 0.3, page_width * 0.5], center_cols={0, 1}
        ))

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes
