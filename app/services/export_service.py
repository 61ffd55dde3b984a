"""PDF export of approved concession applications."""

from datetime import datetime
from io import BytesIO
from typing import Iterable, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from app.models.concession import ApplicationStatus, ConcessionApplication
from app.utils.dates import as_utc
from core.config import config
from core.logging import get_logger

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "S.No.",
    "Student Name",
    "Form No.",
    "Year & Branch",
    "Route",
    "Class",
    "Railway",
    "Pass Type",
    "Applied Date",
]
COLUMN_WIDTHS_MM = [14, 50, 30, 32, 60, 22, 32, 22, 26]


def _value(value) -> str:
    return str(getattr(value, "value", value))


def select_for_export(records: Iterable[ConcessionApplication]) -> List[ConcessionApplication]:
    """Exactly the approved applications, newest first."""
    approved = [r for r in records if _value(r.status) == ApplicationStatus.APPROVED.value]
    return sorted(approved, key=lambda r: as_utc(r.created_at), reverse=True)


def export_row(index: int, record: ConcessionApplication) -> list:
    return [
        str(index),
        record.student_name,
        record.concession_form_no,
        f"{_value(record.year)} {_value(record.branch)}",
        f"{record.from_station} - {record.to_station}",
        _value(record.class_type),
        _value(record.railway_type),
        _value(record.pass_type),
        record.created_at.strftime("%d/%m/%Y"),
    ]


class ExportService:
    """Service for generating the approved-concessions report."""

    @staticmethod
    def export_filename(generated_at: datetime) -> str:
        return f"Approved_Concessions_{generated_at.date().isoformat()}.pdf"

    @staticmethod
    def generate_approved_pdf(
        records: Iterable[ConcessionApplication],
        generated_at: datetime,
    ) -> BytesIO:
        """
        Render approved applications as a paginated table.

        Args:
            records: Any applications; only approved ones are exported
            generated_at: Timestamp printed in the header

        Returns:
            BytesIO object containing the PDF
        """
        approved = select_for_export(records)

        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A4),
            leftMargin=10 * mm,
            rightMargin=10 * mm,
            topMargin=12 * mm,
            bottomMargin=12 * mm,
            title="Approved Train Concession Applications",
        )
        styles = getSampleStyleSheet()

        title_style = ParagraphStyle(
            "CollegeTitle",
            parent=styles["Heading1"],
            fontSize=20,
            textColor=colors.HexColor("#1F2937"),
            spaceAfter=6,
        )
        heading_style = ParagraphStyle(
            "ReportHeading",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=colors.HexColor("#374151"),
            spaceAfter=6,
        )
        normal_style = ParagraphStyle(
            "ReportNormal",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#6B7280"),
        )
        cell_style = ParagraphStyle(
            "Cell",
            parent=styles["Normal"],
            fontSize=8,
            leading=10,
        )

        story = [
            Paragraph(escape(config.COLLEGE_NAME), title_style),
            Paragraph("Approved Train Concession Applications", heading_style),
            Paragraph(f"Generated on: {generated_at.strftime('%d/%m/%Y')}", normal_style),
            Paragraph(f"Total Applications: {len(approved)}", normal_style),
            Spacer(1, 6 * mm),
        ]

        table_data = [EXPORT_COLUMNS]
        for index, record in enumerate(approved, start=1):
            table_data.append(
                [Paragraph(escape(str(cell)), cell_style) for cell in export_row(index, record)]
            )

        table = Table(
            table_data,
            colWidths=[width * mm for width in COLUMN_WIDTHS_MM],
            repeatRows=1,
        )
        table.setStyle(
            TableStyle(
                [
                    # Header
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#3B82F6")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    # Data rows
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F5F7FA")]),
                    ("ALIGN", (0, 1), (0, -1), "CENTER"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("TOPPADDING", (0, 1), (-1, -1), 2),
                    ("BOTTOMPADDING", (0, 1), (-1, -1), 2),
                    # Grid
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#E5E7EB")),
                ]
            )
        )
        story.append(table)

        doc.build(story)
        buffer.seek(0)

        logger.info(f"Generated approved concessions export with {len(approved)} rows")
        return buffer
