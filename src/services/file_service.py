"""
File Service for drug list exports.
Renders drug lists as spreadsheet-friendly CSV files and printable PDF tables.
"""
import csv
import io
from typing import List
from xml.sax.saxutils import escape
from zoneinfo import ZoneInfo
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from src.core import config
from src.core.logger import get_logger
from src.models.drug_model import Drug

logger = get_logger(__name__)

CSV_HEADER = ("Name", "Form", "Expiration date", "Description")
CSV_SEPARATOR = ";"
CSV_FILENAME = "drugs_list.csv"
UTF8_BOM = "\ufeff"

PDF_TITLE = "Medicine Cabinet"
PDF_HEADER = ("No.", "Name", "Form", "Expiration")
PDF_FILENAME = "drugs_list.pdf"
PDF_ACCENT = colors.HexColor("#1E90FF")


class FileService:
    """Service for file generation operations."""

    def __init__(self, zone_name: str = None):
        self.zone = ZoneInfo(zone_name or config.settings.time_zone)

    def generate_csv(self, drugs: List[Drug]) -> bytes:
        """
        Generate a CSV document for a list of drugs.

        Columns are separated by semicolons so spreadsheet programs using a
        comma as decimal separator open the file correctly. Every field is
        quoted; the expiration is the local date.

        Args:
            drugs: Drugs to export, already sorted

        Returns:
            UTF-8 encoded CSV bytes starting with a byte order mark
        """
        buffer = io.StringIO()
        buffer.write(UTF8_BOM)

        writer = csv.writer(buffer, delimiter=CSV_SEPARATOR, quoting=csv.QUOTE_ALL, lineterminator='\n')
        writer.writerow(CSV_HEADER)
        for drug in drugs:
            writer.writerow([drug.name, drug.form.name, self._local_date(drug), drug.description])

        return buffer.getvalue().encode('utf-8')

    def generate_pdf(self, drugs: List[Drug]) -> bytes:
        """
        Generate a PDF document with a numbered table of drugs.

        Args:
            drugs: Drugs to export, already sorted

        Returns:
            PDF bytes
        """
        logger.info("Generating PDF for %d drug(s)", len(drugs))
        styles = getSampleStyleSheet()
        cell_style = styles['BodyText']

        title_style = styles['Title'].clone('CabinetTitle', textColor=PDF_ACCENT)

        rows = [list(PDF_HEADER)]
        for index, drug in enumerate(drugs, start=1):
            rows.append([
                str(index),
                Paragraph(escape(drug.name), cell_style),
                drug.form.name,
                self._local_date(drug)
            ])

        table = Table(rows, colWidths=[14 * mm, 96 * mm, 34 * mm, 34 * mm], repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), PDF_ACCENT),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))

        buffer = io.BytesIO()
        document = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            title=PDF_TITLE,
            leftMargin=15 * mm,
            rightMargin=15 * mm
        )
        document.build([
            Paragraph(PDF_TITLE, title_style),
            HRFlowable(width="80%", thickness=1, color=PDF_ACCENT),
            Spacer(1, 6 * mm),
            table
        ])
        return buffer.getvalue()

    def _local_date(self, drug: Drug) -> str:
        return drug.expiration_date.astimezone(self.zone).date().isoformat()
