import io
import logging
from xml.sax.saxutils import escape

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

from utils import local_now

logger = logging.getLogger(__name__)


def create_rating_graph(analytics):
    """
    Create a bar graph image of the average rating per subject.
    """
    labels = []
    averages = []
    for index, subject in enumerate(analytics, start=1):
        labels.append(f"S{index}")
        averages.append(subject['average_rating'] or 0)

    plt.rcParams['figure.dpi'] = 300
    fig, ax = plt.subplots(figsize=(10, 4))
    bars = ax.bar(labels, averages, color='#007bff')

    ax.set_xlabel('')
    ax.set_ylabel('')
    ax.set_title('')
    ax.set_ylim(0, 5)

    plt.xticks(fontsize=9)
    plt.yticks(fontsize=9)

    for bar, average in zip(bars, averages):
        height = bar.get_height()
        ax.text(bar.get_x() + bar.get_width()/2.0, height,
               f'{average:.2f}',
               ha='center', va='bottom',
               fontsize=9)

    ax.grid(True, axis='y', linestyle='--', alpha=0.7)
    plt.tight_layout()

    buf = io.BytesIO()
    plt.savefig(buf, format='png', bbox_inches='tight', dpi=300)
    plt.close(fig)
    buf.seek(0)
    return buf


class FooterCanvas:
    def __init__(self, canvas, doc, batch_name):
        self.canvas = canvas
        self.doc = doc
        self.batch_name = batch_name

    def draw_footer(self):
        self.canvas.saveState()
        left = f"Generated {local_now().strftime('%Y-%m-%d %H:%M')}"
        center = f"Page {self.doc.page}"
        right = f"STUDENT FEEDBACK PORTAL/BATCH {self.batch_name}"
        self.canvas.setFont("Helvetica", 7)
        self.canvas.setFillColor(colors.gray)

        self.canvas.drawString(25, 20, left)
        self.canvas.drawCentredString(self.doc.pagesize[0]/2, 20, center)
        right_text_width = self.canvas.stringWidth(right, "Helvetica", 7)
        self.canvas.drawString(self.doc.pagesize[0] - right_text_width - 25, 20, right)

        self.canvas.restoreState()


def generate_feedback_report(batch_name, semester_number, analytics, output=None):
    """
    Render the per-subject feedback analytics of one batch/semester as PDF.

    ``analytics`` is the list produced by analytics_service.feedback_analytics.
    The PDF is written to ``output`` (a path or binary file object); when
    omitted the PDF bytes are returned.
    """
    buffer = output if output is not None else io.BytesIO()
    logger.info(f"Generating feedback report for batch {batch_name}, semester {semester_number}")

    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20,
        leftMargin=20,
        topMargin=20,
        bottomMargin=40,
        title=f"Feedback report {batch_name} semester {semester_number}",
    )

    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=12,
        alignment=1,
        spaceAfter=2
    )

    info_style = ParagraphStyle(
        'InfoStyle',
        parent=styles['Normal'],
        fontSize=9,
        alignment=1,
        spaceAfter=4
    )

    reference_style = ParagraphStyle(
        'ReferenceStyle',
        parent=styles['Normal'],
        fontSize=8,
        leading=9,
        leftIndent=20
    )

    reference_title_style = ParagraphStyle(
        'ReferenceTitle',
        parent=styles['Normal'],
        fontSize=9,
        leading=10,
        fontName='Helvetica-Bold'
    )

    elements = []
    elements.append(Paragraph("STUDENT FEEDBACK ON COURSE DELIVERY", title_style))
    elements.append(Paragraph(f"Batch: {escape(batch_name)}    Semester: {semester_number}", info_style))
    elements.append(Spacer(1, 3))

    table_data = [
        ['Ref', 'Subject', 'Period', 'Responses', 'Average', 'Min', 'Max'] + [f'{i}*' for i in range(1, 6)]
    ]
    for index, subject in enumerate(analytics, start=1):
        counts = subject['rating_counts']
        table_data.append([
            f"S{index}",
            subject['subject_name'],
            str(subject['period']) if subject.get('period') is not None else '-',
            str(subject['feedback_count']),
            f"{subject['average_rating']:.2f}",
            str(subject['min_rating']),
            str(subject['max_rating']),
        ] + [str(counts[str(i)]) for i in range(1, 6)])

    table = Table(table_data)
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 8),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 1), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('ALIGN', (0, 0), (1, -1), 'LEFT'),
        ('ALIGN', (2, 0), (-1, -1), 'CENTER'),
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('TOPPADDING', (0, 0), (-1, -1), 1),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
        ('LEFTPADDING', (0, 0), (-1, -1), 2),
        ('RIGHTPADDING', (0, 0), (-1, -1), 2),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 5))

    if analytics:
        img = Image(create_rating_graph(analytics))
        img.drawWidth = A4[0] - 50
        img.drawHeight = 2.5 * inch
        elements.append(img)
        elements.append(Spacer(1, 5))

        elements.append(Paragraph("References:", reference_title_style))
        elements.append(Spacer(1, 2))
        for index, subject in enumerate(analytics, start=1):
            elements.append(Paragraph(f"S{index}: {escape(subject['subject_name'])}", reference_style))
    else:
        elements.append(Paragraph("No feedback has been submitted yet.", info_style))

    def footer_func(canvas, doc):
        FooterCanvas(canvas, doc, batch_name).draw_footer()

    try:
        doc.build(elements, onFirstPage=footer_func, onLaterPages=footer_func)
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        raise

    if output is None:
        return buffer.getvalue()
    return output
