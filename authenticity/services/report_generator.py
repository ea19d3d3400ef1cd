from datetime import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from authenticity.models.schemas import DetectionResult
from authenticity.services.detector import confidence_label
from authenticity.utils.highlight import claim_spans

TIER_COLORS = {
    "high": (200, 30, 30),
    "medium": (215, 120, 0),
}
PLAIN_COLOR = (0, 0, 0)

_REPLACEMENTS = {
    '\u2018': "'", '\u2019': "'", '\u201c': '"', '\u201d': '"',
    '\u2013': '-', '\u2014': '-', '\u25e6': '-', '\u2022': '-',
    '\r\n': '\n', '\r': '\n',
}


def clean_text(text: str) -> str:
    """Makes text safe for the latin-1 core PDF fonts."""
    if not text:
        return ""
    for char, replacement in _REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text.encode('latin-1', 'replace').decode('latin-1')


class PDFReport(FPDF):
    def header(self):
        self.set_font('Helvetica', 'B', 15)
        self.cell(0, 10, 'AI Detection Report', align='C', new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(5)

    def footer(self):
        self.set_y(-15)
        self.set_font('Helvetica', 'I', 8)
        self.cell(0, 10, f'Page {self.page_no()}', align='C')


def _line(pdf: PDFReport, text: str, h: float = 8):
    pdf.multi_cell(0, h, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def generate_report(text: str, result: DetectionResult) -> bytes:
    """
    Builds a PDF of a detection result. The analysed text is written with
    high and medium confidence sentences coloured by tier.
    """
    pdf = PDFReport()
    pdf.add_page()

    score = round(result.ai_score)
    pdf.set_font("Helvetica", size=11)
    _line(pdf, f"Date: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    pdf.ln(3)

    pdf.set_font("Helvetica", 'B', 14)
    _line(pdf, f"AI Score: {score}% ({confidence_label(result.ai_score)})", h=10)
    pdf.set_font("Helvetica", size=12)
    _line(pdf, f"Justification: {clean_text(result.justification) or 'None given.'}")
    pdf.ln(6)

    pdf.set_font("Helvetica", 'B', 14)
    _line(pdf, "Analysed Text:", h=10)
    pdf.set_font("Helvetica", size=11)
    _line(pdf, "Red: high confidence AI. Orange: medium confidence AI.", h=6)
    pdf.ln(3)

    # Spans are claimed on the raw text; cleaning happens per segment
    cursor = 0
    for span in claim_spans(text, result.tiers()):
        if span.start > cursor:
            pdf.set_text_color(*PLAIN_COLOR)
            pdf.write(7, clean_text(text[cursor:span.start]))
        pdf.set_text_color(*TIER_COLORS.get(span.tier, PLAIN_COLOR))
        pdf.write(7, clean_text(text[span.start:span.end]))
        cursor = span.end
    if cursor < len(text):
        pdf.set_text_color(*PLAIN_COLOR)
        pdf.write(7, clean_text(text[cursor:]))
    pdf.set_text_color(*PLAIN_COLOR)

    return bytes(pdf.output())
