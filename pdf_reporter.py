import io
import logging
import os
from datetime import date, datetime

import arabic_reshaper
import plotly.graph_objects as go
from bidi.algorithm import get_display
from fpdf import FPDF, XPos, YPos
from PIL import Image

logger = logging.getLogger(__name__)

# --- CONSTANTS & STYLING ---
FONT_NAME = "Amiri-Regular.ttf"
A4_WIDTH = 210
A4_HEIGHT = 297

ACCENT_COLOR = (41, 128, 185) # #2980B9
LINE_COLOR = (224, 224, 224)
TITLE_COLOR = (44, 62, 80) # #2C3E50
KPI_TEXT_COLOR = (93, 109, 126) # #5D6D7E
CARD_BACKGROUND_COLOR = (248, 249, 250)

PLOTLY_TITLE_COLOR = f"rgb{TITLE_COLOR}"
PLOTLY_TEXT_COLOR = "rgb(0,0,0)"


class PDFReporter(FPDF):
    """
    Generates the console's statistics report with bilingual content:
    Arabic strings are reshaped and reordered before they reach the page.
    """
    def __init__(self, *args, font_path: str = FONT_NAME, **kwargs):
        super().__init__(*args, **kwargs)
        self.font_path = font_path
        self.font_loaded = False
        self._setup_fonts()

    def _setup_fonts(self):
        if not os.path.exists(self.font_path):
            logger.warning("Font file '%s' not found; Arabic text will not render", self.font_path)
            return
        try:
            self.add_font("Amiri", "", self.font_path)
            self.font_loaded = True
        except Exception as e:
            logger.error("FPDF error when adding font '%s': %s", self.font_path, e)

    def _font(self, size):
        if self.font_loaded:
            self.set_font("Amiri", "", size)
        else:
            self.set_font("Helvetica", "", size)

    def _process_text(self, text):
        if text is None:
            return ""
        text = str(text)
        if not self.font_loaded:
            # Core fonts are latin-1 only
            return text.encode('latin-1', 'replace').decode('latin-1')
        return get_display(arabic_reshaper.reshape(text))

    def footer(self):
        if self.page_no() == 1:
            return
        self.set_y(-15)
        self._font(10)
        self.set_text_color(128, 128, 128)
        self.cell(0, 10, f"{self.page_no()}", align="C")
        self.set_y(-15)
        today_str = datetime.now().strftime("%Y-%m-%d")
        self.cell(0, 10, self._process_text(f"Content report - {today_str}"), align="R")

    def _get_drawable_width(self):
        return self.w - self.l_margin - self.r_margin

    def add_plot(self, fig: go.Figure, width_percent=90):
        """Renders a Plotly figure through kaleido; skipped when kaleido is unavailable."""
        if fig is None:
            return
        try:
            fig.update_layout(
                font=dict(family="Arial", size=12, color=PLOTLY_TEXT_COLOR),
                paper_bgcolor='rgba(0,0,0,0)',
                title=dict(font=dict(family="Arial", size=18, color=PLOTLY_TITLE_COLOR), x=0.5),
            )
            img_bytes = fig.to_image(format="png", scale=2, width=800, height=450)
        except Exception as e:
            logger.warning("Could not render chart for the PDF report: %s", e)
            return

        img_file = io.BytesIO(img_bytes)
        pil_img = Image.open(img_file)
        aspect_ratio = pil_img.height / pil_img.width
        img_width_mm = self._get_drawable_width() * (width_percent / 100)
        img_height_mm = img_width_mm * aspect_ratio

        if self.get_y() + img_height_mm > (self.h - self.b_margin):
            self.add_page()

        img_file.seek(0)
        self.image(img_file, x=(self.w - img_width_mm) / 2, y=self.get_y(), w=img_width_mm)
        self.set_y(self.get_y() + img_height_mm)

    def add_section_title(self, title):
        if self.get_y() > (self.h - self.b_margin - 30):
            self.add_page()
        self.ln(10)
        self._font(20)
        self.set_text_color(*TITLE_COLOR)
        self.cell(0, 12, self._process_text(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_draw_color(*ACCENT_COLOR)
        self.line(self.l_margin, self.get_y(), self.l_margin + 60, self.get_y())
        self.ln(6)

    def add_kpi_grid(self, kpis: dict, num_cols=3):
        if not kpis:
            return
        gap = 5
        col_width = (self._get_drawable_width() - (num_cols - 1) * gap) / num_cols
        card_height = 25

        kpi_list = list(kpis.items())
        for i in range(0, len(kpi_list), num_cols):
            y0 = self.get_y()
            for j, (label, value) in enumerate(kpi_list[i : i + num_cols]):
                x0 = self.l_margin + j * (col_width + gap)
                self.set_fill_color(*CARD_BACKGROUND_COLOR)
                self.rect(x0, y0, col_width, card_height, 'F')
                self.set_draw_color(*ACCENT_COLOR)
                self.line(x0, y0, x0, y0 + card_height)

                self._font(16)
                self.set_text_color(*TITLE_COLOR)
                self.set_xy(x0 + 5, y0 + 2)
                self.cell(col_width - 10, 10, self._process_text(str(value)))

                self._font(11)
                self.set_text_color(*KPI_TEXT_COLOR)
                self.set_xy(x0 + 5, y0 + 12)
                self.cell(col_width - 10, 10, self._process_text(label))
            self.set_y(y0 + card_height + gap)

    def add_table(self, headers: list, rows: list):
        """Simple striped table; Arabic cells are shaped like every other string."""
        if not rows:
            self._font(12)
            self.set_text_color(*KPI_TEXT_COLOR)
            self.cell(0, 10, self._process_text("No records."), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            return

        col_w = self._get_drawable_width() / len(headers)
        self._font(12)
        self.set_fill_color(*CARD_BACKGROUND_COLOR)
        self.set_draw_color(*LINE_COLOR)
        self.set_text_color(*TITLE_COLOR)
        for header in headers:
            self.cell(col_w, 10, self._process_text(header), border='B', align="C", fill=True)
        self.ln(10)

        self._font(10)
        self.set_text_color(50, 50, 50)
        for i, row in enumerate(rows):
            if self.get_y() > (self.h - self.b_margin - 10):
                self.add_page()
            self.set_fill_color(*((255, 255, 255) if i % 2 == 0 else CARD_BACKGROUND_COLOR))
            for value in row:
                self.cell(col_w, 8, self._process_text(value)[:60], align="C", fill=True)
            self.ln()

    def add_content_report(self, data: dict):
        """
        Builds the full statistics report.

        data keys: 'kpis' (label -> value), 'timed_rows' (list of
        [name, nameAr, kind, phase, start]), 'charts' (title -> figure).
        """
        self.add_page()
        self.set_y(A4_HEIGHT / 2 - 40)
        self._font(36)
        self.set_text_color(*TITLE_COLOR)
        self.cell(0, 25, self._process_text("Content Report"), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self._font(24)
        self.set_text_color(*ACCENT_COLOR)
        self.cell(0, 15, self._process_text("تقرير المحتوى"), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(10)
        self._font(14)
        self.set_text_color(*KPI_TEXT_COLOR)
        self.cell(0, 10, self._process_text(f"Issued: {date.today().strftime('%Y-%m-%d')}"), align="C")

        self.add_page()
        self.add_section_title("Key figures")
        self.add_kpi_grid(data.get('kpis', {}))

        self.add_section_title("Scheduled content")
        self.add_table(["Name", "الاسم", "Kind", "Status", "Start"], data.get('timed_rows', []))

        for title, fig in (data.get('charts') or {}).items():
            if fig is None:
                continue
            self.add_page()
            self.add_section_title(title)
            self.add_plot(fig)

    def to_bytes(self) -> bytes:
        return bytes(self.output())
