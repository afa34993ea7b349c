"""
Narrative LCA report generation.

The finished LCA JSON is embedded in a structured prompt and sent to an
OpenAI-compatible chat-completions endpoint; the Markdown it returns is then
rendered to PDF with reportlab. Failures here are reported to the caller,
they never reach the LCA engine.
"""
import html
import io
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .config import Settings, get_settings
from .errors import ReportGenerationError, ReportServiceNotConfigured

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a precise and professional LCA report generator."

REPORT_TEMPLATE = """
You are an expert LCA analyst and technical writer. Your task is to convert the provided JSON data into a WELL-DETAILED, comprehensive and professional Life Cycle Assessment report formatted in Markdown. Follow the structure below precisely, using the data from the JSON.

---

# Life Cycle Assessment of [Product Name]

- **Company:** [Company Name]
- **Report ID:** [Report ID]
- **Date:** [Date]

## 1. Executive Summary

Write a brief, professional overview. Mention the product studied, the functional unit, the system boundary (cradle-to-gate), and state the total Global Warming Potential (GWP) and Cumulative Energy Demand (CED) as the key findings.

## 2. Scope, Methodology, and Inventory

### 2.1. Goal and Scope
Detail the study's scope using the data from the `scope_and_boundaries` object in the JSON.
- **Functional Unit:**
- **System Boundaries:**
- **Geographical Scope:**
- **Time Horizon:**
- **Intended Audience:**

### 2.2. Life Cycle Inventory (LCI)
Summarize the key inputs and processes from the `life_cycle_inventory` object. Use bullet points for clarity.
- **Raw Materials:** (Mention scrap %, primary %, and alloys)
- **Energy Inputs:** (Mention electricity, gas, and renewable share)
- **Transportation:** (Mention modes and distances)
- **Manufacturing Processes:** (List the processes)
- **End-of-Life Assumptions:** (Mention recycling and landfill rates)

## 3. Standards and Guidelines Followed

This section should be included exactly as follows:
The methodology for this Life Cycle Assessment complies with the principles and requirements set forth by the following international standards:
- **ISO 14040:2006:** Environmental management - Life cycle assessment - Principles and framework.
- **ISO 14044:2006:** Environmental management - Life cycle assessment - Requirements and guidelines.
- Greenhouse gas emissions are calculated in accordance with the **GHG Protocol** and **IPCC** guidelines.

## 4. Life Cycle Impact Assessment (LCIA) Results

Create a clear Markdown table summarizing the **total** impact indicators from the `impact_assessment_results.totals` object.

| Indicator | Unit | Total Value |
| --- | --- | --- |
| Global Warming Potential (GWP) | kg CO2e | |
| Cumulative Energy Demand (CED) | MJ | |
| Material Circularity Indicator (MCI) | % | |
| Water Consumption | m3 | |
| Abiotic Depletion Potential (ADP) | kg Sb eq | |
| Ozone Depletion Potential (ODP) | kg CFC-11 eq | |
| Acidification Potential (AP) | kg SO2 eq | |
| Eutrophication Potential (EP) | kg PO4 eq | |
| Human Toxicity Potential | kg 1,4-DCB eq | |
| Ecotoxicity Potential | kg 1,4-DCB eq | |

## 5. Contribution Analysis & Hotspots

Based on the data in `impact_assessment_results.by_stage`, analyze the contribution of each life cycle stage to the main impact categories. Create a small table or bulleted list that clearly identifies which stage (Raw Materials, Manufacturing, or Transportation) is the biggest contributor ("hotspot") for GWP and CED. State the percentages. For example: "The manufacturing stage is the primary hotspot, accounting for X% of the total GWP."

## 6. Interpretation and Recommendations

### 6.1. Discussion of Results
Briefly discuss the findings. Explain *why* the identified hotspot (e.g., manufacturing) likely contributes the most to the environmental impact, referencing the energy inputs from the LCI.

### 6.2. Limitations
Mention one key limitation of this study, such as the use of generic database values for background processes or assumptions made in the transportation model.

### 6.3. Improvement Opportunities
Provide two actionable suggestions for the company to reduce the environmental impact of their product. For example: increasing the renewable energy share or sourcing scrap materials more locally to reduce transport emissions.

---

Here is the JSON data to use for the report:
"""


def build_report_prompt(lca_json: Mapping[str, Any]) -> str:
    return (REPORT_TEMPLATE + json.dumps(lca_json, indent=2)).strip()


def _retrying_session(retries: int = 3) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["POST"],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class NarrativeClient:
    """Calls the chat-completions endpoint that writes the report narrative."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or _retrying_session()

    def generate(self, lca_json: Mapping[str, Any]) -> str:
        """Return the Markdown report for `lca_json`."""
        if not self.settings.llm_configured:
            raise ReportServiceNotConfigured("LLM_API_KEY is not configured.")

        payload = {
            "model": self.settings.llm_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_report_prompt(lca_json)},
            ],
            "max_tokens": self.settings.llm_max_tokens,
            "temperature": self.settings.llm_temperature,
        }
        url = f"{self.settings.llm_base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.settings.llm_api_key}"}

        logger.info("Requesting LCA narrative from %s (%s)", url, self.settings.llm_model)
        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=self.settings.llm_timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Narrative service request failed: %s", e)
            raise ReportGenerationError(f"Narrative service request failed: {e}") from e
        except ValueError as e:
            raise ReportGenerationError("Narrative service returned invalid JSON.") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content or not str(content).strip():
            raise ReportGenerationError("No content returned from the narrative service.")
        return str(content)


# --- Markdown -> PDF ---

_TABLE_RULE = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?$")
_BULLET = re.compile(r"^\s*[-*+]\s+(.*)$")
_NUMBERED = re.compile(r"^\s*\d+[.)]\s+(.*)$")
_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")


def _inline(text: str) -> str:
    """Escape text and convert **bold**, *italic* and `code` to reportlab markup."""
    text = html.escape(text.strip(), quote=False)
    text = re.sub(r"\*\*(.+?)\*\*", r"<b>\1</b>", text)
    text = re.sub(r"(?<![\w*])\*(?!\s)(.+?)(?<!\s)\*(?![\w*])", r"<i>\1</i>", text)
    text = re.sub(r"`(.+?)`", r"<font face='Courier'>\1</font>", text)
    return text


def _split_row(line: str) -> List[str]:
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def markdown_to_flowables(markdown_text: str) -> List[Any]:
    styles = getSampleStyleSheet()
    heading_styles = {1: styles["Title"], 2: styles["Heading2"], 3: styles["Heading3"]}
    body = styles["BodyText"]

    story: List[Any] = []
    paragraph: List[str] = []
    bullets: List[str] = []
    table_rows: List[List[str]] = []

    def flush_paragraph():
        if paragraph:
            story.append(Paragraph(_inline(" ".join(paragraph)), body))
            paragraph.clear()

    def flush_bullets():
        if bullets:
            items = [ListItem(Paragraph(_inline(b), body), leftIndent=12) for b in bullets]
            story.append(ListFlowable(items, bulletType="bullet", start="•", leftIndent=12))
            bullets.clear()

    def flush_table():
        if table_rows:
            width = max(len(r) for r in table_rows)
            cells = [[Paragraph(_inline(c), body) for c in r + [""] * (width - len(r))] for r in table_rows]
            table = Table(cells, hAlign="LEFT", repeatRows=1)
            table.setStyle(TableStyle([
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#E5E7EB")),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]))
            story.append(table)
            story.append(Spacer(1, 0.15 * inch))
            table_rows.clear()

    def flush_all():
        flush_paragraph()
        flush_bullets()
        flush_table()

    for line in markdown_text.splitlines():
        stripped = line.strip()
        if not stripped:
            flush_all()
            continue
        if stripped.startswith("|"):
            flush_paragraph()
            flush_bullets()
            if not _TABLE_RULE.match(stripped):
                table_rows.append(_split_row(stripped))
            continue
        flush_table()
        if stripped == "---":
            flush_all()
            story.append(Spacer(1, 0.2 * inch))
            continue
        heading = _HEADING.match(stripped)
        if heading:
            flush_all()
            level = len(heading.group(1))
            style = heading_styles.get(level, styles["Heading4"])
            story.append(Paragraph(_inline(heading.group(2)), style))
            continue
        item = _BULLET.match(line) or _NUMBERED.match(line)
        if item:
            flush_paragraph()
            bullets.append(item.group(1))
            continue
        flush_bullets()
        paragraph.append(stripped)
    flush_all()
    return story


def markdown_to_pdf(markdown_text: str) -> bytes:
    """Render a Markdown report to PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=54,
        leftMargin=54,
        topMargin=54,
        bottomMargin=54,
        title="Life Cycle Assessment Report",
    )
    story = markdown_to_flowables(markdown_text) or [Spacer(1, 0.1 * inch)]
    doc.build(story)
    return buffer.getvalue()


def generate_report_pdf(lca_json: Mapping[str, Any], client: Optional[NarrativeClient] = None) -> Dict[str, Any]:
    """Narrative + PDF in one call; returns the Markdown and the PDF bytes."""
    if not lca_json:
        raise ReportGenerationError("Empty LCA payload.")
    markdown = (client or NarrativeClient()).generate(lca_json)
    return {"markdown": markdown, "pdf": markdown_to_pdf(markdown)}
