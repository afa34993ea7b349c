import json
import logging
import pandas as pd
from pathlib import Path
import argparse
from typing import Any, Dict, List, Union

from lca_backend.app.config import configure_logging, get_settings
from lca_backend.app.errors import LCAServiceError
from lca_backend.app.report_service import NarrativeClient, markdown_to_pdf

logger = logging.getLogger(__name__)

def stage_table(lca_data: Dict[str, Any]) -> pd.DataFrame:
    """Impacts by life-cycle stage, with each stage's share of the totals."""
    results = lca_data['impact_assessment_results']
    df = pd.DataFrame.from_dict(results['by_stage'], orient='index')
    totals = results['totals']
    for column in ('gwp_kg_co2e', 'ced_mj'):
        total = totals.get(column) or 0
        df[f'{column}_share_percent'] = (df[column] / total * 100).round(1) if total else 0.0
    df.index.name = 'stage'
    return df

def batch_summary(reports: List[Dict[str, Any]]) -> pd.DataFrame:
    """One row per report: identity columns plus every total indicator."""
    rows = []
    for report in reports:
        row = {
            'report_id': report['project_details']['report_id'],
            'product_name': report['project_details']['product_name'],
            'company_name': report['project_details']['company_name'],
        }
        row.update(report['impact_assessment_results']['totals'])
        rows.append(row)
    return pd.DataFrame(rows)

def json_to_excel(lca_data: Union[Dict[str, Any], List[Dict[str, Any]]], output_path: Path):
    """Converts an LCA JSON result (or a batch of them) into a multi-sheet Excel report."""
    reports = lca_data if isinstance(lca_data, list) else [lca_data]
    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        if len(reports) > 1:
            batch_summary(reports).to_excel(writer, sheet_name="Batch Summary", index=False)
        first = reports[0]
        details = {**first['project_details'], **first['scope_and_boundaries']}
        pd.DataFrame.from_dict(details, orient='index', columns=['Value']).to_excel(writer, sheet_name="Project & Scope")
        inventory = pd.json_normalize(first['life_cycle_inventory']).iloc[0].to_dict()
        inventory = {k: ', '.join(v) if isinstance(v, list) else v for k, v in inventory.items()}
        pd.DataFrame.from_dict(inventory, orient='index', columns=['Value']).to_excel(writer, sheet_name="Life Cycle Inventory")
        stage_table(first).to_excel(writer, sheet_name="Impacts by Stage")
        pd.DataFrame.from_dict(first['impact_assessment_results']['totals'], orient='index', columns=['Value']).to_excel(writer, sheet_name="Impact Totals")
    logger.info("Excel report saved to %s", output_path)

def json_to_pdf(lca_data: Dict[str, Any], output_path: Path, client: NarrativeClient = None):
    """Writes the narrative PDF report for one LCA result."""
    markdown = (client or NarrativeClient(get_settings())).generate(lca_data)
    output_path.write_bytes(markdown_to_pdf(markdown))
    output_path.with_suffix('.md').write_text(markdown, encoding='utf-8')
    logger.info("PDF report saved to %s", output_path)

def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate reports from LCA JSON output.")
    parser.add_argument("json_file", type=str, help="Path to the input LCA result JSON file (one report or a list).")
    parser.add_argument("--out-dir", type=str, default="reports_output", help="Directory for the generated files.")
    parser.add_argument("--pdf", action="store_true", help="Also write a narrative PDF (needs LLM_API_KEY).")
    args = parser.parse_args(argv)

    configure_logging(get_settings().log_level)

    input_path = Path(args.json_file)
    if not input_path.exists():
        print(f"❌ Error: Input file not found at '{input_path}'")
        return 1

    with open(input_path, 'r', encoding='utf-8') as f:
        lca_results = json.load(f)
    if not lca_results:
        print(f"❌ Error: '{input_path}' contains no LCA results")
        return 1

    output_dir = Path(args.out_dir); output_dir.mkdir(parents=True, exist_ok=True)
    excel_output_path = output_dir / f"{input_path.stem}_report.xlsx"
    json_to_excel(lca_results, excel_output_path)
    print(f"✅ Excel report successfully saved to {excel_output_path}")

    if args.pdf:
        first = lca_results[0] if isinstance(lca_results, list) else lca_results
        pdf_output_path = output_dir / f"{input_path.stem}_report.pdf"
        try:
            json_to_pdf(first, pdf_output_path)
        except LCAServiceError as e:
            print(f"❌ Failed to create PDF report: {e}")
            return 1
        print(f"✅ PDF report successfully saved to {pdf_output_path}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
