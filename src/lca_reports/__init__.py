"""Offline exports of LCA results (Excel workbook, narrative PDF)."""
