"""
Report Table Generator.

Writes the result tables of the analysis runners as Word documents, each
holding a caption and a formatted grid table. Every table is also saved as
CSV and Markdown for easy copy-pasting into the final report.
"""

import os
import pandas as pd
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from typing import Dict, List


def _format_cell(value) -> str:
    # Tables arrive already rounded; print them as stored
    if isinstance(value, float):
        return "NA" if pd.isna(value) else str(float(value))
    return str(value)


def export_word_table(df: pd.DataFrame, caption: str, filepath: str) -> str:
    """
    Saves a DataFrame as a captioned table in a new Word document.

    Parameters
    ----------
    df : pd.DataFrame
        The table to export. The index is not written; reset it first if it
        carries information.
    caption : str
        Caption placed above the table.
    filepath : str
        Target .docx path.

    Returns
    -------
    str
        The path of the written document.
    """
    folder = os.path.dirname(filepath)
    if folder:
        os.makedirs(folder, exist_ok=True)

    doc = Document()
    title = doc.add_paragraph(caption, style="Caption")
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    table = doc.add_table(rows=1, cols=len(df.columns))
    table.style = "Table Grid"
    table.autofit = True

    header = table.rows[0].cells
    for cell, name in zip(header, df.columns):
        cell.text = str(name)
        for run in cell.paragraphs[0].runs:
            run.font.bold = True
            run.font.size = Pt(10)

    for row in df.itertuples(index=False):
        cells = table.add_row().cells
        for cell, value in zip(cells, row):
            cell.text = _format_cell(value)
            for run in cell.paragraphs[0].runs:
                run.font.size = Pt(10)

    doc.save(filepath)
    return filepath


def export_table(df: pd.DataFrame, caption: str, output_dir: str, stem: str) -> Dict[str, str]:
    """
    Saves a table as .docx, .csv and .md under ``output_dir``.

    Parameters
    ----------
    df : pd.DataFrame
        The table to export.
    caption : str
        Caption for the Word document.
    output_dir : str
        Destination directory (created if needed).
    stem : str
        File name without extension, e.g. 'PCA_Variance'.

    Returns
    -------
    Dict[str, str]
        Format -> written path.
    """
    os.makedirs(output_dir, exist_ok=True)

    paths = {
        "docx": os.path.join(output_dir, f"{stem}.docx"),
        "csv": os.path.join(output_dir, f"{stem}.csv"),
        "md": os.path.join(output_dir, f"{stem}.md"),
    }

    export_word_table(df, caption, paths["docx"])
    df.to_csv(paths["csv"], index=False)
    with open(paths["md"], "w") as f:
        f.write(f"**{caption}**\n\n")
        f.write(df.to_markdown(index=False))
        f.write("\n")

    print(f"  [Saved table] {stem} (.docx/.csv/.md)")
    return paths


def list_artifacts(output_dir: str) -> List[str]:
    """Sorted file names in a runner's output directory."""
    if not os.path.isdir(output_dir):
        return []
    return sorted(os.listdir(output_dir))
