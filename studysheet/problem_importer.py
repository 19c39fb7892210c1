import pandas as pd
from loguru import logger
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from studysheet.errors import ValidationError
from studysheet.schemas import ProblemCreate

# Column order of an exported DSA sheet without a header row
SHEET_COLUMNS = [
    "question_number",
    "title",
    "difficulty",
    "link",
    "link_gfg",
    "topic_category",
    "companies",
    "frequency_score",
]

COLUMN_ALIASES = {
    "number": "question_number",
    "no": "question_number",
    "#": "question_number",
    "question_number": "question_number",
    "title": "title",
    "problem": "title",
    "name": "title",
    "difficulty": "difficulty",
    "leetcode_link": "link",
    "leetcode": "link",
    "link": "link",
    "gfg_link": "link_gfg",
    "gfg": "link_gfg",
    "topic": "topic_category",
    "topic_category": "topic_category",
    "category": "topic_category",
    "companies": "companies",
    "company": "companies",
    "frequency": "frequency_score",
    "frequency_score": "frequency_score",
    "comment": "comment",
    "notes": "comment",
}

class ProblemImporter:
    """
    Parse DSA sheet exports into problems.
    Accepts files with a header row (matched through COLUMN_ALIASES) or the
    bare 8-column layout in SHEET_COLUMNS.
    """

    @staticmethod
    def parse_csv(file_path) -> List[ProblemCreate]:
        """Parse a CSV sheet. `file_path` may also be a file-like object."""
        df = pd.read_csv(file_path, header=None, dtype=str, skip_blank_lines=True)
        return ProblemImporter._parse_frame(df)

    @staticmethod
    def parse_excel(file_path) -> List[ProblemCreate]:
        """Parse the first worksheet of an Excel sheet"""
        df = pd.read_excel(file_path, header=None, dtype=str)
        return ProblemImporter._parse_frame(df)

    @staticmethod
    def auto_parse(file_path: str) -> List[ProblemCreate]:
        """
        Detect file type and parse accordingly.
        Supports: CSV, Excel (xlsx, xls)
        """
        file_ext = Path(file_path).suffix.lower()

        if file_ext == ".csv":
            return ProblemImporter.parse_csv(file_path)
        elif file_ext in [".xlsx", ".xls"]:
            return ProblemImporter.parse_excel(file_path)
        else:
            raise ValidationError(f"Unsupported file format: {file_ext}. Use .csv or .xlsx")

    @staticmethod
    def _parse_frame(df: pd.DataFrame) -> List[ProblemCreate]:
        df = df.dropna(how="all")
        if df.empty:
            return []

        header = [ProblemImporter._clean_text(value) for value in df.iloc[0]]
        header_keys = [h.lower().replace(" ", "_") if h else "" for h in header]

        if "title" in header_keys or "problem" in header_keys:
            columns = [COLUMN_ALIASES.get(key, key) for key in header_keys]
            df = df.iloc[1:]
        else:
            columns = SHEET_COLUMNS[:len(df.columns)]
            columns += [f"extra_{i}" for i in range(len(columns), len(df.columns))]
        df.columns = columns
        df = df.loc[:, ~df.columns.duplicated()]

        problems = []
        skipped = 0
        for row_number, (_, row) in enumerate(df.iterrows(), 1):
            item = ProblemImporter._row_to_item(row)
            if not item.get("title"):
                skipped += 1
                continue
            try:
                problems.append(ProblemCreate(**item))
            except PydanticValidationError as e:
                skipped += 1
                logger.warning(f"Skipping row {row_number}: {e.errors()[0]['msg']}")

        if skipped:
            logger.warning(f"Skipped {skipped} row(s) without a usable title")
        logger.info(f"Parsed {len(problems)} problem(s) from sheet")
        return problems

    @staticmethod
    def _row_to_item(row: pd.Series) -> Dict[str, Any]:
        item = {}
        for field in ProblemCreate.model_fields:
            if field not in row.index:
                continue
            value = row[field]
            if field == "question_number":
                item[field] = ProblemImporter._to_int(value)
            elif field == "frequency_score":
                item[field] = ProblemImporter._to_float(value)
            else:
                item[field] = ProblemImporter._clean_text(value)
        return item

    @staticmethod
    def _clean_text(value: Any) -> Optional[str]:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        text = str(value).strip()
        if not text or text.lower() == "nan":
            return None
        return text

    @staticmethod
    def _to_float(value: Any) -> Optional[float]:
        text = ProblemImporter._clean_text(value)
        if text is None:
            return None
        try:
            return float(text)
        except ValueError:
            return None

    @staticmethod
    def _to_int(value: Any) -> Optional[int]:
        number = ProblemImporter._to_float(value)
        return int(number) if number is not None else None
