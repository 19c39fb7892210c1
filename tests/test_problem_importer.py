"""Tests for DSA sheet import."""
import io

import pandas as pd
import pytest

from studysheet.crud import create_problems, list_problems
from studysheet.errors import ValidationError
from studysheet.problem_importer import ProblemImporter

HEADERLESS_SHEET = """\
1,Two Sum,Easy,https://leetcode.com/problems/two-sum,https://www.geeksforgeeks.org/two-sum,Arrays,"Amazon, Google",95
2,Merge Intervals,Medium,https://leetcode.com/problems/merge-intervals,,Arrays,Meta,80.5
3,Median of Two Sorted Arrays,Hard,,,Binary Search,,
"""

HEADER_SHEET = """\
Number,Title,Difficulty,LeetCode Link,GFG Link,Topic,Companies,Frequency
10,Valid Parentheses,Easy,https://leetcode.com/problems/valid-parentheses,,Stacks,Amazon,70
11,,Medium,,,Stacks,,
12,  Min Stack ,medium,,,Stacks,,abc
"""


class TestParseCsv:

    def test_headerless_sheet_uses_positional_columns(self):
        problems = ProblemImporter.parse_csv(io.StringIO(HEADERLESS_SHEET))

        assert [p.title for p in problems] == ["Two Sum", "Merge Intervals", "Median of Two Sorted Arrays"]
        first = problems[0]
        assert first.question_number == 1
        assert first.difficulty == "Easy"
        assert first.link == "https://leetcode.com/problems/two-sum"
        assert first.link_gfg == "https://www.geeksforgeeks.org/two-sum"
        assert first.topic_category == "Arrays"
        assert first.companies == "Amazon, Google"
        assert first.frequency_score == 95.0
        assert problems[1].link_gfg is None
        assert problems[1].frequency_score == 80.5
        assert problems[2].companies is None

    def test_header_row_is_detected(self):
        problems = ProblemImporter.parse_csv(io.StringIO(HEADER_SHEET))

        assert [p.title for p in problems] == ["Valid Parentheses", "Min Stack"]
        assert problems[0].question_number == 10
        assert problems[0].link == "https://leetcode.com/problems/valid-parentheses"
        assert problems[0].topic_category == "Stacks"

    def test_bad_numbers_become_empty(self):
        problems = ProblemImporter.parse_csv(io.StringIO(HEADER_SHEET))

        assert problems[1].frequency_score is None
        assert problems[1].difficulty == "medium"

    def test_rows_without_title_are_skipped(self):
        sheet = "1,,Easy\n2,   ,Hard\n3,Jump Game,Medium\n"

        problems = ProblemImporter.parse_csv(io.StringIO(sheet))

        assert [(p.question_number, p.title) for p in problems] == [(3, "Jump Game")]


class TestAutoParse:

    def test_dispatches_on_extension(self, tmp_path):
        sheet = tmp_path / "sheet.csv"
        sheet.write_text(HEADERLESS_SHEET)

        assert len(ProblemImporter.auto_parse(str(sheet))) == 3

    def test_excel_sheet(self, tmp_path):
        sheet = tmp_path / "sheet.xlsx"
        pd.DataFrame([
            ["Number", "Title", "Difficulty", "Topic"],
            ["4", "Longest Substring", "Medium", "Strings"],
            ["5", "Word Ladder", "Hard", "Graphs"],
        ]).to_excel(sheet, index=False, header=False)

        problems = ProblemImporter.auto_parse(str(sheet))

        assert [(p.question_number, p.title, p.topic_category) for p in problems] == [
            (4, "Longest Substring", "Strings"),
            (5, "Word Ladder", "Graphs"),
        ]

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValidationError):
            ProblemImporter.auto_parse(str(tmp_path / "sheet.pdf"))


def test_imported_problems_start_due(db, user, now):
    items = ProblemImporter.parse_csv(io.StringIO(HEADERLESS_SHEET))

    create_problems(db, user.id, items)

    stored = list_problems(db, user.id)
    assert len(stored) == 3
    assert all(p.srs_bucket == 0 and p.next_review_at is None for p in stored)
