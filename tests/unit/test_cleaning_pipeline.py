"""
Unit tests for the cleaning pipeline.

Tests the plain clean() entry point, the result records produced by
CleaningPipeline and cleaning of real-world terminal sessions.
"""

import time

import pytest

from termclean.clean.pipeline import (
    CleaningPipeline, CleaningResult, BatchCleaningResult, apply_rules, clean
)
from termclean.clean.rules import CLEANING_RULES
from termclean.models import ErrorSeverity, ProcessingError, TextStats


class TestClean:
    """Test cases for the clean function."""

    def test_empty_input(self):
        """Test empty input returns an empty string."""
        assert clean("") == ""

    def test_none_input(self):
        """Test None is treated as empty input."""
        assert clean(None) == ""

    def test_boxed_prompt(self):
        """Test box, ANSI codes and prompt are all removed."""
        text = "┌────┐\n│ \x1b[32m$ test\x1b[0m │\n└────┘"
        assert clean(text) == "test"

    def test_table_row(self):
        """Test a table row loses its outer pipes."""
        assert clean("| Content here |") == "Content here"

    def test_pipeline_command(self):
        """Test pipes inside a command survive and spacing is normalized."""
        assert clean("Command  |  grep pattern  |  sort") == "Command | grep pattern | sort"

    def test_ansi_only(self):
        """Test coloured text loses its escape codes."""
        assert clean("\x1b[31mRed text\x1b[0m") == "Red text"

    def test_blank_lines(self):
        """Test blank line runs are collapsed."""
        assert clean("Line 1\n\n\n\nLine 2") == "Line 1\n\nLine 2"

    def test_plain_text_unchanged(self):
        """Test clean text passes through."""
        assert clean("test") == "test"

    @pytest.mark.parametrize("text", [
        "Café ☕ 日本語",
        "cafe\u0301 and n\u0303",
        "🇯🇵 𝔘𝔫𝔦𝔠𝔬𝔡𝔢 😀",
        "👩\u200d💻 at work\n👨\u200d👩\u200d👧 family",
    ])
    def test_unicode_preserved(self, text):
        """Test combining marks, astral code points and ZWJ sequences pass through."""
        assert clean(text) == text
        for rule in CLEANING_RULES:
            assert rule.apply(text) == text, rule.name

    def test_unicode_inside_frame(self):
        """Test a framed line keeps its combining marks and emoji."""
        assert clean("│ e\u0301 🇯🇵 │") == "e\u0301 🇯🇵"

    def test_long_blank_runs_linear(self):
        """Test long runs of blank lines are cleaned quickly."""
        start = time.perf_counter()
        result = clean("x\n" + "\n" * 40000 + "y")
        elapsed = time.perf_counter() - start

        assert result == "x\n\ny"
        assert elapsed < 1.0

    def test_only_newlines(self):
        """Test input of nothing but newlines cleans to empty."""
        start = time.perf_counter()
        assert clean("\n" * 40000) == ""
        assert time.perf_counter() - start < 1.0

    def test_padded_table_cell(self):
        """Test whitespace around a pipe-framed line."""
        assert clean("  | Content |  ") == "Content"

    def test_idempotent_on_typical_input(self):
        """Test cleaning cleaned output changes nothing."""
        text = "│ \x1b[31mTest\x1b[0m │\n\n\n$ command"
        once = clean(text)

        assert once == "Test\n\ncommand"
        assert clean(once) == once

    def test_whitespace_only(self):
        """Test whitespace-only input cleans to empty."""
        assert clean("   \n\t\n   ") == ""

    def test_deterministic(self):
        """Test identical input gives identical output."""
        text = "╭──╮\n│ $ ls │\n╰──╯"
        assert clean(text) == clean(text)


class TestApplyRules:
    """Test cases for apply_rules."""

    def test_rule_order_matters(self):
        """Test pipes behind a box frame are only removed in catalog order."""
        text = "│ | x | │"
        forward = apply_rules(text, CLEANING_RULES)
        backward = apply_rules(text, list(reversed(CLEANING_RULES)))

        assert forward == "x"
        assert backward == "| x |"
        assert forward != backward

    def test_catalog_order_used_by_clean(self):
        """Test clean() runs the catalog in order."""
        assert clean("│ | x | │") == apply_rules("│ | x | │", CLEANING_RULES)

    def test_no_rules(self):
        """Test an empty rule list returns the input unchanged."""
        assert apply_rules(" x ", []) == " x "


class TestRealWorldOutput:
    """Test cases using captured terminal sessions."""

    def test_git_status(self):
        """Test git status output keeps content and loses prompts."""
        text = (
            "$ git status\n"
            "On branch main\n"
            "Your branch is up to date with 'origin/main'.\n"
            "\n"
            "Changes not staged for commit:\n"
            "  (use \"git add <file>...\" to update what will be committed)\n"
            "        modified:   src/app.js\n"
            "\n"
            "\n"
            "no changes added to commit\n"
            "$ "
        )
        result = clean(text)

        assert result.startswith("git status\nOn branch main")
        assert "modified: src/app.js" in result
        assert not any(line.startswith("$") for line in result.split("\n"))
        assert "\n\n\n" not in result

    def test_git_diff(self):
        """Test colour codes are stripped from a diff."""
        text = (
            "$ git diff\n"
            "\x1b[1mdiff --git a/file.js b/file.js\x1b[m\n"
            "\x1b[36m@@ -10,6 +10,7 @@\x1b[m \x1b[mfunction example() {\x1b[m\n"
            "   console.log('existing line');\x1b[m\n"
            "\x1b[32m+  console.log('added line');\x1b[m\n"
            "\x1b[31m-  // removed comment\x1b[m\n"
            " }\x1b[m"
        )
        result = clean(text)

        assert "git diff" in result
        assert "diff --git a/file.js b/file.js" in result
        assert "function example()" in result
        assert "console.log('existing line');" in result
        assert "+ console.log('added line');" in result
        assert "- // removed comment" in result
        assert "\x1b" not in result

    def test_docker_build(self):
        """Test docker build output."""
        text = (
            "$ docker build .\n"
            "Sending build context to Docker daemon  45.57kB\x1b[0m\x1b[91m\n"
            "\x1b[0mStep 1/5 : FROM node:14\n"
            " ---> 1234567890ab\n"
            " ---> Running in 4567890123de\n"
            "\n"
            "\n"
            "\n"
            "Successfully tagged myapp:latest"
        )
        result = clean(text)

        assert result.startswith("docker build .")
        assert "Sending build context to Docker daemon 45.57kB" in result
        assert "Step 1/5 : FROM node:14" in result
        assert "---> 1234567890ab" in result
        assert "Successfully tagged myapp:latest" in result
        assert "\x1b" not in result
        assert "\n\n\n" not in result

    def test_pytest_failure(self):
        """Test pytest output with a continuation prompt marker."""
        text = (
            "$ pytest\n"
            "\x1b[1m===== test session starts =====\x1b[0m\n"
            "collected 42 items\n"
            "\n"
            "    def test_something():\n"
            ">       assert False\n"
            "\x1b[31mE       assert False\x1b[0m\n"
            "\x1b[32m===== 34 passed, 2 failed, 6 skipped in 3.21s =====\x1b[0m"
        )
        result = clean(text)

        assert result.split("\n")[0] == "pytest"
        assert "def test_something():\nassert False\nE assert False" in result
        assert "34 passed, 2 failed, 6 skipped in 3.21s" in result
        assert "\x1b" not in result


class TestCleaningPipeline:
    """Test cases for CleaningPipeline."""

    def test_clean_text_result(self):
        """Test clean_text returns text, stats and applied rules."""
        pipeline = CleaningPipeline()
        result = pipeline.clean_text("│ \x1b[31mTest\x1b[0m │", "doc1")

        assert isinstance(result, CleaningResult)
        assert result.cleaned_text == "Test"
        assert result.document_id == "doc1"
        assert result.rules_applied == ["Remove box drawing", "Remove terminal artifacts"]
        assert result.stats == TextStats(line_count=1, character_count=17, characters_removed=13)
        assert result.processing_time >= 0

    def test_clean_text_matches_clean(self):
        """Test the pipeline and clean() agree."""
        text = "| a |\n\n\n\n$ b"
        assert CleaningPipeline().clean_text(text).cleaned_text == clean(text)

    def test_clean_text_empty(self):
        """Test empty input records no rules."""
        result = CleaningPipeline().clean_text("")

        assert result.cleaned_text == ""
        assert result.rules_applied == []
        assert result.stats.line_count == 1

    def test_length_reduction(self):
        """Test length reduction and compression ratio."""
        result = CleaningPipeline().clean_text("  abcd  ")

        assert result.get_length_reduction() == 4
        assert result.get_compression_ratio() == pytest.approx(0.5)

    def test_compression_ratio_empty(self):
        """Test compression ratio of empty input is zero."""
        assert CleaningPipeline().clean_text("").get_compression_ratio() == 0.0

    def test_result_to_dict(self):
        """Test result serialization."""
        data = CleaningPipeline().clean_text(" x ", "d").to_dict()

        assert data["document_id"] == "d"
        assert data["cleaned_text"] == "x"
        assert data["rules_applied"] == ["Fix indentation"]
        assert data["stats"]["characters_removed"] == 2

    def test_describe_rules(self):
        """Test rule descriptions are numbered in order."""
        rules = CleaningPipeline().describe_rules()

        assert len(rules) == 7
        assert rules[0] == {
            "position": 1,
            "name": "Remove box drawing",
            "description": "Removes terminal box drawing characters"
        }
        assert rules[-1]["position"] == 7
        assert rules[-1]["name"] == "Trim whitespace"


class TestBatchCleaning:
    """Test cases for batch cleaning."""

    def test_clean_documents(self):
        """Test several documents are cleaned with aggregate counts."""
        documents = {
            "a": "| one |",
            "b": "  two  ",
            "c": None,
        }
        batch = CleaningPipeline().clean_documents(documents)

        assert isinstance(batch, BatchCleaningResult)
        assert batch.total_documents == 3
        assert batch.processed_documents == 3
        assert batch.failed_documents == 0
        assert batch.document_results["a"].cleaned_text == "one"
        assert batch.document_results["c"].cleaned_text == ""
        assert batch.total_original_length == 14
        assert batch.total_cleaned_length == 6
        assert batch.get_success_rate() == 1.0

    def test_invalid_content_recorded(self):
        """Test non-text content is recorded as a failure."""
        batch = CleaningPipeline().clean_documents({"ok": "x", "bad": 42})

        assert batch.processed_documents == 1
        assert batch.failed_documents == 1
        assert "bad" not in batch.document_results
        assert batch.errors["bad"]["error_type"] == "InvalidContent"
        assert batch.errors["bad"]["severity"] == "medium"
        assert batch.get_success_rate() == 0.5

    def test_add_failure_for_processed_document(self):
        """Test a processed document can be moved to the failures."""
        batch = CleaningPipeline().clean_documents({"a": " aa ", "b": "b"})
        error = ProcessingError(
            stage="output",
            error_type="WriteError",
            message="disk full",
            severity=ErrorSeverity.HIGH,
            document_id="a"
        )
        batch.add_failure("a", error)

        assert batch.total_documents == 2
        assert batch.processed_documents == 1
        assert batch.failed_documents == 1
        assert "a" not in batch.document_results
        assert batch.total_original_length == 1
        assert batch.errors["a"]["message"] == "disk full"

    def test_add_failure_for_unknown_document(self):
        """Test a document that never reached cleaning is added to the total."""
        batch = CleaningPipeline().clean_documents({"a": "a"})
        batch.add_failure("missing", ProcessingError(
            stage="ingest",
            error_type="ReadError",
            message="not found",
            severity=ErrorSeverity.HIGH
        ))

        assert batch.total_documents == 2
        assert batch.processed_documents == 1
        assert batch.failed_documents == 1

    def test_empty_batch(self):
        """Test rates of an empty batch are zero."""
        batch = CleaningPipeline().clean_documents({})

        assert batch.get_success_rate() == 0.0
        assert batch.get_overall_compression_ratio() == 0.0
