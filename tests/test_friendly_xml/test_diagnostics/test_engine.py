"""Tests for the parse diagnostics engine."""

import pytest

from friendly_xml.diagnostics import (
    UNEXPECTED_TEXT_MESSAGE,
    ParseDiagnosticsEngine,
    adjust_offset,
    format_xml,
    get_first_parse_problem,
    get_parse_problems,
    parse_mismatched_tag,
    shift_to_second_start_tag,
    validate_well_formed,
)
from friendly_xml.diagnostics.engine import MismatchedTag
from friendly_xml.shared import DiagnosticsConfig, ProblemSeverity


class TestGetParseProblems:
    """Test problem reporting end to end."""

    @pytest.mark.parametrize("xml", [
        "<a/>",
        "<a><b>x</b></a>",
        '<?xml version="1.0" encoding="utf-8"?>\n<a>\n  <b attr="1"/>\n</a>',
        "<a><!-- note --><b/><?pi data?></a>",
        "\ufeff<a/>",
    ])
    def test_well_formed_has_no_problems(self, xml):
        """Test that well-formed XML yields no problems at all."""
        assert get_parse_problems(xml) == []

    @pytest.mark.parametrize("xml", ["", "   ", "\n\t"])
    def test_blank_input(self, xml):
        """Test that blank text yields nothing."""
        assert get_parse_problems(xml) == []
        assert get_first_parse_problem(xml) is None

    @pytest.mark.parametrize("xml", [
        "<root>",
        "<root>\n  <a>\n</root>",
        "<root><a></b></root>",
        "<root attr='1>",
        "<root></root><second/>",
    ])
    def test_malformed_gives_one_error(self, xml):
        """Test that malformed XML yields exactly one positioned error."""
        problems = get_parse_problems(xml)

        assert len(problems) == 1
        problem = problems[0]
        assert problem.severity is ProblemSeverity.ERROR
        assert problem.line >= 1
        assert problem.column >= 1
        assert 0 <= problem.offset < len(xml)
        assert problem.message

    def test_stray_text_warning(self):
        """Test the stray text example."""
        problems = get_parse_problems("<a><b>x</b>oops<c>y</c></a>")

        assert len(problems) == 1
        problem = problems[0]
        assert problem.severity is ProblemSeverity.WARNING
        assert problem.message == UNEXPECTED_TEXT_MESSAGE
        assert problem.offset == 11
        assert (problem.line, problem.column) == (1, 12)

    def test_mismatched_tag_points_at_repeated_start_tag(self):
        """Test that an unclosed tag repeated on one line is blamed on its second copy."""
        xml = "<Root>\n  <Item><ID>1</ID><Item><ID>2</ID></Item>\n</Root>"

        (problem,) = get_parse_problems(xml)

        assert problem.severity is ProblemSeverity.ERROR
        assert problem.offset == xml.index("<Item", xml.index("<Item") + 1)
        assert (problem.line, problem.column) == (2, 19)

    def test_unterminated_end_tag_points_at_its_last_character(self):
        """Test that an end tag missing its '>' is reported where it stops."""
        xml = "<Root>\n  <Item></Item\n  <Other/>\n</Root>"

        (problem,) = get_parse_problems(xml)

        assert problem.offset == xml.index("</Item") + len("</Item") - 1
        assert xml[problem.offset] == "m"
        assert (problem.line, problem.column) == (2, 14)

    def test_doctype_is_rejected(self):
        """Test that a DOCTYPE is reported at its declaration."""
        xml = '<?xml version="1.0"?>\n<!DOCTYPE r>\n<r/>'

        problems = get_parse_problems(xml)

        assert len(problems) == 1
        assert problems[0].severity is ProblemSeverity.ERROR
        assert problems[0].offset == xml.index("<!DOCTYPE")
        assert (problems[0].line, problems[0].column) == (2, 1)
        assert "DTD is prohibited" in problems[0].message

    def test_doctype_allowed_when_configured(self):
        """Test that the DTD prohibition can be lifted."""
        engine = ParseDiagnosticsEngine(DiagnosticsConfig(prohibit_dtd=False))
        assert engine.get_parse_problems("<!DOCTYPE r>\n<r/>") == []

    def test_lint_can_be_disabled(self):
        """Test that the lint pass is optional."""
        engine = ParseDiagnosticsEngine(DiagnosticsConfig(enable_lint=False))
        assert engine.get_parse_problems("<a><b/>oops</a>") == []

    def test_first_problem(self):
        """Test first-problem convenience access."""
        problem = get_first_parse_problem("<a><b/>one<c/>two</a>")
        assert problem is not None
        assert problem.offset == 7


class TestMismatchedTagMessages:
    """Test extraction of the offending start tag from parser messages."""

    def test_positioned_message(self):
        """Test messages carrying line and position of the start tag."""
        message = (
            "The 'Item' start tag on line 3 position 4 does not match "
            "the end tag of 'Root'. Line 5, position 3."
        )
        assert parse_mismatched_tag(message) == MismatchedTag(3, 4, "Item", "Root")

    def test_libxml_message(self):
        """Test libxml2 mismatch messages carrying only a line."""
        message = "Opening and ending tag mismatch: Item line 3 and Root, line 5, column 8"
        assert parse_mismatched_tag(message) == MismatchedTag(3, None, "Item", "Root")

    def test_unrelated_message(self):
        """Test that other messages are ignored."""
        assert parse_mismatched_tag("Premature end of data in tag root line 1") is None


class TestOffsetHeuristics:
    """Test the offset correction helpers."""

    def test_shift_to_second_start_tag(self):
        """Test moving to the second copy of a tag on the same line."""
        text = "<R>\n<Item><Item></Item>\n</R>"
        first = text.index("<Item")
        second = text.index("<Item", first + 1)

        assert shift_to_second_start_tag(text, first, "Item") == second

    def test_shift_without_second_copy(self):
        """Test that a single occurrence keeps the offset."""
        text = "<R>\n<Item>\n</R>"
        offset = text.index("<Item")
        assert shift_to_second_start_tag(text, offset, "Item") == offset

    def test_shift_only_looks_at_one_line(self):
        """Test that copies on other lines are not considered."""
        text = "<R>\n<Item>\n<Item></Item>\n</R>"
        offset = text.index("<Item")
        assert shift_to_second_start_tag(text, offset, "Item") == offset

    def test_shift_clamps(self):
        """Test clamping of out-of-range offsets and blank names."""
        text = "<a><a/></a>"
        assert shift_to_second_start_tag(text, -3, "a") == 0
        assert shift_to_second_start_tag(text, 100, "a") == len(text) - 1
        assert shift_to_second_start_tag(text, 3, " ") == 3

    def test_adjust_expected_gt(self):
        """Test backing up to the end of an unterminated tag."""
        text = "<a x='1'\n<b/></a>"
        offset = text.index("<b")

        assert adjust_offset(text, offset, "expected '>'") == text.index("'1'") + 2
        assert adjust_offset(text, offset, "Couldn't find end of Start Tag a") == 7

    def test_adjust_other_messages(self):
        """Test that unrelated messages or positions keep the offset."""
        text = "<a x='1'\n<b/></a>"
        offset = text.index("<b")
        assert adjust_offset(text, offset, "Something else") == offset
        assert adjust_offset(text, offset + 1, "expected '>'") == offset + 1

    def test_adjust_clamps(self):
        """Test clamping of out-of-range offsets."""
        assert adjust_offset("<a/>", -1, "expected '>'") == 0
        assert adjust_offset("<a/>", 99, "expected '>'") == 3


class TestWellFormedAndFormat:
    """Test whole-document helpers."""

    def test_validate_well_formed(self):
        """Test the valid, invalid and empty cases."""
        assert validate_well_formed("<a/>") == (True, "XML is well-formed.")
        assert validate_well_formed("") == (False, "XML document is empty.")

        is_valid, message = validate_well_formed("<a>")
        assert is_valid is False
        assert message

    def test_validate_rejects_doctype(self):
        """Test that a DOCTYPE fails validation by default."""
        is_valid, message = validate_well_formed("<!DOCTYPE r><r/>")
        assert is_valid is False
        assert "DTD" in message

    def test_format_xml(self):
        """Test pretty-printing without a declaration."""
        assert format_xml("<a><b>x</b><c/></a>") == "<a>\n  <b>x</b>\n  <c/>\n</a>\n"

    def test_format_keeps_declaration(self):
        """Test that an existing declaration is kept."""
        formatted = format_xml('<?xml version="1.0"?>\n<a>  <b/>  </a>')
        assert formatted == '<?xml version="1.0"?>\n<a>\n  <b/>\n</a>\n'

    def test_format_malformed_raises(self):
        """Test that malformed XML cannot be formatted."""
        from lxml import etree

        with pytest.raises(etree.XMLSyntaxError):
            format_xml("<a>")
