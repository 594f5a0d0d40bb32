"""Tests for the runtime wrappers and failure formatting."""

import pytest

from pegstep import (
    EOF_MESSAGE,
    ParseError,
    PegGrammar,
    PegProgram,
    PegRunner,
    UndefinedRuleError,
    caret_snippet,
    choice,
    format_failure,
    line_col,
    lit,
    ref,
    rx,
    seq,
)


def _kv_program():
    # key=value pairs separated by newlines
    return PegProgram.from_rules(
        {
            "Doc": choice(seq(ref("Pair"), lit("\n"), ref("Doc")), ref("Pair")),
            "Pair": seq(ref("Key"), lit("="), ref("Value")),
            "Key": rx("[a-z]+"),
            "Value": rx("[0-9]+"),
        },
        "Doc",
    )


class TestPegProgram:
    def test_undefined_reference_detected_up_front(self):
        with pytest.raises(UndefinedRuleError) as exc:
            PegProgram.from_rules({"S": seq(lit("a"), ref("Nope"))}, "S")
        assert exc.value.name == "Nope"

    def test_unknown_start_rule(self):
        with pytest.raises(UndefinedRuleError):
            PegProgram(PegGrammar({"S": lit("a")}, "Main"))


class TestPegRunner:
    def test_success_result(self):
        res = PegRunner(_kv_program()).run("a=1\nbc=22")
        assert res.ok
        assert res.expected == frozenset()
        assert res.describe() == "ok"
        assert res.error_pos == -1
        assert res.steps_taken > 0
        values = [f.value for f in res.frames if f.value is not None]
        assert values == ["a", "=", "1", "\n", "bc", "=", "22"]

    def test_failure_result(self):
        res = PegRunner(_kv_program()).run("a=1\nbc=x")
        assert not res.ok
        assert res.error_pos == 7
        assert res.expected == {"expected match of '[0-9]+'"}
        assert res.describe().startswith("Parse error at 2:4 (offset 7)")

    def test_start_override(self):
        res = PegRunner(_kv_program()).run("abc", start="Key")
        assert res.ok

    def test_start_override_unknown(self):
        with pytest.raises(UndefinedRuleError):
            PegRunner(_kv_program()).run("abc", start="Nope")

    def test_runs_are_independent(self):
        runner = PegRunner(_kv_program())
        bad = runner.run("a=")
        good = runner.run("a=1")
        assert not bad.ok and good.ok
        assert good.expected == frozenset()


class TestParseString:
    def test_returns_result_on_success(self):
        from pegstep import parse_string
        assert parse_string("k=9", _kv_program()).ok

    def test_raises_parse_error(self):
        from pegstep import parse_string
        with pytest.raises(ParseError) as exc:
            parse_string("k=9 ", _kv_program())
        err = exc.value
        assert isinstance(err, SyntaxError)
        assert err.pos == 3
        assert err.expected == (EOF_MESSAGE, "expected match of '\\n'")
        assert "offset 3" in str(err)
        # the expected set stays on the first line
        assert str(err).splitlines()[0].endswith("'\\n'}")


class TestReport:
    def test_line_col(self):
        src = "ab\ncd"
        assert line_col(src, 0) == (1, 1)
        assert line_col(src, 1) == (1, 2)
        assert line_col(src, 3) == (2, 1)
        assert line_col(src, 4) == (2, 2)

    def test_caret_snippet(self):
        assert caret_snippet("ab\ncd", 4) == "cd\n ^"
        assert caret_snippet("abc", 3) == "abc\n   ^"

    def test_format_failure(self):
        msg = format_failure("ab\ncd", 4, ["y", "x", "x"])
        assert msg == "Parse error at 2:2 (offset 4): expected one of {x, y}\ncd\n ^"

    def test_format_failure_at_eof(self):
        msg = format_failure("ab", 2, [EOF_MESSAGE])
        assert msg.startswith("Parse error at EOF (offset 2)")
