"""Unit tests for bot command parsing.

Run with:
    pytest tests/unit/test_commands.py
"""

from __future__ import annotations

import pytest

from bisectbot.commands import (
    Bisect,
    DuplicateKeyError,
    MissingCodeFenceError,
    MissingEndError,
    UnknownArgumentError,
    UnknownCommandError,
    UnterminatedCodeFenceError,
    parse,
)

FENCED_MAIN = "```rust\nfn main(){}\n```"


class TestParseNotACommand:
    """Comments without an invocation line parse to None."""

    @pytest.mark.parametrize(
        "comment",
        [
            "",
            "Thanks, this looks like a regression.",
            "Bisect-bot bisect end=nightly\n" + FENCED_MAIN,
            "please run `bisect-bot` later",
            FENCED_MAIN,
        ],
    )
    def test_returns_none(self, comment: str) -> None:
        """Text lacking a prefixed line is not a command."""
        assert parse(comment) is None, f"Expected no command in {comment!r}."


class TestParseSuccess:
    """Well-formed invocations produce a Bisect command."""

    def test_start_and_end(self) -> None:
        """Both bounds and the fenced code are captured."""
        comment = f"bisect-bot bisect start=2021-01-01 end=2021-02-01\n{FENCED_MAIN}"
        assert parse(comment) == Bisect(
            start="2021-01-01", end="2021-02-01", code="fn main(){}"
        ), "Expected both bounds and the reproduction code."

    def test_start_is_optional(self) -> None:
        """Omitting start leaves it as None."""
        command = parse(f"bisect-bot bisect end=nightly-2021-05-01\n{FENCED_MAIN}")
        assert command == Bisect(end="nightly-2021-05-01", code="fn main(){}"), (
            "Expected start to default to None."
        )

    def test_argument_order_is_free(self) -> None:
        """end may precede start."""
        command = parse(f"bisect-bot bisect end=b start=a\n{FENCED_MAIN}")
        assert command is not None, "Expected a command."
        assert (command.start, command.end) == ("a", "b"), (
            "Expected arguments to be matched by key."
        )

    def test_prefixed_line_may_be_indented(self) -> None:
        """Surrounding whitespace on the invocation line is ignored."""
        command = parse(f"   bisect-bot bisect end=x   \n{FENCED_MAIN}")
        assert command is not None, "Expected the indented line to match."
        assert command.end == "x", "Expected trailing whitespace to be trimmed."

    def test_text_around_the_command_is_ignored(self) -> None:
        """Lines before the invocation and between it and the fence are skipped."""
        comment = (
            "I think this regressed.\n"
            "bisect-bot bisect end=nightly\n"
            "Here is the repro:\n"
            "\n"
            "  ```rust  \n"
            "fn main() {\n"
            "    let x = 1;\n"
            "}\n"
            "```\n"
            "bisect-bot frobnicate\n"
        )
        command = parse(comment)
        assert command is not None, "Expected a command."
        assert command.code == "fn main() {\n    let x = 1;\n}", (
            "Expected the code block verbatim with internal indentation."
        )

    def test_only_first_invocation_is_honored(self) -> None:
        """A second invocation after the block is ignored."""
        comment = (
            f"bisect-bot bisect end=first\n{FENCED_MAIN}\n"
            f"bisect-bot bisect end=second\n{FENCED_MAIN}"
        )
        command = parse(comment)
        assert command is not None, "Expected a command."
        assert command.end == "first", "Expected the first invocation to win."

    def test_empty_code_block(self) -> None:
        """An empty fenced block yields empty code."""
        command = parse("bisect-bot bisect end=x\n```rust\n```")
        assert command is not None, "Expected a command."
        assert command.code == "", "Expected empty reproduction code."

    def test_code_keeps_unusual_line_separators(self) -> None:
        """Only newlines split the comment; other separators stay in the code."""
        code = 'const S: &str = "a\x0cb c\x85d";'
        command = parse(f"bisect-bot bisect end=x\r\n```rust\r\n{code}\r\n```")
        assert command is not None, "Expected a command."
        assert command.code == code, "Expected the code block verbatim."

    def test_custom_prefix(self) -> None:
        """A configured prefix replaces the default one."""
        comment = f"@bisector bisect end=x\n{FENCED_MAIN}"
        assert parse(comment) is None, "Expected default prefix not to match."
        command = parse(comment, prefix="@bisector")
        assert command is not None, "Expected the custom prefix to match."


class TestParseErrors:
    """Malformed invocations raise ParseError subclasses."""

    @pytest.mark.parametrize(
        ("line", "token"),
        [
            ("bisect-bot", ""),
            ("bisect-bot   ", ""),
            ("bisect-bot build end=x", "build"),
            ("bisect-bot Bisect end=x", "Bisect"),
        ],
    )
    def test_unknown_command(self, line: str, token: str) -> None:
        """A missing or unsupported subcommand is rejected."""
        with pytest.raises(UnknownCommandError) as excinfo:
            parse(f"{line}\n{FENCED_MAIN}")
        assert excinfo.value.token == token, "Expected the offending token."

    @pytest.mark.parametrize(
        "token",
        ["middle=x", "end", "end=", "=x", "START=x"],
    )
    def test_unknown_argument(self, token: str) -> None:
        """Tokens that are not start=<v> or end=<v> are rejected."""
        with pytest.raises(UnknownArgumentError) as excinfo:
            parse(f"bisect-bot bisect end=x {token}\n{FENCED_MAIN}")
        assert excinfo.value.token == token, "Expected the offending token."

    def test_double_space_yields_empty_argument(self) -> None:
        """Tokens are split on single spaces, so doubled spaces are rejected."""
        with pytest.raises(UnknownArgumentError):
            parse(f"bisect-bot bisect start=a  end=b\n{FENCED_MAIN}")

    @pytest.mark.parametrize("key", ["start", "end"])
    def test_duplicate_key(self, key: str) -> None:
        """Repeating a key is rejected with the key name."""
        with pytest.raises(DuplicateKeyError) as excinfo:
            parse(f"bisect-bot bisect end=a {key}=b {key}=c\n{FENCED_MAIN}")
        assert excinfo.value.key == key, "Expected the repeated key."

    def test_duplicate_end(self) -> None:
        """end=a end=b names end as the duplicate."""
        with pytest.raises(DuplicateKeyError) as excinfo:
            parse("bisect-bot bisect end=a end=b\n...")
        assert excinfo.value.key == "end", "Expected 'end' to be reported."

    def test_missing_end(self) -> None:
        """An invocation without end= is rejected."""
        with pytest.raises(MissingEndError):
            parse(f"bisect-bot bisect start=2021-01-01\n{FENCED_MAIN}")

    def test_missing_code_fence(self) -> None:
        """An invocation with no following fence is rejected."""
        with pytest.raises(MissingCodeFenceError):
            parse("bisect-bot bisect end=x\nfn main(){}\n")

    def test_fence_before_invocation_does_not_count(self) -> None:
        """Only fences after the invocation line are considered."""
        with pytest.raises(MissingCodeFenceError):
            parse(f"{FENCED_MAIN}\nbisect-bot bisect end=x")

    def test_plain_fence_is_not_an_opener(self) -> None:
        """The opener must carry the rust language tag."""
        with pytest.raises(MissingCodeFenceError):
            parse("bisect-bot bisect end=x\n```\nfn main(){}\n```")

    def test_unterminated_code_fence(self) -> None:
        """A block that never closes is rejected."""
        with pytest.raises(UnterminatedCodeFenceError):
            parse("bisect-bot bisect end=x\n```rust\nfn main(){}\n")
