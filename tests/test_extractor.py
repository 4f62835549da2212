"""
Tests for the Block Extractor

Covers fence lexing, path-hint parsing and artifact extraction.
"""

from distributor.config import DistributorConfig
from distributor.extractor import (
    BlockExtractor,
    extract_artifacts,
    is_valid_path_hint,
    lex_blocks,
    parse_path_hint,
)
from distributor.models import CommandArtifact, FileArtifact


# ============================================================================
# Lexing
# ============================================================================

class TestLexBlocks:
    """Tests for splitting a document into code and text blocks."""

    def test_code_and_text_blocks_in_order(self):
        """Should produce text and code blocks in document order."""
        document = "Intro text\n\n```js\nconst a = 1;\n```\n\nOutro\n"
        blocks = lex_blocks(document)

        assert [b.kind for b in blocks] == ["text", "code", "text"]
        assert blocks[1].language == "js"
        assert blocks[1].text == "const a = 1;"

    def test_language_is_lowercased_first_word(self):
        """Should take the first info-string word, lowercased."""
        blocks = lex_blocks("```JavaScript title=x\nlet x;\n```\n")
        assert blocks[0].language == "javascript"

    def test_no_language(self):
        """Should leave language unset for a bare fence."""
        blocks = lex_blocks("```\nplain\n```\n")
        assert blocks[0].kind == "code"
        assert blocks[0].language is None

    def test_tilde_fence_with_inner_backticks(self):
        """Should not close a tilde fence on a backtick run."""
        document = "~~~md\n```js\ncode\n```\n~~~\n"
        blocks = lex_blocks(document)

        assert len(blocks) == 1
        assert blocks[0].text == "```js\ncode\n```"

    def test_longer_closing_fence(self):
        """Should accept a closing fence at least as long as the opening one."""
        blocks = lex_blocks("````js\na\n```\nb\n`````\n")
        assert blocks[0].text == "a\n```\nb"

    def test_unclosed_fence_runs_to_end(self):
        """Should treat an unclosed fence as running to the end of the document."""
        blocks = lex_blocks("```bash\necho hi\necho there")
        assert blocks[0].text == "echo hi\necho there"

    def test_indented_fence_is_dedented(self):
        """Should strip the fence's own indentation from body lines."""
        blocks = lex_blocks("  ```js\n  const a = 1;\n    nested();\n  ```\n")
        assert blocks[0].text == "const a = 1;\n  nested();"

    def test_block_line_numbers(self):
        """Should record the 1-based line of the opening fence."""
        blocks = lex_blocks("# Title\n\n```js\nx\n```\n")
        assert blocks[0].line == 1
        assert blocks[1].line == 3

    def test_empty_document(self):
        """Should return no blocks for an empty document."""
        assert lex_blocks("") == []


# ============================================================================
# Path Hints
# ============================================================================

class TestPathHints:
    """Tests for the path-hint grammar."""

    def test_double_slash_comment(self):
        """Should strip a // leader."""
        assert parse_path_hint("// src/components/Button.js\nexport {}") == "src/components/Button.js"

    def test_hash_and_dash_comments(self):
        """Should strip # and -- leaders."""
        assert parse_path_hint("# scripts/setup.sh") == "scripts/setup.sh"
        assert parse_path_hint("-- db/init.sql\nSELECT 1;") == "db/init.sql"

    def test_block_comment(self):
        """Should strip /* ... */ around the hint."""
        assert parse_path_hint("/* styles/main.css */\nbody {}") == "styles/main.css"

    def test_bare_filename_with_dot(self):
        """Should accept a bare filename containing a dot."""
        assert parse_path_hint("// package.json") == "package.json"

    def test_hint_with_whitespace_rejected(self):
        """Should reject a first line containing whitespace."""
        assert parse_path_hint("// this is a comment\ncode") is None

    def test_hint_without_slash_or_dot_rejected(self):
        """Should reject a token with neither '/' nor '.'."""
        assert parse_path_hint("// Button\ncode") is None

    def test_leading_blank_lines_ignored(self):
        """Should read the first non-blank line."""
        assert parse_path_hint("\n\n// src/a.js\ncode") == "src/a.js"

    def test_empty_block(self):
        """Should return None for an empty block."""
        assert parse_path_hint("   \n") is None

    def test_is_valid_path_hint(self):
        """Should apply the single-token rule."""
        assert is_valid_path_hint("a/b")
        assert is_valid_path_hint("a.b")
        assert not is_valid_path_hint("")
        assert not is_valid_path_hint("ab")
        assert not is_valid_path_hint("a b.js")


# ============================================================================
# Extraction
# ============================================================================

class TestBlockExtractor:
    """Tests for turning blocks into artifacts."""

    def test_zero_code_blocks(self):
        """Should return empty lists, without error, when there are no code blocks."""
        result = extract_artifacts("# Just prose\n\nNothing to see here.\n")

        assert result.files == ()
        assert result.commands == ()
        assert result.is_empty

    def test_script_then_shell_block(self):
        """Should yield one file artifact and one command artifact."""
        document = (
            "Create the module:\n\n"
            "```javascript\n// src/a.js\nexport const a = 1;\n```\n\n"
            "Then run:\n\n"
            "```shell\necho hi\n```\n"
        )
        result = extract_artifacts(document)

        assert result.files == (
            FileArtifact(path="src/a.js", code="// src/a.js\nexport const a = 1;", language="javascript"),
        )
        assert result.commands == (CommandArtifact(text="echo hi"),)

    def test_file_code_keeps_hint_line(self):
        """Should keep the full block text, path-hint line included."""
        result = extract_artifacts("```prisma\n// prisma/schema.prisma\nmodel A {\n  id Int\n}\n```\n")
        assert result.files[0].code.startswith("// prisma/schema.prisma\n")

    def test_blocks_without_valid_hint_excluded(self):
        """Should drop content blocks whose hint has whitespace or no '/' or '.'."""
        document = (
            "```js\n// not a path\nconst a = 1;\n```\n"
            "```js\n// Button\nconst b = 1;\n```\n"
            "```js\n// src/ok.js\nconst c = 1;\n```\n"
        )
        result = extract_artifacts(document)
        assert [f.path for f in result.files] == ["src/ok.js"]

    def test_multiline_command_stays_one_artifact(self):
        """Should keep a multi-line command block verbatim as one command."""
        result = extract_artifacts("```bash\nnpm install\nnpm run build\n```\n")
        assert result.commands == (CommandArtifact(text="npm install\nnpm run build"),)

    def test_unknown_languages_ignored(self):
        """Should ignore blocks in languages outside both sets."""
        result = extract_artifacts("```python\n# src/a.py\nprint(1)\n```\n```\nno language\n```\n")
        assert result.is_empty

    def test_order_preserved(self):
        """Should keep document order within each list."""
        document = (
            "```bash\nfirst\n```\n"
            "```js\n// b.js\n```\n"
            "```sh\nsecond\n```\n"
            "```js\n// a.js\n```\n"
        )
        result = extract_artifacts(document)

        assert [f.path for f in result.files] == ["b.js", "a.js"]
        assert [c.text for c in result.commands] == ["first", "second"]

    def test_language_sets_from_config(self, tmp_path):
        """Should use the configured language sets."""
        data = DistributorConfig.get_default()
        data["languages"]["content"] = ["python"]
        data["languages"]["command"] = ["powershell"]
        extractor = BlockExtractor(DistributorConfig(data, tmp_path))

        result = extractor.extract("```python\n# app/main.py\n```\n```powershell\ndir\n```\n```js\n// a.js\n```\n")

        assert [f.path for f in result.files] == ["app/main.py"]
        assert [c.text for c in result.commands] == ["dir"]

    def test_explicit_language_override(self):
        """Should accept explicit language sets over the config."""
        extractor = BlockExtractor(content_languages=["JS"], command_languages=[])
        result = extractor.extract("```js\n// a.js\n```\n```bash\nls\n```\n")

        assert len(result.files) == 1
        assert result.commands == ()
