# src/hashnote/lexer.py
import logging

from .hashnote_token import *
from .config import config as runtime_config
from .error_reporter import (
    MalformedAnnotation,
    get_error_reporter,
    SyntaxError as HashnoteSyntaxError,
)
from .scanner import BlockScanner, Lookaround, is_ident_part, is_ident_start

logger = logging.getLogger(__name__)

_KEYWORDS = {
    "let": LET,
    "const": CONST,
    "var": VAR,
    "function": FUNCTION,
    "class": CLASS,
    "extends": EXTENDS,
    "import": IMPORT,
    "export": EXPORT,
    "return": RETURN,
    "default": DEFAULT,
    "new": NEW,
    "this": THIS,
}

_RESERVED = {
    "if", "else", "for", "while", "do", "switch", "case", "break", "continue",
    "throw", "try", "catch", "finally", "typeof", "instanceof", "in", "void",
    "delete", "yield", "super", "null", "true", "false", "with", "debugger",
}

# Longest first so greedy matching picks `>>>=` over `>>`
_OPERATORS = sorted([
    "===", "!==", "==", "!=", "<=", ">=", "&&", "||", "??", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "**", "**=", "<<", ">>", ">>>", "<<=",
    ">>=", ">>>=", "&=", "|=", "^=", "&&=", "||=", "??=",
    "+", "-", "*", "/", "%", "<", ">", "!", "~", "&", "|", "^", "?", "@", "#",
], key=len, reverse=True)

_SINGLE = {
    "(": LPAREN,
    ")": RPAREN,
    "{": LBRACE,
    "}": RBRACE,
    "[": LBRACKET,
    "]": RBRACKET,
    ",": COMMA,
    ";": SEMICOLON,
    ":": COLON,
}

MEMBER_MODIFIERS = {"static", "async", "get", "set", "accessor"}

# A token of this type at the end of a line continues the expression
CONTINUATION_TYPES = {
    ASSIGN, COMMA, DOT, OPTIONAL_DOT, OPERATOR, ARROW, COLON, LPAREN, LBRACKET,
    ELLIPSIS, EXTENDS, NEW, RETURN,
}

# A token of this type can end an operand, so a following `/` divides
_OPERAND_END_TYPES = {
    IDENT, PRIVATE_NAME, NUMBER, STRING, TEMPLATE, REGEX, RPAREN, RBRACKET, RBRACE, THIS,
}
_OPERAND_KEYWORDS = {"null", "true", "false", "super"}

_CLASS_BODY = "class"


class Lexer:
    def __init__(self, source_code, filename="<stdin>", scanner_config=None):
        self.input = source_code
        self.filename = filename
        self.config = scanner_config or runtime_config.scanner_config()
        self.position = 0
        self.read_position = 0
        self.ch = ""
        self.line = 1
        self.column = 1
        # Open brackets; class bodies are marked so private names can be told
        # apart from annotations
        self.bracket_stack = []
        self._pending_class_depth = None
        # Last token that is not an annotation
        self.last_host_token = None
        self.diagnostics = []
        self.blank_line_seen = False

        self.error_reporter = get_error_reporter()

        self.scanner = BlockScanner(
            source_code,
            self.config,
            filename=filename,
            lookaround=Lookaround(
                is_private_field_identifier=self._is_private_field,
                follows_member_access=self._follows_member_access,
            ),
        )

        self.read_char()

    def read_char(self):
        if self.ch == "\n":
            self.line += 1
            self.column = 1
        elif self.ch:
            self.column += 1

        self.position = self.read_position
        if self.read_position >= len(self.input):
            self.ch = ""
        else:
            self.ch = self.input[self.read_position]
        self.read_position += 1

    def peek_char(self, offset=0):
        i = self.read_position + offset
        if i >= len(self.input):
            return ""
        return self.input[i]

    def advance_to(self, offset):
        while self.position < offset and self.ch != "":
            self.read_char()

    def tokenize(self):
        tokens = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.type == EOF:
                return tokens

    def next_token(self):
        self.skip_whitespace_and_comments()

        start = self.position
        line, column = self.line, self.column
        ch = self.ch

        if ch == "":
            tok = Token(EOF, "", start, start)
        elif ch == self.config.introducer:
            tok = self.read_annotation()
        elif ch == "#" and is_ident_start(self.peek_char()):
            tok = self.read_private_name()
        elif ch == "#" and start == 0 and self.peek_char() == "!":
            # Host hashbang when '#' is not the introducer
            while self.ch not in ("\n", ""):
                self.read_char()
            return self.next_token()
        elif ch in ("'", '"'):
            tok = Token(STRING, self.read_string(), start)
        elif ch == "`":
            tok = Token(TEMPLATE, self.read_template(), start)
        elif ch == "/" and self.regex_allowed():
            tok = Token(REGEX, self.read_regex(), start)
        elif is_ident_start(ch):
            literal = self.read_identifier()
            tok = Token(self.lookup_ident(literal), literal, start)
        elif ch.isdigit() or (ch == "." and self.peek_char().isdigit()):
            tok = Token(NUMBER, self.read_number(), start)
        else:
            tok = self.read_punctuation()

        tok.start = start
        tok.end = self.position
        tok.line = line
        tok.column = column
        tok.blank_before = self.blank_line_seen
        if tok.annotation is not None:
            tok.end_line = tok.annotation.end_line
        else:
            tok.end_line = self.line
        self._finalize_token(tok)
        return tok

    # ------------------------------------------------------------------
    # Annotations and private names
    # ------------------------------------------------------------------

    def read_annotation(self):
        start = self.position
        try:
            found = self.scanner.scan(start)
        except MalformedAnnotation as err:
            self.diagnostics.append(err)
            logger.warning("%s", err)
            found = None

        if found is None:
            if self.ch == "#" and is_ident_start(self.peek_char()):
                return self.read_private_name()
            # Resume host tokenization right after the introducer
            literal = self.ch
            self.read_char()
            return Token(INTRODUCER, literal)

        node, end = found
        self.advance_to(end)
        tok = Token(ANNOTATION, node.payload)
        tok.annotation = node
        return tok

    def read_private_name(self):
        start = self.position
        self.read_char()
        while is_ident_part(self.ch):
            self.read_char()
        return Token(PRIVATE_NAME, self.input[start:self.position])

    def _follows_member_access(self, pos):
        last = self.last_host_token
        return last is not None and last.type in (DOT, OPTIONAL_DOT)

    def _is_private_field(self, pos):
        if self.input[pos] != "#":
            return False
        return self.at_class_member_start()

    def at_class_member_start(self):
        if not self.bracket_stack or self.bracket_stack[-1] != _CLASS_BODY:
            return False
        last = self.last_host_token
        if last is None:
            return False
        if last.type in (LBRACE, SEMICOLON, RBRACE):
            return True
        if last.type == IDENT and last.literal in MEMBER_MODIFIERS:
            return True
        if last.type == OPERATOR and last.literal == "*":
            return True
        return self.line > last.end_line and last.type not in CONTINUATION_TYPES

    # ------------------------------------------------------------------
    # Host tokens
    # ------------------------------------------------------------------

    def _finalize_token(self, tok):
        """Update bracket tracking after producing a token."""
        token_type = tok.type
        if token_type == ANNOTATION:
            return

        if token_type == CLASS:
            self._pending_class_depth = len(self.bracket_stack)
        elif token_type == LBRACE:
            if self._pending_class_depth == len(self.bracket_stack):
                self.bracket_stack.append(_CLASS_BODY)
                self._pending_class_depth = None
            else:
                self.bracket_stack.append(LBRACE)
        elif token_type in (LPAREN, LBRACKET):
            self.bracket_stack.append(token_type)
        elif token_type in (RPAREN, RBRACKET, RBRACE):
            if self.bracket_stack:
                self.bracket_stack.pop()
            if self._pending_class_depth is not None and self._pending_class_depth > len(self.bracket_stack):
                self._pending_class_depth = None

        self.last_host_token = tok

    def read_punctuation(self):
        ch = self.ch
        if ch in _SINGLE:
            self.read_char()
            return Token(_SINGLE[ch], ch)

        if ch == ".":
            if self.peek_char() == "." and self.peek_char(1) == ".":
                self.read_char()
                self.read_char()
                self.read_char()
                return Token(ELLIPSIS, "...")
            self.read_char()
            return Token(DOT, ".")

        if ch == "=":
            nxt = self.peek_char()
            if nxt == ">":
                self.read_char()
                self.read_char()
                return Token(ARROW, "=>")
            if nxt != "=":
                self.read_char()
                return Token(ASSIGN, "=")

        if ch == "?" and self.peek_char() == "." and not self.peek_char(1).isdigit():
            self.read_char()
            self.read_char()
            return Token(OPTIONAL_DOT, "?.")

        for op in _OPERATORS:
            if self.input.startswith(op, self.position):
                for _ in op:
                    self.read_char()
                return Token(OPERATOR, op)

        self.read_char()
        if not ch.isprintable():
            self.report_host_error(
                f"Unexpected character '\\x{ord(ch):02x}'",
                self.line, self.column - 1,
                "Remove or replace this character.",
            )
        return Token(OPERATOR, ch)

    def report_host_error(self, message, line, column, suggestion):
        """Record a host-level lexing problem and carry on.

        Only the offending literal or comment is lost; tokenizing resumes
        where the caller stopped, so annotations elsewhere still resolve.
        """
        error = self.error_reporter.report_error(
            HashnoteSyntaxError,
            message,
            line=line,
            column=column,
            filename=self.filename,
            suggestion=suggestion,
            source=self.input,
        )
        self.diagnostics.append(error)
        logger.warning("%s", error)

    def skip_whitespace_and_comments(self):
        self.blank_line_seen = False
        # The line the cursor is on already holds a token or comment
        line_has_content = True
        while True:
            while self.ch and self.ch.isspace():
                if self.ch == "\n":
                    if not line_has_content:
                        self.blank_line_seen = True
                    line_has_content = False
                self.read_char()
            if self.ch == "/" and self.peek_char() == "/":
                line_has_content = True
                while self.ch not in ("\n", ""):
                    self.read_char()
                continue
            if self.ch == "/" and self.peek_char() == "*":
                line_has_content = True
                self.skip_block_comment()
                continue
            return

    def skip_block_comment(self):
        start_line, start_column = self.line, self.column
        self.read_char()
        self.read_char()
        while self.ch != "":
            if self.ch == "*" and self.peek_char() == "/":
                self.read_char()
                self.read_char()
                return
            self.read_char()
        self.report_host_error("Unterminated block comment", start_line, start_column,
                               "Close the comment with */.")

    def read_string(self):
        quote = self.ch
        start_line, start_column = self.line, self.column
        result = []
        while True:
            self.read_char()
            if self.ch == "" or self.ch == "\n":
                # The string ends with its line
                self.report_host_error(
                    "Unterminated string literal", start_line, start_column,
                    f"Add a closing quote {quote} to terminate the string.",
                )
                return "".join(result)
            if self.ch == "\\":
                self.read_char()
                escape_map = {"n": "\n", "t": "\t", "r": "\r"}
                result.append(escape_map.get(self.ch, self.ch))
            elif self.ch == quote:
                self.read_char()
                return "".join(result)
            else:
                result.append(self.ch)

    def read_template(self):
        start = self.position
        start_line, start_column = self.line, self.column
        self.read_char()
        while self.ch != "`":
            if self.ch == "":
                self.report_host_error(
                    "Unterminated template literal", start_line, start_column,
                    "Add a closing ` to terminate the template.",
                )
                return self.input[start + 1:]
            if self.ch == "\\":
                self.read_char()
            self.read_char()
        self.read_char()
        return self.input[start + 1:self.position - 1]

    def regex_allowed(self):
        """A `/` starts a regular expression where an operand is expected."""
        last = self.last_host_token
        if last is None:
            return True
        if last.type in _OPERAND_END_TYPES:
            return False
        if last.type == KEYWORD:
            return last.literal not in _OPERAND_KEYWORDS
        if last.type == OPERATOR:
            return last.literal not in ("++", "--")
        return True

    def read_regex(self):
        start = self.position
        start_line, start_column = self.line, self.column
        in_class = False
        self.read_char()
        while True:
            ch = self.ch
            if ch == "" or ch == "\n":
                self.report_host_error(
                    "Unterminated regular expression", start_line, start_column,
                    "Close the pattern with / or escape the slash.",
                )
                return self.input[start:self.position]
            if ch == "\\":
                self.read_char()
            elif ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                self.read_char()
                break
            self.read_char()
        # flags
        while self.ch and is_ident_part(self.ch):
            self.read_char()
        return self.input[start:self.position]

    def read_identifier(self):
        start = self.position
        while self.ch and is_ident_part(self.ch):
            self.read_char()
        return self.input[start:self.position]

    def read_number(self):
        start = self.position
        while self.ch and (self.ch.isalnum() or self.ch == "_"
                           or (self.ch == "." and self.peek_char().isdigit())):
            self.read_char()
        return self.input[start:self.position]

    def lookup_ident(self, ident):
        token = _KEYWORDS.get(ident)
        if token is not None:
            # `obj.class` and `{ default: 1 }` are plain property names
            last = self.last_host_token
            if last is not None and last.type in (DOT, OPTIONAL_DOT):
                return IDENT
            return token
        if ident in _RESERVED:
            return KEYWORD
        return IDENT


def tokenize(source, filename="<stdin>", scanner_config=None):
    lexer = Lexer(source, filename, scanner_config)
    return lexer.tokenize(), lexer.diagnostics
