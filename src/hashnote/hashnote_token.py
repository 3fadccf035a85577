# src/hashnote/hashnote_token.py

# Literals and names
IDENT = "IDENT"
PRIVATE_NAME = "PRIVATE_NAME"   # #field
NUMBER = "NUMBER"
STRING = "STRING"
TEMPLATE = "TEMPLATE"
REGEX = "REGEX"

# Annotation support
ANNOTATION = "ANNOTATION"
INTRODUCER = "INTRODUCER"       # introducer that did not start an annotation

# Delimiters
LPAREN = "("
RPAREN = ")"
LBRACE = "{"
RBRACE = "}"
LBRACKET = "["
RBRACKET = "]"
COMMA = ","
SEMICOLON = ";"
COLON = ":"
DOT = "."
OPTIONAL_DOT = "?."
ELLIPSIS = "..."
ASSIGN = "="
ARROW = "=>"
OPERATOR = "OPERATOR"

# Keywords
LET = "LET"
CONST = "CONST"
VAR = "VAR"
FUNCTION = "FUNCTION"
CLASS = "CLASS"
EXTENDS = "EXTENDS"
IMPORT = "IMPORT"
EXPORT = "EXPORT"
RETURN = "RETURN"
DEFAULT = "DEFAULT"
NEW = "NEW"
THIS = "THIS"
KEYWORD = "KEYWORD"             # reserved words with no structural meaning here

EOF = "EOF"


class Token:
    def __init__(self, type, literal, start=0, end=0):
        self.type = type
        self.literal = literal
        self.start = start
        self.end = end
        self.line = 1
        self.column = 1
        self.end_line = 1
        # A whitespace-only line separates this token from the previous one
        self.blank_before = False
        # Set on ANNOTATION tokens only
        self.annotation = None

    def __repr__(self):
        return f"Token({self.type}, {self.literal!r}, line={self.line}, col={self.column})"
