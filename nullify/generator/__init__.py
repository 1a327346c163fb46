"""Nullify type definition parser and code generator."""

from .parser import TypeSyntaxError as TypeSyntaxError
from .parser import parse as parse
from .parser import parse_type as parse_type
from .python import RenderError as RenderError
from .python import render as render
