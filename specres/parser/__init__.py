# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declaration-language front end.

`parse_source` / `parse_file` never raise on bad input: syntax errors and
declarations the model rejects come back as parser-phase diagnostics in the
returned `ParsedUnit`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from lark.exceptions import UnexpectedInput

from specres.core.diagnostics import Diagnostic
from specres.core.span import Span

from . import parser as _parser
from .parser import DeclError, ParsedUnit, parse_arg_list


def parse_source(source: str, filename: Optional[str] = None) -> ParsedUnit:
	try:
		return _parser.parse_unit(source, filename)
	except UnexpectedInput as err:
		span = Span(
			file=filename,
			line=getattr(err, "line", None),
			column=getattr(err, "column", None),
		)
		return ParsedUnit(diagnostics=[Diagnostic(message=_first_line(err), code="syntax", phase="parser", span=span)])


def parse_file(path: Path) -> ParsedUnit:
	return parse_source(Path(path).read_text(), str(path))


def _first_line(err: UnexpectedInput) -> str:
	text = str(err).strip()
	return text.splitlines()[0] if text else type(err).__name__


__all__ = ["DeclError", "ParsedUnit", "parse_arg_list", "parse_file", "parse_source"]
