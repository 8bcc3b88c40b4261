# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to patterns, use-sites and diagnostics.

Patterns built programmatically carry the empty `Span()`; patterns parsed from
declaration files carry the file and the lark position metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column location."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_meta(cls, meta: Any, file: Optional[str] = None) -> "Span":
		"""
		Build a Span from a lark `Tree.meta` (or `Token`).

		Empty metas (rules that matched nothing) produce a Span with only the
		file set.
		"""
		if meta is None or getattr(meta, "empty", False):
			return cls(file=file)
		return cls(
			file=file,
			line=getattr(meta, "line", None),
			column=getattr(meta, "column", None),
			end_line=getattr(meta, "end_line", None),
			end_column=getattr(meta, "end_column", None),
		)

	def is_known(self) -> bool:
		return self.line is not None

	def render(self) -> str:
		if self.line is None:
			return self.file or "<unknown>"
		loc = f"{self.line}:{self.column}" if self.column is not None else str(self.line)
		return f"{self.file}:{loc}" if self.file else loc


__all__ = ["Span"]
