# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Synthetic substitutions for specificity probing.

`fresh(pattern)` binds every parameter of `pattern` to a placeholder token that
no other call on the same generator will ever hand out again. A pack
parameter is bound to a single synthetic *pack* element (`$U3...`) so that the
synthesized signature still has an unbounded tail only another pack can
absorb.

A generator is owned by one resolution; its counter only grows until `reset()`.
Placeholders are never visible to callers of the resolver.
"""

from __future__ import annotations

from typing import Dict

from specres.core.type_expr import ParamKind, TypeExpr
from specres.core.type_subst import Binding, PackBinding, Substitution
from specres.pattern import Pattern


class SyntheticGenerator:
	def __init__(self, prefix: str = "U") -> None:
		self._prefix = prefix
		self._counter = 0

	@property
	def issued(self) -> int:
		"""Number of placeholder tokens handed out since the last reset."""
		return self._counter

	def reset(self) -> None:
		self._counter = 0

	def token(self, sort: ParamKind) -> TypeExpr:
		self._counter += 1
		return TypeExpr.synth(f"{self._prefix}{self._counter}", sort)

	def fresh(self, pattern: Pattern) -> Substitution:
		bindings: Dict[str, Binding] = {}
		for param in pattern.params:
			tok = self.token(param.kind)
			if param.is_pack:
				bindings[param.name] = PackBinding((TypeExpr.expansion(tok),))
			else:
				bindings[param.name] = tok
		return Substitution.of(bindings)


__all__ = ["SyntheticGenerator"]
