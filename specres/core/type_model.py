# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type-model protocol consumed by the matcher and the resolver.

The engine never inspects leaf types on its own: equality of leaves, the
acceptability of qualifier/reference mismatches, and pack classification are
all delegated to a `TypeModel` passed in by the caller. `CxxTypeModel` is the
default implementation, modelled on C++ template argument deduction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Protocol

from specres.core.type_expr import ExprKind, ParamKind, TypeExpr

if TYPE_CHECKING:
	from specres.pattern import Parameter


class TypeModel(Protocol):
	"""Capability object the engine is parameterized over."""

	def equal_leaf(self, a: TypeExpr, b: TypeExpr) -> bool:
		"""Structural equality of two leaf (non-parameter) nodes, ignoring children."""
		...

	def qualification_compatible(self, target: TypeExpr, candidate_param: TypeExpr) -> bool:
		"""
		Return True if a decoration mismatch between a use-site `target` and a
		pattern position `candidate_param` is acceptable.

		When `candidate_param` is a reference this decides reference binding
		(value category); otherwise it decides whether `candidate_param`'s
		qualifiers may be reached from `target`'s by adding qualifiers.
		"""
		...

	def is_pack(self, parameter: "Parameter") -> bool:
		...

	def pack_kind(self, parameter: "Parameter") -> ParamKind:
		...

	def kind_of(self, expr: TypeExpr) -> ParamKind:
		"""Classify a bound expression as a type, a value, or a template name."""
		...


class CxxTypeModel:
	"""
	Default type model following the C++ deduction rules.

	`aliases` maps alternative spellings to a canonical leaf name
	(e.g. `{"size_t": "unsigned long"}`); both sides of a leaf comparison are
	canonicalized before comparing.
	"""

	def __init__(self, aliases: Optional[Mapping[str, str]] = None) -> None:
		self._aliases = dict(aliases or {})

	def canonical_name(self, name: str) -> str:
		seen = set()
		while name in self._aliases and name not in seen:
			seen.add(name)
			name = self._aliases[name]
		return name

	def equal_leaf(self, a: TypeExpr, b: TypeExpr) -> bool:
		if a.kind is not b.kind:
			return False
		if a.kind is ExprKind.VALUE:
			return a.value == b.value
		if a.kind is ExprKind.SYNTH:
			return a.name == b.name and a.sort is b.sort
		if a.kind is ExprKind.REF:
			return a.rvalue == b.rvalue
		if a.kind is ExprKind.COMPUTED:
			return a.op == b.op
		return self.canonical_name(a.name) == self.canonical_name(b.name)

	def qualification_compatible(self, target: TypeExpr, candidate_param: TypeExpr) -> bool:
		if candidate_param.kind is ExprKind.REF:
			inner = candidate_param.inner
			target_is_lvalue = target.kind is ExprKind.REF and not target.rvalue
			if candidate_param.rvalue:
				# T&& on a bare parameter is a forwarding reference and binds anything.
				if inner.kind is ExprKind.PARAM and not inner.args and not inner.quals:
					return True
				return not target_is_lvalue
			if target_is_lvalue:
				return True
			return "const" in inner.quals and "volatile" not in inner.quals
		core = target.inner if target.kind is ExprKind.REF else target
		return core.quals <= candidate_param.quals

	def is_pack(self, parameter: "Parameter") -> bool:
		return bool(parameter.is_pack)

	def pack_kind(self, parameter: "Parameter") -> ParamKind:
		return parameter.kind

	def kind_of(self, expr: TypeExpr) -> ParamKind:
		if expr.kind in (ExprKind.VALUE, ExprKind.COMPUTED):
			return ParamKind.VALUE
		if expr.kind is ExprKind.SYNTH:
			# `$U1<$U2>`: a synthetic template applied to arguments is a type.
			return ParamKind.TYPE if expr.args else expr.sort
		return ParamKind.TYPE


__all__ = ["TypeModel", "CxxTypeModel"]
