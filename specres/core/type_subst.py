# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Parameter substitution helpers."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple, Union

from specres.core.type_expr import ExprKind, TypeExpr, fold_computed


@dataclass(frozen=True)
class PackBinding:
	"""Binding of a pack parameter: zero or more elements, in order."""

	elems: Tuple[TypeExpr, ...] = ()

	def render(self) -> str:
		return "{" + ", ".join(e.render() for e in self.elems) + "}"


Binding = Union[TypeExpr, PackBinding]


@dataclass(frozen=True)
class Substitution:
	"""
	Immutable mapping from parameter name to its binding.

	`conversions` records the use-site argument positions where the match only
	succeeded by adding qualifiers (a qualification conversion). It is always
	empty for matches made during ordering.
	"""

	bindings: Tuple[Tuple[str, Binding], ...] = ()
	conversions: FrozenSet[int] = field(default_factory=frozenset)

	@staticmethod
	def of(bindings: Mapping[str, Binding], conversions: Iterable[int] = ()) -> "Substitution":
		return Substitution(bindings=tuple(bindings.items()), conversions=frozenset(conversions))

	def get(self, name: str) -> Optional[Binding]:
		for key, value in self.bindings:
			if key == name:
				return value
		return None

	def as_dict(self) -> Dict[str, Binding]:
		return dict(self.bindings)

	def names(self) -> Tuple[str, ...]:
		return tuple(key for key, _ in self.bindings)

	def overlay(self, extra: Mapping[str, Binding]) -> "Substitution":
		merged = self.as_dict()
		merged.update(extra)
		return Substitution.of(merged, self.conversions)

	def render(self, order: Sequence[str] | None = None) -> str:
		data = self.as_dict()
		keys = [k for k in order if k in data] if order is not None else list(data)
		parts = []
		for key in keys:
			value = data[key]
			parts.append(f"{key}={value.render()}")
		return ", ".join(parts)

	def __bool__(self) -> bool:
		return bool(self.bindings)


EMPTY_SUBST = Substitution()


def apply_subst(expr: TypeExpr, subst: Substitution) -> TypeExpr:
	"""Apply a substitution to a single expression, returning a (possibly new) expression."""
	k = expr.kind
	if k is ExprKind.PARAM:
		bound = subst.get(expr.name)
		new_args = apply_subst_list(expr.args, subst) if expr.args else ()
		if bound is None or isinstance(bound, PackBinding):
			if new_args == expr.args:
				return expr
			return replace(expr, args=new_args)
		if expr.args:
			# Template-template application: the binding names the template.
			return replace(bound, args=new_args, quals=bound.quals | expr.quals)
		return bound.with_quals(expr.quals)
	if not expr.args:
		return expr
	if k is ExprKind.NAMED or k is ExprKind.SYNTH:
		new_args = apply_subst_list(expr.args, subst)
	else:
		new_args = tuple(apply_subst(a, subst) for a in expr.args)
	if new_args == expr.args:
		return expr
	out = replace(expr, args=new_args)
	if k is ExprKind.COMPUTED:
		return fold_computed(out)
	return out


def apply_subst_list(exprs: Sequence[TypeExpr], subst: Substitution) -> Tuple[TypeExpr, ...]:
	"""
	Apply a substitution to an argument list, expanding pack expansions.

	A pack bound to N elements expands `P...` into N copies of `P`. A synthetic
	pack element (itself an expansion) keeps the result an expansion, so
	`vector<Ts>...` with `Ts = {$U2...}` becomes `vector<$U2>...`.
	"""
	out: list[TypeExpr] = []
	for expr in exprs:
		if expr.kind is not ExprKind.EXPANSION:
			out.append(apply_subst(expr, subst))
			continue
		pattern = expr.inner
		packs: Dict[str, PackBinding] = {}
		for name in pattern.param_names():
			bound = subst.get(name)
			if isinstance(bound, PackBinding):
				packs[name] = bound
		if not packs:
			out.append(TypeExpr.expansion(apply_subst(pattern, subst)))
			continue
		lengths = {len(b.elems) for b in packs.values()}
		if len(lengths) != 1:
			raise ValueError(f"mismatched pack lengths while expanding {expr.render()}")
		for idx in range(lengths.pop()):
			elem_map: Dict[str, Binding] = {}
			synthetic = False
			for name, bound in packs.items():
				elem = bound.elems[idx]
				if elem.kind is ExprKind.EXPANSION:
					synthetic = True
					elem = elem.inner
				elem_map[name] = elem
			applied = apply_subst(pattern, subst.overlay(elem_map))
			out.append(TypeExpr.expansion(applied) if synthetic else applied)
	return tuple(out)


__all__ = ["PackBinding", "Binding", "Substitution", "EMPTY_SUBST", "apply_subst", "apply_subst_list"]
