# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pattern data model: parameters, patterns and use-site queries.

A Pattern is a named, parameterized signature. Its `args` are the argument
expressions matching happens against:

- PRIMARY  - the generic definition itself. Several primaries may share a
             name (function-template overloads); the first one registered is
             *the* primary and the root of the default family.
- PARTIAL  - a narrowing of a primary's argument shape with its own
             (deducible) parameter list.
- EXPLICIT - a fully concrete specialization of one primary's family.

Patterns are immutable. The registry fills in `label` and `specializes` when
the declaration left them out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from specres.core.span import Span
from specres.core.type_expr import ExprKind, ParamKind, TypeExpr, render_list
from specres.core.type_subst import Substitution, apply_subst_list


class PatternRole(Enum):
	PRIMARY = "primary"
	PARTIAL = "partial"
	EXPLICIT = "explicit"


class PatternForm(Enum):
	"""Surface form: `B<int, T>` (class-like) or `f(int, T)` (function-like)."""

	CLASS = "class"
	FUNCTION = "function"


class ResolutionPolicy(Enum):
	"""
	When explicit specializations are consulted.

	EXPLICIT_FIRST  - an exactly matching explicit specialization short-circuits
	                  ordering (class templates).
	OVERLOAD_FIRST  - order the candidates first, then use an explicit
	                  specialization of the single winner (function templates).
	"""

	EXPLICIT_FIRST = "explicit-first"
	OVERLOAD_FIRST = "overload-first"


@dataclass(frozen=True)
class Parameter:
	"""One entry of a pattern's parameter list."""

	name: str
	kind: ParamKind = ParamKind.TYPE
	value_type: Optional[TypeExpr] = None  # declared type of a VALUE parameter
	default: Optional[TypeExpr] = None
	is_pack: bool = False

	def render(self) -> str:
		dots = "..." if self.is_pack else ""
		if self.kind is ParamKind.VALUE:
			decl_type = self.value_type.render() if self.value_type is not None else "auto"
			text = f"{decl_type}{dots} {self.name}"
		elif self.kind is ParamKind.TEMPLATE:
			text = f"template<...> class{dots} {self.name}"
		else:
			text = f"typename{dots} {self.name}"
		if self.default is not None:
			text = f"{text} = {self.default.render()}"
		return text


@dataclass(frozen=True)
class Pattern:
	"""A named, parameterized signature registered under `name`."""

	name: str
	params: Tuple[Parameter, ...]
	args: Tuple[TypeExpr, ...]
	role: PatternRole = PatternRole.PRIMARY
	form: PatternForm = PatternForm.FUNCTION
	label: Optional[str] = None
	specializes: Optional[str] = None  # label of the primary this pattern narrows
	template_args: Tuple[TypeExpr, ...] = ()  # explicit `f<int, int*>` list of an EXPLICIT pattern
	required: Optional[int] = None  # leading positions without a call-site default; None = all
	span: Span = field(default_factory=Span, compare=False)

	def param(self, name: str) -> Optional[Parameter]:
		for p in self.params:
			if p.name == name:
				return p
		return None

	@property
	def param_names(self) -> Tuple[str, ...]:
		return tuple(p.name for p in self.params)

	@property
	def required_count(self) -> int:
		return len(self.args) if self.required is None else self.required

	@property
	def display_name(self) -> str:
		return self.label or self.name

	def has_pack_position(self) -> bool:
		return bool(self.args) and self.args[-1].kind is ExprKind.EXPANSION

	def is_class_shape(self) -> bool:
		"""True if the args are exactly the parameter list (a class-template primary)."""
		if self.form is not PatternForm.CLASS or len(self.args) != len(self.params):
			return False
		for param, arg in zip(self.params, self.args):
			if param.is_pack:
				arg = arg.inner if arg.kind is ExprKind.EXPANSION else arg
			if arg.kind is not ExprKind.PARAM or arg.name != param.name or arg.args:
				return False
		return True

	def render_signature(self) -> str:
		parts = []
		for idx, arg in enumerate(self.args):
			text = arg.render()
			if idx >= self.required_count and arg.kind is not ExprKind.EXPANSION:
				text = f"{text} = <default>"
			parts.append(text)
		if self.form is PatternForm.CLASS:
			return f"{self.name}<{', '.join(parts)}>"
		targs = f"<{render_list(self.template_args)}>" if self.template_args else ""
		return f"{self.name}{targs}({', '.join(parts)})"

	def render(self) -> str:
		header = "template<" + ", ".join(p.render() for p in self.params) + ">"
		return f"{header} {self.render_signature()}"


@dataclass(frozen=True)
class Query:
	"""A use-site: a name, concrete arguments and optional explicit substitutions."""

	name: str
	args: Tuple[TypeExpr, ...]
	explicit_args: Tuple[TypeExpr, ...] = ()
	primary_only: bool = False
	policy: Optional[ResolutionPolicy] = None
	form: PatternForm = PatternForm.FUNCTION
	span: Span = field(default_factory=Span, compare=False)

	def render(self) -> str:
		if self.form is PatternForm.CLASS:
			return f"{self.name}<{render_list(self.args)}>"
		targs = f"<{render_list(self.explicit_args)}>" if self.explicit_args else ""
		return f"{self.name}{targs}({render_list(self.args)})"


def canonical_args(pattern: Pattern) -> Tuple[TypeExpr, ...]:
	"""
	Alpha-rename parameters by first occurrence so equivalent patterns compare equal.

	`(T, T1*)` and `(A, B*)` both canonicalize to `(#0, #1*)`.
	"""
	order: list[str] = []
	for arg in pattern.args:
		for name in arg.param_names():
			if name not in order:
				order.append(name)
	renames = {name: TypeExpr.param(f"#{idx}") for idx, name in enumerate(order)}
	return apply_subst_list(pattern.args, Substitution.of(renames))


__all__ = [
	"Parameter",
	"ParamKind",
	"Pattern",
	"PatternForm",
	"PatternRole",
	"Query",
	"ResolutionPolicy",
	"canonical_args",
]
