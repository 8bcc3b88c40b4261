# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Argument-expression shapes used by patterns, use-sites and the matcher.

A pattern's target signature is a sequence of `TypeExpr` trees built from the
pattern's own parameters (`T`, `T1*`, `vector<Ts>...`). Use-site arguments are
the same trees without parameter references. The comparator additionally
produces `SYNTH` placeholders that never appear in user input.

Node kinds:
- `NAMED`      leaf type or template-id: `int`, `vector<T>`
- `PARAM`      reference to a pattern parameter; with args it is a
               template-template application `TT<T>`
- `POINTER`    `inner*` (quals apply to the pointer itself)
- `REF`        `inner&` / `inner&&`
- `VALUE`      integer literal (non-type argument)
- `COMPUTED`   `X+2`: a non-deduced value expression
- `SYNTH`      synthetic placeholder token used only for ordering
- `EXPANSION`  `pattern...`
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import FrozenSet, Iterable, Iterator, Optional, Tuple


class ExprKind(Enum):
	NAMED = auto()
	PARAM = auto()
	POINTER = auto()
	REF = auto()
	VALUE = auto()
	COMPUTED = auto()
	SYNTH = auto()
	EXPANSION = auto()


class ParamKind(Enum):
	"""What a parameter (or a synthetic placeholder) stands for."""

	TYPE = "type"
	VALUE = "value"
	TEMPLATE = "template"


QUALIFIERS = ("const", "volatile")


def _quals(quals: Iterable[str]) -> FrozenSet[str]:
	out = frozenset(quals)
	unknown = out.difference(QUALIFIERS)
	if unknown:
		raise ValueError(f"unknown qualifier(s): {sorted(unknown)}")
	return out


@dataclass(frozen=True)
class TypeExpr:
	"""
	Immutable argument-expression node.

	Invariants:
	- `POINTER`, `REF` and `EXPANSION` carry exactly one child in `args`.
	- `COMPUTED` carries two children and an `op` of `+` or `-`.
	- `VALUE` carries `value`; `SYNTH` carries `sort`.
	"""

	kind: ExprKind
	name: str = ""
	args: Tuple["TypeExpr", ...] = ()
	quals: FrozenSet[str] = frozenset()
	rvalue: bool = False
	value: Optional[int] = None
	op: str = ""
	sort: ParamKind = ParamKind.TYPE

	def __post_init__(self) -> None:
		if self.kind in (ExprKind.POINTER, ExprKind.REF, ExprKind.EXPANSION) and len(self.args) != 1:
			raise TypeError(f"{self.kind.name} node requires exactly one child")
		if self.kind is ExprKind.COMPUTED and (len(self.args) != 2 or self.op not in ("+", "-")):
			raise TypeError("COMPUTED node requires two operands and '+' or '-'")
		if self.kind is ExprKind.VALUE and self.value is None:
			raise TypeError("VALUE node requires a value")

	@staticmethod
	def named(name: str, args: Iterable["TypeExpr"] = (), *, quals: Iterable[str] = ()) -> "TypeExpr":
		return TypeExpr(ExprKind.NAMED, name=str(name), args=tuple(args), quals=_quals(quals))

	@staticmethod
	def param(name: str, args: Iterable["TypeExpr"] = (), *, quals: Iterable[str] = ()) -> "TypeExpr":
		return TypeExpr(ExprKind.PARAM, name=str(name), args=tuple(args), quals=_quals(quals))

	@staticmethod
	def pointer(inner: "TypeExpr", *, quals: Iterable[str] = ()) -> "TypeExpr":
		return TypeExpr(ExprKind.POINTER, args=(inner,), quals=_quals(quals))

	@staticmethod
	def lref(inner: "TypeExpr") -> "TypeExpr":
		return TypeExpr(ExprKind.REF, args=(inner,), rvalue=False)

	@staticmethod
	def rref(inner: "TypeExpr") -> "TypeExpr":
		return TypeExpr(ExprKind.REF, args=(inner,), rvalue=True)

	@staticmethod
	def literal(value: int) -> "TypeExpr":
		return TypeExpr(ExprKind.VALUE, value=int(value))

	@staticmethod
	def computed(op: str, lhs: "TypeExpr", rhs: "TypeExpr") -> "TypeExpr":
		return TypeExpr(ExprKind.COMPUTED, args=(lhs, rhs), op=op)

	@staticmethod
	def synth(token: str, sort: ParamKind = ParamKind.TYPE) -> "TypeExpr":
		return TypeExpr(ExprKind.SYNTH, name=token, sort=sort)

	@staticmethod
	def expansion(pattern: "TypeExpr") -> "TypeExpr":
		return TypeExpr(ExprKind.EXPANSION, args=(pattern,))

	@property
	def inner(self) -> "TypeExpr":
		"""Single child of a POINTER/REF/EXPANSION node."""
		return self.args[0]

	def with_quals(self, quals: Iterable[str]) -> "TypeExpr":
		extra = _quals(quals)
		if extra <= self.quals:
			return self
		return replace(self, quals=self.quals | extra)

	def without_quals(self, quals: Iterable[str]) -> "TypeExpr":
		drop = frozenset(quals)
		if not (self.quals & drop):
			return self
		return replace(self, quals=self.quals - drop)

	def strip_ref(self) -> Tuple["TypeExpr", Optional["TypeExpr"]]:
		"""Return `(core, ref_node)`; `ref_node` is None when not a reference."""
		if self.kind is ExprKind.REF:
			return self.inner, self
		return self, None

	def walk(self) -> Iterator["TypeExpr"]:
		yield self
		for child in self.args:
			yield from child.walk()

	def param_names(self) -> Tuple[str, ...]:
		"""Parameter names referenced anywhere in this tree, first occurrence order."""
		seen: list[str] = []
		for node in self.walk():
			if node.kind is ExprKind.PARAM and node.name not in seen:
				seen.append(node.name)
		return tuple(seen)

	def is_concrete(self) -> bool:
		return all(node.kind is not ExprKind.PARAM for node in self.walk())

	def render(self) -> str:
		k = self.kind
		if k is ExprKind.POINTER:
			text = f"{self.inner.render()}*"
			return f"{text} {_render_quals(self.quals)}" if self.quals else text
		if k is ExprKind.REF:
			return f"{self.inner.render()}{'&&' if self.rvalue else '&'}"
		if k is ExprKind.EXPANSION:
			return f"{self.inner.render()}..."
		if k is ExprKind.VALUE:
			return str(self.value)
		if k is ExprKind.COMPUTED:
			return f"{self.args[0].render()}{self.op}{self.args[1].render()}"
		head = f"${self.name}" if k is ExprKind.SYNTH else self.name
		if self.args:
			head = f"{head}<{', '.join(a.render() for a in self.args)}>"
		if self.quals:
			return f"{_render_quals(self.quals)} {head}"
		return head

	def __str__(self) -> str:
		return self.render()


def _render_quals(quals: FrozenSet[str]) -> str:
	return " ".join(q for q in QUALIFIERS if q in quals)


def render_list(exprs: Iterable[TypeExpr]) -> str:
	return ", ".join(e.render() for e in exprs)


def erase_decorations(expr: TypeExpr) -> TypeExpr:
	"""Drop every qualifier and reference node (used for decoration-only comparisons)."""
	if expr.kind is ExprKind.REF:
		return erase_decorations(expr.inner)
	args = tuple(erase_decorations(a) for a in expr.args)
	return replace(expr, args=args, quals=frozenset())


def fold_computed(expr: TypeExpr) -> TypeExpr:
	"""Fold `COMPUTED` nodes whose operands are literals."""
	if expr.kind is not ExprKind.COMPUTED:
		return expr
	lhs = fold_computed(expr.args[0])
	rhs = fold_computed(expr.args[1])
	if lhs.value is not None and rhs.value is not None:
		total = lhs.value + rhs.value if expr.op == "+" else lhs.value - rhs.value
		return TypeExpr.literal(total)
	return replace(expr, args=(lhs, rhs))


__all__ = [
	"ExprKind",
	"ParamKind",
	"QUALIFIERS",
	"TypeExpr",
	"render_list",
	"erase_decorations",
	"fold_computed",
]
