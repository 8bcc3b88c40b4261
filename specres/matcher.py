# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pattern matching (deduction of a pattern's parameters from a target list).

`Matcher.match(target, pattern)` looks for a substitution of `pattern`'s
parameters that turns `pattern.args` into `target`. It is a pure function of
its inputs: all intermediate state lives in a per-call `_State`.

Two modes:
- ordering (default): qualifiers must line up exactly; reference decorations
  at the top of each function parameter are ignored. Class-form argument
  lists are always matched exactly, references included.
- use-site (`use_site=True`): the target is a concrete use-site argument list.
  Reference binding is checked with the type model, top-level qualifiers of
  by-value positions are dropped, and qualifiers may be added below a
  reference or pointer. Positions that needed such an addition are recorded
  in `Substitution.conversions`.

Non-deduced value expressions (`X+2`) bind nothing; they are checked once
deduction is done.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from specres.core.type_expr import ExprKind, ParamKind, TypeExpr, fold_computed
from specres.core.type_model import TypeModel
from specres.core.type_subst import Binding, PackBinding, Substitution, apply_subst
from specres.pattern import Parameter, Pattern, PatternForm


class _Ctx(Enum):
	STRICT = auto()  # exact qualifiers (ordering, template-id arguments)
	CONVERT = auto()  # use-site below a reference or pointer: qualifiers may be added
	TOP_VALUE = auto()  # use-site by-value position: top-level qualifiers dropped


@dataclass
class _State:
	params: Dict[str, Parameter]
	bindings: Dict[str, Binding]
	use_site: bool
	call: bool = True  # function parameter list: top-level references are decorations
	elements: FrozenSet[str] = frozenset()  # packs currently bound one element at a time
	conversions: Set[int] = field(default_factory=set)
	deferred: List[Tuple[TypeExpr, TypeExpr]] = field(default_factory=list)

	def fork(self, packs: Sequence[str]) -> "_State":
		kept = {k: v for k, v in self.bindings.items() if k not in packs}
		return _State(
			params=self.params,
			bindings=kept,
			use_site=self.use_site,
			call=self.call,
			elements=self.elements | frozenset(packs),
		)

	def absorb(self, sub: "_State", packs: Sequence[str]) -> None:
		for key, value in sub.bindings.items():
			if key not in packs:
				self.bindings[key] = value
		self.conversions |= sub.conversions
		elem_subst = Substitution.of({k: sub.bindings[k] for k in packs if k in sub.bindings})
		for p, t in sub.deferred:
			self.deferred.append((apply_subst(p, elem_subst), t))


class Matcher:
	"""Deduces pattern parameters against a target argument list."""

	def __init__(self, type_model: TypeModel) -> None:
		self.type_model = type_model

	def match(
		self,
		target: Sequence[TypeExpr],
		pattern: Pattern,
		*,
		prebound: Optional[Substitution] = None,
		use_site: bool = False,
	) -> Optional[Substitution]:
		"""Return the substitution reproducing `target` from `pattern`, or None."""
		target = tuple(target)
		pargs = self._trim(pattern, len(target))
		if pargs is None:
			return None
		state = _State(
			params={p.name: p for p in pattern.params},
			bindings=prebound.as_dict() if prebound is not None else {},
			use_site=use_site,
			call=pattern.form is PatternForm.FUNCTION,
		)
		if not self._unify_seq(pargs, target, state, top=True, ctx=_Ctx.STRICT, base=0):
			return None
		if not self._check_deferred(state):
			return None
		return self._finish(pattern, state)

	def prebind(self, pattern: Pattern, explicit_args: Sequence[TypeExpr]) -> Optional[Substitution]:
		"""
		Bind explicit arguments to `pattern`'s parameters positionally.

		A pack parameter absorbs every remaining explicit argument. Returns None
		when there are too many arguments or an argument has the wrong kind.
		"""
		remaining = list(explicit_args)
		bindings: Dict[str, Binding] = {}
		for param in pattern.params:
			if not remaining:
				break
			if param.is_pack:
				elems = tuple(remaining)
				remaining = []
				if not all(self._kind_ok(param, e) for e in elems):
					return None
				bindings[param.name] = PackBinding(elems)
				break
			value = remaining.pop(0)
			if not self._kind_ok(param, value):
				return None
			bindings[param.name] = value
		if remaining:
			return None
		return Substitution.of(bindings)

	def complete(self, args: Sequence[TypeExpr], primary: Pattern) -> Tuple[TypeExpr, ...]:
		"""
		Fill trailing arguments of a class-style use from the primary's defaults.

		`vector<bool>` against `vector<T, Allocator = allocator<T>>` becomes
		`vector<bool, allocator<bool>>`. Anything that cannot be completed is
		returned unchanged (and will simply fail to match).
		"""
		args = tuple(args)
		if not primary.is_class_shape() or len(args) >= len(primary.params):
			return args
		bindings: Dict[str, Binding] = {}
		out = list(args)
		for idx, param in enumerate(primary.params):
			if idx < len(args):
				if param.is_pack:
					return args
				bindings[param.name] = args[idx]
				continue
			if param.is_pack:
				break
			if param.default is None:
				return args
			value = apply_subst(param.default, Substitution.of(bindings))
			bindings[param.name] = value
			out.append(value)
		return tuple(out)

	def equal(self, a: TypeExpr, b: TypeExpr) -> bool:
		"""Structural equality using the type model for leaves."""
		a = fold_computed(a)
		b = fold_computed(b)
		if not self.type_model.equal_leaf(a, b):
			return False
		if a.quals != b.quals or len(a.args) != len(b.args):
			return False
		return all(self.equal(x, y) for x, y in zip(a.args, b.args))

	def equal_list(self, a: Sequence[TypeExpr], b: Sequence[TypeExpr]) -> bool:
		return len(a) == len(b) and all(self.equal(x, y) for x, y in zip(a, b))

	def same_binding(self, a: Binding, b: Binding) -> bool:
		if isinstance(a, PackBinding) or isinstance(b, PackBinding):
			if not (isinstance(a, PackBinding) and isinstance(b, PackBinding)):
				return False
			return self.equal_list(a.elems, b.elems)
		return self.equal(a, b)

	# -- internals -----------------------------------------------------

	def _trim(self, pattern: Pattern, n: int) -> Optional[Tuple[TypeExpr, ...]]:
		args = pattern.args
		if n >= len(args):
			return args
		for idx in range(n, len(args)):
			if args[idx].kind is ExprKind.EXPANSION or idx >= pattern.required_count:
				continue
			return None
		kept = args[:n]
		if args[-1].kind is ExprKind.EXPANSION and len(args) - 1 >= n:
			kept = kept + (args[-1],)
		return kept

	def _unify_seq(
		self,
		ps: Sequence[TypeExpr],
		ts: Sequence[TypeExpr],
		state: _State,
		*,
		top: bool,
		ctx: _Ctx,
		base: int,
	) -> bool:
		i = 0
		for p in ps:
			if p.kind is ExprKind.EXPANSION:
				return self._unify_expansion(p, ts[i:], state, top=top, base=base + i if top else base)
			if i >= len(ts):
				return False
			t = ts[i]
			if t.kind is ExprKind.EXPANSION:
				# A single position can never absorb an unbounded pack.
				return False
			at = base + i if top else base
			ok = self._unify_position(p, t, state, at) if top else self._unify(p, t, state, ctx, at)
			if not ok:
				return False
			i += 1
		return i == len(ts)

	def _unify_expansion(
		self,
		exp: TypeExpr,
		rest: Sequence[TypeExpr],
		state: _State,
		*,
		top: bool,
		base: int,
	) -> bool:
		pattern = exp.inner
		packs = [n for n in pattern.param_names() if n in state.params and state.params[n].is_pack]
		if not packs:
			return False
		collected: Dict[str, List[TypeExpr]] = {n: [] for n in packs}
		for offset, t in enumerate(rest):
			at = base + offset if top else base
			sub = state.fork(packs)
			wrap = t.kind is ExprKind.EXPANSION
			elem = t.inner if wrap else t
			if top:
				ok = self._unify_position(pattern, elem, sub, at)
			else:
				ok = self._unify(pattern, elem, sub, _Ctx.STRICT, at)
			if not ok:
				return False
			for name in packs:
				bound = sub.bindings.get(name)
				if not isinstance(bound, TypeExpr):
					return False
				collected[name].append(TypeExpr.expansion(bound) if wrap else bound)
			state.absorb(sub, packs)
		for name in packs:
			value = PackBinding(tuple(collected[name]))
			existing = state.bindings.get(name)
			if existing is not None:
				if not self.same_binding(existing, value):
					return False
			else:
				state.bindings[name] = value
		return True

	def _unify_position(self, p: TypeExpr, t: TypeExpr, state: _State, at: int) -> bool:
		if not state.call:
			return self._unify(p, t, state, _Ctx.STRICT, at)
		p_core, p_ref = p.strip_ref()
		t_core, _ = t.strip_ref()
		if not state.use_site:
			return self._unify(p_core, t_core, state, _Ctx.STRICT, at)
		if p_ref is not None and not self.type_model.qualification_compatible(t, p):
			return False
		ctx = _Ctx.CONVERT if p_ref is not None else _Ctx.TOP_VALUE
		return self._unify(p_core, t_core, state, ctx, at)

	def _unify(self, p: TypeExpr, t: TypeExpr, state: _State, ctx: _Ctx, at: int) -> bool:
		k = p.kind
		if k is ExprKind.PARAM:
			return self._unify_param(p, t, state, ctx, at)
		if k is ExprKind.COMPUTED:
			if self.type_model.kind_of(t) is not ParamKind.VALUE:
				return False
			state.deferred.append((p, t))
			return True
		if k is ExprKind.EXPANSION or t.kind is not k:
			return False
		if not self.type_model.equal_leaf(p, t):
			return False
		if not self._quals_ok(p, t, state, ctx, at, is_param=False):
			return False
		if k is ExprKind.POINTER:
			inner_ctx = _Ctx.CONVERT if state.use_site else _Ctx.STRICT
			return self._unify(p.inner, t.inner, state, inner_ctx, at)
		if k is ExprKind.REF:
			return self._unify(p.inner, t.inner, state, _Ctx.STRICT, at)
		if p.args or t.args:
			return self._unify_seq(p.args, t.args, state, top=False, ctx=_Ctx.STRICT, base=at)
		return True

	def _unify_param(self, p: TypeExpr, t: TypeExpr, state: _State, ctx: _Ctx, at: int) -> bool:
		param = state.params.get(p.name)
		if param is None:
			# Foreign parameter reference: only identical references match.
			return self.equal(p, t)
		if not self._quals_ok(p, t, state, ctx, at, is_param=True):
			return False
		if p.args:
			# Template-template application `TT<T>`: bind the template name.
			if t.kind not in (ExprKind.NAMED, ExprKind.SYNTH) or not t.args:
				return False
			head = replace(t, args=(), quals=frozenset())
			if not self._bind(param, head, state):
				return False
			return self._unify_seq(p.args, t.args, state, top=False, ctx=_Ctx.STRICT, base=at)
		return self._bind(param, t.without_quals(p.quals), state)

	def _quals_ok(self, p: TypeExpr, t: TypeExpr, state: _State, ctx: _Ctx, at: int, *, is_param: bool) -> bool:
		# A parameter leaves extra target qualifiers to its binding.
		if (p.quals <= t.quals) if is_param else (p.quals == t.quals):
			return True
		if ctx is _Ctx.TOP_VALUE:
			return True
		if ctx is _Ctx.CONVERT and self.type_model.qualification_compatible(t, p):
			state.conversions.add(at)
			return True
		return False

	def _bind(self, param: Parameter, value: TypeExpr, state: _State) -> bool:
		existing = state.bindings.get(param.name)
		if existing is not None:
			return isinstance(existing, TypeExpr) and self.equal(existing, value)
		if param.is_pack and param.name not in state.elements:
			return False
		if not self._kind_ok(param, value):
			return False
		state.bindings[param.name] = value
		return True

	def _kind_ok(self, param: Parameter, value: TypeExpr) -> bool:
		expected = self.type_model.pack_kind(param) if self.type_model.is_pack(param) else param.kind
		if expected is ParamKind.TEMPLATE:
			if value.kind is ExprKind.SYNTH:
				return value.sort is ParamKind.TEMPLATE
			return value.kind is ExprKind.NAMED and not value.args
		return self.type_model.kind_of(value) is expected

	def _check_deferred(self, state: _State) -> bool:
		subst = Substitution.of(state.bindings)
		for p, t in state.deferred:
			if not self.equal(apply_subst(p, subst), t):
				return False
		return True

	def _finish(self, pattern: Pattern, state: _State) -> Optional[Substitution]:
		for param in pattern.params:
			if param.name in state.bindings:
				continue
			if param.is_pack:
				state.bindings[param.name] = PackBinding()
				continue
			if param.default is None:
				return None
			state.bindings[param.name] = apply_subst(param.default, Substitution.of(state.bindings))
		ordered = {p.name: state.bindings[p.name] for p in pattern.params}
		return Substitution.of(ordered, state.conversions)


__all__ = ["Matcher"]
