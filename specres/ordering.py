# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Specificity ordering between patterns.

`SpecificityComparator.compare(a, b)` decides the partial-order relation
between two patterns of the same name by mutual matching:

1. synthesize `a'` (a's args with every parameter replaced by a fresh
   placeholder) and `b'` likewise;
2. `b` is more specific if `b'` can be produced from `a` but `a'` cannot be
   produced from `b` (and symmetrically); anything else is unordered.

Tie-breaks applied on top:
- qualification: for two candidates that differ only in qualifier/reference
  decorations, the one that needed no qualification-adding conversion at the
  use-site wins (requires a `SiteContext`);
- reference: of two equally specialized candidates binding a position by
  reference, the lvalue reference is more specific than the rvalue one;
- pack: of two unordered candidates, the one without a pack position wins.

`PartialOrder` keeps the full pairwise matrix; the order is never collapsed
into a sort key because incomparable pairs are a legitimate outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from specres.core.type_expr import ExprKind, erase_decorations
from specres.core.type_subst import apply_subst_list
from specres.matcher import Matcher
from specres.pattern import Pattern, canonical_args
from specres.synth import SyntheticGenerator


class Specificity(Enum):
	A_MORE_SPECIFIC = "a-more-specific"
	B_MORE_SPECIFIC = "b-more-specific"
	UNORDERED = "unordered"


class OrderReason(str, Enum):
	SUBSET = "subset"
	QUALIFICATION = "qualification"
	REFERENCE = "reference"
	PACK = "pack"
	EQUIVALENT = "equivalent"
	INCOMPARABLE = "incomparable"
	QUALIFICATION_TIE = "qualification-tie"
	PACK_TIE = "pack-tie"


_FLIP = {
	Specificity.A_MORE_SPECIFIC: Specificity.B_MORE_SPECIFIC,
	Specificity.B_MORE_SPECIFIC: Specificity.A_MORE_SPECIFIC,
	Specificity.UNORDERED: Specificity.UNORDERED,
}


@dataclass(frozen=True)
class Ordering:
	relation: Specificity
	reason: OrderReason

	@property
	def ordered(self) -> bool:
		return self.relation is not Specificity.UNORDERED

	def flipped(self) -> "Ordering":
		return Ordering(_FLIP[self.relation], self.reason)


@dataclass(frozen=True)
class SiteContext:
	"""Use-site facts the tie-breaks depend on."""

	arity: Optional[int] = None
	conversions: Mapping[Pattern, FrozenSet[int]] = field(default_factory=dict)

	def conversions_for(self, pattern: Pattern) -> FrozenSet[int]:
		return self.conversions.get(pattern, frozenset())


def _more(a_wins: bool, reason: OrderReason) -> Ordering:
	return Ordering(Specificity.A_MORE_SPECIFIC if a_wins else Specificity.B_MORE_SPECIFIC, reason)


class SpecificityComparator:
	def __init__(self, matcher: Matcher, generator: Optional[SyntheticGenerator] = None) -> None:
		self.matcher = matcher
		self.generator = generator if generator is not None else SyntheticGenerator()

	def compare(self, a: Pattern, b: Pattern, *, site: Optional[SiteContext] = None) -> Ordering:
		if a.name != b.name:
			raise ValueError(f"cannot order patterns of different names ('{a.name}' vs '{b.name}')")
		arity = site.arity if site is not None else None
		va, a_pack = self._view(a, arity)
		vb, b_pack = self._view(b, arity)
		if self.matcher.equal_list(canonical_args(va), canonical_args(vb)):
			# Same shape once trimmed to the use-site; only a dropped pack can differ.
			if a_pack != b_pack:
				return _more(b_pack, OrderReason.PACK)
			return Ordering(Specificity.UNORDERED, OrderReason.EQUIVALENT)

		a_syn = apply_subst_list(va.args, self.generator.fresh(va))
		b_syn = apply_subst_list(vb.args, self.generator.fresh(vb))
		b_from_a = self.matcher.match(b_syn, va) is not None
		a_from_b = self.matcher.match(a_syn, vb) is not None
		if b_from_a != a_from_b:
			result = _more(a_from_b, OrderReason.SUBSET)
		elif b_from_a:
			result = Ordering(Specificity.UNORDERED, OrderReason.EQUIVALENT)
		else:
			result = Ordering(Specificity.UNORDERED, OrderReason.INCOMPARABLE)

		decor_only = self._same_modulo_decorations(va, vb)
		if site is not None and decor_only:
			conv_a = bool(site.conversions_for(a))
			conv_b = bool(site.conversions_for(b))
			if conv_a != conv_b:
				return _more(conv_b, OrderReason.QUALIFICATION)
		if result.ordered:
			return result
		if b_from_a and a_from_b:
			by_ref = self._reference_order(va, vb)
			if by_ref is not None:
				return by_ref
		if a_pack != b_pack:
			return _more(b_pack, OrderReason.PACK)
		if a_pack:
			return Ordering(Specificity.UNORDERED, OrderReason.PACK_TIE)
		if decor_only:
			return Ordering(Specificity.UNORDERED, OrderReason.QUALIFICATION_TIE)
		return result

	def _view(self, pattern: Pattern, arity: Optional[int]) -> Tuple[Pattern, bool]:
		"""Drop trailing positions the use-site supplies no argument for."""
		has_pack = pattern.has_pack_position()
		args = pattern.args
		if arity is None or len(args) <= arity:
			return pattern, has_pack
		for idx in range(arity, len(args)):
			if args[idx].kind is not ExprKind.EXPANSION and idx < pattern.required_count:
				return pattern, has_pack
		return replace(pattern, args=args[:arity], required=None), has_pack

	def _same_modulo_decorations(self, a: Pattern, b: Pattern) -> bool:
		ea = tuple(erase_decorations(x) for x in canonical_args(a))
		eb = tuple(erase_decorations(x) for x in canonical_args(b))
		return self.matcher.equal_list(ea, eb)

	def _reference_order(self, a: Pattern, b: Pattern) -> Optional[Ordering]:
		a_wins = b_wins = False
		for x, y in zip(a.args, b.args):
			if x.kind is ExprKind.REF and y.kind is ExprKind.REF and x.rvalue != y.rvalue:
				if y.rvalue:
					a_wins = True
				else:
					b_wins = True
		if a_wins != b_wins:
			return _more(a_wins, OrderReason.REFERENCE)
		return None


class PartialOrder:
	"""Pairwise comparison matrix over a fixed candidate list."""

	def __init__(
		self,
		patterns: Sequence[Pattern],
		comparator: SpecificityComparator,
		*,
		site: Optional[SiteContext] = None,
	) -> None:
		self.patterns = tuple(patterns)
		self._matrix: Dict[Tuple[int, int], Ordering] = {}
		n = len(self.patterns)
		for i in range(n):
			for j in range(i + 1, n):
				order = comparator.compare(self.patterns[i], self.patterns[j], site=site)
				self._matrix[(i, j)] = order
				self._matrix[(j, i)] = order.flipped()

	def get(self, i: int, j: int) -> Ordering:
		if i == j:
			return Ordering(Specificity.UNORDERED, OrderReason.EQUIVALENT)
		return self._matrix[(i, j)]

	def more_specific(self, i: int, j: int) -> bool:
		return self.get(i, j).relation is Specificity.A_MORE_SPECIFIC

	def dominated(self, i: int) -> bool:
		return any(self.more_specific(j, i) for j in range(len(self.patterns)) if j != i)

	def maximal(self) -> List[int]:
		return [i for i in range(len(self.patterns)) if not self.dominated(i)]

	def unordered_pairs(self, indices: Sequence[int]) -> List[Tuple[int, int, Ordering]]:
		out = []
		for pos, i in enumerate(indices):
			for j in indices[pos + 1 :]:
				order = self.get(i, j)
				if not order.ordered:
					out.append((i, j, order))
		return out


__all__ = [
	"Specificity",
	"OrderReason",
	"Ordering",
	"SiteContext",
	"SpecificityComparator",
	"PartialOrder",
]
