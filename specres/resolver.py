# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Use-site resolution: candidate filtering and the resolution driver.

`Resolver.resolve(query)` returns exactly one of three outcome values:

- `Resolved`  - a single pattern (plus the substitution that produced the
                use-site arguments) was selected;
- `Ambiguous` - several maximal candidates remain; the pairs that could not be
                ordered are reported with the reason;
- `Unmatched` - no registered pattern can produce the use-site arguments.

Nothing here raises for an ordinary outcome. The resolver works on a frozen
`RegistrySnapshot`, so the same query against the same snapshot always
produces the same outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from specres.core.type_expr import TypeExpr, render_list
from specres.core.type_model import TypeModel
from specres.core.type_subst import EMPTY_SUBST, Substitution
from specres.matcher import Matcher
from specres.ordering import OrderReason, PartialOrder, SiteContext, SpecificityComparator
from specres.pattern import Pattern, PatternForm, PatternRole, Query, ResolutionPolicy
from specres.registry import RegistryEntry, RegistrySnapshot
from specres.synth import SyntheticGenerator

logger = logging.getLogger("specres.resolve")


@dataclass(frozen=True)
class Candidate:
	"""A pattern that survived filtering for one query."""

	pattern: Pattern
	subst: Substitution
	family: Pattern  # primary the pattern belongs to
	family_subst: Substitution  # the query matched against that primary
	args: Tuple[TypeExpr, ...]  # query arguments after default completion


@dataclass(frozen=True)
class Resolved:
	kind: ClassVar[str] = "resolved"

	query: Query
	pattern: Pattern
	subst: Substitution
	via: Optional[Pattern] = None  # candidate an explicit specialization was reached through
	considered: Tuple[Candidate, ...] = ()


@dataclass(frozen=True)
class UnorderedPair:
	first: Pattern
	second: Pattern
	reason: OrderReason


@dataclass(frozen=True)
class Ambiguous:
	kind: ClassVar[str] = "ambiguous"

	query: Query
	candidates: Tuple[Pattern, ...]  # the maximal set, declaration order
	pairs: Tuple[UnorderedPair, ...]
	considered: Tuple[Candidate, ...] = ()


@dataclass(frozen=True)
class Unmatched:
	kind: ClassVar[str] = "unmatched"

	query: Query
	considered: Tuple[Pattern, ...] = ()  # every pattern registered under the name


Resolution = Union[Resolved, Ambiguous, Unmatched]


class Resolver:
	"""
	Resolve use-sites against a registry snapshot.

	The type model is the same capability object the registry was built
	with; the resolver never looks it up. `policy` is the default for queries
	that do not carry their own.
	"""

	def __init__(
		self,
		snapshot: RegistrySnapshot,
		type_model: TypeModel,
		*,
		policy: ResolutionPolicy = ResolutionPolicy.EXPLICIT_FIRST,
	) -> None:
		self.snapshot = snapshot
		self.type_model = type_model
		self.policy = policy
		self._matcher = Matcher(type_model)

	def filter(self, query: Query) -> List[Candidate]:
		"""Every pattern that can produce the query's arguments, in declaration order."""
		entry = self.snapshot.entry(query.name)
		if entry is None:
			return []
		families: Dict[str, Optional[Tuple[Tuple[TypeExpr, ...], Substitution]]] = {}
		out: List[Candidate] = []
		for pattern in entry.patterns:
			if pattern.form is not query.form:
				continue
			if query.primary_only and pattern.role is not PatternRole.PRIMARY:
				continue
			family = entry.family_root(pattern)
			if family is None:
				continue
			if family.label not in families:
				families[family.label] = self._match_family(query, family)
			fam = families[family.label]
			if fam is None:
				continue
			args, family_subst = fam
			if pattern is family:
				subst: Optional[Substitution] = family_subst
			else:
				subst = self._matcher.match(args, pattern, use_site=True)
			if subst is None:
				logger.debug("%s: %s does not match", query.render(), pattern.display_name)
				continue
			logger.debug("%s: %s matches with %s", query.render(), pattern.display_name, subst.render(pattern.param_names))
			out.append(Candidate(pattern=pattern, subst=subst, family=family, family_subst=family_subst, args=args))
		return out

	def resolve(self, query: Query) -> Resolution:
		policy = query.policy or self.policy
		entry = self.snapshot.entry(query.name)
		candidates = self.filter(query)
		considered = tuple(candidates)
		if not candidates:
			logger.debug("%s: no candidates", query.render())
			return Unmatched(query=query, considered=entry.patterns + entry.explicits if entry is not None else ())

		order: Optional[PartialOrder] = None
		best = [0]
		if len(candidates) > 1:
			comparator = SpecificityComparator(self._matcher, SyntheticGenerator())
			site = SiteContext(
				arity=len(query.args) if query.form is PatternForm.FUNCTION else None,
				conversions={c.pattern: c.subst.conversions for c in candidates},
			)
			order = PartialOrder([c.pattern for c in candidates], comparator, site=site)
			best = order.maximal()

		if policy is ResolutionPolicy.EXPLICIT_FIRST and entry is not None and not query.primary_only:
			# Only the family every maximal candidate belongs to may short-circuit.
			families = {candidates[i].family.label for i in best}
			if len(families) == 1:
				owner = next(c for c in candidates if c.pattern is c.family and c.family.label in families)
				explicit = self._explicit_for(entry, owner, exact=True)
				if explicit is not None:
					logger.debug("%s: explicit specialization %s of %s decides", query.render(), explicit.display_name, owner.pattern.display_name)
					return Resolved(query=query, pattern=explicit, subst=EMPTY_SUBST, via=owner.pattern, considered=considered)

		if order is not None and len(best) != 1:
			pairs = tuple(
				UnorderedPair(candidates[i].pattern, candidates[j].pattern, o.reason)
				for i, j, o in order.unordered_pairs(best)
			)
			logger.debug("%s: ambiguous between %s", query.render(), ", ".join(candidates[i].pattern.display_name for i in best))
			return Ambiguous(
				query=query,
				candidates=tuple(candidates[i].pattern for i in best),
				pairs=pairs,
				considered=considered,
			)
		winner = candidates[best[0]]

		if policy is ResolutionPolicy.OVERLOAD_FIRST and entry is not None and not query.primary_only:
			explicit = self._explicit_for(entry, winner, exact=False)
			if explicit is not None:
				logger.debug("%s: %s has explicit specialization %s", query.render(), winner.pattern.display_name, explicit.display_name)
				return Resolved(query=query, pattern=explicit, subst=EMPTY_SUBST, via=winner.pattern, considered=considered)
		logger.debug("%s: resolved to %s", query.render(), winner.pattern.display_name)
		return Resolved(query=query, pattern=winner.pattern, subst=winner.subst, considered=considered)

	# -- internals -----------------------------------------------------

	def _match_family(self, query: Query, family: Pattern) -> Optional[Tuple[Tuple[TypeExpr, ...], Substitution]]:
		args = self._matcher.complete(query.args, family)
		prebound = None
		if query.explicit_args:
			prebound = self._matcher.prebind(family, query.explicit_args)
			if prebound is None:
				logger.debug("%s: explicit arguments <%s> do not fit %s", query.render(), render_list(query.explicit_args), family.display_name)
				return None
		subst = self._matcher.match(args, family, prebound=prebound, use_site=True)
		if subst is None:
			return None
		return args, subst

	def _explicit_for(self, entry: RegistryEntry, owner: Candidate, *, exact: bool) -> Optional[Pattern]:
		"""
		The explicit specialization of `owner`'s family that applies to this use.

		With `exact`, its argument list must also equal the query's (completed)
		arguments; otherwise consistent bindings are enough.
		"""
		for explicit in entry.explicits_of(owner.family.label):
			if exact and not self._matcher.equal_list(explicit.args, owner.args):
				continue
			if self._binds_like(explicit, owner.family, owner.family_subst):
				return explicit
		return None

	def _binds_like(self, explicit: Pattern, family: Pattern, family_subst: Substitution) -> bool:
		prebound = None
		if explicit.template_args:
			prebound = self._matcher.prebind(family, explicit.template_args)
			if prebound is None:
				return False
		own = self._matcher.match(explicit.args, family, prebound=prebound)
		if own is None:
			return False
		for name in family.param_names:
			mine, theirs = own.get(name), family_subst.get(name)
			if mine is None or theirs is None or not self._matcher.same_binding(mine, theirs):
				return False
		return True


__all__ = [
	"Candidate",
	"Resolved",
	"UnorderedPair",
	"Ambiguous",
	"Unmatched",
	"Resolution",
	"Resolver",
]
