# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Pattern registry for specialization resolution.

Patterns are registered during a declaration phase. `register()` validates a
pattern against the rules of its role and either records it or returns a
`RegistrationError`; a rejected pattern never aborts the rest of the build.
`freeze()` ends the declaration phase and returns a read-only
`RegistrySnapshot`, which is what the resolver consumes. Every successful
registration bumps the registry version, so a snapshot never observes a
pattern registered after it was taken.

The registry does not resolve use-sites; it only owns the candidate sets:
per name, the primaries and partial specializations in declaration order,
plus the explicit specializations attached to a primary's family.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set, Tuple

from specres.core.diagnostics import Diagnostic
from specres.core.type_expr import ExprKind, ParamKind, TypeExpr
from specres.core.type_model import TypeModel
from specres.matcher import Matcher
from specres.ordering import PartialOrder, Specificity, SpecificityComparator
from specres.pattern import Pattern, PatternRole, canonical_args

logger = logging.getLogger("specres.registry")


class RegistrationErrorCode(str, Enum):
	DUPLICATE_PARAM = "duplicate-param"
	MULTIPLE_PACKS = "multiple-packs"
	PACK_NOT_LAST = "pack-not-last"
	EXPANSION_NOT_LAST = "expansion-not-last"
	BAD_EXPANSION = "bad-expansion"
	UNDEDUCIBLE_PARAM = "undeducible-param"
	IDENTICAL_TO_PRIMARY = "identical-to-primary"
	NOT_MORE_SPECIALIZED = "not-more-specialized"
	DEPENDENT_VALUE_TYPE = "dependent-value-type"
	MISSING_PRIMARY = "missing-primary"
	UNKNOWN_FAMILY = "unknown-family"
	EXPLICIT_NOT_CONCRETE = "explicit-not-concrete"
	EXPLICIT_MISMATCH = "explicit-mismatch"
	AMBIGUOUS_SPECIALIZATION = "ambiguous-specialization"
	DUPLICATE_LABEL = "duplicate-label"
	DUPLICATE_PATTERN = "duplicate-pattern"
	REGISTRY_FROZEN = "registry-frozen"


@dataclass(frozen=True)
class RegistrationError:
	"""A rejected registration. Fatal to that one pattern only."""

	code: RegistrationErrorCode
	message: str
	pattern: Pattern

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(
			message=self.message,
			code=self.code.value,
			phase="registry",
			severity="error",
			span=self.pattern.span,
			notes=[f"declared as: {self.pattern.render()}"],
		)


@dataclass(frozen=True)
class RegistryEntry:
	"""All patterns registered under one name."""

	name: str
	patterns: Tuple[Pattern, ...]  # primaries and partial specializations, declaration order
	explicits: Tuple[Pattern, ...]

	@property
	def primaries(self) -> Tuple[Pattern, ...]:
		return tuple(p for p in self.patterns if p.role is PatternRole.PRIMARY)

	@property
	def partials(self) -> Tuple[Pattern, ...]:
		return tuple(p for p in self.patterns if p.role is PatternRole.PARTIAL)

	@property
	def primary(self) -> Optional[Pattern]:
		prims = self.primaries
		return prims[0] if prims else None

	def by_label(self, label: str) -> Optional[Pattern]:
		for p in self.patterns + self.explicits:
			if p.label == label:
				return p
		return None

	def family_root(self, pattern: Pattern) -> Optional[Pattern]:
		"""The primary a pattern belongs to (itself for a primary)."""
		if pattern.role is PatternRole.PRIMARY:
			return pattern
		if pattern.specializes is None:
			return self.primary
		return self.by_label(pattern.specializes)

	def explicits_of(self, label: str) -> Tuple[Pattern, ...]:
		return tuple(p for p in self.explicits if p.specializes == label)


@dataclass(frozen=True)
class RegistrySnapshot:
	"""Read-only view of the registry at a given version."""

	version: int
	entries: Mapping[str, RegistryEntry]

	def entry(self, name: str) -> Optional[RegistryEntry]:
		return self.entries.get(name)

	def names(self) -> Tuple[str, ...]:
		return tuple(self.entries)


def _deducible_names(expr: TypeExpr, out: Set[str]) -> None:
	"""Collect parameters appearing in deducible positions (outside `X+2` contexts)."""
	if expr.kind is ExprKind.COMPUTED:
		return
	if expr.kind is ExprKind.PARAM:
		out.add(expr.name)
	for child in expr.args:
		_deducible_names(child, out)


class PatternRegistry:
	"""
	Store patterns by name during the declaration phase.

	Short-term: one registry per declaration file set, frozen before any
	use-site is resolved.

	Long-term: a compiler embedding this registry keeps registering between
	resolutions by taking a new `snapshot()` for each batch of use-sites;
	in-flight resolutions keep the snapshot they started with.
	"""

	def __init__(self, type_model: TypeModel) -> None:
		self.type_model = type_model
		self._matcher = Matcher(type_model)
		self._comparator = SpecificityComparator(self._matcher)
		self._patterns: Dict[str, List[Pattern]] = {}
		self._explicits: Dict[str, List[Pattern]] = {}
		self._version = 0
		self._frozen = False

	@property
	def frozen(self) -> bool:
		return self._frozen

	@property
	def version(self) -> int:
		return self._version

	def register(self, pattern: Pattern) -> Optional[RegistrationError]:
		"""Validate and record `pattern`; return the error instead on rejection."""
		err = self._register(pattern)
		if err is not None:
			logger.debug("rejected %s: %s (%s)", pattern.render(), err.message, err.code.value)
		return err

	def freeze(self) -> RegistrySnapshot:
		"""End the declaration phase; later registrations are rejected."""
		self._frozen = True
		return self.snapshot()

	def snapshot(self) -> RegistrySnapshot:
		names = list(self._patterns)
		names.extend(n for n in self._explicits if n not in self._patterns)
		entries = {
			name: RegistryEntry(
				name=name,
				patterns=tuple(self._patterns.get(name, ())),
				explicits=tuple(self._explicits.get(name, ())),
			)
			for name in names
		}
		return RegistrySnapshot(version=self._version, entries=MappingProxyType(entries))

	# -- validation ----------------------------------------------------

	def _register(self, pattern: Pattern) -> Optional[RegistrationError]:
		if self._frozen:
			return self._error(
				RegistrationErrorCode.REGISTRY_FROZEN,
				f"'{pattern.name}' declared after the declaration phase ended (declare specializations before first use)",
				pattern,
			)
		err = self._check_params(pattern) or self._check_expansions(pattern)
		if err is not None:
			return err
		existing = self._patterns.get(pattern.name, [])
		explicits = self._explicits.get(pattern.name, [])
		label = pattern.label or f"{pattern.name}#{len(existing) + len(explicits)}"
		if any(p.label == label for p in existing + explicits):
			return self._error(RegistrationErrorCode.DUPLICATE_LABEL, f"label '{label}' is already used for '{pattern.name}'", pattern)
		pattern = replace(pattern, label=label)

		if pattern.role is PatternRole.EXPLICIT:
			return self._register_explicit(pattern, existing, explicits)
		if pattern.role is PatternRole.PARTIAL:
			err = self._check_partial(pattern, existing)
			if err is not None:
				return err
			pattern = replace(pattern, specializes=pattern.specializes or existing[0].label)
		err = self._check_duplicate(pattern, existing)
		if err is not None:
			return err
		self._patterns.setdefault(pattern.name, []).append(pattern)
		self._version += 1
		logger.debug("registered %s as %s [%s]", pattern.role.value, label, pattern.render())
		return None

	def _check_params(self, pattern: Pattern) -> Optional[RegistrationError]:
		seen: Set[str] = set()
		for param in pattern.params:
			if param.name in seen:
				return self._error(RegistrationErrorCode.DUPLICATE_PARAM, f"parameter '{param.name}' declared twice", pattern)
			seen.add(param.name)
		packs = [i for i, p in enumerate(pattern.params) if p.is_pack]
		if len(packs) > 1:
			return self._error(RegistrationErrorCode.MULTIPLE_PACKS, "at most one parameter pack is allowed per pattern", pattern)
		if packs:
			deducible: Set[str] = set()
			for arg in pattern.args:
				_deducible_names(arg, deducible)
			for param in pattern.params[packs[0] + 1 :]:
				if param.default is None and param.name not in deducible:
					return self._error(
						RegistrationErrorCode.PACK_NOT_LAST,
						f"parameter '{param.name}' follows pack '{pattern.params[packs[0]].name}' but has no default and is not deducible",
						pattern,
					)
		return None

	def _check_expansions(self, pattern: Pattern) -> Optional[RegistrationError]:
		pack_names = {p.name for p in pattern.params if p.is_pack}
		return self._check_expansion_list(pattern.args, pack_names, pattern)

	def _check_expansion_list(self, exprs: Tuple[TypeExpr, ...], packs: Set[str], pattern: Pattern) -> Optional[RegistrationError]:
		for idx, expr in enumerate(exprs):
			if expr.kind is ExprKind.EXPANSION:
				if idx != len(exprs) - 1:
					return self._error(RegistrationErrorCode.EXPANSION_NOT_LAST, f"pack expansion '{expr.render()}' must be the last argument", pattern)
				if not packs.intersection(expr.inner.param_names()):
					return self._error(RegistrationErrorCode.BAD_EXPANSION, f"'{expr.render()}' expands no parameter pack", pattern)
				err = self._check_expansion_list(expr.inner.args, set(), pattern)
			else:
				bare = packs.intersection(self._bare_names(expr))
				if bare:
					return self._error(RegistrationErrorCode.BAD_EXPANSION, f"pack '{sorted(bare)[0]}' used outside a pack expansion", pattern)
				err = self._check_expansion_list(expr.args, packs, pattern)
			if err is not None:
				return err
		return None

	def _bare_names(self, expr: TypeExpr) -> Set[str]:
		"""Parameter names used in `expr` outside any nested expansion."""
		if expr.kind is ExprKind.EXPANSION:
			return set()
		names = {expr.name} if expr.kind is ExprKind.PARAM else set()
		for child in expr.args:
			names |= self._bare_names(child)
		return names

	def _check_partial(self, pattern: Pattern, existing: List[Pattern]) -> Optional[RegistrationError]:
		primaries = [p for p in existing if p.role is PatternRole.PRIMARY]
		if not primaries:
			return self._error(RegistrationErrorCode.MISSING_PRIMARY, f"partial specialization of '{pattern.name}' declared before its primary", pattern)
		primary = primaries[0]
		if pattern.specializes is not None:
			primary = next((p for p in primaries if p.label == pattern.specializes), None)
			if primary is None:
				return self._error(RegistrationErrorCode.UNKNOWN_FAMILY, f"no primary '{pattern.specializes}' to specialize", pattern)
		deducible: Set[str] = set()
		for arg in pattern.args:
			_deducible_names(arg, deducible)
		for param in pattern.params:
			if param.name not in deducible:
				return self._error(
					RegistrationErrorCode.UNDEDUCIBLE_PARAM,
					f"parameter '{param.name}' is not deducible from the argument list",
					pattern,
				)
		if primary.is_class_shape():
			for param, arg in zip(primary.params, pattern.args):
				dep = param.value_type
				if param.kind is ParamKind.VALUE and dep is not None and primary.param(dep.name) is not None and dep.kind is ExprKind.PARAM:
					if arg.kind is not ExprKind.PARAM:
						return self._error(
							RegistrationErrorCode.DEPENDENT_VALUE_TYPE,
							f"argument '{arg.render()}' specializes '{param.name}', whose type depends on '{dep.name}'",
							pattern,
						)
		if self._matcher.equal_list(canonical_args(pattern), canonical_args(primary)):
			return self._error(RegistrationErrorCode.IDENTICAL_TO_PRIMARY, "argument list is identical to the primary's", pattern)
		order = self._comparator.compare(primary, pattern)
		if order.relation is not Specificity.B_MORE_SPECIFIC:
			return self._error(
				RegistrationErrorCode.NOT_MORE_SPECIALIZED,
				f"partial specialization is not more specialized than {primary.label} ({order.reason.value})",
				pattern,
			)
		return None

	def _check_duplicate(self, pattern: Pattern, existing: List[Pattern]) -> Optional[RegistrationError]:
		key = canonical_args(pattern)
		for other in existing:
			if other.required_count == pattern.required_count and self._matcher.equal_list(canonical_args(other), key):
				return self._error(
					RegistrationErrorCode.DUPLICATE_PATTERN,
					f"equivalent to previously declared {other.label}",
					pattern,
				)
		return None

	def _register_explicit(self, pattern: Pattern, existing: List[Pattern], explicits: List[Pattern]) -> Optional[RegistrationError]:
		if pattern.params or not all(a.is_concrete() for a in pattern.args + pattern.template_args):
			return self._error(RegistrationErrorCode.EXPLICIT_NOT_CONCRETE, "explicit specialization must be fully concrete", pattern)
		primaries = [p for p in existing if p.role is PatternRole.PRIMARY]
		if not primaries:
			return self._error(RegistrationErrorCode.MISSING_PRIMARY, f"explicit specialization of '{pattern.name}' declared before its primary", pattern)
		if pattern.specializes is not None:
			primaries = [p for p in primaries if p.label == pattern.specializes]
			if not primaries:
				return self._error(RegistrationErrorCode.UNKNOWN_FAMILY, f"no primary '{pattern.specializes}' to specialize", pattern)
		viable: List[Tuple[Pattern, Tuple[TypeExpr, ...]]] = []
		for family in primaries:
			args = self._matcher.complete(pattern.args, family)
			prebound = None
			if pattern.template_args:
				prebound = self._matcher.prebind(family, pattern.template_args)
				if prebound is None:
					continue
			if self._matcher.match(args, family, prebound=prebound) is not None:
				viable.append((family, args))
		if not viable:
			return self._error(RegistrationErrorCode.EXPLICIT_MISMATCH, "no primary of this name can produce the explicit argument list", pattern)
		if len(viable) > 1:
			order = PartialOrder([fam for fam, _ in viable], self._comparator)
			best = order.maximal()
			if len(best) != 1:
				labels = ", ".join(viable[i][0].label or "?" for i in best)
				return self._error(RegistrationErrorCode.AMBIGUOUS_SPECIALIZATION, f"explicit specialization matches several primaries equally well: {labels}", pattern)
			viable = [viable[best[0]]]
		family, args = viable[0]
		pattern = replace(pattern, args=args, specializes=family.label)
		for other in explicits:
			if other.specializes == family.label and self._matcher.equal_list(other.args, args) and self._matcher.equal_list(other.template_args, pattern.template_args):
				return self._error(RegistrationErrorCode.DUPLICATE_PATTERN, f"{family.label} already has an explicit specialization for these arguments ({other.label})", pattern)
		self._explicits.setdefault(pattern.name, []).append(pattern)
		self._version += 1
		logger.debug("registered explicit %s of %s [%s]", pattern.label, family.label, pattern.render())
		return None

	def _error(self, code: RegistrationErrorCode, message: str, pattern: Pattern) -> RegistrationError:
		return RegistrationError(code=code, message=message, pattern=pattern)


__all__ = [
	"RegistrationErrorCode",
	"RegistrationError",
	"RegistryEntry",
	"RegistrySnapshot",
	"PatternRegistry",
]
