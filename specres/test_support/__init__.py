# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Builders shared by the test suite.

Patterns are written in the declaration language and parsed, so tests read
like the declarations they exercise:

	fn_pattern("f", "typename T, typename T1", "T, T1*")
	class_pattern("B", "typename T", "T, T")
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from specres.core.type_expr import TypeExpr
from specres.core.type_model import CxxTypeModel, TypeModel
from specres.parser import ParsedUnit, parse_arg_list, parse_source
from specres.pattern import Parameter, Pattern, PatternForm, Query, ResolutionPolicy
from specres.registry import PatternRegistry, RegistrationError, RegistrySnapshot
from specres.resolver import Resolution, Resolver


def parse_ok(source: str, filename: str = "<test>") -> ParsedUnit:
	unit = parse_source(source, filename)
	assert not unit.diagnostics, [d.render() for d in unit.diagnostics]
	return unit


def _single(source: str) -> Pattern:
	unit = parse_ok(source)
	assert len(unit.patterns) == 1
	return unit.patterns[0]


def fn_pattern(name: str, tparams: str, args: str, *, label: Optional[str] = None) -> Pattern:
	suffix = f" as {label}" if label else ""
	return _single(f"template<{tparams}> fn {name}({args}){suffix};")


def class_pattern(name: str, tparams: str, args: Optional[str] = None, *, label: Optional[str] = None) -> Pattern:
	targs = f"<{args}>" if args is not None else ""
	suffix = f" as {label}" if label else ""
	return _single(f"template<{tparams}> class {name}{targs}{suffix};")


def exprs(text: str, params: Sequence[Parameter] = ()) -> Tuple[TypeExpr, ...]:
	return parse_arg_list(text, params)


def expr(text: str, params: Sequence[Parameter] = ()) -> TypeExpr:
	out = parse_arg_list(text, params)
	assert len(out) == 1
	return out[0]


def call(name: str, args: str, *, explicit: str = "", primary_only: bool = False, policy: Optional[ResolutionPolicy] = None) -> Query:
	return Query(
		name=name,
		args=exprs(args),
		explicit_args=exprs(explicit),
		primary_only=primary_only,
		policy=policy,
		form=PatternForm.FUNCTION,
	)


def instance(name: str, args: str, *, primary_only: bool = False) -> Query:
	return Query(name=name, args=exprs(args), primary_only=primary_only, form=PatternForm.CLASS)


def build_registry(
	source: str,
	*,
	type_model: Optional[TypeModel] = None,
) -> Tuple[PatternRegistry, List[RegistrationError], ParsedUnit]:
	"""Register every declaration of `source`; collect the rejections."""
	unit = parse_ok(source)
	registry = PatternRegistry(type_model or CxxTypeModel())
	errors = []
	for pattern in unit.patterns:
		err = registry.register(pattern)
		if err is not None:
			errors.append(err)
	return registry, errors, unit


def make_resolver(
	source: str,
	*,
	policy: ResolutionPolicy = ResolutionPolicy.EXPLICIT_FIRST,
	type_model: Optional[TypeModel] = None,
) -> Tuple[Resolver, RegistrySnapshot]:
	model = type_model or CxxTypeModel()
	registry, errors, _ = build_registry(source, type_model=model)
	assert not errors, [e.message for e in errors]
	snapshot = registry.freeze()
	return Resolver(snapshot, model, policy=policy), snapshot


def resolve_uses(source: str, *, policy: ResolutionPolicy = ResolutionPolicy.EXPLICIT_FIRST) -> List[Resolution]:
	"""Resolve every `use` of `source` in order."""
	resolver, _ = make_resolver(source, policy=policy)
	return [resolver.resolve(q) for q in parse_ok(source).queries]


def winner(outcome: Resolution) -> Optional[str]:
	"""Label of the resolved pattern, or None for an ambiguous/unmatched outcome."""
	pattern = getattr(outcome, "pattern", None)
	return pattern.label if pattern is not None else None


__all__ = [
	"parse_ok",
	"fn_pattern",
	"class_pattern",
	"exprs",
	"expr",
	"call",
	"instance",
	"build_registry",
	"make_resolver",
	"resolve_uses",
	"winner",
]
