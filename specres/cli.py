# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: `python -m specres FILE...`.

Every declaration of every file is registered first, then the registry is
frozen and each `use` is resolved in source order.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from specres.core.diagnostics import Diagnostic
from specres.core.span import Span
from specres.core.type_model import CxxTypeModel
from specres.core.type_subst import PackBinding
from specres.parser import parse_file
from specres.pattern import Query, ResolutionPolicy
from specres.registry import PatternRegistry
from specres.report import describe_resolution, resolution_to_diagnostic
from specres.resolver import Ambiguous, Resolution, Resolved, Resolver

logger = logging.getLogger("specres")


def _diag_to_json(diag: Diagnostic, source: Path) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	out = diag.to_json()
	if out["file"] is None:
		out["file"] = str(source)
	return out


def _outcome_to_json(outcome: Resolution) -> dict:
	query = outcome.query
	out: Dict[str, object] = {
		"use": query.render(),
		"outcome": outcome.kind,
		"file": query.span.file,
		"line": query.span.line,
	}
	if isinstance(outcome, Resolved):
		bindings = {}
		for name, value in outcome.subst.bindings:
			if isinstance(value, PackBinding):
				bindings[name] = [e.render() for e in value.elems]
			else:
				bindings[name] = value.render()
		out["pattern"] = outcome.pattern.display_name
		out["signature"] = outcome.pattern.render_signature()
		out["substitution"] = bindings
		out["via"] = outcome.via.display_name if outcome.via is not None else None
	elif isinstance(outcome, Ambiguous):
		out["candidates"] = [p.display_name for p in outcome.candidates]
		out["unordered"] = [[pair.first.display_name, pair.second.display_name, pair.reason.value] for pair in outcome.pairs]
	else:
		out["considered"] = [p.display_name for p in outcome.considered]
	return out


def _parse_aliases(items: Optional[List[str]]) -> Dict[str, str]:
	aliases: Dict[str, str] = {}
	for item in items or []:
		alias, sep, target = item.partition("=")
		if not sep or not alias or not target:
			raise ValueError(f"invalid alias '{item}' (expected NAME=TARGET)")
		aliases[alias.strip()] = target.strip()
	return aliases


def main(argv: list[str] | None = None) -> int:
	"""
	Register declarations, resolve every use-site, report the outcomes.

	With --json, prints one object with `exit_code`, `results` and
	`diagnostics`; otherwise prints one line per use-site to stdout and
	diagnostics to stderr. Exit code 1 when any error diagnostic was produced.
	"""
	parser = argparse.ArgumentParser(prog="specres", description="Resolve template specializations and overloads")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to declaration file(s)")
	parser.add_argument("--json", action="store_true", help="Emit results and diagnostics as JSON")
	parser.add_argument(
		"--policy",
		choices=[p.value for p in ResolutionPolicy],
		default=ResolutionPolicy.EXPLICIT_FIRST.value,
		help="When explicit specializations are consulted (default: explicit-first)",
	)
	parser.add_argument("--primary-only", action="store_true", help="Resolve every use-site against primaries only")
	parser.add_argument(
		"--alias",
		dest="aliases",
		action="append",
		metavar="NAME=TARGET",
		help="Treat NAME as another spelling of TARGET (repeatable)",
	)
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Log registration and resolution steps")
	args = parser.parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(name)s: %(message)s",
		stream=sys.stderr,
	)
	try:
		aliases = _parse_aliases(args.aliases)
	except ValueError as err:
		parser.error(str(err))

	type_model = CxxTypeModel(aliases)
	registry = PatternRegistry(type_model)
	diagnostics: List[Diagnostic] = []
	queries: List[Query] = []
	for path in args.source:
		try:
			unit = parse_file(path)
		except OSError as err:
			diagnostics.append(Diagnostic(message=f"cannot read '{path}': {err.strerror}", code="io", phase="parser", span=Span(file=str(path))))
			continue
		diagnostics.extend(unit.diagnostics)
		for pattern in unit.patterns:
			rejected = registry.register(pattern)
			if rejected is not None:
				diagnostics.append(rejected.to_diagnostic())
		queries.extend(unit.queries)

	snapshot = registry.freeze()
	logger.debug("registry frozen at version %d with %d name(s)", snapshot.version, len(snapshot.names()))
	resolver = Resolver(snapshot, type_model, policy=ResolutionPolicy(args.policy))
	outcomes: List[Resolution] = []
	for query in queries:
		if args.primary_only:
			query = replace(query, primary_only=True)
		outcome = resolver.resolve(query)
		outcomes.append(outcome)
		diag = resolution_to_diagnostic(outcome)
		if diag is not None:
			diagnostics.append(diag)

	exit_code = 1 if any(d.is_error for d in diagnostics) else 0
	if args.json:
		payload = {
			"exit_code": exit_code,
			"results": [_outcome_to_json(o) for o in outcomes],
			"diagnostics": [_diag_to_json(d, args.source[0]) for d in diagnostics],
		}
		print(json.dumps(payload))
		return exit_code
	for outcome in outcomes:
		print(describe_resolution(outcome))
	for diag in diagnostics:
		print(diag.render(), file=sys.stderr)
	return exit_code


__all__ = ["main"]
