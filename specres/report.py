# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Rendering of resolution outcomes for humans and tools.

`Ambiguous` and `Unmatched` become resolve-phase `Diagnostic`s listing every
candidate that was considered and, for an ambiguity, every pair that could not
be ordered together with the reason.
"""

from __future__ import annotations

from typing import Optional

from specres.core.diagnostics import Diagnostic
from specres.ordering import OrderReason
from specres.resolver import Ambiguous, Resolution, Resolved

_REASON_TEXT = {
	OrderReason.QUALIFICATION_TIE: "qualification tie: they differ only in qualifiers and both needed the same conversions",
	OrderReason.PACK_TIE: "pack tie: both end in a pack expansion",
	OrderReason.INCOMPARABLE: "incomparable: neither can produce the other's arguments",
	OrderReason.EQUIVALENT: "equivalent: each can produce the other's arguments",
}


def reason_text(reason: OrderReason) -> str:
	return _REASON_TEXT.get(reason, reason.value)


def describe_resolution(outcome: Resolution) -> str:
	"""One-line summary of an outcome."""
	query = outcome.query.render()
	if isinstance(outcome, Resolved):
		text = f"{query} -> {outcome.pattern.display_name}: {outcome.pattern.render_signature()}"
		if outcome.subst:
			text = f"{text} [{outcome.subst.render(outcome.pattern.param_names)}]"
		if outcome.via is not None:
			text = f"{text} (explicit specialization of {outcome.via.display_name})"
		return text
	if isinstance(outcome, Ambiguous):
		names = ", ".join(p.display_name for p in outcome.candidates)
		return f"{query} -> ambiguous between {names}"
	return f"{query} -> no match"


def resolution_to_diagnostic(outcome: Resolution) -> Optional[Diagnostic]:
	if isinstance(outcome, Resolved):
		return None
	query = outcome.query
	if isinstance(outcome, Ambiguous):
		notes = [f"candidate: {p.display_name}: {p.render()}" for p in outcome.candidates]
		for pair in outcome.pairs:
			notes.append(f"{pair.first.display_name} and {pair.second.display_name} are unordered ({reason_text(pair.reason)})")
		return Diagnostic(
			message=f"ambiguous use of '{query.name}': {query.render()}",
			code="ambiguous",
			phase="resolve",
			span=query.span,
			notes=notes,
		)
	if outcome.considered:
		notes = [f"considered: {p.display_name}: {p.render()}" for p in outcome.considered]
	else:
		notes = [f"nothing is declared under '{query.name}'"]
	return Diagnostic(
		message=f"no pattern of '{query.name}' matches {query.render()}",
		code="unmatched",
		phase="resolve",
		span=query.span,
		notes=notes,
	)


__all__ = ["describe_resolution", "reason_text", "resolution_to_diagnostic"]
