# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from specres.core.type_expr import ExprKind, ParamKind, TypeExpr, erase_decorations, fold_computed, render_list

INT = TypeExpr.named("int")


def test_render_qualifiers_and_pointers() -> None:
	const_int = TypeExpr.named("int", quals=["const"])
	assert TypeExpr.pointer(const_int).render() == "const int*"
	assert TypeExpr.pointer(INT, quals=["const"]).render() == "int* const"
	assert TypeExpr.lref(const_int).render() == "const int&"
	assert TypeExpr.rref(TypeExpr.param("T")).render() == "T&&"
	vec = TypeExpr.named("vector", [TypeExpr.param("Ts")])
	assert TypeExpr.expansion(vec).render() == "vector<Ts>..."
	assert render_list([INT, TypeExpr.literal(3)]) == "int, 3"


def test_synthetic_placeholders_render_with_marker() -> None:
	tok = TypeExpr.synth("U4", ParamKind.VALUE)
	assert tok.render() == "$U4"
	assert tok.sort is ParamKind.VALUE


def test_malformed_nodes_are_rejected() -> None:
	with pytest.raises(TypeError):
		TypeExpr(ExprKind.POINTER)
	with pytest.raises(TypeError):
		TypeExpr(ExprKind.COMPUTED, args=(INT, INT), op="*")
	with pytest.raises(TypeError):
		TypeExpr(ExprKind.VALUE)
	with pytest.raises(ValueError, match="unknown qualifier"):
		TypeExpr.named("int", quals=["mutable"])


def test_qualifier_helpers_are_idempotent() -> None:
	cint = INT.with_quals(["const"])
	assert cint.quals == frozenset({"const"})
	assert cint.with_quals(["const"]) is cint
	assert cint.without_quals(["const"]) == INT
	assert INT.without_quals(["volatile"]) is INT


def test_param_names_in_first_occurrence_order() -> None:
	expr = TypeExpr.named("pair", [TypeExpr.param("U"), TypeExpr.pointer(TypeExpr.param("T")), TypeExpr.param("U")])
	assert expr.param_names() == ("U", "T")
	assert not expr.is_concrete()
	assert TypeExpr.named("pair", [INT, INT]).is_concrete()


def test_erase_decorations_drops_references_and_qualifiers() -> None:
	decorated = TypeExpr.lref(TypeExpr.pointer(TypeExpr.named("int", quals=["const"]), quals=["volatile"]))
	assert erase_decorations(decorated) == TypeExpr.pointer(INT)


def test_fold_computed_only_folds_literals() -> None:
	assert fold_computed(TypeExpr.computed("+", TypeExpr.literal(3), TypeExpr.literal(2))) == TypeExpr.literal(5)
	assert fold_computed(TypeExpr.computed("-", TypeExpr.literal(3), TypeExpr.literal(5))) == TypeExpr.literal(-2)
	pending = TypeExpr.computed("+", TypeExpr.param("X"), TypeExpr.literal(2))
	assert fold_computed(pending) == pending


def test_fold_computed_folds_nested_literals_from_the_inside() -> None:
	inner = TypeExpr.computed("+", TypeExpr.literal(1), TypeExpr.literal(2))
	assert fold_computed(TypeExpr.computed("-", inner, TypeExpr.literal(4))) == TypeExpr.literal(-1)
	partial = TypeExpr.computed("+", TypeExpr.param("X"), inner)
	assert fold_computed(partial) == TypeExpr.computed("+", TypeExpr.param("X"), TypeExpr.literal(3))
