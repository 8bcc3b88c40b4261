# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from specres.core.type_expr import TypeExpr
from specres.core.type_subst import PackBinding, Substitution, apply_subst, apply_subst_list

INT = TypeExpr.named("int")
FLOAT = TypeExpr.named("float")
T = TypeExpr.param("T")


def test_apply_subst_replaces_nested_params() -> None:
	subst = Substitution.of({"T": INT})
	assert apply_subst(TypeExpr.pointer(T), subst) == TypeExpr.pointer(INT)
	assert apply_subst(TypeExpr.named("vector", [T]), subst) == TypeExpr.named("vector", [INT])


def test_apply_subst_keeps_qualifiers_of_the_reference() -> None:
	subst = Substitution.of({"T": INT})
	assert apply_subst(TypeExpr.param("T", quals=["const"]), subst) == TypeExpr.named("int", quals=["const"])


def test_unbound_params_are_left_alone() -> None:
	expr = TypeExpr.pointer(TypeExpr.param("U"))
	assert apply_subst(expr, Substitution.of({"T": INT})) is expr


def test_pack_expansion_produces_one_element_per_binding() -> None:
	args = (T, TypeExpr.expansion(TypeExpr.named("vector", [TypeExpr.param("Ts")])))
	subst = Substitution.of({"T": INT, "Ts": PackBinding((INT, FLOAT))})
	assert apply_subst_list(args, subst) == (
		INT,
		TypeExpr.named("vector", [INT]),
		TypeExpr.named("vector", [FLOAT]),
	)


def test_empty_pack_expands_to_nothing() -> None:
	args = (T, TypeExpr.expansion(TypeExpr.param("Ts")))
	assert apply_subst_list(args, Substitution.of({"T": INT, "Ts": PackBinding()})) == (INT,)


def test_synthetic_pack_element_stays_an_expansion() -> None:
	tok = TypeExpr.synth("U2")
	args = (TypeExpr.expansion(TypeExpr.named("vector", [TypeExpr.param("Ts")])),)
	subst = Substitution.of({"Ts": PackBinding((TypeExpr.expansion(tok),))})
	assert apply_subst_list(args, subst) == (TypeExpr.expansion(TypeExpr.named("vector", [tok])),)


def test_mismatched_pack_lengths_raise() -> None:
	pair = TypeExpr.named("pair", [TypeExpr.param("Ts"), TypeExpr.param("Us")])
	subst = Substitution.of({"Ts": PackBinding((INT,)), "Us": PackBinding((INT, FLOAT))})
	with pytest.raises(ValueError, match="mismatched pack lengths"):
		apply_subst_list((TypeExpr.expansion(pair),), subst)


def test_template_template_application() -> None:
	expr = TypeExpr.param("TT", [T])
	subst = Substitution.of({"TT": TypeExpr.named("vector"), "T": INT})
	assert apply_subst(expr, subst) == TypeExpr.named("vector", [INT])


def test_computed_values_fold_after_substitution() -> None:
	expr = TypeExpr.computed("+", TypeExpr.param("X"), TypeExpr.literal(2))
	assert apply_subst(expr, Substitution.of({"X": TypeExpr.literal(3)})) == TypeExpr.literal(5)


def test_substitution_accessors() -> None:
	subst = Substitution.of({"T": INT, "Ts": PackBinding((FLOAT,))}, conversions=[1])
	assert subst.get("T") == INT
	assert subst.get("missing") is None
	assert subst.names() == ("T", "Ts")
	assert subst.conversions == frozenset({1})
	assert subst.render() == "T=int, Ts={float}"
	assert subst.render(["Ts"]) == "Ts={float}"
	assert subst.overlay({"T": FLOAT}).get("T") == FLOAT
	assert not Substitution()
