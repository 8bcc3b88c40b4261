# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from specres.core.type_expr import ExprKind, ParamKind
from specres.core.type_subst import PackBinding
from specres.synth import SyntheticGenerator
from specres.test_support import class_pattern, fn_pattern


def test_fresh_never_reuses_a_token() -> None:
	gen = SyntheticGenerator()
	pattern = fn_pattern("f", "typename T, typename T1", "T, T1")
	first = gen.fresh(pattern)
	second = gen.fresh(pattern)
	tokens = [first.get("T"), first.get("T1"), second.get("T"), second.get("T1")]
	assert len({t.name for t in tokens}) == 4
	assert gen.issued == 4


def test_pack_gets_a_single_synthetic_pack_element() -> None:
	subst = SyntheticGenerator().fresh(fn_pattern("f", "typename T, typename... Ts", "T, Ts..."))
	pack = subst.get("Ts")
	assert isinstance(pack, PackBinding)
	assert len(pack.elems) == 1
	assert pack.elems[0].kind is ExprKind.EXPANSION
	assert pack.elems[0].inner.kind is ExprKind.SYNTH


def test_placeholder_sort_follows_parameter_kind() -> None:
	subst = SyntheticGenerator().fresh(class_pattern("A", "int I, template<typename> class TT"))
	assert subst.get("I").sort is ParamKind.VALUE
	assert subst.get("TT").sort is ParamKind.TEMPLATE


def test_reset_restarts_the_counter() -> None:
	gen = SyntheticGenerator(prefix="V")
	gen.fresh(fn_pattern("f", "typename T", "T"))
	gen.reset()
	assert gen.issued == 0
	assert gen.token(ParamKind.TYPE).render() == "$V1"
