# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from specres.core.type_expr import ExprKind, ParamKind, TypeExpr
from specres.core.type_model import CxxTypeModel
from specres.pattern import Parameter

INT = TypeExpr.named("int")
T = TypeExpr.param("T")
CONST_T = TypeExpr.param("T", quals=["const"])


def test_aliases_canonicalize_leaf_names() -> None:
	model = CxxTypeModel({"size_t": "unsigned_long", "usize": "size_t"})
	assert model.equal_leaf(TypeExpr.named("usize"), TypeExpr.named("unsigned_long"))
	assert not model.equal_leaf(TypeExpr.named("usize"), INT)


def test_leaf_equality_by_kind() -> None:
	model = CxxTypeModel()
	assert model.equal_leaf(TypeExpr.literal(3), TypeExpr.literal(3))
	assert not model.equal_leaf(TypeExpr.literal(3), TypeExpr.literal(4))
	assert not model.equal_leaf(TypeExpr.lref(INT), TypeExpr.rref(INT))
	assert not model.equal_leaf(TypeExpr.synth("U1", ParamKind.TYPE), TypeExpr.synth("U1", ParamKind.VALUE))
	assert not model.equal_leaf(INT, TypeExpr.literal(3))


def test_lvalue_reference_binding() -> None:
	model = CxxTypeModel()
	lvalue = TypeExpr.lref(INT)
	assert model.qualification_compatible(lvalue, TypeExpr.lref(T))
	assert model.qualification_compatible(lvalue, TypeExpr.lref(CONST_T))
	assert not model.qualification_compatible(INT, TypeExpr.lref(T))
	assert model.qualification_compatible(INT, TypeExpr.lref(CONST_T))
	assert not model.qualification_compatible(INT, TypeExpr.lref(TypeExpr.param("T", quals=["const", "volatile"])))


def test_forwarding_reference_binds_anything() -> None:
	model = CxxTypeModel()
	assert model.qualification_compatible(TypeExpr.lref(INT), TypeExpr.rref(T))
	assert model.qualification_compatible(INT, TypeExpr.rref(T))
	assert not model.qualification_compatible(TypeExpr.lref(INT), TypeExpr.rref(CONST_T))
	assert model.qualification_compatible(INT, TypeExpr.rref(CONST_T))


def test_qualification_may_only_be_added() -> None:
	model = CxxTypeModel()
	assert model.qualification_compatible(INT, CONST_T)
	assert not model.qualification_compatible(TypeExpr.named("int", quals=["const"]), T)


def test_kind_classification() -> None:
	model = CxxTypeModel()
	assert model.kind_of(TypeExpr.literal(1)) is ParamKind.VALUE
	assert model.kind_of(TypeExpr.pointer(INT)) is ParamKind.TYPE
	assert model.kind_of(TypeExpr.synth("U1", ParamKind.TEMPLATE)) is ParamKind.TEMPLATE
	applied = TypeExpr(ExprKind.SYNTH, name="U1", args=(INT,), sort=ParamKind.TEMPLATE)
	assert model.kind_of(applied) is ParamKind.TYPE
	pack = Parameter("Ns", kind=ParamKind.VALUE, value_type=INT, is_pack=True)
	assert model.is_pack(pack)
	assert model.pack_kind(pack) is ParamKind.VALUE
