# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from specres.core.type_expr import TypeExpr
from specres.core.type_model import CxxTypeModel
from specres.pattern import Pattern, PatternRole
from specres.registry import PatternRegistry, RegistrationErrorCode
from specres.test_support import build_registry


def _codes(source: str) -> list[RegistrationErrorCode]:
	_, errors, _ = build_registry(source)
	return [e.code for e in errors]


@pytest.mark.parametrize(
	"source, code",
	[
		("template<typename T, typename T> fn f(T);", RegistrationErrorCode.DUPLICATE_PARAM),
		("template<typename... Ts, typename... Us> fn f(Ts..., Us...);", RegistrationErrorCode.MULTIPLE_PACKS),
		("template<typename... Ts, typename U> fn f(Ts...);", RegistrationErrorCode.PACK_NOT_LAST),
		("template<typename... Ts> fn f(Ts..., int);", RegistrationErrorCode.EXPANSION_NOT_LAST),
		("template<typename T> fn f(T...);", RegistrationErrorCode.BAD_EXPANSION),
		("template<typename... Ts> fn f(vector<Ts>);", RegistrationErrorCode.BAD_EXPANSION),
	],
)
def test_malformed_parameter_lists(source: str, code: RegistrationErrorCode) -> None:
	assert _codes(source) == [code]


def test_pack_may_precede_deducible_parameters() -> None:
	assert _codes("template<typename... Ts, typename U> fn f(U, Ts...);") == []


def test_partial_with_undeducible_parameter() -> None:
	src = """
	template<typename T1, typename T2> class B;
	template<typename T, typename U> class B<T, T>;
	"""
	assert _codes(src) == [RegistrationErrorCode.UNDEDUCIBLE_PARAM]


def test_parameter_only_in_non_deduced_context_is_undeducible() -> None:
	src = """
	template<int I, int J> class A;
	template<int I> class A<0, I+2>;
	"""
	assert _codes(src) == [RegistrationErrorCode.UNDEDUCIBLE_PARAM]


def test_partial_identical_to_primary() -> None:
	src = """
	template<typename T1, typename T2> class B;
	template<typename U, typename V> class B<U, V>;
	"""
	assert _codes(src) == [RegistrationErrorCode.IDENTICAL_TO_PRIMARY]


def test_partial_must_be_more_specialized() -> None:
	src = """
	template<typename T, typename U> class Q;
	template<typename... Ts> class Q<Ts...>;
	"""
	assert _codes(src) == [RegistrationErrorCode.NOT_MORE_SPECIALIZED]


def test_dependent_value_type_cannot_be_specialized() -> None:
	src = """
	template<typename T, T N> class C;
	template<typename T> class C<T, 0>;
	"""
	assert _codes(src) == [RegistrationErrorCode.DEPENDENT_VALUE_TYPE]


def test_specializations_need_a_primary() -> None:
	assert _codes("template<typename T> class A<T*>;") == [RegistrationErrorCode.MISSING_PRIMARY]
	assert _codes("template<> fn f(int);") == [RegistrationErrorCode.MISSING_PRIMARY]


def test_unknown_family_label() -> None:
	src = """
	template<typename T> fn f(T) as one;
	template<> fn f(int) of two;
	"""
	assert _codes(src) == [RegistrationErrorCode.UNKNOWN_FAMILY]


def test_explicit_must_be_concrete() -> None:
	registry = PatternRegistry(CxxTypeModel())
	bad = Pattern("f", (), (TypeExpr.param("T"),), role=PatternRole.EXPLICIT)
	err = registry.register(bad)
	assert err is not None
	assert err.code is RegistrationErrorCode.EXPLICIT_NOT_CONCRETE


def test_explicit_must_match_a_primary() -> None:
	src = """
	template<typename T> fn f(T*);
	template<> fn f(int);
	"""
	assert _codes(src) == [RegistrationErrorCode.EXPLICIT_MISMATCH]


def test_explicit_matching_equally_specialized_primaries_is_ambiguous() -> None:
	src = """
	template<typename T> fn f(T, int) as a;
	template<typename T> fn f(int, T) as b;
	template<> fn f(int, int);
	"""
	assert _codes(src) == [RegistrationErrorCode.AMBIGUOUS_SPECIALIZATION]


def test_duplicate_label() -> None:
	src = """
	template<typename T> fn f(T) as x;
	template<typename T> fn f(T*) as x;
	"""
	assert _codes(src) == [RegistrationErrorCode.DUPLICATE_LABEL]


def test_equivalent_patterns_are_rejected() -> None:
	src = """
	template<typename T> fn f(T*);
	template<typename U> fn f(U*);
	"""
	assert _codes(src) == [RegistrationErrorCode.DUPLICATE_PATTERN]


def test_duplicate_explicit_specialization() -> None:
	src = """
	template<typename T> fn f(T);
	template<> fn f(int);
	template<> fn f(int);
	"""
	assert _codes(src) == [RegistrationErrorCode.DUPLICATE_PATTERN]


def test_registration_after_freeze_is_rejected() -> None:
	registry, errors, unit = build_registry("template<typename T> fn f(T);")
	assert errors == []
	registry.freeze()
	err = registry.register(unit.patterns[0])
	assert err is not None
	assert err.code is RegistrationErrorCode.REGISTRY_FROZEN


def test_errors_do_not_abort_other_registrations() -> None:
	src = """
	template<typename T1, typename T2> class B;
	template<typename U, typename V> class B<U, V>;
	template<typename T> class B<T, T>;
	"""
	registry, errors, _ = build_registry(src)
	assert [e.code for e in errors] == [RegistrationErrorCode.IDENTICAL_TO_PRIMARY]
	entry = registry.snapshot().entry("B")
	assert entry is not None
	assert [p.role for p in entry.patterns] == [PatternRole.PRIMARY, PatternRole.PARTIAL]


def test_error_converts_to_registry_diagnostic() -> None:
	src = "template<typename T> fn f(T*);\ntemplate<> fn f(int);\n"
	_, errors, _ = build_registry(src)
	diag = errors[0].to_diagnostic()
	assert diag.phase == "registry"
	assert diag.code == "explicit-mismatch"
	assert diag.span.line == 2
	assert diag.notes == ["declared as: template<> f(int)"]


def test_duplicates_are_detected_through_type_model_aliases() -> None:
	src = """
	template<typename T> fn f(T, size_t);
	template<typename U> fn f(U, ulong);
	"""
	_, errors, _ = build_registry(src, type_model=CxxTypeModel({"size_t": "ulong"}))
	assert [e.code for e in errors] == [RegistrationErrorCode.DUPLICATE_PATTERN]
	_, errors, _ = build_registry(src)
	assert errors == []


def test_class_partials_equal_through_aliases_are_duplicates() -> None:
	src = """
	template<typename T, typename U> class P;
	template<typename T> class P<T, size_t>;
	template<typename T> class P<T, ulong>;
	"""
	_, errors, _ = build_registry(src, type_model=CxxTypeModel({"size_t": "ulong"}))
	assert [e.code for e in errors] == [RegistrationErrorCode.DUPLICATE_PATTERN]
