# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from specres.ordering import OrderReason
from specres.pattern import ResolutionPolicy
from specres.resolver import Ambiguous, Resolved
from specres.test_support import resolve_uses, winner

OVERLOADS_WITH_EXPLICITS = """
template<typename T, typename T1> fn f(T, T1) as overload1;
template<> fn f<int, int*>(int, int*) as spec1;
template<typename T, typename T1> fn f(T, T1*) as overload2;
"""


@pytest.mark.parametrize(
	"extra, uses, expected",
	[
		("", "use f(int, int*); use f<int, int*>(int, int*);", ["overload2", "spec1"]),
		("template<> fn f<int, int>(int, int*) as spec2;", "use f(int, int*);", ["spec2"]),
		("", "use f(int, char);", ["overload1"]),
	],
)
def test_overload_first_orders_before_explicits(extra: str, uses: str, expected: list) -> None:
	outcomes = resolve_uses(OVERLOADS_WITH_EXPLICITS + extra + uses, policy=ResolutionPolicy.OVERLOAD_FIRST)
	assert [winner(o) for o in outcomes] == expected


def test_explicit_of_dominated_overload_is_never_considered() -> None:
	(outcome,) = resolve_uses(OVERLOADS_WITH_EXPLICITS + "use f(int, int*);")
	assert isinstance(outcome, Resolved)
	assert outcome.pattern.label == "overload2"
	assert outcome.via is None
	assert outcome.subst.render(["T", "T1"]) == "T=int, T1=int"


def test_explicit_first_takes_exact_explicit_of_winning_family() -> None:
	src = OVERLOADS_WITH_EXPLICITS + """
	template<> fn f<int, int>(int, int*) as spec2;
	use f(int, int*);
	use f<int, int*>(int, int*);
	"""
	to_spec2, to_spec1 = resolve_uses(src)
	assert isinstance(to_spec2, Resolved)
	assert to_spec2.pattern.label == "spec2"
	assert to_spec2.via is not None and to_spec2.via.label == "overload2"
	assert isinstance(to_spec1, Resolved)
	assert to_spec1.pattern.label == "spec1"
	assert to_spec1.via is not None and to_spec1.via.label == "overload1"


def test_explicit_does_not_break_a_tie_between_families() -> None:
	src = """
	template<typename T1> fn f(T1, T1) as same;
	template<> fn f(int, int) as both_int;
	template<typename T2> fn f(T2, int) as second_int;
	use f(int, int);
	"""
	(outcome,) = resolve_uses(src)
	assert isinstance(outcome, Ambiguous)
	assert [p.label for p in outcome.candidates] == ["same", "second_int"]


def test_added_qualifiers_lose_to_exact_match() -> None:
	src = """
	template<typename T1> fn f(T1*) as o1;
	template<typename T1> fn f(const volatile T1*) as o2;
	use f(const int*);
	use f(const volatile int*);
	use f(int*);
	"""
	assert [winner(o) for o in resolve_uses(src)] == ["o1", "o2", "o1"]


def test_lvalue_reference_overload_for_lvalues() -> None:
	src = """
	template<typename T> fn f(T&) as lref;
	template<typename T> fn f(T&&) as fwd;
	use f(int&);
	use f(int);
	"""
	assert [winner(o) for o in resolve_uses(src)] == ["lref", "fwd"]


def test_forwarding_reference_beats_const_reference() -> None:
	src = """
	template<typename T> fn g(const T&) as cref;
	template<typename T> fn g(T&&) as fwd;
	use g(int&);
	use g(int);
	"""
	assert [winner(o) for o in resolve_uses(src)] == ["fwd", "fwd"]


def test_by_value_and_reference_are_ambiguous_for_lvalues() -> None:
	src = """
	template<typename T> fn h(T) as byval;
	template<typename T> fn h(T&) as byref;
	use h(int&);
	use h(int);
	"""
	lvalue, prvalue = resolve_uses(src)
	assert isinstance(lvalue, Ambiguous)
	assert [p.label for p in lvalue.candidates] == ["byval", "byref"]
	assert lvalue.pairs[0].reason is OrderReason.QUALIFICATION_TIE
	assert winner(prvalue) == "byval"


def test_defaulted_and_pack_overloads() -> None:
	src = """
	template<typename T> fn f(T) as o1;
	template<typename T> fn f(T*, int = 5) as o2;
	template<typename T, typename... Ts> fn f(T, Ts...) as o3;
	use f(void*);
	use f(int);
	use f(void*, int);
	use f(int, char, char);
	"""
	assert [winner(o) for o in resolve_uses(src)] == ["o2", "o1", "o2", "o3"]


def test_class_defaults_complete_the_use_site() -> None:
	src = """
	template<typename T, typename Alloc = allocator<T>> class vector;
	template<typename Alloc> class vector<bool, Alloc>;
	use vector<bool>;
	use vector<int>;
	"""
	packed, generic = resolve_uses(src)
	assert isinstance(packed, Resolved)
	assert packed.pattern.label == "vector#1"
	assert packed.subst.render() == "Alloc=allocator<bool>"
	assert winner(generic) == "vector#0"


def test_class_explicit_beats_partial() -> None:
	src = """
	template<typename T, typename Alloc = allocator<T>> class vector;
	template<typename Alloc> class vector<bool, Alloc>;
	template<> class vector<bool> as bitset;
	use vector<bool>;
	use vector<bool, my_alloc>;
	"""
	assert [winner(o) for o in resolve_uses(src)] == ["bitset", "vector#1"]


def test_class_partials_distinguish_value_categories() -> None:
	src = """
	template<typename T> class value_category;
	template<typename T> class value_category<T&> as lvalue;
	template<typename T> class value_category<T&&> as xvalue;
	use value_category<int&>;
	use value_category<int&&>;
	use value_category<int>;
	"""
	assert [winner(o) for o in resolve_uses(src)] == ["lvalue", "xvalue", "value_category#0"]


def test_non_deduced_value_is_checked_after_deduction() -> None:
	src = """
	template<int I, int J> class A;
	template<int I> class A<I, I+2> as stride;
	use A<3, 5>;
	use A<3, 4>;
	"""
	outcomes = resolve_uses(src)
	assert [winner(o) for o in outcomes] == ["stride", "A#0"]
	assert outcomes[0].subst.render() == "I=3"


def test_template_template_parameter() -> None:
	src = """
	template<typename T> fn h(T) as any;
	template<template<typename> class TT, typename T> fn h(TT<T>) as nested;
	use h(vector<int>);
	use h(int);
	"""
	nested, plain = resolve_uses(src)
	assert winner(nested) == "nested"
	assert nested.subst.render(["TT", "T"]) == "TT=vector, T=int"
	assert winner(plain) == "any"
