# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Core shapes shared by every phase: argument expressions, substitutions, the
type-model protocol, spans and diagnostics.
"""

from .type_expr import ExprKind, ParamKind, TypeExpr, render_list
from .type_subst import EMPTY_SUBST, PackBinding, Substitution, apply_subst, apply_subst_list
from .type_model import CxxTypeModel, TypeModel
from .span import Span
from .diagnostics import Diagnostic

__all__ = [
	"ExprKind",
	"ParamKind",
	"TypeExpr",
	"render_list",
	"EMPTY_SUBST",
	"PackBinding",
	"Substitution",
	"apply_subst",
	"apply_subst_list",
	"CxxTypeModel",
	"TypeModel",
	"Span",
	"Diagnostic",
]
