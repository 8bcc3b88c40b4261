# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
lark-based front end for the declaration language.

The grammar lives in `grammar.lark`; this module walks the lark tree by hand
and produces `Pattern`s and `Query`s. Names inside a template declaration
resolve to that declaration's parameters first and to named types otherwise.

Errors the grammar cannot express (e.g. a partial specialization of a
function) raise `DeclError`, which carries the offending span. The package
`__init__` converts both `DeclError` and lark's `UnexpectedInput` into
parser-phase diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from lark import Lark, Token, Tree

from specres.core.diagnostics import Diagnostic
from specres.core.span import Span
from specres.core.type_expr import ExprKind, ParamKind, TypeExpr
from specres.pattern import Parameter, Pattern, PatternForm, PatternRole, Query, ResolutionPolicy

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start=["start", "arg_list"],
	propagate_positions=True,
	maybe_placeholders=False,
)

_POLICY_FLAGS = {
	"overload_first": ResolutionPolicy.OVERLOAD_FIRST,
	"explicit_first": ResolutionPolicy.EXPLICIT_FIRST,
}


class DeclError(ValueError):
	"""
	User-facing error for a declaration the grammar accepts but the model does not.

	Raised from the tree walker, converted into a pinned parser diagnostic.
	"""

	def __init__(self, message: str, *, span: Span) -> None:
		super().__init__(message)
		self.span = span


@dataclass
class ParsedUnit:
	"""Declarations and use-sites of one source, in source order."""

	patterns: List[Pattern] = field(default_factory=list)
	queries: List[Query] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


def _trees(tree: Tree, *names: str) -> List[Tree]:
	return [c for c in tree.children if isinstance(c, Tree) and (not names or _name(c) in names)]


def _tree(tree: Tree, name: str) -> Optional[Tree]:
	found = _trees(tree, name)
	return found[0] if found else None


def _tokens(tree: Tree, *types: str) -> List[Token]:
	return [c for c in tree.children if isinstance(c, Token) and (not types or c.type in types)]


def _has(tree: Tree, token_type: str) -> bool:
	return any(isinstance(c, Token) and c.type == token_type for c in tree.children)


class _Builder:
	"""Tree walker for one source file."""

	def __init__(self, filename: Optional[str]) -> None:
		self.filename = filename
		self.scope: Dict[str, Parameter] = {}

	def span(self, node: Tree | Token) -> Span:
		if isinstance(node, Token):
			return Span(file=self.filename, line=node.line, column=node.column)
		return Span.from_meta(node.meta, self.filename)

	# -- argument expressions ------------------------------------------

	def arg(self, tree: Tree) -> TypeExpr:
		expr = self.sum(_trees(tree, "sum")[0])
		if _has(tree, "ELLIPSIS"):
			return TypeExpr.expansion(expr)
		return expr

	def args(self, tree: Optional[Tree]) -> Tuple[TypeExpr, ...]:
		if tree is None:
			return ()
		return tuple(self.arg(a) for a in _trees(tree, "arg"))

	def sum(self, tree: Tree) -> TypeExpr:
		children = tree.children
		if len(children) == 1:
			return self.type_expr(children[0])
		lhs = self.sum(children[0])
		rhs = self.type_expr(children[2])
		for operand in (lhs, rhs):
			if operand.kind not in (ExprKind.VALUE, ExprKind.PARAM, ExprKind.COMPUTED):
				raise DeclError(f"'{operand.render()}' cannot appear in a value expression", span=self.span(tree))
		return TypeExpr.computed(children[1].value, lhs, rhs)

	def type_expr(self, tree: Tree) -> TypeExpr:
		head_tree = _tree(tree, "head")
		assert head_tree is not None
		quals = [self.cv(c) for c in _trees(tree, "cv")]
		expr = self.head(head_tree)
		ptrs = _trees(tree, "ptr")
		ref = _tree(tree, "ref")
		if expr.kind is ExprKind.VALUE:
			if quals or ptrs or ref is not None:
				raise DeclError(f"value '{expr.render()}' cannot be qualified", span=self.span(tree))
			return expr
		if quals:
			expr = expr.with_quals(quals)
		for ptr in ptrs:
			expr = TypeExpr.pointer(expr, quals=[self.cv(c) for c in _trees(ptr, "cv")])
		if ref is not None:
			expr = TypeExpr.rref(expr) if _has(ref, "ANDAND") else TypeExpr.lref(expr)
		return expr

	def head(self, tree: Tree) -> TypeExpr:
		tok = tree.children[0]
		assert isinstance(tok, Token)
		if tok.type == "INT":
			return TypeExpr.literal(int(tok.value))
		args = self.args(_tree(tree, "targs"))
		param = self.scope.get(tok.value)
		if param is not None:
			if args and param.kind is not ParamKind.TEMPLATE:
				raise DeclError(f"'{tok.value}' is not a template template parameter", span=self.span(tok))
			return TypeExpr.param(tok.value, args)
		return TypeExpr.named(tok.value, args)

	def cv(self, tree: Tree) -> str:
		return _tokens(tree)[0].value

	# -- template parameters -------------------------------------------

	def tparam(self, tree: Tree, index: int) -> Parameter:
		kind = _name(tree)
		names = _tokens(tree, "NAME")
		is_pack = _has(tree, "ELLIPSIS")
		name = names[-1].value if names else f"__{index}"
		default_tree = _tree(tree, "default")
		value_type = None
		if kind == "value_param":
			pkind = ParamKind.VALUE
			value_type = self.type_expr(_trees(tree, "type_expr")[0])
		elif kind == "template_param":
			pkind = ParamKind.TEMPLATE
		else:
			pkind = ParamKind.TYPE
		default = None
		if default_tree is not None:
			if is_pack:
				raise DeclError(f"parameter pack '{name}' cannot have a default", span=self.span(tree))
			default = self.arg(_trees(default_tree, "arg")[0])
		return Parameter(name=name, kind=pkind, value_type=value_type, default=default, is_pack=is_pack)

	# -- declarations --------------------------------------------------

	def template_decl(self, tree: Tree) -> Pattern:
		self.scope = {}
		params: List[Parameter] = []
		for idx, ptree in enumerate(_trees(tree, "type_param", "template_param", "value_param")):
			param = self.tparam(ptree, idx)
			params.append(param)
			self.scope[param.name] = param
		try:
			entity = _trees(tree, "class_entity", "fn_entity")[0]
			if _name(entity) == "class_entity":
				return self.class_entity(entity, tuple(params), self.span(tree))
			return self.fn_entity(entity, tuple(params), self.span(tree))
		finally:
			self.scope = {}

	def _label(self, tree: Tree, rule: str) -> Optional[str]:
		sub = _tree(tree, rule)
		if sub is None:
			return None
		return _tokens(sub, "NAME")[0].value

	def class_entity(self, tree: Tree, params: Tuple[Parameter, ...], span: Span) -> Pattern:
		name = _tokens(tree, "NAME")[0].value
		targs = _tree(tree, "targs")
		label = self._label(tree, "label")
		family = self._label(tree, "family")
		if targs is None:
			if not params:
				raise DeclError(f"explicit specialization of '{name}' needs an argument list", span=span)
			args = tuple(
				TypeExpr.expansion(TypeExpr.param(p.name)) if p.is_pack else TypeExpr.param(p.name)
				for p in params
			)
			return Pattern(name=name, params=params, args=args, role=PatternRole.PRIMARY, form=PatternForm.CLASS, label=label, specializes=family, span=span)
		role = PatternRole.PARTIAL if params else PatternRole.EXPLICIT
		return Pattern(
			name=name,
			params=params,
			args=self.args(targs),
			role=role,
			form=PatternForm.CLASS,
			label=label,
			specializes=family,
			span=span,
		)

	def fn_entity(self, tree: Tree, params: Tuple[Parameter, ...], span: Span) -> Pattern:
		name = _tokens(tree, "NAME")[0].value
		targs = _tree(tree, "targs")
		if params and targs is not None:
			raise DeclError(f"function template '{name}' cannot be partially specialized; declare an overload instead", span=span)
		args: List[TypeExpr] = []
		required: Optional[int] = None
		for idx, ptree in enumerate(_trees(tree, "fn_param")):
			args.append(self.arg(_trees(ptree, "arg")[0]))
			if _tree(ptree, "default") is not None:
				if required is None:
					required = idx
			elif required is not None and args[-1].kind is not ExprKind.EXPANSION:
				raise DeclError(f"parameter {idx + 1} of '{name}' follows a defaulted parameter but has no default", span=self.span(ptree))
		role = PatternRole.PRIMARY if params else PatternRole.EXPLICIT
		return Pattern(
			name=name,
			params=params,
			args=tuple(args),
			role=role,
			form=PatternForm.FUNCTION,
			label=self._label(tree, "label"),
			specializes=self._label(tree, "family"),
			template_args=self.args(targs),
			required=required,
			span=span,
		)

	def use_decl(self, tree: Tree) -> Query:
		self.scope = {}
		name = _tokens(tree, "NAME")[0].value
		targs = self.args(_tree(tree, "targs"))
		call = _tree(tree, "call_args")
		primary_only = False
		policy: Optional[ResolutionPolicy] = None
		for flag in _trees(tree, "use_flag"):
			tok = _tokens(flag, "NAME")[0]
			if tok.value == "primary":
				primary_only = True
			elif tok.value in _POLICY_FLAGS:
				policy = _POLICY_FLAGS[tok.value]
			else:
				raise DeclError(f"unknown use-site flag '{tok.value}'", span=self.span(tok))
		span = self.span(tree)
		if call is None:
			return Query(name=name, args=targs, primary_only=primary_only, policy=policy, form=PatternForm.CLASS, span=span)
		return Query(
			name=name,
			args=self.args(call),
			explicit_args=targs,
			primary_only=primary_only,
			policy=policy,
			form=PatternForm.FUNCTION,
			span=span,
		)

	def unit(self, tree: Tree) -> ParsedUnit:
		out = ParsedUnit()
		for item in _trees(tree):
			try:
				if _name(item) == "template_decl":
					out.patterns.append(self.template_decl(item))
				else:
					out.queries.append(self.use_decl(item))
			except DeclError as err:
				out.diagnostics.append(Diagnostic(message=str(err), code="declaration", phase="parser", span=err.span))
		return out


def parse_unit(source: str, filename: Optional[str] = None) -> ParsedUnit:
	"""Parse a declaration source. lark's `UnexpectedInput` propagates."""
	tree = _PARSER.parse(source, start="start")
	return _Builder(filename).unit(tree)


def parse_arg_list(source: str, params: Sequence[Parameter] = ()) -> Tuple[TypeExpr, ...]:
	"""
	Parse a comma-separated argument list such as `T, vector<T>*, Ts...`.

	Names listed in `params` become parameter references.
	"""
	tree = _PARSER.parse(source, start="arg_list")
	builder = _Builder(None)
	builder.scope = {p.name: p for p in params}
	return builder.args(tree)


__all__ = ["DeclError", "ParsedUnit", "parse_unit", "parse_arg_list"]
