# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
specres package: specialization and overload resolution.

Layers:
  core      type expressions, substitutions, spans and diagnostics
  pattern   patterns, use-site queries, resolution policies
  matcher   argument matching and deduction
  ordering  the specificity partial order
  registry  declaration-phase registration and frozen snapshots
  resolver  use-site filtering and the resolution driver
  parser    the declaration language front end
"""

from specres.pattern import Parameter, Pattern, PatternForm, PatternRole, Query, ResolutionPolicy
from specres.registry import PatternRegistry, RegistrationError, RegistrySnapshot
from specres.resolver import Ambiguous, Resolved, Resolver, Unmatched

__all__ = [
	"Parameter",
	"Pattern",
	"PatternForm",
	"PatternRole",
	"Query",
	"ResolutionPolicy",
	"PatternRegistry",
	"RegistrationError",
	"RegistrySnapshot",
	"Resolver",
	"Resolved",
	"Ambiguous",
	"Unmatched",
]
