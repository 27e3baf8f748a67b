# scgep/validation/schemas.py

"""
Structural validation for SC-GEP configuration input.

This module defines the hard errors raised for malformed input and the small
field-level checks used when configurations are built from plain mappings
(YAML documents, API payloads) or validated after construction.

Usage:
	from .schemas import require_fields, InvalidConfigurationError
	require_fields(data, ["id", "primary_supply"], "material")
"""

import math
from typing import Any, Iterable, Mapping, Optional, Sequence


class InvalidConfigurationError(ValueError):
	"""Raised when a configuration is malformed or missing required fields."""
	pass


class InvalidScenarioReference(KeyError):
	"""Raised when an unknown scenario id is passed to a solve API."""

	def __init__(self, scenario_id: str, known: Optional[Iterable[str]] = None):
		self.scenario_id = scenario_id
		self.known = sorted(known) if known is not None else []
		super().__init__(scenario_id)

	def __str__(self) -> str:
		if self.known:
			return f"Unknown scenario '{self.scenario_id}'. Registered: {self.known}"
		return f"Unknown scenario '{self.scenario_id}'"


def require_fields(data: Mapping[str, Any], fields: Sequence[str], context: str) -> None:
	"""
	Check that a mapping carries every required key.

	Parameters
	----------
	data : Mapping
		Raw record (e.g. one material entry from a YAML document).
	fields : sequence of str
		Keys that must be present and not None.
	context : str
		Label used in the error message (e.g. "material 'lithium'").

	Raises
	------
	InvalidConfigurationError
		If the record is not a mapping or a field is missing.
	"""
	if not isinstance(data, Mapping):
		raise InvalidConfigurationError(f"{context} must be a mapping, got {type(data).__name__}")
	missing = [f for f in fields if data.get(f) is None]
	if missing:
		raise InvalidConfigurationError(f"{context} missing required fields: {missing}")


def check_finite(value: Any, name: str, context: str) -> float:
	try:
		number = float(value)
	except (TypeError, ValueError):
		raise InvalidConfigurationError(f"{context}: '{name}' must be numeric, got {value!r}") from None
	if not math.isfinite(number):
		raise InvalidConfigurationError(f"{context}: '{name}' must be finite, got {value!r}")
	return number


def check_non_negative(value: Any, name: str, context: str) -> float:
	number = check_finite(value, name, context)
	if number < 0:
		raise InvalidConfigurationError(f"{context}: '{name}' must be >= 0, got {number}")
	return number


def check_positive(value: Any, name: str, context: str) -> float:
	number = check_finite(value, name, context)
	if number <= 0:
		raise InvalidConfigurationError(f"{context}: '{name}' must be > 0, got {number}")
	return number


def check_int(value: Any, name: str, context: str, minimum: int = 0) -> int:
	if isinstance(value, bool) or not isinstance(value, int):
		raise InvalidConfigurationError(f"{context}: '{name}' must be an integer, got {value!r}")
	if value < minimum:
		raise InvalidConfigurationError(f"{context}: '{name}' must be >= {minimum}, got {value}")
	return value


def check_fraction(value: Any, name: str, context: str) -> float:
	number = check_finite(value, name, context)
	if not 0.0 <= number <= 1.0:
		raise InvalidConfigurationError(f"{context}: '{name}' must be within [0, 1], got {number}")
	return number


def check_choice(value: Any, choices: Sequence[str], name: str, context: str) -> str:
	if value not in choices:
		raise InvalidConfigurationError(
			f"{context}: '{name}' must be one of {list(choices)}, got {value!r}"
		)
	return value


def check_unique_ids(ids: Sequence[str], context: str) -> None:
	seen = set()
	duplicates = []
	for identifier in ids:
		if identifier in seen:
			duplicates.append(identifier)
		seen.add(identifier)
	if duplicates:
		raise InvalidConfigurationError(f"Duplicate {context} ids: {sorted(set(duplicates))}")


def check_references(refs: Iterable[str], known: Iterable[str], context: str) -> None:
	"""
	Check that every referenced id exists in the known set.

	Raises
	------
	InvalidConfigurationError
		Listing the unknown ids.
	"""
	unknown = set(refs) - set(known)
	if unknown:
		raise InvalidConfigurationError(f"{context} references unknown ids: {sorted(unknown)}")
