"""Tracking rule model and loading."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional, Union

from url_sentry.exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "trackingParams.json"


@dataclass(frozen=True)
class DomainRule:
    """Parameters to strip for one domain, and the ones to always keep."""
    tracking_params: FrozenSet[str] = frozenset()
    preserve_params: FrozenSet[str] = frozenset()

    def keeps(self, name: str) -> bool:
        """Whether a lower-cased parameter name survives this rule."""
        return name not in self.tracking_params or name in self.preserve_params


@dataclass(frozen=True)
class TrackingRules:
    """Generic parameters plus per-domain overrides."""
    generic_params: FrozenSet[str] = frozenset()
    domain_rules: Mapping[str, DomainRule] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def empty(cls) -> "TrackingRules":
        return cls()

    def is_empty(self) -> bool:
        return not self.generic_params and not self.domain_rules


class LoadFailureReason(Enum):
    """Why a rules file could not be used"""
    NOT_FOUND = auto()
    MALFORMED = auto()


@dataclass(frozen=True)
class LoadFailure:
    """Result of a failed rules load."""
    reason: LoadFailureReason
    source: str
    error: Exception

    def __str__(self):
        return f"{self.reason.name.lower()} rules file {self.source}: {self.error}"


def _name_set(value: Any, where: str) -> FrozenSet[str]:
    if not isinstance(value, list):
        raise ConfigLoadError(f"{where} must be a list of strings")
    names = set()
    for name in value:
        if not isinstance(name, str):
            raise ConfigLoadError(f"{where} contains a non-string entry: {name!r}")
        names.add(name.lower())
    return frozenset(names)


def _require(document: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in document:
        raise ConfigLoadError(f"{where} is missing required field '{key}'")
    return document[key]


def parse_rules(document: Any) -> TrackingRules:
    """Build TrackingRules from an already-decoded rules document.

    The document needs both ``genericParams`` and ``domainRules``, and every
    domain rule needs both ``trackingParams`` and ``preserveParams``. Names
    and domain keys are lower-cased here so lookups never have to.

    Raises:
        ConfigLoadError: if the document does not have that shape
    """
    if not isinstance(document, dict):
        raise ConfigLoadError("rules document must be a JSON object")

    generic = _name_set(_require(document, "genericParams", "rules document"), "genericParams")

    raw_rules = _require(document, "domainRules", "rules document")
    if not isinstance(raw_rules, dict):
        raise ConfigLoadError("domainRules must be an object")

    domain_rules = {}
    for domain, raw_rule in raw_rules.items():
        where = f"domainRules['{domain}']"
        if not isinstance(raw_rule, dict):
            raise ConfigLoadError(f"{where} must be an object")
        key = domain.lower()
        if key in domain_rules:
            # "Amazon." and "amazon." collapse to the same key; first one wins
            logger.warning(f"Duplicate domain rule '{domain}' ignored")
            continue
        domain_rules[key] = DomainRule(
            tracking_params=_name_set(_require(raw_rule, "trackingParams", where), f"{where}.trackingParams"),
            preserve_params=_name_set(_require(raw_rule, "preserveParams", where), f"{where}.preserveParams"),
        )

    return TrackingRules(generic_params=generic, domain_rules=MappingProxyType(domain_rules))


def load_rules(source: Union[str, Path]) -> Union[TrackingRules, LoadFailure]:
    """Load tracking rules from a JSON file, returning a LoadFailure on error."""
    path = Path(source)
    try:
        data = path.read_bytes()
    except OSError as e:
        return LoadFailure(LoadFailureReason.NOT_FOUND, str(path), e)

    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return LoadFailure(LoadFailureReason.MALFORMED, str(path), e)

    try:
        return parse_rules(document)
    except ConfigLoadError as e:
        return LoadFailure(LoadFailureReason.MALFORMED, str(path), e)


class RuleStore:
    """Read-only holder of the tracking rules, with lookup by host."""

    def __init__(self, rules: Optional[TrackingRules] = None):
        self.rules = rules if rules is not None else TrackingRules.empty()

    @classmethod
    def from_path(cls, source: Union[str, Path] = DEFAULT_RULES_PATH) -> "RuleStore":
        """Load rules from a file, falling back to an empty rule set on failure."""
        result = load_rules(source)
        if isinstance(result, LoadFailure):
            logger.warning(f"Failed to load tracking rules, nothing will be stripped: {result}")
            return cls(TrackingRules.empty())

        logger.info(
            f"Loaded {len(result.generic_params)} generic parameters and "
            f"{len(result.domain_rules)} domain rules from {source}"
        )
        return cls(result)

    @property
    def generic_params(self) -> FrozenSet[str]:
        return self.rules.generic_params

    def domain_rule(self, host: Optional[str]) -> Optional[DomainRule]:
        """Return the first rule whose domain key occurs anywhere in the host.

        Matching is plain substring containment, so "amazon." matches
        "www.amazon.co.uk" and "example.com" matches "example.com.evil.org".
        """
        host = (host or "").lower()
        for domain, rule in self.rules.domain_rules.items():
            if domain in host:
                return rule
        return None
