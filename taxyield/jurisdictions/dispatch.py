from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from taxyield.core.errors import UnknownJurisdictionError
from taxyield.core.models import AccountSetup, SetupKind
from taxyield.jurisdictions.au import adapter as au
from taxyield.jurisdictions.base import JurisdictionAdapter
from taxyield.jurisdictions.ca import adapter as ca
from taxyield.jurisdictions.de import adapter as de
from taxyield.jurisdictions.text_rules import ADAPTERS as TEXT_ADAPTERS
from taxyield.jurisdictions.uk import adapter as uk
from taxyield.jurisdictions.us import adapter as us

logger = logging.getLogger("taxyield").getChild("registry")

_REGISTRY: Dict[str, JurisdictionAdapter] = {}


def register_jurisdictions(adapters: Iterable[JurisdictionAdapter]) -> None:
    for adapter in adapters:
        logger.debug("Registering jurisdiction %s", adapter.code)
        _REGISTRY[adapter.code.lower()] = adapter


register_jurisdictions((us, ca, uk, de, au))
register_jurisdictions(TEXT_ADAPTERS)


@dataclass(frozen=True)
class Found:
    adapter: JurisdictionAdapter


@dataclass(frozen=True)
class NotFound:
    code: str
    reason: str


Lookup = Union[Found, NotFound]


def get_jurisdiction(code: str) -> JurisdictionAdapter:
    try:
        return _REGISTRY[code.strip().lower()]
    except KeyError as exc:
        raise UnknownJurisdictionError(f"No jurisdiction registered for {code!r}") from exc


def find_jurisdiction(code: str) -> Lookup:
    adapter = _REGISTRY.get((code or "").strip().lower())
    if adapter is None:
        return NotFound(code=code, reason=f"No jurisdiction registered for {code!r}")
    return Found(adapter=adapter)


def resolve_jurisdiction(jurisdiction: str | JurisdictionAdapter) -> JurisdictionAdapter:
    if isinstance(jurisdiction, JurisdictionAdapter):
        return jurisdiction
    return get_jurisdiction(jurisdiction)


def list_jurisdictions() -> List[JurisdictionAdapter]:
    return list(_REGISTRY.values())


def list_supported_jurisdictions() -> list[str]:
    return sorted(_REGISTRY)


def pick_default_setup(jurisdiction: str | JurisdictionAdapter) -> AccountSetup:
    """Roth IRA for the US, otherwise the first pension, deferred or tax-free setup."""
    adapter = resolve_jurisdiction(jurisdiction)
    if adapter.code == "us":
        for setup in adapter.setups:
            if setup.name == "Roth IRA":
                return setup
    for kind in (SetupKind.PENSION, SetupKind.DEFERRED, SetupKind.TAXFREE):
        matches = adapter.setups_of_kind(kind)
        if matches:
            return matches[0]
    return adapter.setups[0]


__all__ = [
    "Found",
    "Lookup",
    "NotFound",
    "find_jurisdiction",
    "get_jurisdiction",
    "list_jurisdictions",
    "list_supported_jurisdictions",
    "pick_default_setup",
    "register_jurisdictions",
    "resolve_jurisdiction",
]
