from __future__ import annotations


class TaxYieldError(Exception):
    pass


class MalformedBracketTableError(TaxYieldError, ValueError):
    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__("Malformed bracket table: " + "; ".join(self.issues))


class EngineMismatchError(TaxYieldError, TypeError):
    """A regime engine was handed a descriptor of the wrong variant."""


class UnknownJurisdictionError(TaxYieldError, KeyError):
    pass


class UnknownSetupError(TaxYieldError, KeyError):
    pass


class UnknownFilingStatusError(TaxYieldError, KeyError):
    pass


__all__ = [
    "TaxYieldError",
    "MalformedBracketTableError",
    "EngineMismatchError",
    "UnknownJurisdictionError",
    "UnknownSetupError",
    "UnknownFilingStatusError",
]
