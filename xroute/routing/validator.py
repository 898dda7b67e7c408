"""Route validation: structure, caller constraints, executability.

The three checks answer different questions and report separately:

- Structural: is the route well formed? Invalid routes are dropped by the
  planner.
- Constraint: does a valid route stay within the caller's limits?
- Executability: can the route be executed today? Stub chains and bridge
  legs are valid but not executable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from xroute.constants import STUB_CHAINS, SUPPORTED_CHAINS, SUPPORTED_PROTOCOLS
from xroute.errors import RouteError
from xroute.models.requests import RouteConstraints
from xroute.models.route import Fees, Hop, Route, RouteSlippage
from xroute.models.types import PathType, is_finite_number

# Slippage above this is valid but flagged
HIGH_SLIPPAGE_WARNING = 0.20


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def error(self) -> RouteError | None:
        return None if self.valid else RouteError.INVALID_ROUTE

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass(frozen=True)
class ConstraintResult:
    satisfied: bool
    violations: tuple[str, ...] = ()

    @property
    def error(self) -> RouteError | None:
        return None if self.satisfied else RouteError.CONSTRAINT_VIOLATION

    def to_dict(self) -> dict[str, Any]:
        return {"satisfied": self.satisfied, "violations": list(self.violations)}


@dataclass(frozen=True)
class ExecutabilityResult:
    executable: bool
    reasons: tuple[str, ...] = ()

    @property
    def error(self) -> RouteError | None:
        return None if self.executable else RouteError.NOT_EXECUTABLE

    def to_dict(self) -> dict[str, Any]:
        return {"executable": self.executable, "reasons": list(self.reasons)}


@dataclass
class _Findings:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def result(self) -> ValidationResult:
        return ValidationResult(
            valid=not self.errors, errors=tuple(self.errors), warnings=tuple(self.warnings)
        )


class RouteValidator:
    """Checks routes against the supported chain and protocol sets.

    Args:
        supported_chains: Chains a route may touch
        supported_protocols: Venues a hop may use, BRIDGE included
        stub_chains: Chains that validate but cannot be executed
    """

    def __init__(
        self,
        supported_chains: frozenset[str] = SUPPORTED_CHAINS,
        supported_protocols: frozenset[str] = SUPPORTED_PROTOCOLS,
        stub_chains: frozenset[str] = STUB_CHAINS,
    ) -> None:
        self.supported_chains = supported_chains
        self.supported_protocols = supported_protocols
        self.stub_chains = stub_chains

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def validate_structure(self, route: Route | None) -> ValidationResult:
        if route is None:
            return ValidationResult(valid=False, errors=("Route object is missing",))

        findings = _Findings()
        if not route.chain:
            findings.errors.append("Route must have a primary chain")
        elif route.chain not in self.supported_chains:
            findings.errors.append(f"Unsupported chain: {route.chain}")

        self._check_hops(route.hops, route.path_type, findings)

        if not is_finite_number(route.expected_output):
            findings.errors.append("expectedOutput must be a valid number")
        elif route.expected_output <= 0:
            findings.errors.append("Route must have a positive expectedOutput")

        if route.fees is not None:
            self._check_fees(route.fees, findings)
        if route.slippage is not None:
            self._check_slippage(route.slippage, findings)
        return findings.result()

    def _check_hops(self, hops: tuple[Hop, ...], path_type: PathType, findings: _Findings) -> None:
        if not hops:
            findings.errors.append("Route must have at least 1 hop")
            return
        if path_type == PathType.MULTI_HOP and len(hops) < 2:
            findings.errors.append("Multi-hop route must have at least 2 hops")
        if path_type == PathType.DIRECT and len(hops) > 1:
            findings.warnings.append(
                'Direct route has multiple hops - consider changing pathType to "multi-hop"'
            )

        for index, hop in enumerate(hops):
            self._check_hop(hop, index, findings)

        for index, (current, following) in enumerate(zip(hops, hops[1:], strict=False)):
            bridged = current.is_bridge or following.is_bridge
            if not bridged and current.to_token != following.from_token:
                findings.errors.append(
                    f"Hop {index} output ({current.to_token}) does not match "
                    f"hop {index + 1} input ({following.from_token})"
                )
            if current.chain != following.chain and not current.is_bridge:
                findings.warnings.append(
                    f"Hop {index} chain ({current.chain}) differs from hop {index + 1} "
                    f"chain ({following.chain}) but protocol is not BRIDGE"
                )

    def _check_hop(self, hop: Hop, index: int, findings: _Findings) -> None:
        errors = findings.errors
        if not hop.chain:
            errors.append(f"Hop {index}: missing chain")
        elif hop.chain not in self.supported_chains:
            errors.append(f"Hop {index}: unsupported chain {hop.chain}")
        if not hop.protocol:
            errors.append(f"Hop {index}: missing protocol")
        elif hop.protocol not in self.supported_protocols:
            errors.append(f"Hop {index}: unsupported protocol {hop.protocol}")
        if not hop.from_token:
            errors.append(f"Hop {index}: missing fromToken")
        if not hop.to_token:
            errors.append(f"Hop {index}: missing toToken")
        for label, value in (("amountIn", hop.amount_in), ("amountOut", hop.amount_out)):
            if not is_finite_number(value):
                errors.append(f"Hop {index}: {label} must be a valid number")
            elif value <= 0:
                errors.append(f"Hop {index}: missing {label}")

    def _check_fees(self, fees: Fees, findings: _Findings) -> None:
        if not is_finite_number(fees.total_fee_reference):
            findings.errors.append("totalFeeUSD must be a valid number")
        elif fees.total_fee_reference < 0:
            findings.errors.append("totalFeeUSD must not be negative")

    def _check_slippage(self, slippage: RouteSlippage, findings: _Findings) -> None:
        if not is_finite_number(slippage.percentage):
            findings.errors.append("slippage.percentage must be a valid number")
        elif slippage.percentage > HIGH_SLIPPAGE_WARNING:
            findings.warnings.append(
                f"Slippage percentage is very high: {slippage.percentage * 100:.2f}%"
            )
        if not is_finite_number(slippage.min_output):
            findings.errors.append("slippage.minOutput must be a valid number")
        if slippage.is_excessive:
            findings.warnings.append("Slippage is marked as excessive - user should be warned")

    # -------------------------------------------------------------------------
    # Constraints
    # -------------------------------------------------------------------------

    def validate_constraints(
        self, route: Route, constraints: RouteConstraints | None
    ) -> ConstraintResult:
        """Compare a structurally valid route against caller limits."""
        if constraints is None:
            return ConstraintResult(satisfied=True)

        violations = []
        if constraints.max_slippage is not None:
            slippage = route.slippage.percentage if route.slippage else 0.0
            if slippage > constraints.max_slippage:
                violations.append(
                    f"Slippage {slippage * 100:.2f}% exceeds maximum "
                    f"{constraints.max_slippage * 100:.2f}%"
                )
        if constraints.max_fee_usd is not None:
            fee = route.fees.total_fee_reference if route.fees else 0.0
            if fee > constraints.max_fee_usd:
                violations.append(
                    f"Total fee ${fee:.2f} exceeds maximum ${constraints.max_fee_usd:.2f}"
                )
        if constraints.max_hops is not None and route.hop_count > constraints.max_hops:
            violations.append(
                f"Route has {route.hop_count} hops, exceeds maximum {constraints.max_hops}"
            )
        return ConstraintResult(satisfied=not violations, violations=tuple(violations))

    # -------------------------------------------------------------------------
    # Executability
    # -------------------------------------------------------------------------

    def check_executability(self, route: Route) -> ExecutabilityResult:
        reasons = []
        for chain in route.chains:
            if chain not in self.supported_chains:
                reasons.append(f"Chain {chain} is not yet supported for execution")
            elif chain in self.stub_chains:
                reasons.append(f"Chain {chain} is currently a stub - execution not available")
        if route.requires_bridge:
            reasons.append("Route requires bridging - bridge execution not yet implemented")
        return ExecutabilityResult(executable=not reasons, reasons=tuple(reasons))


__all__ = [
    "ConstraintResult",
    "ExecutabilityResult",
    "RouteValidator",
    "ValidationResult",
]
