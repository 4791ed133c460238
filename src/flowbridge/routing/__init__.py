"""CSS routing: native class styles vs. the CSS embed artifact."""

from flowbridge.routing.router import (
    Destination,
    PropertyRoute,
    RouteDecision,
    RoutingResult,
    declaration_embed_reason,
    route,
    selector_embed_reason,
)

__all__ = [
    "Destination",
    "PropertyRoute",
    "RouteDecision",
    "RoutingResult",
    "route",
    "selector_embed_reason",
    "declaration_embed_reason",
]
