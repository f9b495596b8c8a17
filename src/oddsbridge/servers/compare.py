"""Compare tool server: match two get_comparable_markets outputs. No upstream calls."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from oddsbridge.core.args import float_arg
from oddsbridge.core.matching import DEFAULT_THRESHOLD, match_markets
from oddsbridge.errors import ToolInputError
from oddsbridge.models import ComparableMarket
from oddsbridge.servers.base import ToolServer, object_schema, require

_SIDE = {
    "type": "object",
    "description": "A get_comparable_markets result (or just its markets list)",
}


def _markets(side: Any, label: str) -> tuple[str, list[ComparableMarket]]:
    if isinstance(side, list):
        platform, rows = label, side
    elif isinstance(side, dict):
        platform, rows = side.get("platform") or label, side.get("markets") or []
    else:
        raise ToolInputError(f"{label} must be an object or a list of markets")
    try:
        return platform, [ComparableMarket.model_validate(row) for row in rows]
    except ValidationError as e:
        raise ToolInputError(f"{label} has a malformed market: {e.errors()[0]['msg']}") from e


class CompareServer(ToolServer):
    name = "compare"

    def register_tools(self) -> None:
        self.add_tool(
            "match_comparable_markets",
            "Pair markets from two platforms by keyword/team Jaccard similarity and report "
            "per-outcome probability gaps.",
            object_schema(
                {
                    "left": _SIDE,
                    "right": _SIDE,
                    "threshold": {"type": "number", "description": "Minimum similarity (default 0.5)"},
                },
                required=["left", "right"],
            ),
            self.match_comparable_markets,
        )

    async def match_comparable_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        left_platform, left = _markets(require(args, "left"), "left")
        right_platform, right = _markets(require(args, "right"), "right")
        threshold = float_arg(args, "threshold", DEFAULT_THRESHOLD, minimum=0)
        matches = match_markets(left, right, threshold=threshold)
        significant = sum(1 for m in matches if any(g.significance == "significant" for g in m.outcome_gaps))
        return {
            "leftPlatform": left_platform,
            "rightPlatform": right_platform,
            "threshold": threshold,
            "matches": [m.to_dict() for m in matches],
            "matchCount": len(matches),
            "significantGapCount": significant,
        }
