"""ContentGateway protocol - dereferences a content hash into its JSON body."""

from __future__ import annotations

from typing import Any, Protocol


class ContentGateway(Protocol):
    """Resolves a CID through a gateway URL template containing ``{cid}``."""

    async def fetch_json(self, cid: str, template: str | None) -> Any:
        """Retrieve the content behind ``cid`` and parse it as JSON."""
        ...
