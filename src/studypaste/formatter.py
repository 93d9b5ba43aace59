"""Client side of the AI formatting service.

The HTTP client is injected as a ``transport`` callable taking the request
payload and returning the decoded JSON reply, so any client (or a stub in
tests) can be used.
"""

from typing import Any, Callable, Mapping, Optional

from .dispatcher import PasteDispatcher

Transport = Callable[[dict], Mapping[str, Any]]


class AiFormatter:
    """Send raw text to the formatting service and clean the HTML it returns."""

    def __init__(self, transport: Transport, dispatcher: Optional[PasteDispatcher] = None):
        self._transport = transport
        self._dispatcher = dispatcher or PasteDispatcher()

    def format(self, text: str) -> str:
        if not text or not text.strip():
            raise ValueError("Text is required for formatting")

        reply = self._transport({"text": text})
        return self._dispatcher.clean_ai_response(self._formatted_html(reply))

    def _formatted_html(self, reply: Mapping[str, Any]) -> str:
        if not isinstance(reply, Mapping):
            raise ValueError("Formatting service returned an unexpected reply")
        for candidate in (reply, reply.get("data")):
            if isinstance(candidate, Mapping) and isinstance(candidate.get("formattedHTML"), str):
                return candidate["formattedHTML"]
        raise ValueError("Formatting service reply has no formattedHTML")
