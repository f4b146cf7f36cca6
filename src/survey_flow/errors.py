"""Typed error taxonomy raised by the form-flow SDK.

Every error derives from :class:`FormError` and carries the HTTP status code
the server layer should answer with, plus whatever section / question /
answer ids locate the violation.  The SDK never catches these: the first
violation aborts the operation and propagates to the caller.

  ResourceNotFound    — a referenced section/question/answer does not exist
  WrongData           — input contradicts the graph (type mismatch, answer
                        coverage mismatch, authoring rule)
  SameElement         — an edge or reorder would point an element at itself
  BadRequest          — submission ordering, exclusivity, or regex violation
  FormIntegrityError  — branch resolution is conflicting or unresolved; the
                        stored graph is corrupt, not the caller's input
  GraphIntegrityError — a section's question chain is broken
"""

from __future__ import annotations


class FormError(Exception):
    """Base class for every SDK error.

    Attributes:
        message: full diagnostic message (safe to log)
        status_code: HTTP status the server maps this error to
        section_id / question_id / answer_id: optional location context
    """

    status_code: int = 400
    # Integrity errors replace the message with this text for clients.
    public_message: str | None = None

    def __init__(
        self,
        message: str,
        *,
        section_id: int | None = None,
        question_id: int | None = None,
        answer_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.section_id = section_id
        self.question_id = question_id
        self.answer_id = answer_id

    @property
    def context(self) -> dict[str, int]:
        """Non-null location ids, for logs and error payloads."""
        ctx = {
            "section_id": self.section_id,
            "question_id": self.question_id,
            "answer_id": self.answer_id,
        }
        return {k: v for k, v in ctx.items() if v is not None}

    def to_detail(self) -> dict:
        """Client-facing error body."""
        return {
            "error": type(self).__name__,
            "detail": self.public_message or self.message,
            **self.context,
        }


class ResourceNotFound(FormError):
    status_code = 404

    def __init__(self, resource: str, **context: int | None) -> None:
        super().__init__(f"{resource} was not found", **context)


class WrongData(FormError):
    status_code = 400


class SameElement(FormError):
    status_code = 400


class BadRequest(FormError):
    status_code = 400


class FormIntegrityError(FormError):
    status_code = 500
    public_message = "The form definition is inconsistent"


class GraphIntegrityError(FormIntegrityError):
    """Raised by the order resolver when a section's chain is malformed."""

    public_message = "The question order of a section is inconsistent"


# --- Boundary errors raised by the server layer, not by the engine ---


class FormPublished(FormError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("The form is published")


class FormNotPublished(FormError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("The form is not published")


class EditingLocked(FormError):
    status_code = 423

    def __init__(self) -> None:
        super().__init__("The form is locked for editing")
