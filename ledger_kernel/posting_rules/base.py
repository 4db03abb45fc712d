"""
Base posting rule protocol.

A posting rule turns one kind of source document into proposed ledger
lines. Rules are:
- Deterministic: the same document always yields the same lines
- Versioned: several versions of a rule can be registered side by side
- Stateless: computing lines has no side effects
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from ledger_kernel.domain.documents import DocumentKind, PostableDocument
from ledger_kernel.domain.ledger import AccountSnapshot, LineSpec
from ledger_kernel.exceptions import InvalidDocumentError


@runtime_checkable
class PostingRule(Protocol):
    """Protocol every posting rule satisfies."""

    @property
    def document_kind(self) -> DocumentKind:
        ...

    @property
    def version(self) -> int:
        ...

    def validate(self, document: PostableDocument) -> None:
        ...

    def compute_lines(self, document: PostableDocument) -> list[LineSpec]:
        ...

    def check_preconditions(
        self, document: PostableDocument, accounts: Mapping[str, AccountSnapshot],
    ) -> None:
        ...

    def describe(self, document: PostableDocument) -> str:
        ...


class BasePostingRule(ABC):
    """
    Abstract base class for posting rules.

    Subclasses implement ``compute_lines``. ``check_preconditions`` runs
    inside the posting unit, after the touched accounts are locked, so it
    sees current balances.
    """

    @property
    @abstractmethod
    def document_kind(self) -> DocumentKind:
        pass

    @property
    def version(self) -> int:
        return 1

    @abstractmethod
    def compute_lines(self, document: PostableDocument) -> list[LineSpec]:
        pass

    def validate(self, document: PostableDocument) -> None:
        """
        Reject documents this rule cannot post.

        Runs before anything touches the store.
        """
        if document.kind != self.document_kind:
            raise InvalidDocumentError(
                f"document kind mismatch: expected {self.document_kind.value}, "
                f"got {document.kind.value}",
                document.document_id,
            )

    def check_preconditions(
        self, document: PostableDocument, accounts: Mapping[str, AccountSnapshot],
    ) -> None:
        """Business checks against locked account state. Default: none."""

    def describe(self, document: PostableDocument) -> str:
        return f"{self.document_kind.value.replace('_', ' ').title()} {document.document_id}"
