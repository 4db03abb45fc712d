"""
Posting rule registry.

Registration and lookup of posting rules by document kind, with versioning.
"""

from ledger_kernel.domain.documents import DocumentKind, PostableDocument
from ledger_kernel.domain.ledger import LineSpec
from ledger_kernel.exceptions import PostingRuleNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.posting_rules.base import PostingRule

logger = get_logger("posting_rules.registry")


class PostingRuleRegistry:
    """
    Registry for posting rules.

    Several versions of a rule can be registered for one document kind;
    lookups without a version use the default (the last registered with
    ``set_default=True``, else the highest).
    """

    def __init__(self) -> None:
        self._rules: dict[DocumentKind, dict[int, PostingRule]] = {}
        self._default_versions: dict[DocumentKind, int] = {}

    def register(self, rule: PostingRule, set_default: bool = True) -> None:
        kind = DocumentKind(rule.document_kind)
        self._rules.setdefault(kind, {})[rule.version] = rule
        if set_default:
            self._default_versions[kind] = rule.version
        logger.debug("posting_rule_registered", extra={
            "document_kind": kind.value,
            "version": rule.version,
            "rule": type(rule).__name__,
        })

    def get_rule(self, kind: DocumentKind, version: int | None = None) -> PostingRule | None:
        versions = self._rules.get(DocumentKind(kind))
        if not versions:
            return None
        if version is None:
            version = self._default_versions.get(DocumentKind(kind), max(versions))
        return versions.get(version)

    def require_rule(self, kind: DocumentKind, version: int | None = None) -> PostingRule:
        rule = self.get_rule(kind, version)
        if rule is None:
            raise PostingRuleNotFoundError(DocumentKind(kind).value)
        return rule

    def compute_lines(self, document: PostableDocument, version: int | None = None) -> list[LineSpec]:
        """Look up the rule for ``document`` and compute its lines."""
        rule = self.require_rule(document.kind, version)
        rule.validate(document)
        return rule.compute_lines(document)

    def list_document_kinds(self) -> list[DocumentKind]:
        return list(self._rules)

    def list_versions(self, kind: DocumentKind) -> list[int]:
        return sorted(self._rules.get(DocumentKind(kind), {}))


_default_registry = PostingRuleRegistry()


def get_default_registry() -> PostingRuleRegistry:
    """Get the process-wide default registry."""
    return _default_registry


def register_rule(rule: PostingRule, set_default: bool = True) -> None:
    """Register a rule in the default registry."""
    _default_registry.register(rule, set_default)
