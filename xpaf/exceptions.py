"""
XPAF Custom Exceptions

All module-specific exceptions inherit from XpafError.
"""


class XpafError(Exception):
    """Base exception for all XPAF errors."""

    pass


# Schema Exceptions
class SchemaError(XpafError):
    """Base exception for errors found while loading parser definitions."""

    pass


class InvalidNameError(SchemaError):
    """Raised when a query, group or parser name is malformed."""

    pass


class DuplicateNameError(SchemaError):
    """Raised when a name is defined twice within one scope."""

    pass


class UnresolvedReferenceError(SchemaError):
    """Raised when a template references an undefined query."""

    pass


class InvalidRegexpError(SchemaError):
    """Raised when a url_regexp or post-processing regexp does not compile."""

    pass


class InvalidQueryError(SchemaError):
    """Raised when an XPath query does not compile."""

    pass


class InvalidPredicateError(SchemaError):
    """Raised when a predicate is a query reference instead of a literal."""

    pass


# Evaluation Exceptions
class EvaluationError(XpafError):
    """Base exception for per-document evaluation errors."""

    pass


class DocumentParseError(EvaluationError):
    """Raised when a document cannot be parsed into a DOM tree."""

    pass


class QueryEvaluationError(EvaluationError):
    """Raised when the XPath engine fails to evaluate a query."""

    pass


class QueryResultTypeError(EvaluationError):
    """Raised when a query returns a result of the wrong type."""

    pass


class GroupCardinalityError(EvaluationError):
    """Raised when a group query yields more than one node for a root."""

    pass
