"""Error types for schema graph resolution."""

from typing import Optional, Dict, Any


class SchemaGraphError(Exception):
    """Base exception for schemagraph errors."""

    def __init__(self, message: str, code: str = "SCHEMAGRAPH_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for reporting."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(SchemaGraphError):
    """Invalid configuration value (type mode, initialism, engine name...)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class CapabilityError(SchemaGraphError):
    """An optional adapter capability was invoked but is not supported."""

    def __init__(self, engine: str, capability: str):
        super().__init__(
            f"{engine} adapter does not support {capability}",
            code="CAPABILITY_ERROR",
            details={"engine": engine, "capability": capability},
        )
        self.engine = engine
        self.capability = capability


class ConsistencyError(SchemaGraphError):
    """A catalog reference could not be resolved against the built graph.

    Raised for foreign keys whose column, referenced table or referenced
    column is missing, and for index columns or ordinals that cannot be
    matched. The message always names the schema qualified relation.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONSISTENCY_ERROR", details=details)


class QueryParseError(SchemaGraphError):
    """Malformed ad-hoc query or query parameter placeholder."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="QUERY_PARSE_ERROR", details=details)


class ViewCleanupError(SchemaGraphError):
    """The ephemeral introspection view could not be dropped."""

    def __init__(self, view_name: str, cause: Exception):
        super().__init__(
            f"could not drop introspection view {view_name}: {cause}",
            code="VIEW_CLEANUP_ERROR",
            details={"view": view_name},
        )
        self.view_name = view_name
        self.cause = cause
