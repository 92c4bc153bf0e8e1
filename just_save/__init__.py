"""Public interface for the ``just_save`` package.

Symbol re-exports only: the pipeline, its gateway factory, settings, domain
records and the error taxonomy.
"""

from .api import StatementPipeline
from .audit import AuditedSubscription, AuditReport, SubscriptionDecision, build_audit_report
from .config import Settings
from .errors import (
    AnalysisCancelled,
    ConfigurationError,
    EmptyInput,
    FileTooLarge,
    JustSaveError,
    MalformedInsights,
    NoJsonFound,
    NoTransactionsFound,
    ReasoningTimeout,
    ReasoningUnavailable,
    UnsupportedFileType,
)
from .gateway import AnthropicGateway, OpenAIGateway, ReasoningGateway, create_gateway
from .models import (
    Analysis,
    CategorySpending,
    Confidence,
    Frequency,
    Insights,
    SourceKind,
    Subscription,
    Transaction,
    TransactionType,
)
from .stages import Stage

__all__ = [
    # Pipeline
    "StatementPipeline",
    "Stage",
    "Settings",
    # Gateway
    "ReasoningGateway",
    "AnthropicGateway",
    "OpenAIGateway",
    "create_gateway",
    # Models
    "Analysis",
    "CategorySpending",
    "Confidence",
    "Frequency",
    "Insights",
    "SourceKind",
    "Subscription",
    "Transaction",
    "TransactionType",
    # Audit
    "AuditReport",
    "AuditedSubscription",
    "SubscriptionDecision",
    "build_audit_report",
    # Errors
    "JustSaveError",
    "AnalysisCancelled",
    "ConfigurationError",
    "EmptyInput",
    "FileTooLarge",
    "MalformedInsights",
    "NoJsonFound",
    "NoTransactionsFound",
    "ReasoningTimeout",
    "ReasoningUnavailable",
    "UnsupportedFileType",
]
