"""Table storage adapters."""

from pubmed_notifier.adapters.storage.yaml_workbook import (
    WorkbookCredentialStore,
    WorkbookSubscriptionStore,
    YamlWorkbook,
)

__all__ = ["YamlWorkbook", "WorkbookSubscriptionStore", "WorkbookCredentialStore"]
