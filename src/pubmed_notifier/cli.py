"""CLI entry point for the PubMed notifier."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from pubmed_notifier.adapters.formatting import ItemFormatter
from pubmed_notifier.adapters.llm import ClaudeTranslator
from pubmed_notifier.adapters.notifications import LineNotifier, SlackNotifier
from pubmed_notifier.adapters.sources import PubMedRSSSource
from pubmed_notifier.adapters.storage import (
    WorkbookCredentialStore,
    WorkbookSubscriptionStore,
    YamlWorkbook,
)
from pubmed_notifier.config import Settings, get_settings
from pubmed_notifier.core import ConfigError, NotificationProvider, RunReport, build_policy
from pubmed_notifier.use_cases import NotificationRunService


def build_provider(settings: Settings) -> NotificationProvider:
    """Create the notification provider selected in settings."""
    if settings.provider == "line":
        return LineNotifier(
            max_chars=settings.line.max_chars,
            silent_after_first=settings.line.silent_after_first,
            timeout=settings.line.timeout,
        )
    return SlackNotifier(
        group_size=settings.slack.group_size,
        max_blocks=settings.slack.max_blocks,
        timeout=settings.slack.timeout,
    )


def build_service(settings: Settings, dry_run: bool = False) -> NotificationRunService:
    """Wire adapters into a run service."""
    workbook = YamlWorkbook(settings.storage.workbook_path)
    provider = build_provider(settings)

    translator = ClaudeTranslator(settings) if settings.translation.enabled else None
    formatter = ItemFormatter(
        provider,
        translator=translator,
        source_lang=settings.translation.source_lang,
        target_lang=settings.translation.target_lang,
        fallback_on_error=settings.translation.on_error == "fallback",
    )

    return NotificationRunService(
        subscription_store=WorkbookSubscriptionStore(workbook, settings.storage.subscriptions_sheet),
        credential_store=WorkbookCredentialStore(workbook, settings.credential_sheet),
        source=PubMedRSSSource(timeout=settings.feed.timeout, user_agent=settings.feed.user_agent),
        dedup=build_policy(
            settings.dedup.policy,
            max_ids=settings.dedup.max_ids,
            advance_on_empty=settings.dedup.advance_on_empty,
        ),
        formatter=formatter,
        provider=provider,
        dry_run=dry_run,
    )


def print_report(report: RunReport) -> None:
    print("\n" + "=" * 70)
    print(f"✅ DONE: {report.delivered} delivered, {report.failed} failed, {len(report.outcomes)} total")
    print("=" * 70)
    for outcome in report.outcomes:
        subscription = outcome.subscription
        line = f"  • {subscription.keyword or subscription.feed_url}: {outcome.status.value}"
        if outcome.new_items:
            line += f" ({outcome.new_items} new, {outcome.batches_sent} sent)"
        print(line)
    print()


def main(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
    workbook: Optional[Path] = typer.Option(None, "--workbook", help="Override workbook path"),
    provider: Optional[str] = typer.Option(None, "--provider", help="slack or line"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print messages without sending or saving state"),
) -> None:
    """Check PubMed RSS subscriptions and notify about new articles."""
    try:
        settings = get_settings(config)
        if workbook is not None:
            settings.storage.workbook_path = workbook
        if provider is not None:
            settings.provider = provider
            settings.validate()
        service = build_service(settings, dry_run=dry_run)
        report = asyncio.run(service.run())
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        raise typer.Exit(code=2)

    print_report(report)


def app() -> None:
    """CLI entry point."""
    typer.run(main)


if __name__ == "__main__":
    app()
