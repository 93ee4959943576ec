"""Dedup and filter engine.

Decides which fetched findings are worth notifying about: recent,
not excluded and not already sent within the relevance window.
"""

from collections.abc import Iterable, Sequence

from .models import RELEVANCE_WINDOW_MS, FilterResult, Finding, SentFinding


def prune_sent_log(
    sent_log: Iterable[SentFinding], now_ms: int
) -> tuple[SentFinding, ...]:
    """Drop sent-log entries at or before the relevance cutoff."""
    cutoff = now_ms - RELEVANCE_WINDOW_MS
    return tuple(entry for entry in sent_log if entry.timestamp > cutoff)


def is_excluded(finding: Finding, excluded: Iterable[str]) -> bool:
    """Return True if the finding's ID or reporter is in the exclusion list.

    IDs compare exactly; reporter names compare case-insensitively.
    """
    reporter = finding.reporter.lower()
    for entry in excluded:
        if entry == finding.id or entry.lower() == reporter:
            return True
    return False


def filter_findings(
    findings: Sequence[Finding],
    excluded: Iterable[str],
    sent_log: Iterable[SentFinding],
    now_ms: int,
) -> FilterResult:
    """Select findings that are new, recent and not excluded.

    Args:
        findings: Findings in source order.
        excluded: Finding IDs and reporter names to suppress.
        sent_log: Previously dispatched finding IDs.
        now_ms: Current time in epoch milliseconds.

    Returns:
        FilterResult with the kept findings in source order and the
        sent-log minus expired entries.
    """
    cutoff = now_ms - RELEVANCE_WINDOW_MS
    pruned = prune_sent_log(sent_log, now_ms)
    sent_ids = {entry.finding_id for entry in pruned}
    excluded = list(excluded)

    keep = tuple(
        finding
        for finding in findings
        if finding.timestamp > cutoff
        and finding.id not in sent_ids
        and not is_excluded(finding, excluded)
    )
    return FilterResult(keep=keep, pruned_sent_log=pruned)
