"""
Ledger Audit Tool — independent consistency and journal verification.

Recomputes what the stored state should look like and compares:

- every proposal's for/against tally against the sum of its vote records
- ``proposal_count`` against the stored proposals
- the operation journal's hash chain

It also reports, without failing, the gap between the running
``total_voting_power`` aggregate and the sum of current balances, and
active delegations whose delegate no longer holds the delegated amount.

Usage:
    python -m quorum_ledger.ledger.audit
    python -m quorum_ledger.ledger.audit --database-url sqlite:///quorum_ledger.db
    python -m quorum_ledger.ledger.audit --verbose
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass, field

from rich.console import Console
from rich.table import Table

from quorum_ledger.governance.ledger import GovernanceLedger

console = Console()


@dataclass
class AuditReport:
    """Findings of one audit pass."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_voting_power: int = 0
    balance_sum: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def aggregate_surplus(self) -> int:
        return self.total_voting_power - self.balance_sum


def check_consistency(ledger: GovernanceLedger) -> AuditReport:
    """Cross-check stored tallies, counters and the journal."""
    report = AuditReport(
        total_voting_power=ledger.get_total_voting_power(),
        balance_sum=sum(ledger.power.balances().values()),
    )

    count = ledger.get_proposal_count()
    for proposal_id in range(1, count + 1):
        proposal = ledger.proposals.get_proposal(proposal_id)
        if proposal is None:
            report.errors.append(f"Proposal #{proposal_id} missing (count={count})")
            continue

        votes = ledger.tally.votes_for_proposal(proposal_id)
        weight_for = sum(v.weight for v in votes if v.choice)
        weight_against = sum(v.weight for v in votes if not v.choice)
        if (weight_for, weight_against) != (proposal.votes_for, proposal.votes_against):
            report.errors.append(
                f"Proposal #{proposal_id} tally {proposal.votes_for}/{proposal.votes_against} "
                f"does not match vote records {weight_for}/{weight_against}"
            )

    if ledger.proposals.get_proposal(count + 1) is not None:
        report.errors.append(f"Proposal #{count + 1} exists beyond proposal_count={count}")

    for delegation in ledger.delegations.delegations():
        if not delegation.active:
            continue
        held = ledger.get_user_voting_power(delegation.delegate)
        if held < delegation.delegated_amount:
            report.warnings.append(
                f"Delegation {delegation.delegator} -> {delegation.delegate} of "
                f"{delegation.delegated_amount} exceeds delegate's power {held}"
            )

    is_valid, _, message = ledger.journal.verify_chain()
    if not is_valid:
        report.errors.append(f"Journal: {message}")

    return report


def run_audit(ledger: GovernanceLedger, verbose: bool = False) -> bool:
    """
    Run a full audit and print the results.

    Returns:
        True if no consistency errors were found.
    """
    console.print("\n[bold blue]═══ Quorum Ledger Audit ═══[/bold blue]\n")

    start_time = time.time()
    report = check_consistency(ledger)
    elapsed = time.time() - start_time

    console.print(f"  Proposals: [bold]{ledger.get_proposal_count()}[/bold]")
    console.print(f"  Journal entries: [bold]{ledger.journal.entry_count()}[/bold]")
    console.print(f"  Aggregate voting power: [bold]{report.total_voting_power}[/bold]")
    console.print(f"  Sum of current balances: [bold]{report.balance_sum}[/bold]")
    if report.aggregate_surplus:
        console.print(
            f"  [dim]Aggregate exceeds balances by {report.aggregate_surplus} "
            f"(power reassigned after initial grant)[/dim]"
        )

    for warning in report.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

    if report.is_valid:
        console.print("[bold green]✓ CONSISTENT[/bold green]")
    else:
        console.print("[bold red]✗ INCONSISTENT[/bold red]")
        for error in report.errors:
            console.print(f"  [red]{error}[/red]")
    console.print(f"  Audit time: {elapsed:.3f}s")

    if verbose:
        console.print("\n[bold]Proposals:[/bold]")
        table = Table(show_lines=True)
        table.add_column("#", style="cyan", width=5)
        table.add_column("Title", style="green", width=30)
        table.add_column("Window", width=14)
        table.add_column("For", justify="right")
        table.add_column("Against", justify="right")
        table.add_column("Quorum", justify="right")
        table.add_column("Status", style="yellow")

        for proposal_id in range(1, ledger.get_proposal_count() + 1):
            proposal = ledger.get_proposal(proposal_id)
            if proposal is None:
                continue
            table.add_row(
                str(proposal.id),
                proposal.title,
                f"{proposal.start_height}–{proposal.end_height}",
                str(proposal.votes_for),
                str(proposal.votes_against),
                str(proposal.quorum_required),
                proposal.status.value,
            )
        console.print(table)

        console.print("\n[bold]Recent journal entries:[/bold]")
        journal_table = Table(show_lines=True)
        journal_table.add_column("Seq", style="cyan", width=6)
        journal_table.add_column("Height", width=8)
        journal_table.add_column("Operation", style="green", width=24)
        journal_table.add_column("Caller", style="yellow", width=20)
        journal_table.add_column("Hash (first 16)", style="dim", width=18)
        for entry in reversed(ledger.journal.latest_entries(limit=50)):
            journal_table.add_row(
                str(entry.sequence_number),
                str(entry.height),
                entry.operation,
                entry.caller,
                entry.entry_hash[:16] + "...",
            )
        console.print(journal_table)

    console.print("\n[bold blue]═══ Audit Complete ═══[/bold blue]\n")
    return report.is_valid


def main() -> None:
    parser = argparse.ArgumentParser(description="Quorum Ledger consistency auditor")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy connection string (defaults to .env settings)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show proposal and journal listings",
    )
    args = parser.parse_args()

    from quorum_ledger.config import settings
    from quorum_ledger.ledger.store import SqlStore
    from quorum_ledger.orchestrator import build_ledger, configure_logging

    configure_logging()
    store = SqlStore(args.database_url or settings.database_url)
    store.initialize()
    is_valid = run_audit(build_ledger(store=store), verbose=args.verbose)
    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    main()
