# src/data_processing/dashboard.py

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..api.schemas import (
    DashboardData,
    DashboardReport,
    DashboardStats,
    DashboardUser,
)
from ..storage import AnalysisStore, HealthAnalysisRecord, RewardLedger


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written in UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def report_stats(records: List[HealthAnalysisRecord], now: Optional[datetime] = None) -> DashboardStats:
    """
    Counts reports in the current calendar month and ISO week (Monday start), UTC.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    week_start = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)

    created = [_as_utc(record.created_at) for record in records]
    return DashboardStats(
        total_reports=len(records),
        reports_this_month=sum(1 for moment in created if moment >= month_start),
        reports_this_week=sum(1 for moment in created if moment >= week_start),
    )


def build_dashboard(
    store: AnalysisStore,
    ledger: RewardLedger,
    wallet_address: str,
    now: Optional[datetime] = None,
) -> Optional[DashboardData]:
    """Returns None when the wallet has never completed an analysis."""
    account = ledger.get_account(wallet_address)
    if account is None:
        return None

    records = store.list_for_wallet(wallet_address)
    reports = [
        DashboardReport(
            id=record.id,
            file_name=record.file_name,
            file_size=record.file_size,
            file_type=record.file_type,
            format=record.format,
            created_at=_as_utc(record.created_at),
            updated_at=_as_utc(record.updated_at),
            analysis_data=record.analysis_data,
        )
        for record in records
    ]
    user = DashboardUser(
        wallet_address=account.wallet_address,
        tokens=account.tokens,
        total_analyses=account.total_analyses,
        last_analysis_date=_as_utc(account.last_analysis_date) if account.last_analysis_date else None,
        member_since=_as_utc(account.created_at),
    )
    return DashboardData(user=user, reports=reports, stats=report_stats(records, now))
